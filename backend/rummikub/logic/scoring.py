"""
End-of-game scoring for Rummikub.

When a player empties their hand every other player is penalized by the
value of the tiles they still hold (numbers at face value, jokers at the
joker penalty). The winner scores the sum of those penalties, so scores
always total zero.
"""

from __future__ import annotations

from rummikub.logic.enums import GameStatus
from rummikub.logic.state import GameRecord, find_player_index
from rummikub.logic.tiles import hand_value
from rummikub.logic.types import PlayerStanding


def apply_end_game_scores(record: GameRecord) -> GameRecord:
    """
    Return new record with final scores written to every player.

    Scores are assigned, not accumulated. Requires ``record.winner`` to name
    a seated player.
    """
    winner_index = find_player_index(record, record.winner or "")
    if winner_index is None:
        raise ValueError(f"winner {record.winner!r} is not seated in game {record.game_id}")

    penalty = record.settings.joker_penalty
    players = list(record.players)
    total_penalties = 0
    for seat, player in enumerate(players):
        if seat == winner_index:
            continue
        value = hand_value(player.hand, penalty)
        total_penalties += value
        players[seat] = player.model_copy(update={"score": -value})

    players[winner_index] = players[winner_index].model_copy(update={"score": total_penalties})
    return record.model_copy(update={"players": tuple(players)})


def final_standings(record: GameRecord) -> list[PlayerStanding]:
    """
    Return players ordered by final score, best first.

    Ties keep seat order. Only meaningful once the game has finished.
    """
    if record.status != GameStatus.FINISHED:
        raise ValueError(f"game {record.game_id} has not finished")

    def _sort_key(item: tuple[int, int]) -> tuple[int, int]:
        seat, score = item
        return -score, seat

    ranked = sorted(((seat, p.score) for seat, p in enumerate(record.players)), key=_sort_key)
    return [
        PlayerStanding(
            seat=seat,
            identity=record.players[seat].identity,
            score=score,
            tiles_left=record.players[seat].hand_count,
        )
        for seat, score in ranked
    ]
