"""
Play execution for Rummikub.

A play submits the indices of the hand tiles being laid down together with
the complete proposed table. The executor checks, in order:

1. joker retrievals (player must have opened, slot must hold a joker,
   replacement must match the value the joker represents)
2. removal of the played tiles from the working hand
3. the opening requirement for players who have not opened yet
4. full re-validation of every proposed meld
5. table preservation (proposed table == previous table + played tiles)

Hand indices ``0..len(hand)-1`` address the hand as it was at the start of
the turn. The ``k``-th joker retrieved this turn is addressed as
``len(hand) + k``. A hand slot spent as a retrieval replacement is gone.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

import structlog

from rummikub.logic.enums import GameErrorCode, GameStatus, MeldKind
from rummikub.logic.exceptions import (
    JokerRetrievalError,
    MeldStructureError,
    OpeningError,
    TurnError,
)
from rummikub.logic.melds import (
    Meld,
    count_meld_tiles,
    joker_replacement_matches,
    meld_points,
    replace_tile,
    validate_meld,
)
from rummikub.logic.scoring import apply_end_game_scores
from rummikub.logic.state_utils import advance_turn, update_player
from rummikub.logic.tiles import sort_tiles

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rummikub.logic.state import GameRecord
    from rummikub.logic.tiles import Tile
    from rummikub.logic.types import JokerRetrieval

logger = structlog.get_logger()


def _retrieve_jokers(
    hand: tuple[Tile, ...],
    table: list[Meld],
    retrievals: Sequence[JokerRetrieval],
    *,
    max_rank: int,
    max_set_size: int,
) -> tuple[set[int], list[Tile]]:
    """
    Apply retrievals in order, mutating the working ``table`` list.

    Returns (consumed hand indices, retrieved jokers).
    """
    consumed: set[int] = set()
    retrieved: list[Tile] = []
    for retrieval in retrievals:
        if not 0 <= retrieval.meld_index < len(table):
            raise MeldStructureError(GameErrorCode.INVALID_MELD_INDEX)
        meld = table[retrieval.meld_index]
        if not 0 <= retrieval.joker_position < len(meld.tiles):
            raise MeldStructureError(GameErrorCode.INVALID_TILE_POSITION)
        joker = meld.tiles[retrieval.joker_position]
        if not joker.is_joker:
            raise JokerRetrievalError(GameErrorCode.NOT_A_JOKER)
        if not 0 <= retrieval.replacement_index < len(hand) or retrieval.replacement_index in consumed:
            raise MeldStructureError(GameErrorCode.INVALID_TILE_INDEX)

        replacement = hand[retrieval.replacement_index]
        analysis = validate_meld(meld, max_rank=max_rank, max_set_size=max_set_size)
        if not joker_replacement_matches(meld, analysis, retrieval.joker_position, replacement):
            raise JokerRetrievalError(GameErrorCode.INVALID_JOKER_REPLACEMENT)

        table[retrieval.meld_index] = replace_tile(meld, retrieval.joker_position, replacement)
        consumed.add(retrieval.replacement_index)
        retrieved.append(joker)
    return consumed, retrieved


def _check_played_indices(
    tiles_from_hand: Sequence[int],
    available: list[int],
    hand_size: int,
    retrieved_count: int,
) -> None:
    if not tiles_from_hand:
        raise MeldStructureError(GameErrorCode.INVALID_TILE_INDEX, "must play at least one tile")
    if len(tiles_from_hand) > len(available):
        raise TurnError(GameErrorCode.TOO_MANY_TILES)
    if len(set(tiles_from_hand)) != len(tiles_from_hand):
        raise MeldStructureError(GameErrorCode.INVALID_TILE_INDEX, "duplicate tile index")
    allowed = set(available)
    for index in tiles_from_hand:
        if index not in allowed:
            raise MeldStructureError(GameErrorCode.INVALID_TILE_INDEX)

    if retrieved_count:
        played = set(tiles_from_hand)
        for k in range(retrieved_count):
            if hand_size + k not in played:
                raise JokerRetrievalError(GameErrorCode.MUST_PLAY_RETRIEVED_JOKER)
        if not any(index < hand_size for index in played):
            raise JokerRetrievalError(GameErrorCode.MUST_PLAY_TILE_WITH_JOKER)


def _meld_key(meld: Meld) -> tuple[MeldKind, tuple[Tile, ...]]:
    # set slots carry no order; run slots are positional
    if meld.kind == MeldKind.SET:
        return meld.kind, sort_tiles(meld.tiles)
    return meld.kind, meld.tiles


def _opening_points(
    old_table: tuple[Meld, ...],
    proposed: Sequence[Meld],
    *,
    max_rank: int,
    max_set_size: int,
) -> int:
    """
    Points laid down in an opening play.

    Every meld already on the table must reappear with the same tiles (a set
    may be reordered); the remaining proposed melds are the player's own and
    are validated here to value their jokers.
    """
    untouched = Counter(_meld_key(m) for m in old_table)
    points = 0
    for meld in proposed:
        key = _meld_key(meld)
        if untouched[key] > 0:
            untouched[key] -= 1
        else:
            points += meld_points(validate_meld(meld, max_rank=max_rank, max_set_size=max_set_size))
    if any(count > 0 for count in untouched.values()):
        raise OpeningError(GameErrorCode.INITIAL_MELD_CANNOT_USE_TABLE)
    return points


def execute_play(
    record: GameRecord,
    player_index: int,
    tiles_from_hand: Sequence[int],
    proposed_table_melds: Sequence[Meld],
    joker_retrievals: Sequence[JokerRetrieval] = (),
) -> GameRecord:
    """
    Validate and apply a play, returning the new record.

    On an emptied hand the game finishes with the player as winner and final
    scores applied; otherwise the turn passes to the next seat. Raises
    GameRuleError on any violation, leaving ``record`` untouched.
    """
    if record.status != GameStatus.IN_PROGRESS:
        raise TurnError(GameErrorCode.GAME_NOT_IN_PROGRESS)
    if player_index != record.current_player_index:
        raise TurnError(GameErrorCode.NOT_PLAYER_TURN)

    settings = record.settings
    player = record.players[player_index]
    hand = player.hand
    table = list(record.table_melds)

    consumed: set[int] = set()
    retrieved: list[Tile] = []
    if joker_retrievals:
        if not player.has_opened:
            raise JokerRetrievalError(GameErrorCode.CANNOT_RETRIEVE_JOKER_BEFORE_OPENING)
        consumed, retrieved = _retrieve_jokers(
            hand,
            table,
            joker_retrievals,
            max_rank=settings.max_rank,
            max_set_size=settings.max_set_size,
        )

    hand_size = len(hand)
    working = {i: hand[i] for i in range(hand_size) if i not in consumed}
    working.update({hand_size + k: joker for k, joker in enumerate(retrieved)})

    _check_played_indices(tiles_from_hand, list(working), hand_size, len(retrieved))
    played = [working[i] for i in tiles_from_hand]

    if not player.has_opened:
        points = _opening_points(
            record.table_melds,
            proposed_table_melds,
            max_rank=settings.max_rank,
            max_set_size=settings.max_set_size,
        )
        if points < settings.min_initial_meld:
            raise OpeningError(
                GameErrorCode.INITIAL_MELD_TOO_LOW,
                f"initial meld is worth {points} points, need at least {settings.min_initial_meld}",
            )

    for meld in proposed_table_melds:
        validate_meld(meld, max_rank=settings.max_rank, max_set_size=settings.max_set_size)

    if count_meld_tiles(proposed_table_melds) != count_meld_tiles(table) + Counter(played):
        raise OpeningError(GameErrorCode.MUST_PRESERVE_TABLE_TILES)

    played_set = set(tiles_from_hand)
    remaining = tuple(tile for i, tile in working.items() if i not in played_set)

    new_record = update_player(record, player_index, hand=remaining, has_opened=True)
    new_record = new_record.model_copy(update={"table_melds": tuple(proposed_table_melds)})

    logger.info(
        "tiles played",
        seat=player_index,
        played=len(played),
        retrieved=len(retrieved),
        melds=len(proposed_table_melds),
        tiles_left=len(remaining),
    )

    if not remaining:
        new_record = new_record.model_copy(update={"status": GameStatus.FINISHED, "winner": player.identity})
        logger.info("game finished", winner=player.identity, seat=player_index)
        return apply_end_game_scores(new_record)

    return advance_turn(new_record)
