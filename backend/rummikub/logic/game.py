"""
Game lifecycle and turn state machine for Rummikub.

Records move strictly forward: waiting_for_players -> in_progress -> finished.
Every function takes a record and returns a new one; a GameRuleError means
the action was rejected and the input record is still authoritative.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from rummikub.logic.enums import GameErrorCode, GameStatus
from rummikub.logic.exceptions import GameRuleError, LobbyError, TurnError
from rummikub.logic.play import execute_play
from rummikub.logic.pool import create_pool, deal_initial_hands, shuffle_pool
from rummikub.logic.pool import draw_tile as draw_from_pool
from rummikub.logic.rng import generate_seed, shuffle_tiles, validate_seed_hex
from rummikub.logic.settings import GameSettings, validate_settings
from rummikub.logic.state import GameRecord, Player, find_player_index
from rummikub.logic.state_utils import add_tile_to_player, advance_turn, bump_revision

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rummikub.logic.melds import Meld
    from rummikub.logic.rng import Shuffler
    from rummikub.logic.types import JokerRetrieval

logger = structlog.get_logger()


def initialize_game(
    game_id: str,
    max_players: int,
    *,
    authority: str = "",
    settings: GameSettings | None = None,
    seed: str | None = None,
) -> GameRecord:
    """
    Create a game record waiting for ``max_players`` players.

    The pool holds the full unshuffled deck until the last seat fills.
    ``seed`` pre-commits the randomness used for that shuffle.
    """
    settings = settings or GameSettings()
    validate_settings(settings)
    if not settings.min_players <= max_players <= settings.max_players:
        raise LobbyError(
            GameErrorCode.INVALID_PLAYER_COUNT,
            f"player count must be between {settings.min_players} and {settings.max_players}, got {max_players}",
        )
    if seed is not None:
        validate_seed_hex(seed)

    logger.info("game initialized", game_id=game_id, max_players=max_players)
    return GameRecord(
        game_id=game_id,
        authority=authority,
        max_players=max_players,
        pool=create_pool(settings),
        seed=seed or "",
        settings=settings,
    )


def _start_game(record: GameRecord, seed: str | None, shuffler: Shuffler) -> GameRecord:
    """Shuffle the pool, deal every seat and hand the first turn to seat 0."""
    game_seed = seed or record.seed or generate_seed()
    validate_seed_hex(game_seed)
    pool = shuffle_pool(record.pool, game_seed, counter=record.shuffle_count, shuffler=shuffler)
    pool, hands = deal_initial_hands(pool, len(record.players), record.settings.initial_hand_size)
    players = tuple(p.model_copy(update={"hand": hand}) for p, hand in zip(record.players, hands, strict=True))

    logger.info("game started", game_id=record.game_id, players=len(players), pool=len(pool))
    return record.model_copy(
        update={
            "players": players,
            "pool": pool,
            "seed": game_seed,
            "shuffle_count": record.shuffle_count + 1,
            "status": GameStatus.IN_PROGRESS,
            "current_player_index": 0,
        },
    )


def join_game(
    record: GameRecord,
    identity: str,
    *,
    seed: str | None = None,
    shuffler: Shuffler = shuffle_tiles,
) -> GameRecord:
    """
    Seat a new player and collect the entry fee into the prize pool.

    Filling the last seat shuffles the pool and deals the opening hands.
    """
    if record.status != GameStatus.WAITING_FOR_PLAYERS:
        raise LobbyError(GameErrorCode.GAME_ALREADY_STARTED)
    if record.current_player_count >= record.max_players:
        raise LobbyError(GameErrorCode.GAME_FULL)
    if find_player_index(record, identity) is not None:
        raise LobbyError(GameErrorCode.PLAYER_ALREADY_JOINED)

    new_record = record.model_copy(
        update={
            "players": (*record.players, Player(identity=identity)),
            "prize_pool": record.prize_pool + record.settings.entry_fee,
        },
    )
    logger.info(
        "player joined",
        game_id=record.game_id,
        seat=len(record.players),
        prize_pool=new_record.prize_pool,
    )

    if new_record.current_player_count == new_record.max_players:
        new_record = _start_game(new_record, seed, shuffler)
    return bump_revision(new_record)


def _resolve_turn(record: GameRecord, identity: str) -> int:
    seat = find_player_index(record, identity)
    if seat is None:
        raise LobbyError(GameErrorCode.PLAYER_NOT_IN_GAME)
    if record.status != GameStatus.IN_PROGRESS:
        raise TurnError(GameErrorCode.GAME_NOT_IN_PROGRESS)
    if seat != record.current_player_index:
        raise TurnError(GameErrorCode.NOT_PLAYER_TURN)
    return seat


def draw_tile(record: GameRecord, identity: str) -> GameRecord:
    """
    Move one tile from the pool to the current player's hand and pass the turn.

    Rejected when the pool is empty or the hand is at capacity.
    """
    seat = _resolve_turn(record, identity)
    if not record.pool:
        raise TurnError(GameErrorCode.NOT_ENOUGH_TILES)
    if record.players[seat].hand_count >= record.settings.hand_capacity:
        raise TurnError(GameErrorCode.TOO_MANY_TILES)

    pool, tile = draw_from_pool(record.pool)
    new_record = record.model_copy(update={"pool": pool})
    new_record = add_tile_to_player(new_record, seat, tile)  # type: ignore[arg-type]

    logger.debug("tile drawn", game_id=record.game_id, seat=seat, pool=len(pool))
    return bump_revision(advance_turn(new_record))


def play_tiles(
    record: GameRecord,
    identity: str,
    tiles_from_hand: Sequence[int],
    table_melds: Sequence[Meld],
) -> GameRecord:
    """Lay hand tiles down and rearrange the table."""
    seat = _resolve_turn(record, identity)
    return bump_revision(execute_play(record, seat, tiles_from_hand, table_melds))


def play_with_joker_retrieval(
    record: GameRecord,
    identity: str,
    retrievals: Sequence[JokerRetrieval],
    tiles_from_hand: Sequence[int],
    table_melds: Sequence[Meld],
) -> GameRecord:
    """Swap table jokers for matching hand tiles, then play as in play_tiles."""
    seat = _resolve_turn(record, identity)
    return bump_revision(execute_play(record, seat, tiles_from_hand, table_melds, retrievals))


def reshuffle_pool(
    record: GameRecord,
    randomness: str,
    *,
    shuffler: Shuffler = shuffle_tiles,
) -> GameRecord:
    """
    Reshuffle the undealt pool with externally supplied randomness.

    Allowed while the game is waiting for players or in progress. The
    randomness becomes the record's seed for any later shuffle.
    """
    if record.status not in (GameStatus.WAITING_FOR_PLAYERS, GameStatus.IN_PROGRESS):
        raise GameRuleError(GameErrorCode.INVALID_GAME_STATE, "pool can no longer be reshuffled")
    validate_seed_hex(randomness)

    pool = shuffle_pool(record.pool, randomness, counter=record.shuffle_count, shuffler=shuffler)
    logger.info("pool reshuffled", game_id=record.game_id, pool=len(pool), shuffle=record.shuffle_count)
    return bump_revision(
        record.model_copy(
            update={
                "pool": pool,
                "seed": randomness,
                "shuffle_count": record.shuffle_count + 1,
            },
        ),
    )
