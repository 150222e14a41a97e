"""
RummikubService implementation of the GameService interface.

Keeps game records by id and serializes actions per game with an asyncio
lock. Game logic functions are pure (record in, record out); the service
stores the returned record and turns it into events. Rejected player actions
become ErrorEvents sent back to the acting identity.

Host-facing hooks (create_game, reshuffle_pool and the execution-venue hooks
delegate_game / commit_game / undelegate_game) raise GameRuleError instead.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from rummikub.logic.enums import GameAction, GameErrorCode, GameStatus
from rummikub.logic.events import (
    ErrorEvent,
    GameEndedEvent,
    GameEvent,
    GameStartedEvent,
    PlayerJoinedEvent,
    PoolReshuffledEvent,
    PrizeClaimedEvent,
    ServiceEvent,
    TileDrawnEvent,
    TilesPlayedEvent,
    convert_events,
)
from rummikub.logic.exceptions import GameRuleError
from rummikub.logic.game import (
    draw_tile,
    initialize_game,
    join_game,
    play_tiles,
    play_with_joker_retrieval,
)
from rummikub.logic.game import reshuffle_pool as reshuffle_record_pool
from rummikub.logic.pool import tiles_remaining
from rummikub.logic.rng import shuffle_tiles
from rummikub.logic.scoring import final_standings
from rummikub.logic.service import GameService
from rummikub.logic.settlement import InMemoryLedger, Ledger, claim_prize
from rummikub.logic.state import GameRecord, check_invariants, find_player_index, get_player_view
from rummikub.logic.types import (
    GameView,
    JoinActionData,
    PlayTilesActionData,
    PlayWithJokerRetrievalActionData,
)
from rummikub.server.settings import EngineSettings
from shared.logging import bind_game_context, rotate_log_file

if TYPE_CHECKING:
    from rummikub.logic.rng import Shuffler

logger = structlog.get_logger()


class RummikubService(GameService):
    """
    Game service for Rummikub implementing the GameService interface.

    Maintains game records for multiple concurrent games.
    """

    def __init__(
        self,
        *,
        settings: EngineSettings | None = None,
        ledger: Ledger | None = None,
        shuffler: Shuffler = shuffle_tiles,
        log_dir: str | None = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._log_dir = log_dir
        self._ledger: Ledger = ledger if ledger is not None else InMemoryLedger()
        self._shuffler = shuffler
        self._games: dict[str, GameRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._delegated: set[str] = set()

    def create_game(
        self,
        game_id: str,
        max_players: int,
        *,
        authority: str = "",
        seed: str | None = None,
    ) -> GameRecord:
        """Create and store a game record waiting for ``max_players`` players."""
        if game_id in self._games:
            raise ValueError(f"game {game_id} already exists")
        if len(self._games) >= self._settings.max_games:
            raise ValueError(f"service is at capacity ({self._settings.max_games} games)")

        record = initialize_game(
            game_id,
            max_players,
            authority=authority,
            settings=self._settings.to_game_settings(),
            seed=seed,
        )
        self._games[game_id] = record
        self._locks[game_id] = asyncio.Lock()
        if self._log_dir:
            rotate_log_file(self._log_dir, name=game_id)
        return record

    async def handle_action(
        self,
        game_id: str,
        identity: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        """
        Handle a game action from a player.

        The prize claim stores the settled record before issuing credits, so a
        claim arriving while credits are in flight is rejected as already
        claimed. A ledger failure comes back as a PAYOUT_FAILED error event.
        """
        lock = self._locks.get(game_id)
        if lock is None:
            logger.debug("action for unknown game", game_id=game_id, identity=identity, action=action)
            return self._create_error_event(identity, GameErrorCode.GAME_NOT_FOUND, "game not found")

        with bind_game_context(game_id, identity=identity):
            logger.info("action received", action=action)
            try:
                if action == GameAction.CLAIM_PRIZE:
                    return await self._claim_prize(game_id, identity)
                async with lock:
                    return self._dispatch(game_id, identity, action, data)
            except ValidationError as e:
                logger.info("invalid action data", action=action, error_count=e.error_count())
                return self._create_error_event(
                    identity,
                    GameErrorCode.VALIDATION_ERROR,
                    f"invalid action data: {e}",
                )
            except GameRuleError as e:
                logger.info("action rejected", action=action, code=e.code)
                return self._create_error_event(identity, e.code, e.message)

    def _dispatch(
        self,
        game_id: str,
        identity: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        """Run one action against the stored record and store the result."""
        record = self._local_record(game_id)

        if action == GameAction.JOIN:
            payload = JoinActionData(**data)
            new_record = join_game(record, identity, seed=payload.seed, shuffler=self._shuffler)
            events = self._join_events(new_record, identity)
        elif action == GameAction.DRAW_TILE:
            new_record = draw_tile(record, identity)
            events = self._draw_events(new_record, record.current_player_index)
        elif action == GameAction.PLAY_TILES:
            play = PlayTilesActionData(**data)
            new_record = play_tiles(record, identity, play.tiles_from_hand, play.table_melds)
            events = self._play_events(new_record, record.current_player_index, jokers_retrieved=0)
        elif action == GameAction.PLAY_WITH_JOKER_RETRIEVAL:
            retrieval = PlayWithJokerRetrievalActionData(**data)
            new_record = play_with_joker_retrieval(
                record,
                identity,
                retrieval.retrievals,
                retrieval.tiles_from_hand,
                retrieval.table_melds,
            )
            events = self._play_events(
                new_record,
                record.current_player_index,
                jokers_retrieved=len(retrieval.retrievals),
            )
        else:
            logger.warning("unknown action", action=action)
            return self._create_error_event(identity, GameErrorCode.UNKNOWN_ACTION, f"unknown action: {action}")

        self._games[game_id] = new_record
        return convert_events(events)

    async def _claim_prize(self, game_id: str, identity: str) -> list[ServiceEvent]:
        async with self._locks[game_id]:
            record = self._local_record(game_id)
            _, payout = claim_prize(
                record,
                identity,
                ledger=self._ledger,
                commit=self._store_record,
                treasury=self._settings.treasury,
            )
        return convert_events([PrizeClaimedEvent(payout=payout)])

    def _store_record(self, record: GameRecord) -> None:
        self._games[record.game_id] = record

    def _local_record(self, game_id: str) -> GameRecord:
        """Return the stored record, rejecting games held by another venue."""
        record = self._games.get(game_id)
        if record is None:
            raise GameRuleError(GameErrorCode.GAME_NOT_FOUND, "game not found")
        if game_id in self._delegated:
            raise GameRuleError(GameErrorCode.INVALID_GAME_STATE, "game is delegated to another venue")
        return record

    def _join_events(self, record: GameRecord, identity: str) -> list[GameEvent]:
        seat = find_player_index(record, identity)
        events: list[GameEvent] = [
            PlayerJoinedEvent(seat=seat, identity=identity, prize_pool=record.prize_pool),  # type: ignore[arg-type]
        ]
        if record.status == GameStatus.IN_PROGRESS:
            events.extend(
                GameStartedEvent(view=get_player_view(record, player.identity), target=f"seat_{i}")
                for i, player in enumerate(record.players)
            )
        return events

    def _draw_events(self, record: GameRecord, seat: int) -> list[GameEvent]:
        """Per-seat draw events; only the drawing seat sees the tile."""
        tile = record.players[seat].hand[-1]
        return [
            TileDrawnEvent(
                target=f"seat_{i}",
                seat=seat,
                tile=tile if i == seat else None,
                pool_count=tiles_remaining(record.pool),
                next_player_index=record.current_player_index,
            )
            for i in range(len(record.players))
        ]

    def _play_events(self, record: GameRecord, seat: int, *, jokers_retrieved: int) -> list[GameEvent]:
        player = record.players[seat]
        events: list[GameEvent] = [
            TilesPlayedEvent(
                seat=seat,
                table_melds=list(record.table_melds),
                tiles_left=player.hand_count,
                jokers_retrieved=jokers_retrieved,
                has_opened=player.has_opened,
            ),
        ]
        if record.status == GameStatus.FINISHED:
            events.append(
                GameEndedEvent(
                    winner=player.identity,
                    winner_seat=seat,
                    standings=final_standings(record),
                    prize_pool=record.prize_pool,
                ),
            )
        return events

    def _create_error_event(self, identity: str, code: GameErrorCode, message: str) -> list[ServiceEvent]:
        return convert_events([ErrorEvent(code=code, message=message, target=f"player:{identity}")])

    async def reshuffle_pool(self, game_id: str, randomness: str) -> list[ServiceEvent]:
        """Apply externally supplied randomness to the undealt pool."""
        lock = self._require_lock(game_id)
        with bind_game_context(game_id):
            async with lock:
                record = self._local_record(game_id)
                new_record = reshuffle_record_pool(record, randomness, shuffler=self._shuffler)
                self._games[game_id] = new_record
        return convert_events([PoolReshuffledEvent(pool_count=tiles_remaining(new_record.pool))])

    # ------------------------------------------------------------------
    # Execution-venue hooks
    # ------------------------------------------------------------------

    def _require_lock(self, game_id: str) -> asyncio.Lock:
        lock = self._locks.get(game_id)
        if lock is None:
            raise GameRuleError(GameErrorCode.GAME_NOT_FOUND, "game not found")
        return lock

    async def delegate_game(self, game_id: str) -> GameRecord:
        """
        Hand the authoritative record to another venue.

        Local actions are rejected until the record is undelegated.
        """
        async with self._require_lock(game_id):
            record = self._local_record(game_id)
            self._delegated.add(game_id)
            logger.info("game delegated", game_id=game_id, revision=record.revision)
            return record

    def _accept_snapshot(self, record: GameRecord) -> None:
        stored = self._games.get(record.game_id)
        if stored is None:
            raise GameRuleError(GameErrorCode.GAME_NOT_FOUND, "game not found")
        if record.game_id not in self._delegated:
            raise GameRuleError(GameErrorCode.INVALID_GAME_STATE, "game is not delegated")
        if record.revision < stored.revision:
            raise GameRuleError(
                GameErrorCode.INVALID_GAME_STATE,
                f"stale snapshot: revision {record.revision} < {stored.revision}",
            )
        problems = check_invariants(record)
        if problems:
            raise GameRuleError(GameErrorCode.INVALID_GAME_STATE, "; ".join(problems))
        self._games[record.game_id] = record

    async def commit_game(self, record: GameRecord) -> None:
        """Sync a snapshot back from the delegated venue; the game stays delegated."""
        async with self._require_lock(record.game_id):
            self._accept_snapshot(record)
            logger.info("game committed", game_id=record.game_id, revision=record.revision)

    async def undelegate_game(self, record: GameRecord) -> None:
        """Sync the final snapshot back and resume local processing."""
        async with self._require_lock(record.game_id):
            self._accept_snapshot(record)
            self._delegated.discard(record.game_id)
            logger.info("game undelegated", game_id=record.game_id, revision=record.revision)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_game_state(self, game_id: str) -> GameRecord | None:
        return self._games.get(game_id)

    def get_player_view(self, game_id: str, identity: str) -> GameView | None:
        record = self._games.get(game_id)
        if record is None:
            return None
        return get_player_view(record, identity)

    def cleanup_game(self, game_id: str) -> None:
        self._games.pop(game_id, None)
        self._locks.pop(game_id, None)
        self._delegated.discard(game_id)
