"""Domain event models and service event transport container.

Domain event classes are the canonical event types emitted for accepted
transitions and rejected actions. ServiceEvent is the transport wrapper the
hosting shell routes to players. convert_events() maps domain events into
ServiceEvent containers with typed routing targets.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rummikub.logic.enums import GameErrorCode
from rummikub.logic.melds import Meld
from rummikub.logic.tiles import Tile
from rummikub.logic.types import GameView, Payout, PlayerStanding

# ---------------------------------------------------------------------------
# Typed routing targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastTarget:
    """Event should be sent to all players in the game."""


@dataclass(frozen=True)
class SeatTarget:
    """Event should be sent to a specific seat."""

    seat: int


@dataclass(frozen=True)
class PlayerTarget:
    """Event should be sent to one identity, seated or not."""

    identity: str


EventTarget = BroadcastTarget | SeatTarget | PlayerTarget


def parse_event_target(value: str) -> EventTarget:
    """Parse a string target into a typed EventTarget."""
    if value == "all":
        return BroadcastTarget()
    if value.startswith("seat_"):
        seat = int(value.split("_")[1])
        if seat < 0:
            raise ValueError(f"invalid seat number in target: {value}")
        return SeatTarget(seat=seat)
    if value.startswith("player:"):
        identity = value.removeprefix("player:")
        if not identity:
            raise ValueError(f"empty identity in target: {value}")
        return PlayerTarget(identity=identity)
    raise ValueError(f"invalid target value: {value}")


# ---------------------------------------------------------------------------
# Event type enum
# ---------------------------------------------------------------------------


class EventType(StrEnum):
    """Types of game events."""

    PLAYER_JOINED = "player_joined"
    GAME_STARTED = "game_started"
    TILE_DRAWN = "tile_drawn"
    TILES_PLAYED = "tiles_played"
    POOL_RESHUFFLED = "pool_reshuffled"
    GAME_END = "game_end"
    PRIZE_CLAIMED = "prize_claimed"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Domain event models
# ---------------------------------------------------------------------------


class GameEvent(BaseModel):
    """Base class for all domain game events."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    target: str


class PlayerJoinedEvent(GameEvent):
    """Event broadcast when a player takes a seat."""

    type: Literal[EventType.PLAYER_JOINED] = EventType.PLAYER_JOINED
    target: str = "all"
    seat: int
    identity: str
    prize_pool: int


class GameStartedEvent(GameEvent):
    """Event sent to each seat when the last seat fills, carrying that seat's view."""

    type: Literal[EventType.GAME_STARTED] = EventType.GAME_STARTED
    view: GameView


class TileDrawnEvent(GameEvent):
    """Event sent to the drawing seat with the tile it received."""

    type: Literal[EventType.TILE_DRAWN] = EventType.TILE_DRAWN
    seat: int
    tile: Tile | None = None  # only in the drawing seat's copy
    pool_count: int
    next_player_index: int


class TilesPlayedEvent(GameEvent):
    """Event broadcast when a play is accepted."""

    type: Literal[EventType.TILES_PLAYED] = EventType.TILES_PLAYED
    target: str = "all"
    seat: int
    table_melds: list[Meld]
    tiles_left: int
    jokers_retrieved: int = 0
    has_opened: bool = True


class PoolReshuffledEvent(GameEvent):
    """Event broadcast when the pool is reshuffled with external randomness."""

    type: Literal[EventType.POOL_RESHUFFLED] = EventType.POOL_RESHUFFLED
    target: str = "all"
    pool_count: int


class GameEndedEvent(GameEvent):
    """Event broadcast when a player empties their hand."""

    type: Literal[EventType.GAME_END] = EventType.GAME_END
    target: str = "all"
    winner: str
    winner_seat: int
    standings: list[PlayerStanding]
    prize_pool: int


class PrizeClaimedEvent(GameEvent):
    """Event broadcast once the prize has been settled."""

    type: Literal[EventType.PRIZE_CLAIMED] = EventType.PRIZE_CLAIMED
    target: str = "all"
    payout: Payout


class ErrorEvent(GameEvent):
    """Event sent to a player when an action is rejected."""

    type: Literal[EventType.ERROR] = EventType.ERROR
    code: GameErrorCode = Field(serialization_alias="cd")
    message: str = Field(serialization_alias="msg")


# ---------------------------------------------------------------------------
# Service event transport container
# ---------------------------------------------------------------------------


class ServiceEvent(BaseModel):
    """Event transport container for game service layer.

    Uses typed internal targets (BroadcastTarget / SeatTarget / PlayerTarget)
    for routing.
    """

    model_config = {"arbitrary_types_allowed": True}

    event: EventType
    data: GameEvent
    target: EventTarget = BroadcastTarget()

    @model_validator(mode="after")
    def _ensure_event_matches_data(self) -> ServiceEvent:
        if self.event.value != self.data.type.value:
            raise ValueError(
                f"ServiceEvent.event '{self.event.value}' does not match data.type '{self.data.type.value}'",
            )
        return self


def convert_events(raw_events: list[GameEvent]) -> list[ServiceEvent]:
    """Convert domain events to service events with typed targets."""
    return [
        ServiceEvent(event=event.type, data=event, target=parse_event_target(event.target)) for event in raw_events
    ]
