"""
Game record models for Rummikub.

All models are frozen. Transitions build new records with ``model_copy``;
a rejected action therefore leaves the caller's record exactly as it was.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from rummikub.logic.enums import GameStatus, MeldKind
from rummikub.logic.melds import MIN_MELD_SIZE, Meld
from rummikub.logic.settings import GameSettings
from rummikub.logic.tiles import Tile
from rummikub.logic.types import GameView, PlayerView


class Player(BaseModel):
    """A seated player. Created on join; lives as long as the game record."""

    model_config = ConfigDict(frozen=True)

    identity: str
    hand: tuple[Tile, ...] = ()
    has_opened: bool = False  # monotonic: false -> true once
    score: int = 0

    @property
    def hand_count(self) -> int:
        return len(self.hand)


class GameRecord(BaseModel):
    """
    Authoritative state of a single game.

    ``pool`` holds the undealt tiles. ``revision`` grows by one on every
    accepted transition and orders snapshots across execution venues.
    """

    model_config = ConfigDict(frozen=True)

    game_id: str
    authority: str = ""
    max_players: int
    players: tuple[Player, ...] = ()
    current_player_index: int = 0
    status: GameStatus = GameStatus.WAITING_FOR_PLAYERS
    winner: str | None = None
    prize_pool: int = 0
    pool: tuple[Tile, ...] = ()
    table_melds: tuple[Meld, ...] = ()
    prize_claimed: bool = False
    seed: str = ""
    shuffle_count: int = 0
    turn_count: int = 0
    revision: int = 0
    settings: GameSettings = Field(default_factory=GameSettings)

    @property
    def current_player_count(self) -> int:
        return len(self.players)

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]


def find_player_index(record: GameRecord, identity: str) -> int | None:
    """Return the seat index of ``identity``, or None if not seated."""
    for index, player in enumerate(record.players):
        if player.identity == identity:
            return index
    return None


def count_tiles(record: GameRecord) -> int:
    """Total tiles across pool, hands and table."""
    in_hands = sum(p.hand_count for p in record.players)
    on_table = sum(len(m.tiles) for m in record.table_melds)
    return in_hands + on_table + len(record.pool)


def check_invariants(record: GameRecord) -> list[str]:
    """
    Return a description of every violated record invariant (empty when sound).

    Covers tile conservation, meld size bounds, hand capacity, the current
    player index and the claimed-prize flag.
    """
    settings = record.settings
    problems: list[str] = []

    total = count_tiles(record)
    if total != settings.deck_size:
        problems.append(f"tile count {total} != deck size {settings.deck_size}")

    for i, meld in enumerate(record.table_melds):
        if len(meld.tiles) < MIN_MELD_SIZE:
            problems.append(f"meld {i} has {len(meld.tiles)} tiles")
        if meld.kind == MeldKind.SET and len(meld.tiles) > settings.max_set_size:
            problems.append(f"set {i} has {len(meld.tiles)} tiles")

    for player in record.players:
        if player.hand_count > settings.hand_capacity:
            problems.append(f"{player.identity} holds {player.hand_count} tiles")

    if record.status == GameStatus.IN_PROGRESS and not 0 <= record.current_player_index < len(record.players):
        problems.append(f"current_player_index {record.current_player_index} out of range")

    if record.prize_claimed and record.prize_pool != 0:
        problems.append("prize claimed but pool not empty")

    return problems


def get_player_view(record: GameRecord, identity: str) -> GameView:
    """
    Return the game as visible to one player.

    Each player sees the table, every player's tile count and opening status,
    the pool size and their own hand. Other hands and the pool order stay
    hidden.
    """
    players_view = [
        PlayerView(
            seat=seat,
            identity=p.identity,
            tile_count=p.hand_count,
            has_opened=p.has_opened,
            score=p.score,
            tiles=list(p.hand) if p.identity == identity else None,
        )
        for seat, p in enumerate(record.players)
    ]
    return GameView(
        game_id=record.game_id,
        status=record.status,
        current_player_index=record.current_player_index,
        max_players=record.max_players,
        players=players_view,
        table_melds=list(record.table_melds),
        pool_count=len(record.pool),
        prize_pool=record.prize_pool,
        winner=record.winner,
        prize_claimed=record.prize_claimed,
    )
