from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

import pytest

from rummikub.logic.enums import GameStatus, MeldKind, TileColor
from rummikub.logic.melds import Meld
from rummikub.logic.settings import GameSettings
from rummikub.logic.settlement import InMemoryLedger
from rummikub.logic.state import GameRecord, Player
from rummikub.logic.tiles import JOKER, Tile, build_deck, number_tile

if TYPE_CHECKING:
    from collections.abc import Sequence

J = JOKER


# ============================================================================
# Tile and Meld Shorthands
# ============================================================================


def red(rank: int) -> Tile:
    return number_tile(TileColor.RED, rank)


def blue(rank: int) -> Tile:
    return number_tile(TileColor.BLUE, rank)


def black(rank: int) -> Tile:
    return number_tile(TileColor.BLACK, rank)


def orange(rank: int) -> Tile:
    return number_tile(TileColor.ORANGE, rank)


def run(*tiles: Tile) -> Meld:
    return Meld(kind=MeldKind.RUN, tiles=tiles)


def group(*tiles: Tile) -> Meld:
    return Meld(kind=MeldKind.SET, tiles=tiles)


# ============================================================================
# Test State Builder Helpers
# ============================================================================


def create_player(
    identity: str = "alice",
    *,
    hand: Sequence[Tile] = (),
    has_opened: bool = False,
    score: int = 0,
) -> Player:
    """Create a Player with sensible defaults for testing."""
    return Player(identity=identity, hand=tuple(hand), has_opened=has_opened, score=score)


def _remaining_pool(settings: GameSettings, used: list[Tile]) -> tuple[Tile, ...]:
    """Deck order minus every tile already placed in hands or on the table."""
    leftover = Counter(used)
    pool = []
    for tile in build_deck(settings):
        if leftover[tile] > 0:
            leftover[tile] -= 1
        else:
            pool.append(tile)
    missing = +leftover
    if missing:
        raise ValueError(f"test state uses tiles not in the deck: {dict(missing)}")
    return tuple(pool)


def create_game_record(
    *,
    game_id: str = "game1",
    players: Sequence[Player] | None = None,
    table_melds: Sequence[Meld] = (),
    pool: Sequence[Tile] | None = None,
    status: GameStatus = GameStatus.IN_PROGRESS,
    current_player_index: int = 0,
    max_players: int | None = None,
    prize_pool: int | None = None,
    winner: str | None = None,
    prize_claimed: bool = False,
    settings: GameSettings | None = None,
) -> GameRecord:
    """
    Create a GameRecord for testing.

    Unless ``pool`` is given, the pool holds exactly the deck tiles not
    already in a hand or on the table, so tile conservation holds.
    """
    settings = settings or GameSettings()
    if players is None:
        players = (create_player("alice"), create_player("bob"))
    if pool is None:
        used = [t for p in players for t in p.hand] + [t for m in table_melds for t in m.tiles]
        pool = _remaining_pool(settings, used)
    if prize_pool is None:
        prize_pool = settings.entry_fee * len(players)
    return GameRecord(
        game_id=game_id,
        max_players=max_players if max_players is not None else len(players),
        players=tuple(players),
        current_player_index=current_player_index,
        status=status,
        winner=winner,
        prize_pool=prize_pool,
        pool=tuple(pool),
        table_melds=tuple(table_melds),
        prize_claimed=prize_claimed,
        settings=settings,
    )


class RecordingLedger(InMemoryLedger):
    """InMemoryLedger that also remembers every credit in order."""

    def __init__(self) -> None:
        super().__init__()
        self.credits: list[tuple[str, int]] = []

    def credit(self, recipient: str, amount: int) -> None:
        super().credit(recipient, amount)
        self.credits.append((recipient, amount))


@pytest.fixture
def ledger() -> RecordingLedger:
    return RecordingLedger()
