"""
Tile representation utilities for Rummikub.

A tile is a value type: two tiles with the same color and rank are
interchangeable, and the two jokers are interchangeable. The canonical deck
holds every (color, rank) combination twice plus two jokers (106 tiles).
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, model_validator

from rummikub.logic.enums import COLOR_ORDER, TileColor, TileKind
from rummikub.logic.settings import MAX_RANK, GameSettings

if TYPE_CHECKING:
    from collections.abc import Iterable

MIN_RANK = 1

_COLOR_LETTERS = {
    TileColor.RED: "R",
    TileColor.BLUE: "U",
    TileColor.BLACK: "K",
    TileColor.ORANGE: "O",
}


class Tile(BaseModel):
    """A single tile: a numbered tile, a joker, or an empty hand slot."""

    model_config = ConfigDict(frozen=True)

    kind: TileKind = TileKind.NUMBER
    color: TileColor | None = None
    rank: int | None = None

    @model_validator(mode="after")
    def _check_variant(self) -> Tile:
        if self.kind == TileKind.NUMBER:
            if self.color is None or self.rank is None:
                raise ValueError("number tile requires color and rank")
            if not MIN_RANK <= self.rank <= MAX_RANK:
                raise ValueError(f"rank must be in [{MIN_RANK}, {MAX_RANK}], got {self.rank}")
        elif self.color is not None or self.rank is not None:
            raise ValueError(f"{self.kind.value} tile carries no color or rank")
        return self

    @property
    def is_number(self) -> bool:
        return self.kind == TileKind.NUMBER

    @property
    def is_joker(self) -> bool:
        return self.kind == TileKind.JOKER

    @property
    def is_empty(self) -> bool:
        return self.kind == TileKind.EMPTY

    def __str__(self) -> str:
        if self.kind == TileKind.NUMBER:
            return f"{self.rank}{_COLOR_LETTERS[self.color]}"  # type: ignore[index]
        if self.kind == TileKind.JOKER:
            return "J"
        return "_"


JOKER = Tile(kind=TileKind.JOKER)
EMPTY = Tile(kind=TileKind.EMPTY)


def number_tile(color: TileColor, rank: int) -> Tile:
    """Build a numbered tile."""
    return Tile(kind=TileKind.NUMBER, color=color, rank=rank)


def build_deck(settings: GameSettings) -> tuple[Tile, ...]:
    """
    Build the unshuffled deck described by the settings.

    Order: every copy of every color 1..max_rank, then the jokers.
    """
    colors = COLOR_ORDER[: settings.num_colors]
    numbers = [
        number_tile(color, rank)
        for _ in range(settings.copies_per_tile)
        for color in colors
        for rank in range(MIN_RANK, settings.max_rank + 1)
    ]
    return (*numbers, *(JOKER for _ in range(settings.num_jokers)))


def tile_counter(tiles: Iterable[Tile]) -> Counter[Tile]:
    """Count tiles by content."""
    return Counter(tiles)


def hand_value(tiles: Iterable[Tile], joker_penalty: int) -> int:
    """
    Point value of tiles left in a hand.

    Numbers count their rank, jokers count the joker penalty.
    """
    total = 0
    for tile in tiles:
        if tile.is_number:
            total += tile.rank  # type: ignore[operator]
        elif tile.is_joker:
            total += joker_penalty
    return total


def sort_tiles(tiles: Iterable[Tile]) -> tuple[Tile, ...]:
    """Sort tiles by color then rank, jokers last."""

    def key(tile: Tile) -> tuple[int, int]:
        if tile.is_number:
            return COLOR_ORDER.index(tile.color), tile.rank  # type: ignore[arg-type, return-value]
        return len(COLOR_ORDER), 0

    return tuple(sorted(tiles, key=key))
