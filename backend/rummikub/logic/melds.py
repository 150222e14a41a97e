"""
Meld model and validation for Rummikub.

Validators are pure and total: for any tile sequence they either return a
MeldAnalysis describing what every slot represents, or raise exactly one
InvalidMeldError / MeldStructureError.

Runs are positional. Slot ``i`` of a run represents ``start + i``, so a joker
stands for the rank of the slot it occupies. Jokers may fill internal gaps and
extend either end, but a run never starts below 1 or ends above 13.
"""

from __future__ import annotations

from collections import Counter

from pydantic import BaseModel, ConfigDict

from rummikub.logic.enums import COLOR_ORDER, GameErrorCode, MeldKind, TileColor
from rummikub.logic.exceptions import InvalidMeldError, MeldStructureError
from rummikub.logic.settings import MAX_RANK
from rummikub.logic.tiles import MIN_RANK, Tile, number_tile

MIN_MELD_SIZE = 3
MAX_SET_SIZE = len(COLOR_ORDER)


class Meld(BaseModel):
    """A group of tiles on the table, tagged set or run at creation."""

    model_config = ConfigDict(frozen=True)

    kind: MeldKind
    tiles: tuple[Tile, ...]

    def __len__(self) -> int:
        return len(self.tiles)

    def __str__(self) -> str:
        return f"{self.kind.value}[{' '.join(str(t) for t in self.tiles)}]"


class MeldAnalysis(BaseModel):
    """
    Result of a successful validation.

    ``represented`` is parallel to the meld's tiles: real tiles map to
    themselves, jokers map to the number tile they stand for.
    """

    model_config = ConfigDict(frozen=True)

    kind: MeldKind
    represented: tuple[Tile, ...]
    rank: int | None = None  # common rank of a set
    color: TileColor | None = None  # common color of a run
    start: int | None = None  # first rank of a run


def _partition(tiles: tuple[Tile, ...] | list[Tile]) -> tuple[list[tuple[int, Tile]], int]:
    real = [(i, t) for i, t in enumerate(tiles) if t.is_number]
    jokers = sum(1 for t in tiles if t.is_joker)
    return real, jokers


def validate_set(tiles: tuple[Tile, ...] | list[Tile], *, max_set_size: int = MAX_SET_SIZE) -> MeldAnalysis:
    """
    Validate a candidate set (same rank, distinct colors).

    Checks, in order: at least one real tile, no duplicate color, at most one
    slot per color in play, and a single common rank. A deck with fewer
    colors has proportionally smaller sets.
    """
    real, jokers = _partition(tiles)
    if not real:
        raise InvalidMeldError(GameErrorCode.SET_MUST_HAVE_REAL_TILE)

    colors = [t.color for _, t in real]
    if len(set(colors)) != len(colors):
        raise InvalidMeldError(GameErrorCode.DUPLICATE_COLOR_IN_SET)

    if len(real) + jokers > max_set_size:
        raise InvalidMeldError(GameErrorCode.TOO_MANY_JOKERS_IN_SET)

    ranks = {t.rank for _, t in real}
    if len(ranks) != 1:
        raise InvalidMeldError(GameErrorCode.INVALID_SET)
    rank = ranks.pop()

    # jokers take the missing colors in canonical order
    missing = iter(c for c in COLOR_ORDER[:max_set_size] if c not in colors)
    represented = tuple(number_tile(next(missing), rank) if t.is_joker else t for t in tiles)  # type: ignore[arg-type]
    return MeldAnalysis(kind=MeldKind.SET, represented=represented, rank=rank)


def validate_run(tiles: tuple[Tile, ...] | list[Tile], *, max_rank: int = MAX_RANK) -> MeldAnalysis:
    """
    Validate a candidate run (consecutive ranks, one color).

    Real tiles must share a color, carry distinct ranks and appear in
    ascending order. The first real tile anchors the run; every other real
    tile must sit exactly where its rank puts it, and jokers fill the rest.
    """
    real, _ = _partition(tiles)

    colors = {t.color for _, t in real}
    if len(colors) > 1:
        raise InvalidMeldError(GameErrorCode.INVALID_RUN, "run must have a single color")

    ranks = [t.rank for _, t in real]
    if len(set(ranks)) != len(ranks):
        raise InvalidMeldError(GameErrorCode.DUPLICATE_NUMBER_IN_RUN)

    if not real:
        raise InvalidMeldError(GameErrorCode.RUN_MUST_HAVE_REAL_TILE)

    if ranks != sorted(ranks):  # type: ignore[type-var]
        raise InvalidMeldError(GameErrorCode.INVALID_RUN, "run tiles must be in ascending order")

    first_pos, first_tile = real[0]
    start = first_tile.rank - first_pos  # type: ignore[operator]
    end = start + len(tiles) - 1
    if start < MIN_RANK or end > max_rank:
        raise InvalidMeldError(GameErrorCode.RUN_CANNOT_WRAP)

    for pos, tile in real:
        if tile.rank != start + pos:
            raise InvalidMeldError(GameErrorCode.INVALID_JOKER_PLACEMENT)

    color = colors.pop()
    represented = tuple(number_tile(color, start + i) if t.is_joker else t for i, t in enumerate(tiles))  # type: ignore[arg-type]
    return MeldAnalysis(kind=MeldKind.RUN, represented=represented, color=color, start=start)


def validate_meld(
    meld: Meld,
    *,
    max_rank: int = MAX_RANK,
    max_set_size: int = MAX_SET_SIZE,
) -> MeldAnalysis:
    """Check meld size and empty slots, then dispatch on the meld kind."""
    if len(meld.tiles) < MIN_MELD_SIZE:
        raise MeldStructureError(GameErrorCode.MELD_TOO_SMALL)
    if any(t.is_empty for t in meld.tiles):
        raise MeldStructureError(GameErrorCode.EMPTY_TILE_IN_MELD)

    if meld.kind == MeldKind.SET:
        return validate_set(meld.tiles, max_set_size=max_set_size)
    if meld.kind == MeldKind.RUN:
        return validate_run(meld.tiles, max_rank=max_rank)
    raise AssertionError(f"unhandled meld kind {meld.kind}")  # pragma: no cover


def meld_points(analysis: MeldAnalysis) -> int:
    """Point value of a validated meld; jokers count the rank they represent."""
    return sum(t.rank for t in analysis.represented)  # type: ignore[misc]


def joker_replacement_matches(meld: Meld, analysis: MeldAnalysis, position: int, tile: Tile) -> bool:
    """
    Check whether ``tile`` can take the place of the joker at ``position``.

    In a run the replacement must be exactly the tile the joker represents.
    In a set it must carry the set's rank in a color no real tile of the set
    already holds.
    """
    if not tile.is_number:
        return False
    if analysis.kind == MeldKind.RUN:
        return tile == analysis.represented[position]
    held = {t.color for t in meld.tiles if t.is_number}
    return tile.rank == analysis.rank and tile.color not in held


def replace_tile(meld: Meld, position: int, tile: Tile) -> Meld:
    """Return a copy of the meld with one slot replaced."""
    tiles = list(meld.tiles)
    tiles[position] = tile
    return meld.model_copy(update={"tiles": tuple(tiles)})


def count_meld_tiles(melds: tuple[Meld, ...] | list[Meld]) -> Counter[Tile]:
    """Multiset of every tile across the given melds."""
    return Counter(t for m in melds for t in m.tiles)
