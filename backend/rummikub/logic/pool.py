"""
Tile pool operations for Rummikub.

The pool is the face-down stock of undealt tiles, stored on the game record
as an immutable tuple. Dealing and drawing take tiles from the front.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rummikub.logic.rng import shuffle_tiles
from rummikub.logic.tiles import Tile, build_deck, tile_counter

if TYPE_CHECKING:
    from rummikub.logic.rng import Shuffler
    from rummikub.logic.settings import GameSettings


def create_pool(settings: GameSettings) -> tuple[Tile, ...]:
    """Return the full, unshuffled deck for a new game record."""
    return build_deck(settings)


def shuffle_pool(
    pool: tuple[Tile, ...],
    seed: str,
    *,
    counter: int = 0,
    shuffler: Shuffler = shuffle_tiles,
) -> tuple[Tile, ...]:
    """
    Shuffle the pool through the randomness collaborator.

    Raises ValueError when the shuffler returns anything other than a
    permutation of the input.
    """
    shuffled = tuple(shuffler(pool, seed, counter=counter))
    if tile_counter(shuffled) != tile_counter(pool):
        raise ValueError("Shuffler must return a permutation of the pool")
    return shuffled


def deal_initial_hands(
    pool: tuple[Tile, ...],
    num_players: int,
    hand_size: int,
) -> tuple[tuple[Tile, ...], list[tuple[Tile, ...]]]:
    """
    Deal ``hand_size`` tiles to each of ``num_players`` seats.

    Seat 0 takes the first block of tiles, seat 1 the next, and so on.
    Returns (remaining_pool, hands) with hands indexed by seat.
    """
    needed = num_players * hand_size
    if len(pool) < needed:
        raise ValueError(f"Pool has {len(pool)} tiles, need at least {needed} for dealing")

    hands = [pool[seat * hand_size : (seat + 1) * hand_size] for seat in range(num_players)]
    return pool[needed:], hands


def draw_tile(pool: tuple[Tile, ...]) -> tuple[tuple[Tile, ...], Tile | None]:
    """Draw from the front of the pool. Returns (new_pool, tile) or (pool, None) if empty."""
    if not pool:
        return pool, None
    return pool[1:], pool[0]


def tiles_remaining(pool: tuple[Tile, ...]) -> int:
    """Count tiles remaining in the pool."""
    return len(pool)
