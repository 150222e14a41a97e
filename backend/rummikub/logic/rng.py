"""
Seeded shuffling for the tile pool.

The engine never draws entropy on its own during a transition; it consumes
an opaque seed supplied by the randomness collaborator (a VRF output in the
hosted deployment, ``secrets`` locally) and expands it deterministically:

1. SHA-512 over a versioned domain prefix, the seed, and a shuffle counter
2. PCG64DXSM seeded from the digest
3. Fisher-Yates with rejection sampling for an unbiased permutation

Same seed + counter always yields the same pool order, so games replay.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rummikub.logic.tiles import Tile

SEED_BYTES = 32  # width of one VRF randomness output
RNG_VERSION = "pcg64dxsm-v1"
_POOL_DOMAIN_PREFIX = b"rummikub-pool-v1:"

_PCG_MULTIPLIER = 0x2360ED051FC65DA44385DF649FCCF645
_PCG_DXSM_MUL = 0xDA942042E4DD58B5
_UINT128_MASK = (1 << 128) - 1
_UINT64_MASK = (1 << 64) - 1


class Shuffler(Protocol):
    """Randomness collaborator: returns a permutation of ``tiles`` keyed by ``seed``."""

    def __call__(self, tiles: Sequence[Tile], seed: str, *, counter: int = 0) -> tuple[Tile, ...]: ...


def validate_seed_hex(seed_hex: str) -> None:
    """Validate that a seed is exactly SEED_BYTES of hex.

    Raises TypeError for non-string input, ValueError for a bad format.
    """
    if not isinstance(seed_hex, str):
        raise TypeError(f"Seed must be a string, got {type(seed_hex).__name__}")
    expected_length = SEED_BYTES * 2
    if len(seed_hex) != expected_length:
        raise ValueError(f"Seed must be exactly {expected_length} hex characters, got {len(seed_hex)}")
    try:
        bytes.fromhex(seed_hex)
    except ValueError:
        raise ValueError("Seed contains invalid hex characters") from None


def generate_seed() -> str:
    """Generate a fresh seed as hex, for games started without external randomness."""
    return secrets.token_bytes(SEED_BYTES).hex()


class PCG64DXSM:
    """128-bit LCG state with the DXSM output permutation (64-bit outputs)."""

    def __init__(self, state: int, increment: int) -> None:
        self._inc = ((increment << 1) | 1) & _UINT128_MASK
        self._state = (state + self._inc) & _UINT128_MASK
        self._state = (self._state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK
        self._state = (self._state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK

    def next_uint64(self) -> int:
        state = self._state
        hi = (state >> 64) & _UINT64_MASK
        lo = (state & _UINT64_MASK) | 1

        hi ^= hi >> 32
        hi = (hi * _PCG_DXSM_MUL) & _UINT64_MASK
        hi ^= hi >> 48
        hi = (hi * lo) & _UINT64_MASK

        self._state = (state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK
        return hi


def _derive_pool_pcg(seed_hex: str, counter: int) -> PCG64DXSM:
    """Derive a generator for the ``counter``-th shuffle of a game."""
    if not (0 <= counter < 2**32):
        raise ValueError("counter must be in [0, 2^32)")
    validate_seed_hex(seed_hex)
    data = bytes.fromhex(seed_hex) + counter.to_bytes(4, byteorder="little")
    derived = hashlib.sha512(_POOL_DOMAIN_PREFIX + data).digest()
    state = int.from_bytes(derived[:16], byteorder="little")
    increment = int.from_bytes(derived[16:32], byteorder="little")
    return PCG64DXSM(state, increment)


def _bounded_uint64(pcg: PCG64DXSM, bound: int) -> int:
    """Unbiased integer in [0, bound) via rejection of the partial top bucket."""
    if bound <= 0 or bound > (1 << 64):
        raise ValueError("bound must be in (0, 2^64]")
    limit = (1 << 64) - ((1 << 64) % bound)
    while True:
        r = pcg.next_uint64()
        if r < limit:
            return r % bound


def shuffle_tiles(tiles: Sequence[Tile], seed: str, *, counter: int = 0) -> tuple[Tile, ...]:
    """
    Fisher-Yates shuffle of ``tiles`` keyed by a hex seed.

    ``counter`` separates successive shuffles within one game (the initial
    deal uses 0; each later reshuffle uses the next value).
    """
    pcg = _derive_pool_pcg(seed, counter)
    result = list(tiles)
    n = len(result)
    for i in range(n - 1):
        j = i + _bounded_uint64(pcg, n - i)
        result[i], result[j] = result[j], result[i]
    return tuple(result)
