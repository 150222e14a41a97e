"""Tests for seeded shuffling and tile pool operations."""

from collections import Counter

import pytest

from rummikub.logic.pool import create_pool, deal_initial_hands, draw_tile, shuffle_pool, tiles_remaining
from rummikub.logic.rng import SEED_BYTES, generate_seed, shuffle_tiles, validate_seed_hex
from rummikub.logic.settings import GameSettings
from rummikub.tests.conftest import red


class TestSeeds:
    def test_generated_seed_is_valid_hex(self):
        seed = generate_seed()

        assert len(seed) == SEED_BYTES * 2
        validate_seed_hex(seed)

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError, match="exactly 64 hex characters"):
            validate_seed_hex("ab")

    def test_non_hex_rejected(self):
        with pytest.raises(ValueError, match="invalid hex"):
            validate_seed_hex("zz" * SEED_BYTES)

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            validate_seed_hex(1234)  # type: ignore[arg-type]


class TestShuffleTiles:
    def test_same_seed_same_order(self, seed):
        deck = create_pool(GameSettings())

        assert shuffle_tiles(deck, seed) == shuffle_tiles(deck, seed)

    def test_result_is_a_permutation(self, seed):
        deck = create_pool(GameSettings())

        shuffled = shuffle_tiles(deck, seed)

        assert Counter(shuffled) == Counter(deck)
        assert shuffled != deck

    def test_counter_separates_shuffles(self, seed):
        deck = create_pool(GameSettings())

        assert shuffle_tiles(deck, seed, counter=0) != shuffle_tiles(deck, seed, counter=1)

    def test_different_seeds_differ(self):
        deck = create_pool(GameSettings())

        assert shuffle_tiles(deck, "00" * SEED_BYTES) != shuffle_tiles(deck, "ff" * SEED_BYTES)

    def test_counter_out_of_range(self, seed):
        with pytest.raises(ValueError, match="counter"):
            shuffle_tiles([red(1)], seed, counter=-1)


class TestShufflePool:
    def test_accepts_custom_shuffler(self, seed):
        pool = (red(1), red(2), red(3))

        def reverse(tiles, _seed, *, counter=0):
            return tuple(reversed(tiles))

        assert shuffle_pool(pool, seed, shuffler=reverse) == (red(3), red(2), red(1))

    def test_rejects_non_permutation(self, seed):
        pool = (red(1), red(2), red(3))

        def duplicate(tiles, _seed, *, counter=0):
            return (tiles[0], tiles[0], tiles[1])

        with pytest.raises(ValueError, match="permutation"):
            shuffle_pool(pool, seed, shuffler=duplicate)


class TestDealAndDraw:
    def test_deals_sequential_blocks(self):
        pool = create_pool(GameSettings())

        remaining, hands = deal_initial_hands(pool, 3, 14)

        assert [len(h) for h in hands] == [14, 14, 14]
        assert hands[0] == pool[:14]
        assert hands[2] == pool[28:42]
        assert tiles_remaining(remaining) == 64

    def test_deal_needs_enough_tiles(self):
        with pytest.raises(ValueError, match="need at least"):
            deal_initial_hands((red(1),), 2, 14)

    def test_draw_takes_front_tile(self):
        pool = (red(1), red(2))

        remaining, tile = draw_tile(pool)

        assert tile == red(1)
        assert remaining == (red(2),)

    def test_draw_from_empty_pool(self):
        remaining, tile = draw_tile(())

        assert tile is None
        assert remaining == ()
