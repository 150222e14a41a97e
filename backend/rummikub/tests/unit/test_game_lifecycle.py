"""Tests for game creation, joining, drawing, reshuffling and turn order."""

import pytest

from rummikub.logic.enums import GameErrorCode, GameStatus
from rummikub.logic.exceptions import GameRuleError, LobbyError, TurnError
from rummikub.logic.game import (
    draw_tile,
    initialize_game,
    join_game,
    play_tiles,
    reshuffle_pool,
)
from rummikub.logic.settings import GameSettings
from rummikub.logic.state import check_invariants
from rummikub.logic.tiles import build_deck
from rummikub.tests.conftest import blue, create_game_record, create_player, red, run


def _no_shuffle(tiles, _seed, *, counter=0):
    return tuple(tiles)


def _started_game(seed, *names):
    record = initialize_game("game1", len(names), seed=seed)
    for name in names:
        record = join_game(record, name, shuffler=_no_shuffle)
    return record


class TestInitializeGame:
    def test_creates_waiting_record_with_full_deck(self):
        record = initialize_game("game1", 3, authority="host")

        assert record.status == GameStatus.WAITING_FOR_PLAYERS
        assert record.players == ()
        assert record.prize_pool == 0
        assert record.pool == build_deck(GameSettings())
        assert record.authority == "host"

    @pytest.mark.parametrize("max_players", [0, 1, 5])
    def test_rejects_unsupported_player_count(self, max_players):
        with pytest.raises(LobbyError) as exc_info:
            initialize_game("game1", max_players)
        assert exc_info.value.code == GameErrorCode.INVALID_PLAYER_COUNT

    def test_rejects_malformed_seed(self):
        with pytest.raises(ValueError, match="hex characters"):
            initialize_game("game1", 2, seed="abc")


class TestJoinGame:
    def test_join_collects_entry_fee(self):
        record = initialize_game("game1", 3)

        record = join_game(record, "alice")

        assert record.current_player_count == 1
        assert record.prize_pool == GameSettings().entry_fee
        assert record.status == GameStatus.WAITING_FOR_PLAYERS
        assert record.revision == 1

    def test_repeated_identity_rejected(self):
        record = join_game(initialize_game("game1", 3), "alice")

        with pytest.raises(LobbyError) as exc_info:
            join_game(record, "alice")
        assert exc_info.value.code == GameErrorCode.PLAYER_ALREADY_JOINED

    def test_last_seat_starts_game(self, seed):
        record = _started_game(seed, "alice", "bob")

        assert record.status == GameStatus.IN_PROGRESS
        assert record.current_player_index == 0
        assert [p.hand_count for p in record.players] == [14, 14]
        assert len(record.pool) == 78
        assert record.shuffle_count == 1
        assert record.seed == seed
        assert check_invariants(record) == []

    def test_deals_blocks_from_shuffled_pool(self, seed):
        record = _started_game(seed, "alice", "bob")
        deck = build_deck(GameSettings())

        assert record.players[0].hand == deck[:14]
        assert record.players[1].hand == deck[14:28]

    def test_same_seed_deals_same_hands(self, seed):
        first = initialize_game("a", 2, seed=seed)
        second = initialize_game("b", 2, seed=seed)
        for name in ("alice", "bob"):
            first = join_game(first, name)
            second = join_game(second, name)

        assert first.players[0].hand == second.players[0].hand
        assert first.pool == second.pool

    def test_join_seed_overrides_initial_seed(self, seed):
        record = join_game(initialize_game("game1", 2), "alice")

        record = join_game(record, "bob", seed=seed)

        assert record.seed == seed

    def test_generates_seed_when_none_given(self):
        record = join_game(join_game(initialize_game("game1", 2), "alice"), "bob")

        assert len(record.seed) == 64

    def test_join_after_start_rejected(self, seed):
        record = _started_game(seed, "alice", "bob")

        with pytest.raises(LobbyError) as exc_info:
            join_game(record, "carol")
        assert exc_info.value.code == GameErrorCode.GAME_ALREADY_STARTED

    def test_full_waiting_game_rejected(self):
        record = create_game_record(status=GameStatus.WAITING_FOR_PLAYERS, max_players=2)

        with pytest.raises(LobbyError) as exc_info:
            join_game(record, "carol")
        assert exc_info.value.code == GameErrorCode.GAME_FULL

    def test_failed_join_leaves_record_untouched(self):
        record = join_game(initialize_game("game1", 3), "alice")

        with pytest.raises(LobbyError):
            join_game(record, "alice")

        assert record.current_player_count == 1
        assert record.revision == 1


class TestDrawTile:
    def test_moves_front_tile_and_advances(self, seed):
        record = _started_game(seed, "alice", "bob", "carol")
        front = record.pool[0]

        new_record = draw_tile(record, "alice")

        assert new_record.players[0].hand[-1] == front
        assert new_record.players[0].hand_count == 15
        assert len(new_record.pool) == len(record.pool) - 1
        assert new_record.current_player_index == 1
        assert new_record.revision == record.revision + 1
        assert check_invariants(new_record) == []

    def test_turn_wraps_to_first_seat(self, seed):
        record = _started_game(seed, "alice", "bob", "carol")
        for name in ("alice", "bob", "carol"):
            record = draw_tile(record, name)

        assert record.current_player_index == 0
        assert record.turn_count == 3

    def test_out_of_turn_rejected(self, seed):
        record = _started_game(seed, "alice", "bob")

        with pytest.raises(TurnError) as exc_info:
            draw_tile(record, "bob")
        assert exc_info.value.code == GameErrorCode.NOT_PLAYER_TURN

    def test_unknown_player_rejected(self, seed):
        record = _started_game(seed, "alice", "bob")

        with pytest.raises(LobbyError) as exc_info:
            draw_tile(record, "mallory")
        assert exc_info.value.code == GameErrorCode.PLAYER_NOT_IN_GAME

    def test_before_start_rejected(self):
        record = join_game(initialize_game("game1", 2), "alice")

        with pytest.raises(TurnError) as exc_info:
            draw_tile(record, "alice")
        assert exc_info.value.code == GameErrorCode.GAME_NOT_IN_PROGRESS

    def test_empty_pool_rejected(self):
        record = create_game_record(pool=())

        with pytest.raises(TurnError) as exc_info:
            draw_tile(record, "alice")
        assert exc_info.value.code == GameErrorCode.NOT_ENOUGH_TILES

    def test_full_hand_rejected(self):
        hand = build_deck(GameSettings())[:21]
        record = create_game_record(players=[create_player("alice", hand=hand), create_player("bob")])

        with pytest.raises(TurnError) as exc_info:
            draw_tile(record, "alice")
        assert exc_info.value.code == GameErrorCode.TOO_MANY_TILES


class TestPlayTiles:
    def test_resolves_identity_and_bumps_revision(self):
        record = create_game_record(
            players=[create_player("alice", hand=[red(9), red(10), red(11), blue(2)]), create_player("bob")],
        )

        new_record = play_tiles(record, "alice", [0, 1, 2], [run(red(9), red(10), red(11))])

        assert new_record.players[0].has_opened
        assert new_record.revision == record.revision + 1

    def test_other_player_cannot_play(self):
        record = create_game_record(
            players=[create_player("alice"), create_player("bob", hand=[red(9), red(10), red(11)])],
        )

        with pytest.raises(TurnError) as exc_info:
            play_tiles(record, "bob", [0, 1, 2], [run(red(9), red(10), red(11))])
        assert exc_info.value.code == GameErrorCode.NOT_PLAYER_TURN


class TestReshufflePool:
    def test_reshuffles_waiting_pool(self, seed):
        record = initialize_game("game1", 2)

        new_record = reshuffle_pool(record, seed)

        assert new_record.pool != record.pool
        assert sorted(map(str, new_record.pool)) == sorted(map(str, record.pool))
        assert new_record.seed == seed
        assert new_record.shuffle_count == 1

    def test_randomness_seeds_the_deal(self, seed):
        record = reshuffle_pool(initialize_game("game1", 2), seed)
        record = join_game(join_game(record, "alice"), "bob")

        assert record.seed == seed
        assert record.shuffle_count == 2

    def test_reshuffles_only_undealt_tiles(self, seed):
        record = _started_game(seed, "alice", "bob")

        new_record = reshuffle_pool(record, "ab" * 32)

        assert new_record.players == record.players
        assert len(new_record.pool) == 78

    def test_finished_game_rejected(self, seed):
        record = create_game_record(status=GameStatus.FINISHED, winner="alice")

        with pytest.raises(GameRuleError) as exc_info:
            reshuffle_pool(record, seed)
        assert exc_info.value.code == GameErrorCode.INVALID_GAME_STATE
