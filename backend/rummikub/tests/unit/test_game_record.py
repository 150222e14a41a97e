"""Tests for game record invariants, views and immutable update helpers."""

import pytest
from pydantic import ValidationError

from rummikub.logic.enums import GameStatus
from rummikub.logic.state import check_invariants, count_tiles, find_player_index, get_player_view
from rummikub.logic.state_utils import add_tile_to_player, advance_turn, bump_revision, update_player
from rummikub.tests.conftest import J, blue, create_game_record, create_player, red, run


class TestInvariants:
    def test_fresh_record_is_sound(self):
        record = create_game_record(
            players=[create_player("alice", hand=[red(1), red(2)]), create_player("bob", hand=[J])],
            table_melds=[run(blue(1), blue(2), blue(3))],
        )

        assert count_tiles(record) == 106
        assert check_invariants(record) == []

    def test_detects_lost_tile(self):
        record = create_game_record()
        broken = record.model_copy(update={"pool": record.pool[1:]})

        problems = check_invariants(broken)

        assert any("tile count 105" in p for p in problems)

    def test_detects_hand_over_capacity(self):
        hand = [red(1)] * 2 + [blue(r) for r in range(1, 14)] * 2
        record = create_game_record(players=[create_player("alice", hand=hand), create_player("bob")])

        assert any("alice holds 28 tiles" in p for p in check_invariants(record))

    def test_detects_claimed_flag_with_money_left(self):
        record = create_game_record(status=GameStatus.FINISHED, winner="alice", prize_claimed=True)

        assert "prize claimed but pool not empty" in check_invariants(record)


class TestPlayerView:
    def test_only_own_hand_is_visible(self):
        record = create_game_record(
            players=[create_player("alice", hand=[red(1)]), create_player("bob", hand=[blue(2), J])],
        )

        view = get_player_view(record, "alice")

        assert view.players[0].tiles == [red(1)]
        assert view.players[1].tiles is None
        assert view.players[1].tile_count == 2
        assert view.pool_count == len(record.pool)

    def test_unseated_identity_sees_no_hands(self):
        record = create_game_record(players=[create_player("alice", hand=[red(1)]), create_player("bob")])

        view = get_player_view(record, "carol")

        assert all(p.tiles is None for p in view.players)


class TestStateUtils:
    def test_update_player_returns_new_record(self):
        record = create_game_record()

        updated = update_player(record, 1, has_opened=True)

        assert updated.players[1].has_opened
        assert not record.players[1].has_opened

    def test_update_player_rejects_bad_seat(self):
        with pytest.raises(ValueError, match="Invalid seat"):
            update_player(create_game_record(), 5, score=1)

    def test_update_player_rejects_unknown_field(self):
        with pytest.raises(ValueError, match="Invalid player fields"):
            update_player(create_game_record(), 0, tiles=())

    def test_add_tile_appends(self):
        record = create_game_record(players=[create_player("alice", hand=[red(1)]), create_player("bob")])

        updated = add_tile_to_player(record, 0, red(2))

        assert updated.players[0].hand == (red(1), red(2))

    def test_advance_turn_wraps(self):
        record = create_game_record(
            players=[create_player("a"), create_player("b"), create_player("c")],
            current_player_index=2,
        )

        advanced = advance_turn(record)

        assert advanced.current_player_index == 0
        assert advanced.turn_count == 1

    def test_bump_revision(self):
        assert bump_revision(create_game_record()).revision == 1


def test_find_player_index():
    record = create_game_record()

    assert find_player_index(record, "bob") == 1
    assert find_player_index(record, "carol") is None


def test_record_is_frozen():
    record = create_game_record()
    with pytest.raises(ValidationError):
        record.status = GameStatus.FINISHED  # type: ignore[misc]
