"""Tests for end-of-game penalties and final standings."""

import pytest

from rummikub.logic.enums import GameStatus
from rummikub.logic.scoring import apply_end_game_scores, final_standings
from rummikub.tests.conftest import J, blue, create_game_record, create_player, red


def _finished_record():
    return create_game_record(
        players=[
            create_player("alice", hand=[red(13), J]),
            create_player("bob"),
            create_player("carol", hand=[blue(2), blue(3)]),
        ],
        status=GameStatus.FINISHED,
        winner="bob",
    )


class TestApplyEndGameScores:
    def test_losers_pay_hand_value(self):
        record = apply_end_game_scores(_finished_record())

        assert record.players[0].score == -43
        assert record.players[2].score == -5

    def test_winner_collects_penalties(self):
        record = apply_end_game_scores(_finished_record())

        assert record.players[1].score == 48
        assert sum(p.score for p in record.players) == 0

    def test_scores_are_assigned_not_accumulated(self):
        record = apply_end_game_scores(apply_end_game_scores(_finished_record()))

        assert record.players[1].score == 48

    def test_requires_seated_winner(self):
        record = _finished_record().model_copy(update={"winner": "mallory"})

        with pytest.raises(ValueError, match="not seated"):
            apply_end_game_scores(record)


class TestFinalStandings:
    def test_ordered_by_score(self):
        standings = final_standings(apply_end_game_scores(_finished_record()))

        assert [s.identity for s in standings] == ["bob", "carol", "alice"]
        assert [s.score for s in standings] == [48, -5, -43]
        assert standings[2].tiles_left == 2

    def test_ties_keep_seat_order(self):
        record = create_game_record(
            players=[create_player("alice"), create_player("bob"), create_player("carol")],
            status=GameStatus.FINISHED,
            winner="carol",
        )

        standings = final_standings(record)

        assert [s.seat for s in standings] == [0, 1, 2]

    def test_unfinished_game_rejected(self):
        with pytest.raises(ValueError, match="has not finished"):
            final_standings(create_game_record())
