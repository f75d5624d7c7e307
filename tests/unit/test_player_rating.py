# tests/unit/test_player_rating.py
"""
Unit tests for the PR blender.
"""

import pytest

from app_types import PlayerRatings
from exceptions import NotFoundError
from player_rating import compute_pr, update_player_pr
from tests.fakes import InMemoryPlayerStore


class TestComputePR:
    """Tests for compute_pr."""

    def test_both_missing(self):
        assert compute_pr(None, None) is None

    def test_simple_average(self):
        assert compute_pr(20, 40) == 30

    def test_one_input_missing(self):
        assert compute_pr(35, None) == 35
        assert compute_pr(None, 62.8) == 62.8

    def test_nan_counts_as_missing(self):
        nan = float("nan")
        assert compute_pr(nan, 40) == 40
        assert compute_pr(35, nan) == 35
        assert compute_pr(nan, nan) is None

    def test_custom_weights(self):
        # (20*3 + 40*1) / 4 = 25
        assert compute_pr(20, 40, tr_weight=3, omr_weight=1) == 25

    def test_rounded_to_one_decimal(self):
        assert compute_pr(40, 62.7) == 51.4

    @pytest.mark.parametrize(
        "tr,omr,expected", [(0.2, None, 1), (None, 0, 1), (150, None, 99), (99, 100, 99)]
    )
    def test_clamped(self, tr, omr, expected):
        assert compute_pr(tr, omr) == expected


class TestUpdatePlayerPR:
    """Tests for update_player_pr."""

    def test_recomputes_from_stored_fields(self):
        store = InMemoryPlayerStore(
            [PlayerRatings(player_id="alice", training_rating=20, match_rating=40, player_rating=99)]
        )

        updated = update_player_pr(store, "alice")

        assert updated.player_rating == 30
        assert store.calls[-1] == ("update_ratings", "alice", {"player_rating": 30})

    def test_unknown_player(self):
        with pytest.raises(NotFoundError):
            update_player_pr(InMemoryPlayerStore(), "ghost")
