# tests/unit/test_player_service.py
"""
Unit tests for player rating writes and the ratings table.
"""

from datetime import datetime, timezone

import pytest

from app_types import PlayerRatings
from exceptions import NotFoundError, ValidationError
from player_service import (
    create_ratings_dataframe,
    has_completed_ita,
    set_baseline_and_training_rating,
    set_player_ita_completed,
)


class TestBaselineAndTrainingRating:
    """Baseline rating is write-once."""

    def test_sets_both_ratings(self, player_store):
        updated = set_baseline_and_training_rating(player_store, "newbie", 29)

        assert updated.baseline_rating == 29
        assert updated.training_rating == 29

    def test_rejects_second_baseline(self, player_store):
        with pytest.raises(ValidationError) as exc_info:
            set_baseline_and_training_rating(player_store, "alice", 55)

        assert "alice" in str(exc_info.value)
        assert player_store.players["alice"].baseline_rating == 40

    def test_unknown_player(self, player_store):
        with pytest.raises(NotFoundError):
            set_baseline_and_training_rating(player_store, "ghost", 29)


class TestITACompletion:
    """Tests for set_player_ita_completed and has_completed_ita."""

    def test_records_score_and_time(self, player_store):
        completed_at = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)

        updated = set_player_ita_completed(player_store, "newbie", 29, completed_at)

        assert updated.ita_score == 29
        assert updated.ita_completed_at == completed_at
        assert has_completed_ita(updated)

    def test_not_completed(self):
        assert not has_completed_ita(PlayerRatings(player_id="newbie"))
        assert not has_completed_ita(None)


class TestCreateRatingsDataframe:
    """Tests for create_ratings_dataframe."""

    def test_sorted_by_pr_with_unrated_last(self, sample_players):
        df = create_ratings_dataframe(sample_players)

        assert list(df.columns) == [
            "#",
            "Player",
            "BR",
            "TR",
            "OMR",
            "PR",
            "ITA Score",
            "ITA Completed",
        ]
        assert list(df["Player"]) == ["bob", "alice", "newbie"]
        assert list(df["#"]) == [1, 2, 3]
        assert not df["ITA Completed"].any()

    def test_empty(self):
        df = create_ratings_dataframe([])
        assert df.empty
