# tests/unit/test_match_service.py
"""
Unit tests for recording a match.

Recording inserts both participants' rows, then recomputes OMR for both
players before PR for either.
"""

from dataclasses import replace

import pytest

from exceptions import NotFoundError, UpstreamError, ValidationError
from match_service import build_match_rows, record_match, validate_record_match_payload
from tests.fakes import rating_updates


class TestValidatePayload:
    """Tests for validate_record_match_payload."""

    @pytest.mark.parametrize(
        "changes",
        [
            {"format_best_of": 3},
            {"opponent_id": "alice"},
            {"legs_won": -1},
            {"legs_won": 0, "legs_lost": 0},
            {"doubles_attempted": -2},
            {"doubles_hit": 11},
        ],
    )
    def test_invalid(self, match_payload, changes):
        with pytest.raises(ValidationError):
            validate_record_match_payload(replace(match_payload, **changes))

    def test_valid(self, match_payload):
        validate_record_match_payload(match_payload)


class TestBuildMatchRows:
    """Tests for build_match_rows."""

    def test_mirrored_rows(self, match_payload, sample_players):
        alice, bob, _ = sample_players

        player_row, opponent_row = build_match_rows(
            match_payload, alice, bob, match_payload.played_at
        )

        assert (player_row.legs_won, player_row.legs_lost) == (4, 2)
        assert (opponent_row.legs_won, opponent_row.legs_lost) == (2, 4)
        assert player_row.total_legs == opponent_row.total_legs == 6
        assert player_row.match_rating == pytest.approx(62.8)
        assert opponent_row.match_rating == pytest.approx(41.4)
        assert player_row.opponent_rating_at_match == 60
        assert opponent_row.opponent_rating_at_match == 40
        assert player_row.rating_difference == -20
        assert player_row.doubles_pct == pytest.approx(0.4)
        assert player_row.eligible and opponent_row.eligible

    def test_out_of_band_weight(self, match_payload, sample_players):
        alice, bob, _ = sample_players
        player_row, _ = build_match_rows(match_payload, alice, bob, match_payload.played_at)
        # best of 7 (1.1), decades 40 and 60 are out of band
        assert player_row.weight == pytest.approx(0.88)

    def test_unrated_opponent_counts_as_fifty(self, match_payload, sample_players):
        alice, _, newbie = sample_players
        player_row, opponent_row = build_match_rows(
            replace(match_payload, opponent_id="newbie"), alice, newbie, match_payload.played_at
        )
        assert player_row.opponent_rating_at_match == 50
        assert player_row.weight == pytest.approx(0.88)
        assert opponent_row.opponent_rating_at_match == 40

    def test_strength_falls_back_to_omr(self, match_payload, sample_players):
        alice, bob, _ = sample_players
        bob = replace(bob, player_rating=None, match_rating=47)
        player_row, _ = build_match_rows(match_payload, alice, bob, match_payload.played_at)
        assert player_row.opponent_rating_at_match == 47
        assert player_row.weight == pytest.approx(1.1)

    def test_missing_stats_not_eligible(self, match_payload, sample_players):
        alice, bob, _ = sample_players
        payload = replace(match_payload, three_dart_avg=None)
        player_row, opponent_row = build_match_rows(payload, alice, bob, payload.played_at)
        assert not player_row.eligible
        assert not opponent_row.eligible

    def test_three_dart_average_does_not_adjust_rating(self, match_payload, sample_players):
        alice, bob, _ = sample_players
        payload = replace(match_payload, three_dart_avg=95)
        player_row, opponent_row = build_match_rows(payload, alice, bob, payload.played_at)
        # No per-player baseline is stored, so MR matches the 55 average case
        assert player_row.match_rating == pytest.approx(62.8)
        assert opponent_row.match_rating == pytest.approx(41.4)


class TestRecordMatch:
    """Tests for record_match."""

    def test_updates_both_players(self, player_store, match_store, match_payload):
        result = record_match(player_store, match_store, match_payload)

        assert result.player_match.id is not None
        assert result.player_ratings.match_rating == pytest.approx(62.8)
        # (40 + 62.8) / 2 and (60 + 41.4) / 2
        assert result.player_ratings.player_rating == pytest.approx(51.4)
        assert result.opponent_ratings.match_rating == pytest.approx(41.4)
        assert result.opponent_ratings.player_rating == pytest.approx(50.7)
        assert len(match_store.rows) == 2

    def test_omr_for_both_before_pr_for_either(
        self, player_store, match_store, match_payload, calls
    ):
        record_match(player_store, match_store, match_payload)

        insert_index = next(i for i, c in enumerate(calls) if c[0] == "insert_match_pair")
        omr_writes = rating_updates(calls, "match_rating")
        pr_writes = rating_updates(calls, "player_rating")

        assert len(omr_writes) == 2
        assert len(pr_writes) == 2
        assert insert_index < min(omr_writes)
        assert max(omr_writes) < min(pr_writes)

    def test_ineligible_match_leaves_omr_unset(self, player_store, match_store, match_payload):
        payload = replace(match_payload, doubles_attempted=None, doubles_hit=None)

        result = record_match(player_store, match_store, payload)

        assert not result.player_match.eligible
        assert result.player_ratings.match_rating is None
        assert result.player_ratings.player_rating == 40

    def test_unknown_opponent_inserts_nothing(self, player_store, match_store, match_payload):
        with pytest.raises(NotFoundError):
            record_match(player_store, match_store, replace(match_payload, opponent_id="ghost"))
        assert match_store.rows == []

    def test_invalid_payload_touches_nothing(self, player_store, match_store, match_payload, calls):
        with pytest.raises(ValidationError):
            record_match(player_store, match_store, replace(match_payload, format_best_of=3))
        assert calls == []

    def test_insert_failure_propagates(self, player_store, match_store, match_payload, calls):
        match_store.insert_error = UpstreamError("insert_match_pair failed: timeout")

        with pytest.raises(UpstreamError):
            record_match(player_store, match_store, match_payload)
        assert rating_updates(calls, "match_rating") == []
