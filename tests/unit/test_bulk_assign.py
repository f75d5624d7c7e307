# tests/unit/test_bulk_assign.py
"""
Unit tests for bulk cohort assignment grouping.
"""

from dataclasses import replace
from datetime import date

import pytest

from app_types import PlayerForGrouping, RatingMetric
from bulk_assign import (
    compute_bulk_assign_end_date,
    compute_bulk_assign_groups,
    validate_bulk_assign_params,
)
from exceptions import ValidationError


def spread(group, players, metric="training_rating"):
    by_id = {p.id: getattr(p, metric) or 0 for p in players}
    ratings = [by_id[member] for member in group.member_ids]
    return max(ratings) - min(ratings)


class TestValidateBulkAssignParams:
    """Tests for validate_bulk_assign_params."""

    def test_valid(self, bulk_params):
        validate_bulk_assign_params(bulk_params)

    @pytest.mark.parametrize(
        "changes",
        [
            {"name_prefix": "   "},
            {"name_start_index": -1},
            {"players_per_cohort": 0},
            {"duration_days": 0},
            {"start_date": "01/03/2026"},
            {"start_date": "2026-02-30"},
            {"schedule_id": ""},
            {"match_level": True, "level_proximity": None},
            {"match_level": True, "level_proximity": -1},
            {"match_level": True, "level_proximity": 5, "level_metric": "bogus"},
            {"level_metric": "ita_score"},
        ],
    )
    def test_invalid(self, bulk_params, changes):
        with pytest.raises(ValidationError):
            validate_bulk_assign_params(replace(bulk_params, **changes))

    def test_proximity_ignored_when_not_matching(self, bulk_params):
        validate_bulk_assign_params(replace(bulk_params, level_proximity=-1))

    def test_invalid_params_never_group(self, bulk_params, grouping_players):
        with pytest.raises(ValidationError):
            compute_bulk_assign_groups(replace(bulk_params, players_per_cohort=0), grouping_players)


class TestEndDate:
    """Tests for compute_bulk_assign_end_date."""

    def test_start_plus_duration(self):
        assert compute_bulk_assign_end_date("2026-03-01", 28) == date(2026, 3, 29)

    def test_crosses_year(self):
        assert compute_bulk_assign_end_date("2026-12-20", 14) == date(2027, 1, 3)


class TestChunking:
    """Grouping with level matching off."""

    def test_chunks_in_id_order(self, bulk_params, grouping_players):
        preview = compute_bulk_assign_groups(bulk_params, grouping_players)

        assert [g.member_ids for g in preview.groups] == [
            ["p1", "p2", "p3"],
            ["p4", "p5", "p6"],
            ["p7"],
        ]
        assert [g.name for g in preview.groups] == ["Spring 1", "Spring 2", "Spring 3"]
        assert preview.end_date == date(2026, 3, 29)

    @pytest.mark.parametrize("n,k", [(1, 1), (7, 3), (10, 4), (12, 4), (5, 10)])
    def test_every_player_assigned(self, bulk_params, n, k):
        players = [PlayerForGrouping(id=f"id{i:02d}") for i in range(n)]
        preview = compute_bulk_assign_groups(replace(bulk_params, players_per_cohort=k), players)

        assert sum(len(g.member_ids) for g in preview.groups) == n
        assert all(len(g.member_ids) <= k for g in preview.groups)

    def test_require_full_cohort_drops_short_groups(self, bulk_params, grouping_players):
        params = replace(bulk_params, required_full_cohort=True)

        preview = compute_bulk_assign_groups(params, grouping_players)

        assert [len(g.member_ids) for g in preview.groups] == [3, 3]
        assert [g.name for g in preview.groups] == ["Spring 1", "Spring 2"]

    def test_names_use_start_index_and_trimmed_prefix(self, bulk_params, grouping_players):
        params = replace(bulk_params, name_prefix="  Autumn ", name_start_index=7)

        preview = compute_bulk_assign_groups(params, grouping_players)

        assert [g.name for g in preview.groups] == ["Autumn 7", "Autumn 8", "Autumn 9"]

    def test_no_players(self, bulk_params):
        preview = compute_bulk_assign_groups(bulk_params, [])
        assert preview.groups == []
        assert preview.end_date == date(2026, 3, 29)


class TestLevelMatching:
    """Grouping with level matching on."""

    def test_groups_by_proximity(self, bulk_params, grouping_players):
        params = replace(
            bulk_params, match_level=True, level_proximity=5, players_per_cohort=10
        )

        preview = compute_bulk_assign_groups(params, grouping_players)

        # p7 has no rating and counts as 0
        assert [g.member_ids for g in preview.groups] == [
            ["p7"],
            ["p1", "p2", "p3"],
            ["p4", "p5"],
            ["p6"],
        ]
        assert all(spread(g, grouping_players) <= 5 for g in preview.groups)

    def test_size_cap_closes_groups(self, bulk_params):
        players = [PlayerForGrouping(id=f"p{i}", training_rating=30) for i in range(5)]
        params = replace(bulk_params, match_level=True, level_proximity=0, players_per_cohort=2)

        preview = compute_bulk_assign_groups(params, players)

        assert [len(g.member_ids) for g in preview.groups] == [2, 2, 1]

    def test_matches_on_player_rating(self, bulk_params, grouping_players):
        params = replace(
            bulk_params,
            match_level=True,
            level_proximity=4,
            players_per_cohort=10,
            level_metric=RatingMetric.PLAYER_RATING,
        )

        preview = compute_bulk_assign_groups(params, grouping_players)

        # Player ratings: p7 0, p1 11, p3 13, p2 15, p4 29, p5 30, p6 55
        assert [g.member_ids for g in preview.groups] == [
            ["p7"],
            ["p1", "p3", "p2"],
            ["p4", "p5"],
            ["p6"],
        ]
        assert all(
            spread(g, grouping_players, "player_rating") <= 4 for g in preview.groups
        )

    def test_spread_is_measured_against_group_minimum(self, bulk_params):
        # Each step is within proximity but the chain drifts past it
        players = [
            PlayerForGrouping(id=f"p{i}", training_rating=rating)
            for i, rating in enumerate([10, 13, 16, 19])
        ]
        params = replace(bulk_params, match_level=True, level_proximity=5, players_per_cohort=10)

        preview = compute_bulk_assign_groups(params, players)

        assert [g.member_ids for g in preview.groups] == [["p0", "p1"], ["p2", "p3"]]

    def test_require_full_cohort_with_matching(self, bulk_params, grouping_players):
        params = replace(
            bulk_params,
            match_level=True,
            level_proximity=5,
            players_per_cohort=2,
            required_full_cohort=True,
        )

        preview = compute_bulk_assign_groups(params, grouping_players)

        assert all(len(g.member_ids) == 2 for g in preview.groups)
        assert [g.name for g in preview.groups] == [
            f"Spring {i + 1}" for i in range(len(preview.groups))
        ]
