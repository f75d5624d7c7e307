"""
Bulk cohort assignment: partition unassigned players into named cohorts.

1. Sort candidates by the chosen rating when matching by level, else by id.
2. Matching by level: grow the current group while it is below the size cap
   and its rating spread stays within the proximity; otherwise start a new
   group with the current candidate.
3. Not matching: chunk the sorted list into groups of players_per_cohort.
4. With required_full_cohort, drop groups smaller than players_per_cohort.
5. Name groups "{prefix} {start_index + i}".

Pure grouping logic; cohort_service.py hands the result to the collaborator
that persists cohorts and memberships.
"""

import re
from datetime import date, timedelta

from app_types import (
    BulkAssignParams,
    BulkAssignPreview,
    CohortGroup,
    PlayerForGrouping,
    PlayerId,
    RatingMetric,
)
from exceptions import ValidationError

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _rating(player: PlayerForGrouping, metric: RatingMetric) -> float:
    """Rating used for matching; a missing rating counts as 0."""
    if metric == RatingMetric.PLAYER_RATING:
        value = player.player_rating
    else:
        value = player.training_rating
    return value if value is not None else 0


def _parse_start_date(start_date: str) -> date:
    if not isinstance(start_date, str) or not _DATE_PATTERN.match(start_date):
        raise ValidationError("Start date must be YYYY-MM-DD")
    try:
        return date.fromisoformat(start_date)
    except ValueError:
        raise ValidationError(f"Start date '{start_date}' is invalid") from None


def validate_bulk_assign_params(params: BulkAssignParams) -> None:
    """Raises ValidationError unless every grouping precondition holds."""
    if not params.name_prefix or not params.name_prefix.strip():
        raise ValidationError("Cohort name prefix is required")
    if params.name_start_index is None or params.name_start_index < 0:
        raise ValidationError("Name start index must be a non-negative number")
    if params.players_per_cohort is None or params.players_per_cohort < 1:
        raise ValidationError("Players per cohort must be at least 1")
    if params.duration_days is None or params.duration_days < 1:
        raise ValidationError("Duration must be at least 1 day")
    _parse_start_date(params.start_date)
    if params.match_level and (
        params.level_proximity is None or params.level_proximity < 0
    ):
        raise ValidationError(
            "Level proximity must be a non-negative number when Match level is on"
        )
    if not params.schedule_id or not params.schedule_id.strip():
        raise ValidationError("Schedule is required")
    if params.level_metric not in {m.value for m in RatingMetric}:
        raise ValidationError("Level metric must be training_rating or player_rating")


def compute_bulk_assign_end_date(start_date: str, duration_days: int) -> date:
    """End date = start date + duration."""
    return _parse_start_date(start_date) + timedelta(days=duration_days)


def _group_by_level(
    players: list[PlayerForGrouping],
    metric: RatingMetric,
    proximity: float,
    max_size: int,
) -> list[list[PlayerId]]:
    groups: list[list[PlayerId]] = []
    current: list[PlayerId] = []
    min_rating = max_rating = _rating(players[0], metric)

    for player in players:
        rating = _rating(player, metric)
        would_max = max(max_rating, rating)
        would_min = min_rating if current else rating
        if len(current) >= max_size or (current and would_max - would_min > proximity):
            groups.append(current)
            current = [player.id]
            min_rating = max_rating = rating
        else:
            current.append(player.id)
            max_rating = max(max_rating, rating)
            min_rating = min(min_rating, rating)

    if current:
        groups.append(current)
    return groups


def _chunk(players: list[PlayerForGrouping], size: int) -> list[list[PlayerId]]:
    return [[p.id for p in players[i : i + size]] for i in range(0, len(players), size)]


def compute_bulk_assign_groups(
    params: BulkAssignParams, players: list[PlayerForGrouping]
) -> BulkAssignPreview:
    """
    Group unassigned players into named cohorts.

    Args:
        params: Bulk-assign parameters (validated first)
        players: Candidates not yet in a cohort

    Returns:
        BulkAssignPreview with the ordered groups and the shared end date.

    Raises:
        ValidationError: If any parameter is invalid; no partial result.
    """
    validate_bulk_assign_params(params)
    end_date = compute_bulk_assign_end_date(params.start_date, params.duration_days)
    metric = RatingMetric(params.level_metric)

    if not players:
        return BulkAssignPreview(groups=[], end_date=end_date)

    if params.match_level:
        ordered = sorted(players, key=lambda p: _rating(p, metric))
        raw_groups = _group_by_level(
            ordered, metric, params.level_proximity, params.players_per_cohort
        )
    else:
        ordered = sorted(players, key=lambda p: p.id)
        raw_groups = _chunk(ordered, params.players_per_cohort)

    if params.required_full_cohort:
        raw_groups = [g for g in raw_groups if len(g) >= params.players_per_cohort]

    prefix = params.name_prefix.strip()
    groups = [
        CohortGroup(name=f"{prefix} {params.name_start_index + i}", member_ids=member_ids)
        for i, member_ids in enumerate(raw_groups)
    ]
    return BulkAssignPreview(groups=groups, end_date=end_date)
