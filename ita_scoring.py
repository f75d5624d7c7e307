"""
ITA (Initial Training Assessment) scoring.

Converts the raw darts of an assessment run into Singles, Doubles, Trebles
and Checkout sub-ratings and a combined ITA score:

- Singles/Trebles: per step of at least 9 darts, segment score = hits / 9 x 100;
  the rating is the mean segment score.
- Doubles: per step, darts to the first hit (6 when the step has no hit);
  the mean is mapped onto a sliding scale (1 dart -> 100 ... 6+ darts -> 0).
- Checkout: per step, darts used above the checkout's minimum; the mean is
  mapped onto a sliding scale (0 above -> 100 ... 10+ above -> 0).
- ITA score: weighted mean (Singles 3, Doubles 2, Trebles 2, Checkout 1) over
  the segment types present in the session, floored to an integer.

Routines are classified by the step types of their steps, never by name.
Everything here is pure; ita_service.py does the loading and saving.
"""

import math
from collections import defaultdict

from app_types import (
    STEP_TYPE_SEGMENTS,
    DartOutcome,
    ITARatings,
    SegmentType,
    SessionRoutine,
    StepType,
)
from constants import (
    CHECKOUT_MIN_DARTS,
    CHECKOUT_RATING_POINTS,
    CHECKOUT_RATING_ZERO_AT,
    DEFAULT_CHECKOUT_MIN_DARTS,
    DOUBLES_RATING_POINTS,
    ITA_NO_HIT_DARTS,
    ITA_SEGMENT_DARTS,
    ITA_SESSION_NAMES,
    ITA_WEIGHTS,
)
from exceptions import (
    ITARoutineMissingError,
    ITAStepTypeMissingError,
    ITAStepTypeUnrecognizedError,
)
from utils import mean_or_zero

# Breakpoints for the checkout scale, including the linear tail to zero
_CHECKOUT_POINTS = CHECKOUT_RATING_POINTS + [(CHECKOUT_RATING_ZERO_AT, 0)]

# Order used when reporting the segment types present in a session
_SEGMENT_ORDER = [
    SegmentType.SINGLES,
    SegmentType.DOUBLES,
    SegmentType.TREBLES,
    SegmentType.CHECKOUT,
]


def _interpolate(points: list[tuple[float, float]], x: float) -> float:
    """Piecewise-linear value at x; flat beyond the first and last breakpoints."""
    if x <= points[0][0]:
        return float(points[0][1])
    if x >= points[-1][0]:
        return float(points[-1][1])
    for (x1, y1), (x2, y2) in zip(points, points[1:]):
        if x1 <= x <= x2:
            return y1 + (x - x1) * (y2 - y1) / (x2 - x1)
    return float(points[-1][1])


def is_ita_session(name: str | None) -> bool:
    """A session is an ITA if its name is "ITA" or "Initial Training Assessment"."""
    if name is None:
        return False
    return name.strip().lower() in ITA_SESSION_NAMES


def compute_singles_rating(segment_scores: list[float]) -> float:
    """Mean of segment scores (each already (hits/9) x 100); 0 when empty."""
    return mean_or_zero(segment_scores)


def compute_trebles_rating(segment_scores: list[float]) -> float:
    """Mean of treble segment scores; same scale as Singles."""
    return mean_or_zero(segment_scores)


def compute_doubles_rating(avg_darts_to_hit: float) -> float:
    """
    Doubles rating from the average darts needed to hit the double.

    1 -> 100, 2 -> 90, 3 -> 70, 4 -> 50, 5 -> 30, 6+ -> 0, linear in between
    (e.g. 5.7 darts -> 9).
    """
    return _interpolate(DOUBLES_RATING_POINTS, avg_darts_to_hit)


def compute_checkout_rating(avg_darts_above_min: float) -> float:
    """
    Checkout rating from the average darts used above the checkout minimum.

    0 -> 100, 1 -> 80, 2 -> 60, 3 -> 40, 4 -> 20, then linear down to 0 at 10+.
    """
    return _interpolate(_CHECKOUT_POINTS, avg_darts_above_min)


def compute_ita_score(
    singles_rating: float,
    doubles_rating: float,
    checkout_rating: float,
    trebles_rating: float | None = None,
    present_types: list[SegmentType] | None = None,
) -> int:
    """
    Combined ITA score, floored to an integer.

    Weighted mean over the segment types present in the session. When
    present_types is not given, Singles, Doubles and Checkout count and
    Trebles counts only if a trebles rating was passed.

    Example: 26.4, 9, 80 -> (3*26.4 + 2*9 + 1*80) / 6 = 29.53 -> 29.
    """
    ratings = {
        SegmentType.SINGLES: singles_rating,
        SegmentType.DOUBLES: doubles_rating,
        SegmentType.TREBLES: trebles_rating,
        SegmentType.CHECKOUT: checkout_rating,
    }
    if present_types is None:
        present_types = [SegmentType.SINGLES, SegmentType.DOUBLES, SegmentType.CHECKOUT]
        if trebles_rating is not None:
            present_types.append(SegmentType.TREBLES)

    total_weight = 0
    weighted_sum = 0.0
    for segment in dict.fromkeys(present_types):
        weight = ITA_WEIGHTS[segment.value]
        total_weight += weight
        weighted_sum += weight * (ratings[segment] or 0.0)

    if total_weight == 0:
        return 0
    return math.floor(weighted_sum / total_weight)


def classify_routine(routine: SessionRoutine) -> SegmentType:
    """Segment type of a routine, from the step types of its steps.

    Raises:
        ITARoutineMissingError: The routine does not resolve.
        ITAStepTypeMissingError: The routine has no steps, or a step has no type.
        ITAStepTypeUnrecognizedError: A step type is not SS/SD/ST/C, or the
            routine mixes step types.
    """
    if routine.routine_name is None:
        raise ITARoutineMissingError(routine.routine_no, routine.routine_id)
    if not routine.step_types:
        raise ITAStepTypeMissingError(routine.routine_no, None)

    routine_type: StepType | None = None
    for step_no, raw_type in enumerate(routine.step_types, start=1):
        if raw_type is None or not str(raw_type).strip():
            raise ITAStepTypeMissingError(routine.routine_no, step_no)
        try:
            step_type = StepType(str(raw_type).strip().upper())
        except ValueError:
            raise ITAStepTypeUnrecognizedError(
                routine.routine_no, step_no, str(raw_type)
            ) from None

        if routine_type is None:
            routine_type = step_type
        elif step_type != routine_type:
            raise ITAStepTypeUnrecognizedError(
                routine.routine_no,
                step_no,
                str(raw_type),
                reason=f"routine steps are {routine_type.value}",
            )

    return STEP_TYPE_SEGMENTS[routine_type]


def _darts_by_step(
    darts: list[DartOutcome], routine_no: int
) -> dict[int, list[DartOutcome]]:
    by_step: dict[int, list[DartOutcome]] = defaultdict(list)
    for dart in darts:
        if dart.routine_no == routine_no:
            by_step[dart.step_no].append(dart)
    return by_step


def _segment_scores(steps: dict[int, list[DartOutcome]]) -> list[float]:
    """(hits / 9) x 100 for each step with a full set of darts."""
    scores = []
    for rows in steps.values():
        if len(rows) >= ITA_SEGMENT_DARTS:
            hits = sum(1 for row in rows if row.is_hit)
            scores.append((hits / ITA_SEGMENT_DARTS) * 100)
    return scores


def _average_darts_to_hit(steps: dict[int, list[DartOutcome]]) -> float:
    darts_to_hit = []
    for rows in steps.values():
        first_hit = next(
            (row for row in sorted(rows, key=lambda r: r.dart_no) if row.is_hit), None
        )
        darts_to_hit.append(first_hit.dart_no if first_hit else ITA_NO_HIT_DARTS)
    if not darts_to_hit:
        return float(ITA_NO_HIT_DARTS)
    return sum(darts_to_hit) / len(darts_to_hit)


def _darts_above_minimum(steps: dict[int, list[DartOutcome]]) -> list[int]:
    above = []
    for step_no, rows in steps.items():
        if 1 <= step_no <= len(CHECKOUT_MIN_DARTS):
            min_darts = CHECKOUT_MIN_DARTS[step_no - 1]
        else:
            min_darts = DEFAULT_CHECKOUT_MIN_DARTS
        above.append(max(0, len(rows) - min_darts))
    return above


def compute_ita_ratings(
    routines: list[SessionRoutine], darts: list[DartOutcome]
) -> ITARatings:
    """
    Compute all ITA sub-ratings and the combined score from recorded darts.

    Args:
        routines: The session's routines with their step types
        darts: Every dart recorded in the run

    Returns:
        ITARatings; a segment type with no routine rates 0 and is left out
        of the combined score.

    Raises:
        ValidationError subclasses from classify_routine.
    """
    routine_by_segment: dict[SegmentType, int] = {}
    for routine in routines:
        segment = classify_routine(routine)
        routine_by_segment.setdefault(segment, routine.routine_no)

    singles_rating = 0.0
    doubles_rating = 0.0
    trebles_rating = 0.0
    checkout_rating = 0.0

    if SegmentType.SINGLES in routine_by_segment:
        steps = _darts_by_step(darts, routine_by_segment[SegmentType.SINGLES])
        singles_rating = compute_singles_rating(_segment_scores(steps))

    if SegmentType.TREBLES in routine_by_segment:
        steps = _darts_by_step(darts, routine_by_segment[SegmentType.TREBLES])
        trebles_rating = compute_trebles_rating(_segment_scores(steps))

    if SegmentType.DOUBLES in routine_by_segment:
        steps = _darts_by_step(darts, routine_by_segment[SegmentType.DOUBLES])
        doubles_rating = compute_doubles_rating(_average_darts_to_hit(steps))

    if SegmentType.CHECKOUT in routine_by_segment:
        steps = _darts_by_step(darts, routine_by_segment[SegmentType.CHECKOUT])
        # No recorded checkout darts averages as 0 above the minimum
        checkout_rating = compute_checkout_rating(
            mean_or_zero(_darts_above_minimum(steps))
        )

    present_types = [s for s in _SEGMENT_ORDER if s in routine_by_segment]
    ita_score = compute_ita_score(
        singles_rating,
        doubles_rating,
        checkout_rating,
        trebles_rating,
        present_types=present_types,
    )
    return ITARatings(
        singles_rating=singles_rating,
        doubles_rating=doubles_rating,
        trebles_rating=trebles_rating,
        checkout_rating=checkout_rating,
        ita_score=ita_score,
        present_types=present_types,
    )
