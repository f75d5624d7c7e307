"""
Scoring primitives for practice sessions.

Round score (%) = (hits / target hits) x 100; routine and session scores are
the mean of round scores. Nothing here rounds: callers round at presentation
or combination points only.
"""

from constants import MAX_CHECKOUT_STEP_SCORE
from utils import mean_or_zero


def round_score(hits: float, target_hits: float) -> float:
    """Round score as a percentage. May exceed 100; 0 when target_hits <= 0."""
    if target_hits <= 0:
        return 0.0
    return (hits / target_hits) * 100


def routine_score(round_scores: list[float]) -> float:
    """Mean of a routine's round scores; 0 when empty."""
    return mean_or_zero(round_scores)


def session_score(round_scores: list[float]) -> float:
    """Mean of all round scores in the session; 0 when empty."""
    return mean_or_zero(round_scores)


def step_score(expected_successes_int: int, actual_successes: int) -> float:
    """Checkout step score (%), capped at 200.

    When nothing was expected, a blank step scores 100 and any success
    scores the cap.
    """
    if expected_successes_int == 0:
        return 100.0 if actual_successes == 0 else float(MAX_CHECKOUT_STEP_SCORE)
    raw = (actual_successes / expected_successes_int) * 100
    return min(raw, float(MAX_CHECKOUT_STEP_SCORE))


def checkout_routine_score(step_scores: list[float]) -> float:
    """Mean of checkout step scores, capped at 200; 0 when empty."""
    if not step_scores:
        return 0.0
    return min(routine_score(step_scores), float(MAX_CHECKOUT_STEP_SCORE))


def level_change_from_session_score(session_score_percent: float) -> int:
    """
    Training rating change earned by a session score.

    <50% -> -1, 50-99% -> 0, 100-199% -> +1, 200-299% -> +2, >=300% -> +3.
    """
    if session_score_percent < 50:
        return -1
    if session_score_percent < 100:
        return 0
    if session_score_percent < 200:
        return 1
    if session_score_percent < 300:
        return 2
    return 3
