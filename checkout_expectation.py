"""
Checkout expectation model.

Estimates how many checkout attempts a player of a given level is expected to
complete for a target total:

1. W = max(target - 40, 0)            points to score before a double is reachable
2. ppd = three_dart_avg / 3           points per dart
3. E = W / ppd (0 when W = 0)         expected darts spent scoring
4. P_reach = 1 / (1 + exp(-K (r - 1))), r = scoring_darts / E (1 when E = 0)
5. n = round(allowed - min(E, scoring_darts)), clamped to [1, allowed]
6. P_finish_given_reach = 1 - (1 - pD)^n, pD = double accuracy / 100
7. P_checkout = P_reach * P_finish_given_reach
8. expected = attempts * P_checkout; the integer form is rounded and
   clamped to [0, attempts]

Rounding is half-up throughout (never banker's rounding).
"""

import logging
import math

from app_types import ExpectedCheckoutResult, LevelBand, StepType
from constants import (
    CHECKOUT_RANGE,
    DEFAULT_ALLOWED_THROWS_PER_ATTEMPT,
    DEFAULT_ATTEMPT_COUNT,
    K_REACH,
)
from exceptions import ValidationError
from logger import log_checkout_expectation_debug
from store_protocols import LevelBandStore, LevelRequirementStore
from utils import clamp, round_half_up

logger = logging.getLogger("darts.checkout_expectation")


def compute_expected_checkout_successes(
    band: LevelBand,
    target: float,
    allowed_throws_per_attempt: int = DEFAULT_ALLOWED_THROWS_PER_ATTEMPT,
    attempt_count: int = DEFAULT_ATTEMPT_COUNT,
    include_debug: bool = False,
) -> ExpectedCheckoutResult:
    """
    Compute expected checkout completions for one target.

    Args:
        band: Level band supplying three_dart_avg and double_acc_pct
        target: Checkout total, e.g. 61
        allowed_throws_per_attempt: Darts allowed per attempt
        attempt_count: Number of attempts at the target
        include_debug: Fill in P_checkout, P_reach, n and E on the result

    Returns:
        ExpectedCheckoutResult

    Raises:
        ValidationError: If the band has no positive three-dart average while
            scoring is required, or allowed throws / attempts are not positive.
    """
    if allowed_throws_per_attempt < 1:
        raise ValidationError("Allowed throws per attempt must be at least 1")
    if attempt_count < 0:
        raise ValidationError("Attempt count must be non-negative")

    w = max(target - CHECKOUT_RANGE, 0)
    ppd = band.three_dart_avg / 3
    if w > 0 and ppd <= 0:
        raise ValidationError(
            f"Level band {band.level_min}-{band.level_max} has no positive three-dart average"
        )
    e = 0.0 if w == 0 else w / ppd

    scoring_darts = allowed_throws_per_attempt - 1
    if e == 0:
        p_reach = 1.0
    else:
        r = scoring_darts / e
        p_reach = 1 / (1 + math.exp(-K_REACH * (r - 1)))

    n = round_half_up(allowed_throws_per_attempt - min(e, scoring_darts))
    n = int(clamp(n, 1, allowed_throws_per_attempt))

    double_acc_pct = band.double_acc_pct if band.double_acc_pct is not None else 0
    p_double = double_acc_pct / 100
    p_finish_given_reach = 1 - (1 - p_double) ** n

    p_checkout = p_reach * p_finish_given_reach

    expected_successes = attempt_count * p_checkout
    expected_successes_int = int(
        clamp(round_half_up(expected_successes), 0, attempt_count)
    )

    log_checkout_expectation_debug(
        logger,
        target=target,
        w=w,
        ppd=ppd,
        e=e,
        p_reach=p_reach,
        n=n,
        p_finish_given_reach=p_finish_given_reach,
        p_checkout=p_checkout,
        expected_successes=expected_successes,
        expected_successes_int=expected_successes_int,
    )

    result = ExpectedCheckoutResult(
        expected_successes=expected_successes,
        expected_successes_int=expected_successes_int,
    )
    if include_debug:
        result.p_checkout = p_checkout
        result.p_reach = p_reach
        result.n = n
        result.e = e
    return result


def get_expected_checkout_successes(
    band_store: LevelBandStore,
    requirement_store: LevelRequirementStore,
    player_level: int,
    target: float,
    allowed_throws_per_attempt: int | None = None,
    attempt_count: int | None = None,
    include_debug: bool = False,
) -> ExpectedCheckoutResult | None:
    """
    Look up the player's level band and checkout configuration, then compute.

    Explicit arguments override the level's checkout requirement, which
    overrides the defaults (9 throws, 9 attempts).

    Returns:
        ExpectedCheckoutResult, or None when no band contains player_level.
    """
    band = band_store.get_band_for_level(player_level).unwrap()
    if band is None:
        logger.info(f"No level band contains level {player_level}")
        return None

    min_level = math.floor(player_level / 10) * 10
    requirement = requirement_store.get_requirement(min_level, StepType.CHECKOUT).unwrap()

    allowed = allowed_throws_per_attempt
    if allowed is None and requirement is not None:
        allowed = requirement.allowed_throws_per_attempt
    if allowed is None:
        allowed = DEFAULT_ALLOWED_THROWS_PER_ATTEMPT

    attempts = attempt_count
    if attempts is None and requirement is not None:
        attempts = requirement.attempt_count
    if attempts is None:
        attempts = DEFAULT_ATTEMPT_COUNT

    logger.debug(
        "Checkout expectation inputs: level=%s band=%s-%s target=%s allowed=%s attempts=%s",
        player_level,
        band.level_min,
        band.level_max,
        target,
        allowed,
        attempts,
    )
    return compute_expected_checkout_successes(
        band, target, allowed, attempts, include_debug=include_debug
    )


def expected_hits_for_single_dart_routine(
    band: LevelBand, step_type: StepType, darts_allowed: int
) -> float | None:
    """
    Expected hits for a single-dart routine: darts_allowed x accuracy / 100.

    Uses the band's single, double or treble accuracy for SS, SD or ST.
    Returns None for checkout steps or when the accuracy is missing.
    """
    accuracy_by_type = {
        StepType.SINGLE: band.single_acc_pct,
        StepType.DOUBLE: band.double_acc_pct,
        StepType.TREBLE: band.treble_acc_pct,
    }
    accuracy = accuracy_by_type.get(step_type)
    if accuracy is None:
        return None
    return round_half_up(darts_allowed * accuracy / 100 * 100) / 100
