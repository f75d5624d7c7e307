"""
Match Rating (MR) for one player's side of one match.

The MR formula is provisional and implemented exactly as currently defined:

    MR = 50 + (leg_share - 0.5) * 40 + (5 if won on legs) + (opponent - 50) * 0.15
         + (avg / baseline - 1) * 5     (when both averages are known)
         + (doubles_pct - 0.5) * 4      (when doubles % is known)

rounded to one decimal and clamped to [0, 100]. Do not "improve" it; any
change to the formula is a deliberate behavioural change.
"""

import math

from app_types import MatchRatingInputs
from constants import (
    DECADE_BAND_TOLERANCE,
    DEFAULT_FORMAT_WEIGHT,
    FORMAT_WEIGHTS,
    MAX_DECADE,
    MR_BASE,
    MR_DOUBLES_SCALE,
    MR_LEG_SHARE_SCALE,
    MR_MAX,
    MR_MIN,
    MR_OPPONENT_SCALE,
    MR_THREE_DART_AVG_SCALE,
    MR_WIN_BONUS,
    OUT_OF_BAND_WEIGHT,
)
from utils import clamp, round_to_tenth


def compute_match_rating(inputs: MatchRatingInputs) -> float:
    """Compute MR on a 0-100 scale for one side of a match."""
    leg_share = inputs.leg_share
    win_bonus = MR_WIN_BONUS if leg_share > 0.5 else 0
    opponent_adjustment = (inputs.opponent_strength - 50) * MR_OPPONENT_SCALE
    mr = MR_BASE + (leg_share - 0.5) * MR_LEG_SHARE_SCALE + win_bonus + opponent_adjustment

    if (
        inputs.three_dart_avg is not None
        and inputs.player_3da_baseline is not None
        and inputs.player_3da_baseline > 0
    ):
        ratio = inputs.three_dart_avg / inputs.player_3da_baseline
        mr += (ratio - 1) * MR_THREE_DART_AVG_SCALE

    if inputs.doubles_pct is not None and 0 <= inputs.doubles_pct <= 1:
        mr += (inputs.doubles_pct - 0.5) * MR_DOUBLES_SCALE

    return round_to_tenth(clamp(mr, MR_MIN, MR_MAX))


def get_format_weight(format_best_of: int) -> float:
    """Weight for a best-of-N match: 5 -> 1.0, 7 -> 1.1, 9 -> 1.2, 11 -> 1.3, else 1.0."""
    return FORMAT_WEIGHTS.get(format_best_of, DEFAULT_FORMAT_WEIGHT)


def get_decade(rating: float | None) -> int | None:
    """Decade band of a rating: 0-9 -> 0, 10-19 -> 10, ..., clamped to [0, 90]."""
    if rating is None or math.isnan(rating):
        return None
    decade = math.floor(rating / 10) * 10
    return int(clamp(decade, 0, MAX_DECADE))


def is_opponent_in_band(player_rating: float | None, opponent_rating: float | None) -> bool:
    """True when the two ratings' decades differ by at most one decade.

    A missing rating counts as out of band.
    """
    player_decade = get_decade(player_rating)
    opponent_decade = get_decade(opponent_rating)
    if player_decade is None or opponent_decade is None:
        return False
    return abs(player_decade - opponent_decade) <= DECADE_BAND_TOLERANCE


def compute_match_weight(format_best_of: int, in_band: bool) -> float:
    """OMR weight of a match: format weight, reduced for out-of-band opponents."""
    weight = get_format_weight(format_best_of)
    return weight if in_band else weight * OUT_OF_BAND_WEIGHT
