"""
Overall Match Rating (OMR).

OMR is the weighted mean of a player's most recent eligible match ratings
(at most OMR_WINDOW_SIZE). From OMR_TRIM_THRESHOLD matches on, exactly one
lowest and one highest rating are dropped before averaging.
"""

import logging

from app_types import EligibleMatch, PlayerId, PlayerRatings
from constants import OMR_TRIM_THRESHOLD, OMR_WINDOW_SIZE
from store_protocols import MatchStore, PlayerStore
from utils import round_to_tenth

logger = logging.getLogger("darts.omr")


def compute_omr(matches: list[EligibleMatch]) -> float | None:
    """
    Compute OMR = sum(w_i * MR_i) / sum(w_i), rounded to one decimal.

    Args:
        matches: Eligible matches, most recent first, already windowed

    Returns:
        OMR, or None with no matches (or a zero total weight).
    """
    if not matches:
        return None

    used = matches
    if len(matches) >= OMR_TRIM_THRESHOLD:
        # Sorting is stable, so duplicate extremes lose exactly one entry each
        used = sorted(matches, key=lambda m: m.match_rating)[1:-1]

    total_weight = sum(m.weight for m in used)
    if total_weight == 0:
        return None
    weighted_sum = sum(m.weight * m.match_rating for m in used)
    return round_to_tenth(weighted_sum / total_weight)


def update_player_omr(
    match_store: MatchStore, player_store: PlayerStore, player_id: PlayerId
) -> PlayerRatings:
    """
    Recompute OMR from the player's eligible matches and save it.

    Must run after every match insert for the player and before PR is
    recomputed. With no eligible matches, OMR is cleared to None.
    """
    eligible = match_store.get_eligible_matches(player_id, OMR_WINDOW_SIZE).unwrap()
    omr = compute_omr(eligible[:OMR_WINDOW_SIZE])
    updated = player_store.update_ratings(player_id, {"match_rating": omr}).unwrap()
    logger.info(
        f"Player {player_id}: OMR updated to {omr} from {len(eligible)} eligible match(es)"
    )
    return updated
