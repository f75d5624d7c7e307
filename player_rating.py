"""
Player Rating (PR): the published rating blending TR and OMR.

PR = (TR x alpha + OMR x beta) / (alpha + beta); with one input missing PR
equals the other. PR is never set directly: update_player_pr() recomputes it
from the stored TR and OMR and must run after any change to either.
"""

import logging
import math

from app_types import PlayerId, PlayerRatings
from constants import PR_MAX, PR_MIN, PR_OMR_WEIGHT, PR_TR_WEIGHT
from store_protocols import PlayerStore
from utils import clamp, round_to_tenth

logger = logging.getLogger("darts.player_rating")


def compute_pr(
    training_rating: float | None,
    match_rating: float | None,
    tr_weight: float = PR_TR_WEIGHT,
    omr_weight: float = PR_OMR_WEIGHT,
) -> float | None:
    """Blend TR and OMR into PR, rounded to one decimal and clamped to [1, 99].

    Returns None when both inputs are missing. NaN counts as missing.
    """
    has_tr = training_rating is not None and not math.isnan(training_rating)
    has_omr = match_rating is not None and not math.isnan(match_rating)
    if not has_tr and not has_omr:
        return None

    if has_tr and has_omr:
        pr = (training_rating * tr_weight + match_rating * omr_weight) / (
            tr_weight + omr_weight
        )
    elif has_tr:
        pr = training_rating
    else:
        pr = match_rating

    return round_to_tenth(clamp(pr, PR_MIN, PR_MAX))


def update_player_pr(player_store: PlayerStore, player_id: PlayerId) -> PlayerRatings:
    """
    Recompute PR from the player's stored TR and OMR and save it.

    Returns:
        The updated rating snapshot.

    Raises:
        NotFoundError: If the player does not exist.
        UpstreamError: If the store fails.
    """
    player = player_store.get_player(player_id).unwrap()
    pr = compute_pr(player.training_rating, player.match_rating)
    updated = player_store.update_ratings(player_id, {"player_rating": pr}).unwrap()
    logger.info(f"Player {player_id}: PR updated to {pr}")
    return updated
