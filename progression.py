"""
Training Rating (TR) progression after a completed practice session.

The session score maps to a level change (see
scoring.level_change_from_session_score); the new TR is the rounded current
TR plus that change, clamped to [1, 99]. ITA sessions set TR directly and
never go through progression.
"""

import logging

from app_types import PlayerId, TrainingTrend
from constants import TR_MAX, TR_MIN, TR_TREND_WINDOW
from player_locks import player_update_lock
from player_rating import update_player_pr
from scoring import level_change_from_session_score
from store_protocols import PlayerStore
from utils import clamp, round_half_up

logger = logging.getLogger("darts.progression")


def next_training_rating(
    current_training_rating: float | None, session_score_percent: float
) -> int:
    """New TR after a session; a missing current TR counts as 0."""
    current = current_training_rating if current_training_rating is not None else 0
    change = level_change_from_session_score(session_score_percent)
    return int(clamp(round_half_up(current) + change, TR_MIN, TR_MAX))


def apply_training_rating_progression(
    player_store: PlayerStore, player_id: PlayerId, session_score_percent: float
) -> int:
    """
    Apply TR progression for a completed session, then refresh PR.

    Args:
        player_store: Player collaborator
        player_id: Player who completed the session
        session_score_percent: The session score (%)

    Returns:
        The new training rating (1-99).

    Raises:
        NotFoundError: If the player does not exist.
        UpstreamError: If the store fails.
    """
    with player_update_lock(player_id):
        player = player_store.get_player(player_id).unwrap()
        new_rating = next_training_rating(player.training_rating, session_score_percent)

        updated = player_store.update_ratings(
            player_id, {"training_rating": new_rating}
        ).unwrap()
        logger.info(
            f"Player {player_id}: TR {player.training_rating} -> {new_rating} "
            f"(session score {session_score_percent:.1f}%)"
        )

        update_player_pr(player_store, player_id)

    if updated.training_rating is not None:
        return int(updated.training_rating)
    return new_rating


def compute_tr_trend(session_scores: list[float]) -> TrainingTrend | None:
    """
    Trend of recent session scores, most recent first.

    Compares the mean of the two latest scores with the mean of the two
    before them. Returns None with fewer than four scores.
    """
    if len(session_scores) < TR_TREND_WINDOW:
        return None
    recent = (session_scores[0] + session_scores[1]) / 2
    previous = (session_scores[2] + session_scores[3]) / 2
    if recent > previous:
        return TrainingTrend.UP
    if recent < previous:
        return TrainingTrend.DOWN
    return TrainingTrend.STABLE
