"""
Service layer for the Initial Training Assessment.

Loads an assessment run's routines and darts, derives the ITA ratings, and
completes the assessment: BR and TR are set to the ITA score, PR is
recomputed, and the score and completion time are recorded for audit.
Each step fails with a specific error instead of producing a degraded score.
"""

import logging
from datetime import datetime, timezone

from app_types import ITARatings, PlayerId
from exceptions import ValidationError
from ita_scoring import compute_ita_ratings, is_ita_session
from player_locks import player_update_lock
from player_rating import update_player_pr
from player_service import set_baseline_and_training_rating, set_player_ita_completed
from store_protocols import PlayerStore, SessionRunStore

logger = logging.getLogger("darts.ita_service")


def derive_ita_ratings_from_session_run(
    session_store: SessionRunStore, session_run_id: str
) -> ITARatings:
    """
    Derive ITA ratings from the darts recorded in a session run.

    Raises:
        NotFoundError: If the session run does not exist.
        ValidationError: If the session is not an ITA, or a routine or step
            cannot be classified.
    """
    run = session_store.get_session_run(session_run_id).unwrap()
    if not is_ita_session(run.session_name):
        raise ValidationError(
            f"Session '{run.session_name}' of run '{session_run_id}' is not an ITA session"
        )

    routines = session_store.get_session_routines(run.session_id).unwrap()
    if not routines:
        raise ValidationError(f"ITA session '{run.session_id}' has no routines")

    darts = session_store.list_dart_outcomes(session_run_id).unwrap()
    ratings = compute_ita_ratings(routines, darts)

    logger.info(
        f"ITA run {session_run_id}: singles={ratings.singles_rating:.1f} "
        f"doubles={ratings.doubles_rating:.1f} trebles={ratings.trebles_rating:.1f} "
        f"checkout={ratings.checkout_rating:.1f} score={ratings.ita_score}"
    )
    return ratings


def complete_ita_and_set_baseline(
    session_store: SessionRunStore,
    player_store: PlayerStore,
    session_run_id: str,
    player_id: PlayerId,
    completed_at: datetime | None = None,
) -> ITARatings:
    """
    Complete an ITA: derive ratings, set BR and TR, refresh PR, record audit.

    Do not apply training rating progression for an ITA session.

    Args:
        session_store: Session run collaborator
        player_store: Player collaborator
        session_run_id: The finished assessment run
        player_id: Player who ran it
        completed_at: Completion time to record (defaults to now, UTC)

    Raises:
        NotFoundError: If the run or player does not exist.
        ValidationError: If the run is not a valid ITA or BR is already set.
    """
    ratings = derive_ita_ratings_from_session_run(session_store, session_run_id)

    if completed_at is None:
        completed_at = datetime.now(timezone.utc)

    with player_update_lock(player_id):
        set_baseline_and_training_rating(player_store, player_id, ratings.ita_score)
        update_player_pr(player_store, player_id)
        set_player_ita_completed(
            player_store, player_id, ratings.ita_score, completed_at
        )

    logger.info(f"Player {player_id}: ITA completed with score {ratings.ita_score}")
    return ratings
