"""
Rating update pipeline.

The rating fields of a player depend on each other in a fixed order:
a match changes OMR, and PR must be recomputed from the new OMR; a session
or ITA changes TR, and PR must follow. The functions here take a
PlayerRatings snapshot and return a new one with every dependent field
recomputed, so the order is explicit rather than a matter of call sequence.
"""

from dataclasses import replace

from app_types import EligibleMatch, PlayerRatings
from constants import OMR_WINDOW_SIZE
from exceptions import ValidationError
from omr import compute_omr
from player_rating import compute_pr
from progression import next_training_rating


def ensure_baseline_unset(snapshot: PlayerRatings) -> None:
    """Raises ValidationError if the baseline rating was already set."""
    # A stored 0 is the column default, not a real baseline
    if snapshot.baseline_rating is not None and snapshot.baseline_rating != 0:
        raise ValidationError(
            f"Baseline rating already set for player '{snapshot.player_id}' "
            f"({snapshot.baseline_rating:g})"
        )


def refresh_pr(snapshot: PlayerRatings) -> PlayerRatings:
    """Snapshot with PR recomputed from its TR and OMR."""
    return replace(
        snapshot,
        player_rating=compute_pr(snapshot.training_rating, snapshot.match_rating),
    )


def apply_ita_score(snapshot: PlayerRatings, ita_score: int) -> PlayerRatings:
    """Seed BR and TR from an ITA score, then refresh PR."""
    ensure_baseline_unset(snapshot)
    seeded = replace(snapshot, baseline_rating=ita_score, training_rating=ita_score)
    return refresh_pr(seeded)


def apply_session_score(snapshot: PlayerRatings, session_score_percent: float) -> PlayerRatings:
    """Apply TR progression for a session score, then refresh PR."""
    progressed = replace(
        snapshot,
        training_rating=next_training_rating(
            snapshot.training_rating, session_score_percent
        ),
    )
    return refresh_pr(progressed)


def apply_eligible_matches(
    snapshot: PlayerRatings, eligible_matches: list[EligibleMatch]
) -> PlayerRatings:
    """Recompute OMR from eligible matches (most recent first), then PR."""
    with_omr = replace(
        snapshot, match_rating=compute_omr(eligible_matches[:OMR_WINDOW_SIZE])
    )
    return refresh_pr(with_omr)
