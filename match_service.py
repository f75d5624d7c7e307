"""
Service layer for recording head-to-head matches.

Recording a match computes both participants' MR and weight, inserts the two
rows as one unit, then recomputes OMR for both players and only afterwards
PR for both. The whole sequence runs under both players' update locks so
concurrent matches for the same player cannot interleave.
"""

import logging
from datetime import datetime, timezone

from app_types import (
    MatchRatingInputs,
    MatchRecord,
    PlayerRatings,
    RecordMatchPayload,
    RecordMatchResult,
)
from constants import DEFAULT_OPPONENT_STRENGTH, MIN_FORMAT_BEST_OF
from exceptions import ValidationError
from match_rating import compute_match_rating, compute_match_weight, is_opponent_in_band
from omr import update_player_omr
from player_locks import player_update_lock
from player_rating import update_player_pr
from store_protocols import MatchStore, PlayerStore

logger = logging.getLogger("darts.match_service")


def _published_rating(player: PlayerRatings) -> float | None:
    """PR, falling back to OMR."""
    if player.player_rating is not None:
        return player.player_rating
    return player.match_rating


def _player_3da_baseline(player: PlayerRatings) -> float | None:
    # No per-player three-dart baseline is stored, so the 3DA adjustment is skipped
    return None


def validate_record_match_payload(payload: RecordMatchPayload) -> None:
    """Raises ValidationError for a result that cannot be recorded."""
    if payload.format_best_of < MIN_FORMAT_BEST_OF:
        raise ValidationError(
            f"Format must be best-of-{MIN_FORMAT_BEST_OF} or longer "
            f"(got best-of-{payload.format_best_of})"
        )
    if payload.player_id == payload.opponent_id:
        raise ValidationError("Player and opponent must be different")
    if payload.legs_won < 0 or payload.legs_lost < 0:
        raise ValidationError("Legs won and lost must be non-negative")
    if payload.legs_won + payload.legs_lost == 0:
        raise ValidationError("A match must have at least one leg")
    if payload.doubles_attempted is not None and payload.doubles_attempted < 0:
        raise ValidationError("Doubles attempted must be non-negative")
    if (
        payload.doubles_hit is not None
        and payload.doubles_attempted is not None
        and payload.doubles_hit > payload.doubles_attempted
    ):
        raise ValidationError("Doubles hit cannot exceed doubles attempted")


def build_match_rows(
    payload: RecordMatchPayload,
    player: PlayerRatings,
    opponent: PlayerRatings,
    played_at: datetime,
) -> tuple[MatchRecord, MatchRecord]:
    """
    Build both participants' rows for a match.

    Strength is PR, else OMR, else 50. A match is eligible for OMR when it is
    at least best-of-5 and its 3-dart average and doubles are recorded.
    """
    total_legs = payload.legs_won + payload.legs_lost

    player_published = _published_rating(player)
    opponent_published = _published_rating(opponent)
    player_strength = (
        player_published if player_published is not None else DEFAULT_OPPONENT_STRENGTH
    )
    opponent_strength = (
        opponent_published if opponent_published is not None else DEFAULT_OPPONENT_STRENGTH
    )

    doubles_pct = None
    if (
        payload.doubles_attempted is not None
        and payload.doubles_attempted > 0
        and payload.doubles_hit is not None
    ):
        doubles_pct = payload.doubles_hit / payload.doubles_attempted

    metrics_recorded = (
        payload.three_dart_avg is not None
        and payload.doubles_attempted is not None
        and payload.doubles_hit is not None
    )
    eligible = payload.format_best_of >= MIN_FORMAT_BEST_OF and metrics_recorded

    player_baseline = _player_3da_baseline(player)
    opponent_baseline = _player_3da_baseline(opponent)

    player_mr = compute_match_rating(
        MatchRatingInputs(
            opponent_strength=opponent_strength,
            leg_share=payload.legs_won / total_legs,
            three_dart_avg=payload.three_dart_avg,
            player_3da_baseline=player_baseline,
            doubles_pct=doubles_pct,
        )
    )
    opponent_mr = compute_match_rating(
        MatchRatingInputs(
            opponent_strength=player_strength,
            leg_share=payload.legs_lost / total_legs,
            three_dart_avg=payload.three_dart_avg,
            player_3da_baseline=opponent_baseline,
            doubles_pct=doubles_pct,
        )
    )

    player_weight = compute_match_weight(
        payload.format_best_of, is_opponent_in_band(player_published, opponent_published)
    )
    opponent_weight = compute_match_weight(
        payload.format_best_of, is_opponent_in_band(opponent_published, player_published)
    )

    shared = {
        "played_at": played_at,
        "format_best_of": payload.format_best_of,
        "total_legs": total_legs,
        "eligible": eligible,
        "three_dart_avg": payload.three_dart_avg,
        "doubles_attempted": payload.doubles_attempted,
        "doubles_hit": payload.doubles_hit,
        "doubles_pct": doubles_pct,
        "competition_id": payload.competition_id,
        "calendar_id": payload.calendar_id,
    }
    player_row = MatchRecord(
        player_id=payload.player_id,
        opponent_id=payload.opponent_id,
        legs_won=payload.legs_won,
        legs_lost=payload.legs_lost,
        match_rating=player_mr,
        weight=player_weight,
        opponent_rating_at_match=opponent_strength,
        rating_difference=(player_published or 0) - opponent_strength,
        player_3da_baseline=player_baseline,
        **shared,
    )
    opponent_row = MatchRecord(
        player_id=payload.opponent_id,
        opponent_id=payload.player_id,
        legs_won=payload.legs_lost,
        legs_lost=payload.legs_won,
        match_rating=opponent_mr,
        weight=opponent_weight,
        opponent_rating_at_match=player_strength,
        rating_difference=(opponent_published or 0) - player_strength,
        player_3da_baseline=opponent_baseline,
        **shared,
    )
    return player_row, opponent_row


def record_match(
    player_store: PlayerStore,
    match_store: MatchStore,
    payload: RecordMatchPayload,
) -> RecordMatchResult:
    """
    Record a match between two players and refresh both players' ratings.

    Args:
        player_store: Player collaborator
        match_store: Match collaborator
        payload: The result from the recording player's side

    Returns:
        Both stored rows and both players' refreshed ratings.

    Raises:
        ValidationError: If the payload is invalid.
        NotFoundError: If either player does not exist.
        UpstreamError: If a store call fails.
    """
    validate_record_match_payload(payload)
    played_at = payload.played_at or datetime.now(timezone.utc)

    with player_update_lock(payload.player_id, payload.opponent_id):
        player = player_store.get_player(payload.player_id).unwrap()
        opponent = player_store.get_player(payload.opponent_id).unwrap()

        player_row, opponent_row = build_match_rows(payload, player, opponent, played_at)
        player_match, opponent_match = match_store.insert_match_pair(
            player_row, opponent_row
        ).unwrap()
        logger.info(
            f"Recorded match {payload.player_id} vs {payload.opponent_id}: "
            f"{payload.legs_won}-{payload.legs_lost} (best of {payload.format_best_of}), "
            f"MR {player_match.match_rating} / {opponent_match.match_rating}, "
            f"eligible={player_match.eligible}"
        )

        # OMR for both players before PR for either
        update_player_omr(match_store, player_store, payload.player_id)
        update_player_omr(match_store, player_store, payload.opponent_id)
        player_ratings = update_player_pr(player_store, payload.player_id)
        opponent_ratings = update_player_pr(player_store, payload.opponent_id)

    return RecordMatchResult(
        player_match=player_match,
        opponent_match=opponent_match,
        player_ratings=player_ratings,
        opponent_ratings=opponent_ratings,
    )
