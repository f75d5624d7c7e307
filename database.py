# database.py
"""
Database operations for the Darts Rating Engine.

This module implements the collaborator contracts of store_protocols.py on
Supabase tables. Every method returns a StoreResult; Supabase exceptions are
logged and translated into categorized engine errors (NOT_FOUND for PGRST116,
CONFLICT for unique violations, UPSTREAM otherwise). Joined relations, which
PostgREST may return as an object, a list or null, are normalized here so the
engine only ever receives fully-typed records.
"""

import logging
import os
from datetime import datetime
from functools import lru_cache

from supabase import Client, create_client

from app_types import (
    DartOutcome,
    DartResult,
    EligibleMatch,
    LevelBand,
    LevelRequirement,
    MatchRecord,
    PlayerId,
    PlayerRatings,
    SessionRoutine,
    SessionRun,
    StepType,
    StoreResult,
)
from constants import (
    DART_SCORES_TABLE,
    LEVEL_AVERAGES_TABLE,
    LEVEL_REQUIREMENTS_TABLE,
    MATCHES_TABLE,
    PG_UNIQUE_VIOLATION,
    PGRST_NO_ROWS,
    PLAYERS_TABLE,
    SESSION_ROUTINES_TABLE,
    SESSION_RUNS_TABLE,
)
from exceptions import (
    ConflictError,
    DartsEngineError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger("darts.database")

PLAYER_COLUMNS = (
    "id, baseline_rating, training_rating, match_rating, player_rating, "
    "ita_score, ita_completed_at"
)

MATCH_COLUMNS = (
    "id, player_id, opponent_id, competition_id, calendar_id, played_at, "
    "format_best_of, legs_won, legs_lost, total_legs, three_dart_avg, "
    "player_3da_baseline, doubles_attempted, doubles_hit, doubles_pct, "
    "opponent_rating_at_match, rating_difference, match_rating, weight, eligible"
)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Creates the shared Supabase client from SUPABASE_URL and SUPABASE_KEY."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValidationError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


def parse_timestamp(timestamp_str: str) -> datetime:
    """Parse an ISO timestamp string as returned by Supabase."""
    formats = [
        "%Y-%m-%dT%H:%M:%S.%f%z",
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%dT%H:%M:%S",
    ]
    for fmt in formats:
        try:
            return datetime.strptime(timestamp_str, fmt)
        except ValueError:
            continue
    raise ValueError(f"Cannot parse timestamp: {timestamp_str}")


def map_supabase_error(
    error: Exception, operation: str, not_found_message: str
) -> DartsEngineError:
    """Translates a Supabase/PostgREST exception into a categorized engine error."""
    if isinstance(error, DartsEngineError):
        return error

    code = getattr(error, "code", None)
    if code == PGRST_NO_ROWS:
        mapped: DartsEngineError = NotFoundError(not_found_message)
    elif code == PG_UNIQUE_VIOLATION:
        mapped = ConflictError(getattr(error, "message", None) or str(error))
    else:
        logger.exception("Supabase API call failed: %s", operation)
        message = (
            getattr(error, "message", None)
            or getattr(error, "details", None)
            or "A network or server error occurred"
        )
        mapped = UpstreamError(f"{operation} failed: {message}")
    mapped.__cause__ = error
    return mapped


def _optional_float(value) -> float | None:
    return None if value is None else float(value)


def _optional_int(value) -> int | None:
    return None if value is None else int(value)


def _joined_one(value) -> dict | None:
    """PostgREST returns a to-one join as a dict, a one-item list or null."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _joined_many(value) -> list[dict]:
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    return list(value)


def _serialize(fields: dict[str, object]) -> dict[str, object]:
    return {
        key: value.isoformat() if isinstance(value, datetime) else value
        for key, value in fields.items()
    }


def row_to_player_ratings(row: dict) -> PlayerRatings:
    completed_at = row.get("ita_completed_at")
    return PlayerRatings(
        player_id=row["id"],
        baseline_rating=_optional_float(row.get("baseline_rating")),
        training_rating=_optional_float(row.get("training_rating")),
        match_rating=_optional_float(row.get("match_rating")),
        player_rating=_optional_float(row.get("player_rating")),
        ita_score=_optional_int(row.get("ita_score")),
        ita_completed_at=parse_timestamp(completed_at) if completed_at else None,
    )


def row_to_match_record(row: dict) -> MatchRecord:
    return MatchRecord(
        id=row.get("id"),
        player_id=row["player_id"],
        opponent_id=row["opponent_id"],
        played_at=parse_timestamp(row["played_at"]),
        format_best_of=int(row["format_best_of"]),
        legs_won=int(row["legs_won"]),
        legs_lost=int(row["legs_lost"]),
        total_legs=int(row["total_legs"]),
        match_rating=float(row["match_rating"]),
        weight=float(row["weight"]),
        eligible=bool(row["eligible"]),
        opponent_rating_at_match=float(row["opponent_rating_at_match"]),
        rating_difference=float(row["rating_difference"]),
        three_dart_avg=_optional_float(row.get("three_dart_avg")),
        player_3da_baseline=_optional_float(row.get("player_3da_baseline")),
        doubles_attempted=_optional_int(row.get("doubles_attempted")),
        doubles_hit=_optional_int(row.get("doubles_hit")),
        doubles_pct=_optional_float(row.get("doubles_pct")),
        competition_id=row.get("competition_id"),
        calendar_id=row.get("calendar_id"),
    )


def match_record_to_row(record: MatchRecord) -> dict:
    return {
        "player_id": record.player_id,
        "opponent_id": record.opponent_id,
        "competition_id": record.competition_id,
        "calendar_id": record.calendar_id,
        "played_at": record.played_at.isoformat(),
        "format_best_of": record.format_best_of,
        "legs_won": record.legs_won,
        "legs_lost": record.legs_lost,
        "total_legs": record.total_legs,
        "three_dart_avg": record.three_dart_avg,
        "player_3da_baseline": record.player_3da_baseline,
        "doubles_attempted": record.doubles_attempted,
        "doubles_hit": record.doubles_hit,
        "doubles_pct": record.doubles_pct,
        "opponent_rating_at_match": record.opponent_rating_at_match,
        "rating_difference": record.rating_difference,
        "match_rating": record.match_rating,
        "weight": record.weight,
        "eligible": record.eligible,
    }


class SupabaseStore:
    """Shared client handling for the Supabase-backed stores."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client


class PlayerDB(SupabaseStore):
    """Handles player rating persistence in Supabase."""

    def get_player(self, player_id: PlayerId) -> StoreResult[PlayerRatings]:
        """Fetches one player's rating fields.

        Returns:
            StoreResult with the PlayerRatings, or a NOT_FOUND error.
        """
        try:
            response = (
                self.client.table(PLAYERS_TABLE)
                .select(PLAYER_COLUMNS)
                .eq("id", player_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "get_player", "Player not found")
            )

        if not response.data:
            return StoreResult.failure(NotFoundError(f"Player '{player_id}' not found"))
        return StoreResult.success(row_to_player_ratings(response.data[0]))

    def update_ratings(
        self, player_id: PlayerId, fields: dict[str, object]
    ) -> StoreResult[PlayerRatings]:
        """Updates the given rating fields of one player.

        Args:
            player_id: Player to update
            fields: Column -> value; datetimes are stored as ISO strings

        Returns:
            StoreResult with the updated PlayerRatings, or a NOT_FOUND error.
        """
        try:
            response = (
                self.client.table(PLAYERS_TABLE)
                .update(_serialize(fields))
                .eq("id", player_id)
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "update_ratings", "Player not found")
            )

        if not response.data:
            return StoreResult.failure(NotFoundError(f"Player '{player_id}' not found"))
        return StoreResult.success(row_to_player_ratings(response.data[0]))

    def list_player_ids(self) -> StoreResult[list[PlayerId]]:
        try:
            response = self.client.table(PLAYERS_TABLE).select("id").order("id").execute()
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "list_player_ids", "Players not found")
            )
        return StoreResult.success([row["id"] for row in response.data or []])


class LevelBandDB(SupabaseStore):
    """Handles level average lookups in Supabase."""

    def get_band_for_level(self, level: int) -> StoreResult[LevelBand]:
        """Fetches the band where level_min <= level <= level_max (None if no band)."""
        try:
            response = (
                self.client.table(LEVEL_AVERAGES_TABLE)
                .select("*")
                .lte("level_min", level)
                .gte("level_max", level)
                .order("level_min")
                .limit(1)
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "get_band_for_level", "Level average not found")
            )

        if not response.data:
            return StoreResult.success(None)
        row = response.data[0]
        return StoreResult.success(
            LevelBand(
                level_min=int(row["level_min"]),
                level_max=int(row["level_max"]),
                three_dart_avg=float(row["three_dart_avg"]),
                single_acc_pct=_optional_float(row.get("single_acc_pct")),
                double_acc_pct=_optional_float(row.get("double_acc_pct")),
                treble_acc_pct=_optional_float(row.get("treble_acc_pct")),
                bull_acc_pct=_optional_float(row.get("bull_acc_pct")),
                description=row.get("description") or "",
            )
        )


class LevelRequirementDB(SupabaseStore):
    """Handles level requirement lookups in Supabase."""

    def get_requirement(
        self, min_level: int, routine_type: StepType
    ) -> StoreResult[LevelRequirement]:
        try:
            response = (
                self.client.table(LEVEL_REQUIREMENTS_TABLE)
                .select("*")
                .eq("min_level", min_level)
                .eq("routine_type", routine_type.value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "get_requirement", "Level requirement not found")
            )

        if not response.data:
            return StoreResult.success(None)
        row = response.data[0]
        return StoreResult.success(
            LevelRequirement(
                min_level=int(row["min_level"]),
                routine_type=StepType(row["routine_type"]),
                tgt_hits=float(row["tgt_hits"]),
                darts_allowed=int(row["darts_allowed"]),
                attempt_count=_optional_int(row.get("attempt_count")),
                allowed_throws_per_attempt=_optional_int(
                    row.get("allowed_throws_per_attempt")
                ),
            )
        )


class MatchDB(SupabaseStore):
    """Handles match persistence in Supabase."""

    def get_eligible_matches(
        self, player_id: PlayerId, limit: int
    ) -> StoreResult[list[EligibleMatch]]:
        """Fetches a player's eligible matches, most recent first."""
        try:
            response = (
                self.client.table(MATCHES_TABLE)
                .select("match_rating, weight")
                .eq("player_id", player_id)
                .eq("eligible", True)
                .order("played_at", desc=True)
                .limit(max(1, limit))
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "get_eligible_matches", "Match not found")
            )

        return StoreResult.success(
            [
                EligibleMatch(
                    match_rating=float(row["match_rating"]), weight=float(row["weight"])
                )
                for row in response.data or []
            ]
        )

    def insert_match_pair(
        self, player_row: MatchRecord, opponent_row: MatchRecord
    ) -> StoreResult[tuple[MatchRecord, MatchRecord]]:
        """Inserts both participants' rows in a single request.

        Returns:
            StoreResult with (player_row, opponent_row) as stored.
        """
        try:
            response = (
                self.client.table(MATCHES_TABLE)
                .insert([match_record_to_row(player_row), match_record_to_row(opponent_row)])
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "insert_match_pair", "Match not found")
            )

        rows = response.data or []
        if len(rows) != 2:
            logger.error("Match insert returned %d rows instead of 2", len(rows))
            return StoreResult.failure(UpstreamError("Failed to insert both match rows"))

        records = [row_to_match_record(row) for row in rows]
        by_player = {record.player_id: record for record in records}
        return StoreResult.success(
            (by_player[player_row.player_id], by_player[opponent_row.player_id])
        )


class SessionRunDB(SupabaseStore):
    """Handles session run, routine classification and dart lookups in Supabase."""

    def get_session_run(self, run_id: str) -> StoreResult[SessionRun]:
        try:
            response = (
                self.client.table(SESSION_RUNS_TABLE)
                .select("id, player_id, session_id, sessions(name)")
                .eq("id", run_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "get_session_run", "Session run not found")
            )

        if not response.data:
            return StoreResult.failure(NotFoundError(f"Session run '{run_id}' not found"))
        row = response.data[0]
        session = _joined_one(row.get("sessions")) or {}
        return StoreResult.success(
            SessionRun(
                id=row["id"],
                player_id=row["player_id"],
                session_id=row["session_id"],
                session_name=session.get("name") or "",
            )
        )

    def get_session_routines(self, session_id: str) -> StoreResult[list[SessionRoutine]]:
        """Fetches a session's routines with the step type of every step."""
        try:
            response = (
                self.client.table(SESSION_ROUTINES_TABLE)
                .select("routine_no, routine_id, routines(name, routine_steps(step_no, routine_type))")
                .eq("session_id", session_id)
                .order("routine_no")
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "get_session_routines", "Session not found")
            )

        routines = []
        for row in response.data or []:
            routine = _joined_one(row.get("routines"))
            steps = sorted(
                _joined_many(routine.get("routine_steps")) if routine else [],
                key=lambda step: step["step_no"],
            )
            routines.append(
                SessionRoutine(
                    routine_no=int(row["routine_no"]),
                    routine_id=row["routine_id"],
                    routine_name=routine.get("name") if routine else None,
                    step_types=[step.get("routine_type") for step in steps],
                )
            )
        return StoreResult.success(routines)

    def list_dart_outcomes(self, run_id: str) -> StoreResult[list[DartOutcome]]:
        try:
            response = (
                self.client.table(DART_SCORES_TABLE)
                .select("routine_no, step_no, dart_no, target, actual, result")
                .eq("training_id", run_id)
                .order("routine_no")
                .order("step_no")
                .order("dart_no")
                .execute()
            )
        except Exception as e:
            return StoreResult.failure(
                map_supabase_error(e, "list_dart_outcomes", "Session run not found")
            )

        return StoreResult.success(
            [
                DartOutcome(
                    routine_no=int(row["routine_no"]),
                    step_no=int(row["step_no"]),
                    dart_no=int(row["dart_no"]),
                    result=DartResult(row["result"]),
                    target=row.get("target"),
                    actual=row.get("actual"),
                )
                for row in response.data or []
            ]
        )
