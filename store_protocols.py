"""
Collaborator contracts consumed by the engine.

Each call returns a StoreResult: the engine unwraps it and raises the
categorized error, so adapters never leak raw storage exceptions.
database.py provides the Supabase-backed implementations; tests use the
in-memory fakes in tests/fakes.py.
"""

from typing import Protocol

from app_types import (
    BulkAssignPreview,
    DartOutcome,
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


class PlayerStore(Protocol):
    """Reads and writes a player's rating fields."""

    def get_player(self, player_id: PlayerId) -> StoreResult[PlayerRatings]:
        """NOT_FOUND error when the id does not resolve."""
        ...

    def update_ratings(
        self, player_id: PlayerId, fields: dict[str, object]
    ) -> StoreResult[PlayerRatings]:
        """Updates only the given fields and returns the updated snapshot."""
        ...

    def list_player_ids(self) -> StoreResult[list[PlayerId]]: ...


class LevelBandStore(Protocol):
    """Level averages keyed by an inclusive level range."""

    def get_band_for_level(self, level: int) -> StoreResult[LevelBand]:
        """Value is None when no band contains the level."""
        ...


class LevelRequirementStore(Protocol):
    """Per-level routine configuration."""

    def get_requirement(
        self, min_level: int, routine_type: StepType
    ) -> StoreResult[LevelRequirement]:
        """Value is None when no requirement is configured."""
        ...


class MatchStore(Protocol):
    """Match rows, one per participant."""

    def get_eligible_matches(
        self, player_id: PlayerId, limit: int
    ) -> StoreResult[list[EligibleMatch]]:
        """Eligible matches only, most recent first, at most limit rows."""
        ...

    def insert_match_pair(
        self, player_row: MatchRecord, opponent_row: MatchRecord
    ) -> StoreResult[tuple[MatchRecord, MatchRecord]]:
        """Inserts both rows as one unit and returns them in the same order."""
        ...


class SessionRunStore(Protocol):
    """Session runs, their routine classifications and recorded darts."""

    def get_session_run(self, run_id: str) -> StoreResult[SessionRun]: ...

    def get_session_routines(self, session_id: str) -> StoreResult[list[SessionRoutine]]: ...

    def list_dart_outcomes(self, run_id: str) -> StoreResult[list[DartOutcome]]: ...


class CohortConsumer(Protocol):
    """Persists bulk-assigned cohorts and their memberships."""

    def accept_groups(
        self, preview: BulkAssignPreview, schedule_id: str
    ) -> StoreResult[None]: ...
