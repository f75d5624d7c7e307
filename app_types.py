"""
Type aliases and records for the Darts Rating Engine.

This module defines the enums and fully-typed records that flow between the
storage adapters and the rating formulas. Adapters normalize raw rows into
these records so the engine never sees optional or list-like joined shapes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Generic, TypeVar

# =============================================================================
# Basic Type Aliases
# =============================================================================

# A player's id (uuid string from the players table)
PlayerId = str


class ErrorCategory(str, Enum):
    """Category of an engine error, for branching without string matching."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    UPSTREAM = "UPSTREAM"


class StepType(str, Enum):
    """Routine step type: single, double, treble or checkout."""

    SINGLE = "SS"
    DOUBLE = "SD"
    TREBLE = "ST"
    CHECKOUT = "C"


class SegmentType(str, Enum):
    """Sub-skill categories scored independently in the ITA."""

    SINGLES = "Singles"
    DOUBLES = "Doubles"
    TREBLES = "Trebles"
    CHECKOUT = "Checkout"


# Step type -> segment type used to classify an ITA routine
STEP_TYPE_SEGMENTS: dict[StepType, SegmentType] = {
    StepType.SINGLE: SegmentType.SINGLES,
    StepType.DOUBLE: SegmentType.DOUBLES,
    StepType.TREBLE: SegmentType.TREBLES,
    StepType.CHECKOUT: SegmentType.CHECKOUT,
}


class DartResult(str, Enum):
    """Outcome of one dart."""

    HIT = "H"
    MISS = "M"


class RatingMetric(str, Enum):
    """Rating used to match players when bulk-assigning cohorts."""

    TRAINING_RATING = "training_rating"
    PLAYER_RATING = "player_rating"


class TrainingTrend(str, Enum):
    """Direction of recent session scores."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


# =============================================================================
# Collaborator Results
# =============================================================================

T = TypeVar("T")


@dataclass
class StoreResult(Generic[T]):
    """Result of a collaborator call: either a value or a categorized error.

    Attributes:
        value: The returned value (may legitimately be None, e.g. "no band")
        error: The categorized engine error, or None on success
    """

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "StoreResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "StoreResult[T]":
        return cls(error=error)

    def unwrap(self) -> T | None:
        """Returns the value, or raises the categorized error."""
        if self.error is not None:
            raise self.error
        return self.value


# =============================================================================
# Player Data Classes
# =============================================================================


@dataclass
class PlayerRatings:
    """Snapshot of a player's rating fields.

    Attributes:
        player_id: Player id
        baseline_rating: BR, set once from the ITA score (1-99)
        training_rating: TR (1-99)
        match_rating: OMR (0-100)
        player_rating: PR (1-99), always derived from TR and OMR
        ita_score: Score recorded when the ITA was completed
        ita_completed_at: When the ITA was completed
    """

    player_id: PlayerId
    baseline_rating: float | None = None
    training_rating: float | None = None
    match_rating: float | None = None
    player_rating: float | None = None
    ita_score: int | None = None
    ita_completed_at: datetime | None = None


# =============================================================================
# Level Configuration Data Classes
# =============================================================================


@dataclass
class LevelBand:
    """Average performance for players within [level_min, level_max].

    Accuracy percentages are on a 0-100 scale and may be missing.
    """

    level_min: int
    level_max: int
    three_dart_avg: float
    single_acc_pct: float | None = None
    double_acc_pct: float | None = None
    treble_acc_pct: float | None = None
    bull_acc_pct: float | None = None
    description: str = ""


@dataclass
class LevelRequirement:
    """Per-level routine configuration (one row per min_level and step type)."""

    min_level: int
    routine_type: StepType
    tgt_hits: float
    darts_allowed: int
    attempt_count: int | None = None
    allowed_throws_per_attempt: int | None = None


# =============================================================================
# Session Data Classes
# =============================================================================


@dataclass
class DartOutcome:
    """One dart thrown in a session run."""

    routine_no: int
    step_no: int
    dart_no: int
    result: DartResult
    target: str | None = None
    actual: str | None = None

    @property
    def is_hit(self) -> bool:
        return self.result == DartResult.HIT


@dataclass
class SessionRoutine:
    """A routine slot of a session, with the raw step types of its steps.

    Attributes:
        routine_no: Position of the routine in the session (1-indexed)
        routine_id: Id of the referenced routine
        routine_name: Name of the routine, or None if it does not resolve
        step_types: Raw step type per step, ordered by step number
    """

    routine_no: int
    routine_id: str
    routine_name: str | None
    step_types: list[str | None] = field(default_factory=list)


@dataclass
class SessionRun:
    """A player's run of a scheduled session."""

    id: str
    player_id: PlayerId
    session_id: str
    session_name: str


@dataclass
class ITARatings:
    """Sub-ratings and combined score derived from an ITA session run."""

    singles_rating: float
    doubles_rating: float
    trebles_rating: float
    checkout_rating: float
    ita_score: int
    present_types: list[SegmentType] = field(default_factory=list)


@dataclass
class ExpectedCheckoutResult:
    """Expected checkout completions for one target.

    The probability fields are only filled in when debug output is requested.
    """

    expected_successes: float
    expected_successes_int: int
    p_checkout: float | None = None
    p_reach: float | None = None
    n: int | None = None
    e: float | None = None


# =============================================================================
# Match Data Classes
# =============================================================================


@dataclass
class MatchRatingInputs:
    """Inputs for one side of a match.

    Attributes:
        opponent_strength: Opponent PR or OMR at time of match (0-100)
        leg_share: Legs won / total legs, in [0, 1]
        three_dart_avg: Match three-dart average
        player_3da_baseline: Player's usual three-dart average
        doubles_pct: Doubles hit / attempted, in [0, 1]
    """

    opponent_strength: float
    leg_share: float
    three_dart_avg: float | None = None
    player_3da_baseline: float | None = None
    doubles_pct: float | None = None


@dataclass
class EligibleMatch:
    """One eligible match's contribution to OMR."""

    match_rating: float
    weight: float


@dataclass
class MatchRecord:
    """One participant's row of a recorded match."""

    player_id: PlayerId
    opponent_id: PlayerId
    played_at: datetime
    format_best_of: int
    legs_won: int
    legs_lost: int
    total_legs: int
    match_rating: float
    weight: float
    eligible: bool
    opponent_rating_at_match: float
    rating_difference: float
    three_dart_avg: float | None = None
    player_3da_baseline: float | None = None
    doubles_attempted: int | None = None
    doubles_hit: int | None = None
    doubles_pct: float | None = None
    competition_id: str | None = None
    calendar_id: str | None = None
    id: str | None = None


@dataclass
class RecordMatchPayload:
    """A head-to-head result as reported from the player's side."""

    player_id: PlayerId
    opponent_id: PlayerId
    format_best_of: int
    legs_won: int
    legs_lost: int
    three_dart_avg: float | None = None
    doubles_attempted: int | None = None
    doubles_hit: int | None = None
    competition_id: str | None = None
    calendar_id: str | None = None
    played_at: datetime | None = None


@dataclass
class RecordMatchResult:
    """Both rows created for a recorded match, plus the refreshed ratings."""

    player_match: MatchRecord
    opponent_match: MatchRecord
    player_ratings: PlayerRatings
    opponent_ratings: PlayerRatings


# =============================================================================
# Cohort Grouping Data Classes
# =============================================================================


@dataclass
class PlayerForGrouping:
    """A candidate for bulk cohort assignment."""

    id: PlayerId
    training_rating: float | None = None
    player_rating: float | None = None


@dataclass
class BulkAssignParams:
    """Parameters of a bulk cohort assignment.

    Attributes:
        name_prefix: Cohort name prefix, e.g. "Spring"
        name_start_index: First number appended to the prefix
        players_per_cohort: Maximum group size
        start_date: Cohort start date as YYYY-MM-DD
        duration_days: Cohort length; end date = start + duration
        schedule_id: Schedule the cohorts will follow
        match_level: Group by rating proximity instead of plain chunking
        level_proximity: Max rating spread within a group when matching
        level_metric: Which rating to match on
        required_full_cohort: Drop groups smaller than players_per_cohort
    """

    name_prefix: str
    name_start_index: int
    players_per_cohort: int
    start_date: str
    duration_days: int
    schedule_id: str
    match_level: bool = False
    level_proximity: float | None = None
    level_metric: RatingMetric = RatingMetric.TRAINING_RATING
    required_full_cohort: bool = False


@dataclass
class CohortGroup:
    """A named group of players produced by bulk assignment."""

    name: str
    member_ids: list[PlayerId]


@dataclass
class BulkAssignPreview:
    """Ordered groups plus the shared cohort end date."""

    groups: list[CohortGroup]
    end_date: date
