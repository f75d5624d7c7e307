from datetime import datetime, timezone

import pytest

from app_types import (
    BulkAssignParams,
    LevelBand,
    PlayerForGrouping,
    PlayerRatings,
    RecordMatchPayload,
    SessionRoutine,
    SessionRun,
)
from tests.fakes import (
    InMemoryMatchStore,
    InMemoryPlayerStore,
    InMemorySessionRunStore,
    make_darts,
)


@pytest.fixture
def calls():
    """Shared call log for the in-memory stores."""
    return []


@pytest.fixture
def sample_players():
    """Returns a list of rated players."""
    return [
        PlayerRatings(player_id="alice", baseline_rating=40, training_rating=40, player_rating=40),
        PlayerRatings(player_id="bob", baseline_rating=60, training_rating=60, player_rating=60),
        PlayerRatings(player_id="newbie"),
    ]


@pytest.fixture
def player_store(sample_players, calls):
    return InMemoryPlayerStore(sample_players, calls=calls)


@pytest.fixture
def match_store(calls):
    return InMemoryMatchStore(calls=calls)


@pytest.fixture
def band_45():
    """Level band with a 45 three-dart average and 40% doubles."""
    return LevelBand(level_min=20, level_max=29, three_dart_avg=45, double_acc_pct=40)


@pytest.fixture
def match_payload():
    """alice beats bob 4-2 over best of 7 with full stats."""
    return RecordMatchPayload(
        player_id="alice",
        opponent_id="bob",
        format_best_of=7,
        legs_won=4,
        legs_lost=2,
        three_dart_avg=55,
        doubles_attempted=10,
        doubles_hit=4,
        played_at=datetime(2026, 5, 1, 19, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def ita_routines():
    """An ITA session with Singles, Doubles and Checkout routines."""
    return [
        SessionRoutine(routine_no=1, routine_id="r-singles", routine_name="Singles", step_types=["SS", "SS"]),
        SessionRoutine(routine_no=2, routine_id="r-doubles", routine_name="Doubles", step_types=["SD", "SD"]),
        SessionRoutine(routine_no=3, routine_id="r-checkout", routine_name="Checkout", step_types=["C", "C"]),
    ]


@pytest.fixture
def ita_darts():
    """
    Singles: 3/9 and 6/9 hits -> 50.
    Doubles: hit on dart 2, then no hit (counts as 6) -> mean 4 -> 50.
    Checkout: 3 darts on step 1 (1 above min), 1 dart on step 2 (0 above) -> 90.
    """
    return (
        make_darts(1, 1, "HHHMMMMMM")
        + make_darts(1, 2, "HHHHHHMMM")
        + make_darts(2, 1, "MH")
        + make_darts(2, 2, "MMM")
        + make_darts(3, 1, "MMH")
        + make_darts(3, 2, "H")
    )


@pytest.fixture
def session_store(ita_routines, ita_darts):
    return InMemorySessionRunStore(
        runs=[
            SessionRun(id="run-ita", player_id="newbie", session_id="s-ita", session_name="ITA"),
            SessionRun(id="run-practice", player_id="newbie", session_id="s-practice", session_name="Doubles Drill"),
        ],
        routines_by_session={"s-ita": ita_routines},
        darts_by_run={"run-ita": ita_darts},
    )


@pytest.fixture
def bulk_params():
    """Chunking parameters: cohorts of 3 starting at 'Spring 1'."""
    return BulkAssignParams(
        name_prefix="Spring",
        name_start_index=1,
        players_per_cohort=3,
        start_date="2026-03-01",
        duration_days=28,
        schedule_id="sched-1",
    )


@pytest.fixture
def grouping_players():
    return [
        PlayerForGrouping(id="p5", training_rating=31, player_rating=30),
        PlayerForGrouping(id="p2", training_rating=12, player_rating=15),
        PlayerForGrouping(id="p6", training_rating=50, player_rating=55),
        PlayerForGrouping(id="p1", training_rating=10, player_rating=11),
        PlayerForGrouping(id="p4", training_rating=30, player_rating=29),
        PlayerForGrouping(id="p3", training_rating=14, player_rating=13),
        PlayerForGrouping(id="p7", training_rating=None, player_rating=None),
    ]
