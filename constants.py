# Rating scale bounds
TR_MIN = 1
TR_MAX = 99
PR_MIN = 1
PR_MAX = 99
MR_MIN = 0
MR_MAX = 100

# OMR Constants
OMR_WINDOW_SIZE = 10  # Max eligible matches in the rolling window
OMR_TRIM_THRESHOLD = 6  # Trim highest and lowest MR at or above this count

# Match Weight Constants
FORMAT_WEIGHTS = {5: 1.0, 7: 1.1, 9: 1.2, 11: 1.3}
DEFAULT_FORMAT_WEIGHT = 1.0
OUT_OF_BAND_WEIGHT = 0.8
MIN_FORMAT_BEST_OF = 5
DECADE_BAND_TOLERANCE = 10
MAX_DECADE = 90

# Match Rating Constants (provisional formula)
MR_BASE = 50
MR_LEG_SHARE_SCALE = 40
MR_WIN_BONUS = 5
MR_OPPONENT_SCALE = 0.15
MR_THREE_DART_AVG_SCALE = 5
MR_DOUBLES_SCALE = 4
DEFAULT_OPPONENT_STRENGTH = 50

# PR Constants: PR = (TR * PR_TR_WEIGHT + OMR * PR_OMR_WEIGHT) / (PR_TR_WEIGHT + PR_OMR_WEIGHT)
PR_TR_WEIGHT = 1
PR_OMR_WEIGHT = 1

# ITA Constants
ITA_SESSION_NAMES = ("ita", "initial training assessment")
ITA_SEGMENT_DARTS = 9  # Darts per Singles/Trebles step
ITA_NO_HIT_DARTS = 6  # Darts-to-hit recorded when a Doubles step has no hit
ITA_WEIGHTS = {"Singles": 3, "Doubles": 2, "Trebles": 2, "Checkout": 1}
DOUBLES_RATING_POINTS = [(1, 100), (2, 90), (3, 70), (4, 50), (5, 30), (6, 0)]
CHECKOUT_RATING_POINTS = [(0, 100), (1, 80), (2, 60), (3, 40), (4, 20)]
CHECKOUT_RATING_ZERO_AT = 10
CHECKOUT_MIN_DARTS = (2, 1, 1, 1, 1)  # Per step: targets 56, 39, 29, 23, 15
DEFAULT_CHECKOUT_MIN_DARTS = 1

# Checkout Expectation Constants
CHECKOUT_RANGE = 40  # Remaining total from which a double can be attempted
K_REACH = 3  # Logistic steepness for P_reach
DEFAULT_ALLOWED_THROWS_PER_ATTEMPT = 9
DEFAULT_ATTEMPT_COUNT = 9

# Scoring Constants
MAX_CHECKOUT_STEP_SCORE = 200
TR_TREND_WINDOW = 4

# Database Tables
PLAYERS_TABLE = "players"
LEVEL_AVERAGES_TABLE = "level_averages"
LEVEL_REQUIREMENTS_TABLE = "level_requirements"
MATCHES_TABLE = "matches"
SESSION_RUNS_TABLE = "session_runs"
SESSION_ROUTINES_TABLE = "session_routines"
DART_SCORES_TABLE = "dart_scores"

# PostgREST / Postgres error codes
PGRST_NO_ROWS = "PGRST116"
PG_UNIQUE_VIOLATION = "23505"
