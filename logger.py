"""
Logging configuration for the Darts Rating Engine.

This module provides centralized logging setup. The setup_logging() function
should be called once by the host service at startup (or by a script entry
point such as recalculate_ratings.py).

All engine modules should use the "darts" namespace:
    import logging
    logger = logging.getLogger("darts.module_name")

This keeps third-party library logs quiet while allowing granular control
over the engine's own logging level via the LOG_LEVEL environment variable.
"""

import logging
import os
import sys

# Engine namespace prefix - all engine loggers should use this
APP_LOGGER_NAME = "darts"

DEFAULT_LOG_LEVEL = "INFO"


def level_from_env(default: str = DEFAULT_LOG_LEVEL) -> int:
    """Reads LOG_LEVEL from the environment, falling back to default."""
    name = os.environ.get("LOG_LEVEL", default).strip().upper()
    level = logging.getLevelName(name)
    # getLevelName returns a "Level X" string for unknown names
    return level if isinstance(level, int) else logging.getLevelName(default)


def setup_logging(app_level: int | None = None) -> None:
    """
    Configure logging for the engine.

    - Root logger is set to WARNING (keeps third-party libraries quiet)
    - Engine namespace logger ("darts.*") is set to the specified level

    This should be called ONCE at startup (entry point).

    Args:
        app_level: The logging level for engine modules (default: LOG_LEVEL or INFO)
    """
    if app_level is None:
        app_level = level_from_env()

    # Configure root logger to WARNING - silences third-party library noise
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    # Avoid adding duplicate handlers if setup is called multiple times
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)  # Handler accepts all; loggers filter

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(app_level)


def log_checkout_expectation_debug(
    logger: logging.Logger,
    target: float,
    w: float,
    ppd: float,
    e: float,
    p_reach: float,
    n: int,
    p_finish_given_reach: float,
    p_checkout: float,
    expected_successes: float,
    expected_successes_int: int,
) -> None:
    """
    Log each step of a checkout expectation in a consistent format.

    Args:
        logger: Logger instance to use
        target: Checkout target total
        w: Points to score before the double is reachable
        ppd: Points per dart
        e: Expected darts spent scoring
        p_reach: Probability of reaching a finish
        n: Darts left for the double
        p_finish_given_reach: Probability of hitting the double given reach
        p_checkout: Probability of one attempt succeeding
        expected_successes: Expected completions over all attempts
        expected_successes_int: Rounded, clamped completions
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug("Target: %s, W (points to reach finish range): %s", target, w)
    logger.debug("PPD (points per dart): %s", ppd)
    logger.debug("E (expected scoring darts): %s", e)
    logger.debug("P_reach: %s", p_reach)
    logger.debug("n (darts left for the double): %s", n)
    logger.debug("P_finish_given_reach: %s", p_finish_given_reach)
    logger.debug("P_checkout: %s", p_checkout)
    logger.debug(
        "Expected successes: %s (int %s)", expected_successes, expected_successes_int
    )
