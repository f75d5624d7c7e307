"""
Service layer for player rating writes.

Baseline and training rating are only ever set here (ITA completion) or by
progression.py; profile edits never touch them. Also builds the ratings
table used by operator reports.
"""

import logging
from datetime import datetime

import pandas as pd

from app_types import PlayerId, PlayerRatings
from rating_pipeline import ensure_baseline_unset
from store_protocols import PlayerStore

logger = logging.getLogger("darts.player_service")


def set_baseline_and_training_rating(
    player_store: PlayerStore, player_id: PlayerId, baseline_rating: int
) -> PlayerRatings:
    """
    Set BR and TR to the same value. BR can only be set once.

    Raises:
        NotFoundError: If the player does not exist.
        ValidationError: If the player already has a baseline rating.
    """
    player = player_store.get_player(player_id).unwrap()
    ensure_baseline_unset(player)

    updated = player_store.update_ratings(
        player_id,
        {"baseline_rating": baseline_rating, "training_rating": baseline_rating},
    ).unwrap()
    logger.info(f"Player {player_id}: baseline and training rating set to {baseline_rating}")
    return updated


def set_player_ita_completed(
    player_store: PlayerStore,
    player_id: PlayerId,
    ita_score: int,
    completed_at: datetime,
) -> PlayerRatings:
    """Record the ITA score and completion time for audit."""
    return player_store.update_ratings(
        player_id, {"ita_score": ita_score, "ita_completed_at": completed_at}
    ).unwrap()


def has_completed_ita(player: PlayerRatings | None) -> bool:
    """A player has completed the ITA once a completion time is recorded."""
    return player is not None and player.ita_completed_at is not None


def create_ratings_dataframe(players: list[PlayerRatings]) -> pd.DataFrame:
    """Creates a ratings table (one row per player), highest PR first."""
    df = pd.DataFrame(
        {
            "Player": [p.player_id for p in players],
            "BR": [p.baseline_rating for p in players],
            "TR": [p.training_rating for p in players],
            "OMR": [p.match_rating for p in players],
            "PR": [p.player_rating for p in players],
            "ITA Score": [p.ita_score for p in players],
            "ITA Completed": [p.ita_completed_at is not None for p in players],
        }
    )
    df = df.sort_values("PR", ascending=False, na_position="last", kind="stable")
    df.insert(0, "#", range(1, len(df) + 1))
    return df.reset_index(drop=True)
