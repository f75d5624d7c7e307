#!/usr/bin/env python3
"""
Match and Player Rating Recalculation Script.

This standalone script rebuilds every player's OMR from their stored eligible
matches and then recomputes PR from the new OMR and the stored TR. Use it
after changing OMR or PR constants, or after repairing match rows.

Usage:
    python recalculate_ratings.py

Requirements:
    - SUPABASE_URL and SUPABASE_KEY environment variables
"""

import logging

from app_types import PlayerRatings
from constants import OMR_WINDOW_SIZE
from database import MatchDB, PlayerDB
from logger import setup_logging
from player_locks import player_update_lock
from rating_pipeline import apply_eligible_matches
from store_protocols import MatchStore, PlayerStore

logger = logging.getLogger("darts.recalculate_ratings")


def recalculate_player(
    player_store: PlayerStore, match_store: MatchStore, player_id: str
) -> PlayerRatings:
    """Recompute and save OMR, then PR, for one player."""
    with player_update_lock(player_id):
        player = player_store.get_player(player_id).unwrap()
        eligible = match_store.get_eligible_matches(player_id, OMR_WINDOW_SIZE).unwrap()
        refreshed = apply_eligible_matches(player, eligible)

        if (
            refreshed.match_rating == player.match_rating
            and refreshed.player_rating == player.player_rating
        ):
            logger.debug(f"  {player_id}: unchanged (OMR {player.match_rating}, PR {player.player_rating})")
            return player

        logger.debug(
            f"  {player_id}: OMR {player.match_rating} -> {refreshed.match_rating}, "
            f"PR {player.player_rating} -> {refreshed.player_rating}"
        )
        return player_store.update_ratings(
            player_id,
            {"match_rating": refreshed.match_rating, "player_rating": refreshed.player_rating},
        ).unwrap()


def recalculate_all_ratings(
    player_store: PlayerStore | None = None, match_store: MatchStore | None = None
) -> list[PlayerRatings]:
    """Rebuild OMR and PR for every player."""
    player_store = player_store or PlayerDB()
    match_store = match_store or MatchDB()

    logger.info("=== Starting Rating Recalculation ===")

    logger.info("Fetching players from database...")
    player_ids = player_store.list_player_ids().unwrap()
    logger.info(f"  Found {len(player_ids)} players")

    if not player_ids:
        logger.info("No players to process. Exiting.")
        return []

    logger.info(f"Recomputing OMR (last {OMR_WINDOW_SIZE} eligible matches) and PR...")
    results = [
        recalculate_player(player_store, match_store, player_id) for player_id in player_ids
    ]

    logger.info("=== Rating Recalculation Complete ===")
    return results


if __name__ == "__main__":
    setup_logging(logging.INFO)
    players = recalculate_all_ratings()

    # Print summary
    print("\n--- Rating Summary ---")
    ranked = sorted(
        players,
        key=lambda p: p.player_rating if p.player_rating is not None else -1,
        reverse=True,
    )
    for i, p in enumerate(ranked, 1):
        print(f"{i:2}. {p.player_id:36}  TR={p.training_rating}  OMR={p.match_rating}  PR={p.player_rating}")
