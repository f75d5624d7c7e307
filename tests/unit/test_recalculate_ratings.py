# tests/unit/test_recalculate_ratings.py
"""
Tests for the OMR/PR recalculation script.
"""

from datetime import datetime, timedelta, timezone

from app_types import MatchRecord, PlayerRatings
from recalculate_ratings import recalculate_all_ratings
from tests.fakes import InMemoryMatchStore, InMemoryPlayerStore


def stored_match(player_id, match_rating, days_ago):
    return MatchRecord(
        player_id=player_id,
        opponent_id="someone",
        played_at=datetime(2026, 6, 1, tzinfo=timezone.utc) - timedelta(days=days_ago),
        format_best_of=5,
        legs_won=3,
        legs_lost=2,
        total_legs=5,
        match_rating=match_rating,
        weight=1.0,
        eligible=True,
        opponent_rating_at_match=50,
        rating_difference=0,
    )


def test_rebuilds_omr_and_pr_for_every_player():
    players = InMemoryPlayerStore(
        [
            PlayerRatings(player_id="alice", training_rating=20, match_rating=10, player_rating=15),
            PlayerRatings(player_id="bob", training_rating=50, match_rating=70, player_rating=60),
        ]
    )
    matches = InMemoryMatchStore([stored_match("alice", 40, 1), stored_match("alice", 60, 2)])

    results = recalculate_all_ratings(players, matches)

    assert [r.player_id for r in results] == ["alice", "bob"]
    assert players.players["alice"].match_rating == 50
    assert players.players["alice"].player_rating == 35
    # No eligible matches: OMR cleared and PR falls back to TR
    assert players.players["bob"].match_rating is None
    assert players.players["bob"].player_rating == 50


def test_unchanged_players_are_not_written():
    players = InMemoryPlayerStore(
        [PlayerRatings(player_id="alice", training_rating=20, match_rating=40, player_rating=30)]
    )
    matches = InMemoryMatchStore([stored_match("alice", 40, 1)])

    recalculate_all_ratings(players, matches)

    assert not any(call[0] == "update_ratings" for call in players.calls)


def test_no_players():
    assert recalculate_all_ratings(InMemoryPlayerStore(), InMemoryMatchStore()) == []
