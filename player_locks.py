"""
Per-player update locks.

Every read -> compute -> write on a player's rating fields (match recording,
training rating progression, ITA completion, recalculation) runs under
player_update_lock() so two updates for the same player cannot interleave
and lose a write. The locks are process-local RLocks; cross-process
serialization is the storage collaborator's responsibility.

A player's lock exists only while some thread holds or waits for it, so the
registry does not grow with every player id ever seen.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock, RLock
from typing import Iterator

from app_types import PlayerId
from exceptions import ConflictError


@dataclass
class _PlayerLock:
    lock: RLock = field(default_factory=RLock)
    users: int = 0


_REGISTRY_LOCK = Lock()
_PLAYER_LOCKS: dict[PlayerId, _PlayerLock] = {}


def _checkout(player_id: PlayerId) -> _PlayerLock:
    with _REGISTRY_LOCK:
        entry = _PLAYER_LOCKS.get(player_id)
        if entry is None:
            entry = _PlayerLock()
            _PLAYER_LOCKS[player_id] = entry
        entry.users += 1
        return entry


def _checkin(player_id: PlayerId, entry: _PlayerLock) -> None:
    with _REGISTRY_LOCK:
        entry.users -= 1
        if entry.users == 0:
            del _PLAYER_LOCKS[player_id]


def active_lock_count() -> int:
    """Number of players whose lock is currently held or waited on."""
    with _REGISTRY_LOCK:
        return len(_PLAYER_LOCKS)


@contextmanager
def player_update_lock(
    *player_ids: PlayerId, timeout_s: float | None = None
) -> Iterator[None]:
    """Hold the update lock of every given player for the duration of the block.

    Locks are taken in sorted id order so two updates touching the same
    pair of players cannot deadlock. The locks are re-entrant, so a locked
    block may call another function that locks the same player.

    Raises:
        ConflictError: If a lock is not acquired within timeout_s.

    Usage:
        with player_update_lock(player_id, opponent_id):
            ...  # insert match, recompute OMR, then PR
    """
    acquired: list[tuple[PlayerId, _PlayerLock]] = []
    try:
        for player_id in sorted(set(player_ids)):
            entry = _checkout(player_id)
            if timeout_s is None:
                got_lock = entry.lock.acquire()
            else:
                got_lock = entry.lock.acquire(timeout=max(0.0, timeout_s))
            if not got_lock:
                _checkin(player_id, entry)
                raise ConflictError(
                    f"Timed out waiting for the rating update lock of player '{player_id}'"
                )
            acquired.append((player_id, entry))
        yield
    finally:
        for player_id, entry in reversed(acquired):
            entry.lock.release()
            _checkin(player_id, entry)
