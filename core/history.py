"""In-memory, per-user query history (most recent first)."""
from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Dict, List, Optional

ANONYMOUS = "anonymous"
DEFAULT_HISTORY_LIMIT = 100


def normalize_user(user: Optional[str]) -> str:
    if user is None or not str(user).strip():
        return ANONYMOUS
    return str(user)


class _UserHistory:
    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: Deque[str] = deque()


class HistoryStore:
    """Bounded history per user; each user's deque has its own lock."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("history limit must be positive")
        self.limit = limit
        self._users: Dict[str, _UserHistory] = {}

    def _slot(self, user: str) -> _UserHistory:
        slot = self._users.get(user)
        if slot is None:
            # setdefault keeps the first slot when two writers race on a new user
            slot = self._users.setdefault(user, _UserHistory())
        return slot

    def record(self, user: Optional[str], sql: str) -> None:
        slot = self._slot(normalize_user(user))
        with slot.lock:
            slot.entries.appendleft(sql)
            while len(slot.entries) > self.limit:
                slot.entries.pop()

    def fetch(self, user: Optional[str], limit: Optional[int] = None) -> List[str]:
        slot = self._users.get(normalize_user(user))
        if slot is None:
            return []
        with slot.lock:
            snapshot = list(slot.entries)
        if limit is not None and limit >= 0:
            return snapshot[:limit]
        return snapshot

    def users(self) -> List[str]:
        return sorted(list(self._users.keys()))

    def clear(self, user: Optional[str] = None) -> None:
        if user is None:
            self._users.clear()
            return
        slot = self._users.get(normalize_user(user))
        if slot is None:
            return
        with slot.lock:
            slot.entries.clear()


__all__ = ["ANONYMOUS", "DEFAULT_HISTORY_LIMIT", "HistoryStore", "normalize_user"]
