"""
Seen-call store for webhook de-duplication.

The voice platform may deliver the same call event more than once, usually
within seconds. Keys are remembered for a fixed window so each event triggers
notifications at most once per process. Not durable: a restart forgets
everything, and a duplicate arriving after the window is processed again.
"""
import threading
import time
from typing import Callable, Dict, Optional, Protocol

from src.utils.logging import logger

# How long a seen call stays in the store (10 minutes)
DEFAULT_WINDOW_SECONDS = 600


class DedupStore(Protocol):
    def has(self, key: str) -> bool: ...

    def add(self, key: str) -> None: ...

    def expire(self) -> int: ...

    def check_and_add(self, key: str) -> bool: ...


class InMemoryDedupStore:
    """TTL map guarded by a lock; expired keys are dropped lazily on access."""

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.window_seconds = window_seconds
        self._clock = clock
        self._expires_at: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _is_live(self, key: str, now: float) -> bool:
        expires_at = self._expires_at.get(key)
        if expires_at is None:
            return False
        if expires_at <= now:
            del self._expires_at[key]
            return False
        return True

    def has(self, key: str) -> bool:
        with self._lock:
            return self._is_live(key, self._clock())

    def add(self, key: str) -> None:
        with self._lock:
            self._expires_at[key] = self._clock() + self.window_seconds

    def check_and_add(self, key: str) -> bool:
        """
        Atomically record a key.
        Returns True if the key was new, False if it was already seen.
        """
        with self._lock:
            now = self._clock()
            if self._is_live(key, now):
                return False
            self._expires_at[key] = now + self.window_seconds
            return True

    def expire(self) -> int:
        """Remove expired entries; returns how many were dropped."""
        with self._lock:
            now = self._clock()
            expired = [key for key, expires_at in self._expires_at.items() if expires_at <= now]
            for key in expired:
                del self._expires_at[key]
        if expired:
            logger.debug(f"🧹 Expired {len(expired)} seen-call entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._expires_at)


_seen_calls: Optional[InMemoryDedupStore] = None


def get_dedup_store() -> InMemoryDedupStore:
    """Process-wide store used by the webhook router."""
    global _seen_calls
    if _seen_calls is None:
        from src.config import settings
        _seen_calls = InMemoryDedupStore(window_seconds=settings.dedup_window_seconds)
    return _seen_calls
