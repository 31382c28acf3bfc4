#signalwatch/infrastructure/notifications/cooldown.py
import threading
import time
from typing import Callable, Dict


class NotifyCooldown:
    """
    Per-key notification cooldown.

    Thread-safe map of key -> last-sent time. Separate from the queue's
    duplicate window: this one suppresses repeated matches of the same rule,
    whatever text they carry.
    """

    def __init__(self, cooldown_seconds: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_sent: Dict[str, float] = {}
        self._lock = threading.Lock()

    def try_acquire(self, key: str) -> bool:
        """
        Record a send for ``key`` unless one happened within the cooldown.

        An empty key has no identity to cool down and is always allowed
        without being recorded.

        Returns:
            True if the caller may notify now
        """
        if not key:
            return True
        now = self._clock()
        with self._lock:
            self._prune(now)
            last = self._last_sent.get(key)
            if last is not None and now - last < self.cooldown_seconds:
                return False
            self._last_sent[key] = now
            return True

    def _prune(self, now: float) -> None:
        expired = [k for k, t in self._last_sent.items() if now - t >= self.cooldown_seconds]
        for k in expired:
            del self._last_sent[k]

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._last_sent)

    def reset(self) -> None:
        with self._lock:
            self._last_sent.clear()
