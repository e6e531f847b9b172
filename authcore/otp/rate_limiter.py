"""
Sliding Window Rate Limiter

Limite de débit par clé sur fenêtre glissante, en mémoire.

Invariants:
    OTP_006: Limite de débit par identifiant et quota par canal
"""

import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Deque, Dict, Optional

from ..core.clock import Clock, utc_now


class SlidingWindowRateLimiter:
    """
    Au plus ``max_requests`` acquisitions par clé sur ``window`` glissante.

    Example:
        limiter = SlidingWindowRateLimiter(5, timedelta(minutes=15))
        if not limiter.try_acquire("user-1"):
            retry_after = limiter.retry_after("user-1")
    """

    def __init__(self, max_requests: int, window: timedelta, clock: Optional[Clock] = None):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window <= timedelta(0):
            raise ValueError("window must be positive")
        self.max_requests = max_requests
        self.window = window
        self._clock = clock or utc_now
        self._hits: Dict[str, Deque[datetime]] = {}
        self._lock = threading.Lock()

    def try_acquire(self, key: str) -> bool:
        """Consomme une requête si la fenêtre le permet."""
        with self._lock:
            now = self._clock()
            hits = self._prune(key, now)
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def remaining(self, key: str) -> int:
        with self._lock:
            return self.max_requests - len(self._prune(key, self._clock()))

    def retry_after(self, key: str) -> Optional[timedelta]:
        """Délai avant libération d'une place, None si une place est libre."""
        with self._lock:
            now = self._clock()
            hits = self._prune(key, now)
            if len(hits) < self.max_requests:
                return None
            return hits[0] + self.window - now

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)

    def clear_all(self) -> None:
        with self._lock:
            self._hits.clear()

    def purge_stale(self) -> int:
        """
        Supprime les clés dont toutes les acquisitions sont sorties de la fenêtre.

        Returns:
            Nombre de clés supprimées
        """
        with self._lock:
            now = self._clock()
            before = len(self._hits)
            for key in list(self._hits):
                self._prune(key, now)
            return before - len(self._hits)

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def _prune(self, key: str, now: datetime) -> Deque[datetime]:
        """Appelant doit détenir ``self._lock``."""
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        while hits and now - hits[0] >= self.window:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits
