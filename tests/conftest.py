"""
AUTHCORE - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest


class FakeClock:
    """Horloge contrôlable: avance uniquement sur demande."""

    def __init__(self, start: datetime = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta = timedelta(0), **kwargs: float) -> datetime:
        self.now = self.now + delta + timedelta(**kwargs)
        return self.now


class LogCapture:
    """Handler de sortie collectant les lignes JSON."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_capture() -> LogCapture:
    return LogCapture()


@pytest.fixture
def all_invariants() -> dict:
    """Retourne tous les invariants."""
    from authcore.invariants.rules import ALL_INVARIANTS
    return ALL_INVARIANTS
