"""
Tests unitaires: Incident - Lockout Tracker

Tests des invariants:
- LOCK_001: Échecs consécutifs au seuil = identifiant verrouillé temporairement
- LOCK_002: Verrou expiré réinitialisé avant toute nouvelle évaluation
- LOCK_003: Blocage IP dur sans expiration, levée explicite uniquement
- LOCK_004: Absence d'enregistrement équivaut à zéro échec
"""

from datetime import timedelta

import pytest

from authcore.incident import ILockoutTracker, IPBlockEntry, LockoutTracker


IP = "10.0.0.5"


@pytest.fixture
def tracker(clock) -> LockoutTracker:
    return LockoutTracker(max_attempts=5, lockout_duration=timedelta(minutes=15), clock=clock)


def fail(tracker: LockoutTracker, identifier: str, times: int):
    status = None
    for _ in range(times):
        status = tracker.record_failure(identifier)
    return status


# ══════════════════════════════════════════════════════════════════════════════
# LOCK_001: VERROUILLAGE AU SEUIL
# ══════════════════════════════════════════════════════════════════════════════


class TestLOCK001Threshold:
    """Tests LOCK_001: Verrouillage au seuil d'échecs."""

    def test_implements_interface(self, tracker: LockoutTracker) -> None:
        assert isinstance(tracker, ILockoutTracker)

    def test_LOCK_001_below_threshold_not_locked(self, tracker: LockoutTracker) -> None:
        status = fail(tracker, IP, 4)

        assert status.locked is False
        assert status.failure_count == 4
        assert status.attempts_remaining == 1
        assert tracker.is_locked(IP) is False

    def test_LOCK_001_locked_at_threshold(self, tracker: LockoutTracker, clock) -> None:
        status = fail(tracker, IP, 5)

        assert status.locked is True
        assert status.attempts_remaining == 0
        assert status.locked_until == clock() + timedelta(minutes=15)
        assert tracker.is_locked(IP) is True

    def test_LOCK_001_failures_during_lock_not_counted(self, tracker: LockoutTracker) -> None:
        fail(tracker, IP, 5)

        status = fail(tracker, IP, 3)

        assert status.failure_count == 5
        assert status.locked is True

    def test_LOCK_001_success_clears_counter(self, tracker: LockoutTracker) -> None:
        fail(tracker, IP, 4)

        tracker.record_success(IP)

        assert tracker.get_remaining_attempts(IP) == 5

    def test_LOCK_001_identifiers_independent(self, tracker: LockoutTracker) -> None:
        fail(tracker, IP, 5)

        assert tracker.is_locked("10.0.0.6") is False

    def test_lock_remaining_time(self, tracker: LockoutTracker, clock) -> None:
        assert tracker.get_lock_remaining_time(IP) is None

        fail(tracker, IP, 5)
        clock.advance(minutes=5)

        assert tracker.get_lock_remaining_time(IP) == timedelta(minutes=10)

    @pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"hard_block_after_lockouts": 0}])
    def test_invalid_thresholds(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            LockoutTracker(**kwargs)

    def test_defaults(self) -> None:
        tracker = LockoutTracker()

        assert tracker.max_attempts == 5
        assert tracker.lockout_duration == timedelta(minutes=15)


# ══════════════════════════════════════════════════════════════════════════════
# LOCK_002: AUTO-DÉVERROUILLAGE
# ══════════════════════════════════════════════════════════════════════════════


class TestLOCK002Expiry:
    """Tests LOCK_002: Verrou expiré réinitialisé."""

    def test_LOCK_002_unlocked_after_duration(self, tracker: LockoutTracker, clock) -> None:
        fail(tracker, IP, 5)

        clock.advance(minutes=15)

        assert tracker.is_locked(IP) is False
        assert tracker.get_remaining_attempts(IP) == 5

    def test_LOCK_002_still_locked_just_before_expiry(self, tracker: LockoutTracker, clock) -> None:
        fail(tracker, IP, 5)

        clock.advance(minutes=14, seconds=59)

        assert tracker.is_locked(IP) is True

    def test_LOCK_002_counting_restarts_after_expiry(self, tracker: LockoutTracker, clock) -> None:
        fail(tracker, IP, 5)
        clock.advance(minutes=16)

        status = tracker.record_failure(IP)

        assert status.failure_count == 1
        assert status.locked is False

    def test_LOCK_002_locked_identifiers_listing(self, tracker: LockoutTracker, clock) -> None:
        fail(tracker, IP, 5)
        fail(tracker, "10.0.0.6", 2)

        assert [s.identifier for s in tracker.get_locked_identifiers()] == [IP]
        assert tracker.locked_count == 1

        clock.advance(minutes=15)
        assert tracker.get_locked_identifiers() == []


# ══════════════════════════════════════════════════════════════════════════════
# LOCK_003: BLOCAGE DUR
# ══════════════════════════════════════════════════════════════════════════════


class TestLOCK003HardBlock:
    """Tests LOCK_003: Blocage sans expiration."""

    def test_LOCK_003_block_and_unblock(self, tracker: LockoutTracker, clock) -> None:
        entry = tracker.block(IP, "manual")

        assert isinstance(entry, IPBlockEntry)
        assert entry.blocked_at == clock()
        assert tracker.is_blocked(IP) is True

        clock.advance(days=30)
        assert tracker.is_blocked(IP) is True

        assert tracker.unblock(IP) is True
        assert tracker.is_blocked(IP) is False
        assert tracker.unblock(IP) is False

    def test_LOCK_003_block_idempotent(self, tracker: LockoutTracker, clock) -> None:
        first = tracker.block(IP, "first")
        clock.advance(minutes=1)

        second = tracker.block(IP, "second")

        assert second is first
        assert tracker.get_block(IP).reason == "first"
        assert tracker.blocked_count == 1

    def test_LOCK_003_unblock_resets_counter(self, tracker: LockoutTracker) -> None:
        fail(tracker, IP, 5)
        tracker.block(IP, "manual")

        tracker.unblock(IP)

        assert tracker.is_locked(IP) is False
        assert tracker.get_remaining_attempts(IP) == 5

    def test_LOCK_003_escalation_after_repeated_lockouts(self, clock) -> None:
        tracker = LockoutTracker(
            max_attempts=5,
            lockout_duration=timedelta(minutes=15),
            hard_block_after_lockouts=3,
            clock=clock,
        )

        for _ in range(2):
            status = fail(tracker, IP, 5)
            assert status.blocked is False
            clock.advance(minutes=15)

        status = fail(tracker, IP, 5)

        assert status.blocked is True
        assert tracker.get_block(IP).reason == "3 verrouillages consécutifs"

    def test_LOCK_003_no_escalation_by_default(self, tracker: LockoutTracker, clock) -> None:
        for _ in range(5):
            fail(tracker, IP, 5)
            clock.advance(minutes=15)

        assert tracker.is_blocked(IP) is False

    def test_LOCK_003_success_resets_escalation(self, clock) -> None:
        tracker = LockoutTracker(hard_block_after_lockouts=2, clock=clock)

        fail(tracker, IP, 5)
        clock.advance(minutes=15)
        tracker.record_success(IP)
        fail(tracker, IP, 5)

        assert tracker.is_blocked(IP) is False

    def test_blocked_entries_sorted(self, tracker: LockoutTracker, clock) -> None:
        tracker.block("10.0.0.9", "b")
        clock.advance(seconds=1)
        tracker.block("10.0.0.1", "a")

        assert [e.ip for e in tracker.get_blocked_entries()] == ["10.0.0.9", "10.0.0.1"]


# ══════════════════════════════════════════════════════════════════════════════
# LOCK_004: IDENTIFIANT INCONNU
# ══════════════════════════════════════════════════════════════════════════════


class TestLOCK004UnknownIdentifier:
    """Tests LOCK_004: Absence d'enregistrement = zéro échec."""

    def test_LOCK_004_unknown_status(self, tracker: LockoutTracker) -> None:
        status = tracker.get_status("203.0.113.7")

        assert status.locked is False
        assert status.failure_count == 0
        assert status.attempts_remaining == 5
        assert status.blocked is False

    def test_LOCK_004_success_on_unknown_is_noop(self, tracker: LockoutTracker) -> None:
        tracker.record_success("203.0.113.7")

        assert tracker.get_remaining_attempts("203.0.113.7") == 5

    def test_clear_all(self, tracker: LockoutTracker) -> None:
        fail(tracker, IP, 5)
        tracker.block("10.0.0.9", "x")

        tracker.clear_all()

        assert tracker.locked_count == 0
        assert tracker.blocked_count == 0


# ══════════════════════════════════════════════════════════════════════════════
# PURGE DES ENREGISTREMENTS PÉRIMÉS
# ══════════════════════════════════════════════════════════════════════════════


class TestPurgeStale:
    """Les enregistrements sans effet ne s'accumulent pas."""

    def test_failures_outside_window_forgotten(self, tracker: LockoutTracker, clock) -> None:
        fail(tracker, IP, 4)

        clock.advance(minutes=15)

        assert tracker.get_remaining_attempts(IP) == 5
        assert tracker.record_failure(IP).failure_count == 1

    def test_purge_drops_idle_records(self, tracker: LockoutTracker, clock) -> None:
        for i in range(1000):
            tracker.record_failure(f"198.51.100.{i % 250}-{i}")
        fail(tracker, IP, 2)
        assert tracker.tracked_count == 1001

        clock.advance(days=30)
        removed = tracker.purge_stale()

        assert removed == 1001
        assert tracker.tracked_count == 0

    def test_purge_drops_expired_lock(self, tracker: LockoutTracker, clock) -> None:
        fail(tracker, IP, 5)
        fail(tracker, "10.0.0.6", 1)

        clock.advance(minutes=10)
        assert tracker.purge_stale() == 0

        clock.advance(minutes=5)
        assert tracker.purge_stale() == 2
        assert tracker.is_locked(IP) is False

    def test_purge_keeps_active_lock_and_blocks(self, tracker: LockoutTracker, clock) -> None:
        fail(tracker, IP, 5)
        tracker.block("10.0.0.9", "manual")

        assert tracker.purge_stale() == 0
        assert tracker.is_locked(IP) is True

        clock.advance(days=30)
        tracker.purge_stale()
        assert tracker.is_blocked("10.0.0.9") is True

    def test_escalation_history_survives_purge(self, clock) -> None:
        tracker = LockoutTracker(hard_block_after_lockouts=2, clock=clock)

        fail(tracker, IP, 5)
        clock.advance(minutes=15)
        tracker.purge_stale()

        assert tracker.tracked_count == 1
        assert fail(tracker, IP, 5).blocked is True

    def test_escalation_history_expires(self, clock) -> None:
        tracker = LockoutTracker(hard_block_after_lockouts=2, history_ttl=timedelta(hours=1), clock=clock)

        fail(tracker, IP, 5)
        clock.advance(hours=1)

        assert tracker.purge_stale() == 1
        assert fail(tracker, IP, 5).blocked is False
