"""
Suivi des échecs d'authentification et verrouillage

Verrouillage temporaire d'un identifiant après plusieurs échecs,
avec escalade optionnelle en blocage dur après des verrouillages répétés.

Invariants:
    LOCK_001: Échecs consécutifs au seuil = identifiant verrouillé temporairement
    LOCK_002: Verrou expiré réinitialisé avant toute nouvelle évaluation
    LOCK_003: Blocage IP dur sans expiration, levée explicite uniquement
    LOCK_004: Absence d'enregistrement équivaut à zéro échec
"""

import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from ..core.clock import Clock, utc_now
from .interfaces import ILockoutTracker, IPBlockEntry, LockoutStatus, LoginAttemptRecord


class LockoutTracker(ILockoutTracker):
    """
    Compteur d'échecs par identifiant avec verrouillage temporisé.

    Un même tracker sert le parcours mot de passe (identifiant = IP d'origine,
    escalade en blocage dur activée) et le cooldown OTP (identifiant =
    principal, sans escalade).

    Example:
        tracker = LockoutTracker(max_attempts=5, lockout_duration=timedelta(minutes=15))
        status = tracker.record_failure("10.0.0.5")
        if tracker.is_locked("10.0.0.5"):
            ...
    """

    MAX_ATTEMPTS: int = 5
    LOCKOUT_DURATION: timedelta = timedelta(minutes=15)
    HISTORY_TTL: timedelta = timedelta(hours=24)

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        lockout_duration: Optional[timedelta] = None,
        hard_block_after_lockouts: Optional[int] = None,
        history_ttl: Optional[timedelta] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Args:
            max_attempts: Échecs avant verrouillage (défaut: 5)
            lockout_duration: Durée du verrouillage (défaut: 15 min)
            hard_block_after_lockouts: Verrouillages consécutifs avant blocage dur
                (None = jamais d'escalade)
            history_ttl: Rétention des verrouillages passés pour l'escalade (défaut: 24h)
            clock: Horloge injectée (défaut: UTC système)

        Raises:
            ValueError: Si un seuil est invalide
        """
        self._max_attempts = max_attempts if max_attempts is not None else self.MAX_ATTEMPTS
        self._lockout_duration = lockout_duration if lockout_duration is not None else self.LOCKOUT_DURATION
        if self._max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if hard_block_after_lockouts is not None and hard_block_after_lockouts < 1:
            raise ValueError("hard_block_after_lockouts must be >= 1")
        self._hard_block_after = hard_block_after_lockouts
        self._history_ttl = history_ttl if history_ttl is not None else self.HISTORY_TTL
        self._clock = clock or utc_now

        self._records: Dict[str, LoginAttemptRecord] = {}
        self._blocks: Dict[str, IPBlockEntry] = {}
        self._lock = threading.Lock()

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def lockout_duration(self) -> timedelta:
        return self._lockout_duration

    def record_failure(self, identifier: str) -> LockoutStatus:
        """
        Enregistre un échec et verrouille si nécessaire (LOCK_001).

        Un échec enregistré pendant un verrouillage actif n'incrémente pas
        le compteur.
        """
        with self._lock:
            now = self._clock()
            record = self._current_record(identifier, now)

            if record is not None and record.locked_until is not None:
                return self._status(record, now)

            if record is None:
                record = LoginAttemptRecord(identifier=identifier, failure_count=0, last_attempt_at=now)
                self._records[identifier] = record

            record.failure_count += 1
            record.last_attempt_at = now

            if record.failure_count >= self._max_attempts:
                record.locked_until = now + self._lockout_duration
                record.lockout_count += 1

                if self._hard_block_after is not None and record.lockout_count >= self._hard_block_after:
                    self._blocks.setdefault(
                        identifier,
                        IPBlockEntry(
                            ip=identifier,
                            reason=f"{record.lockout_count} verrouillages consécutifs",
                            blocked_at=now,
                        ),
                    )

            return self._status(record, now)

    def record_success(self, identifier: str) -> None:
        """Efface l'enregistrement (compteur et historique de verrouillage)."""
        with self._lock:
            self._records.pop(identifier, None)

    def is_locked(self, identifier: str) -> bool:
        """Vérifie le verrouillage; un verrou expiré est réinitialisé (LOCK_002)."""
        with self._lock:
            record = self._current_record(identifier, self._clock())
            return record is not None and record.locked_until is not None

    def get_status(self, identifier: str) -> LockoutStatus:
        """Statut détaillé; identifiant inconnu = zéro échec (LOCK_004)."""
        with self._lock:
            now = self._clock()
            record = self._current_record(identifier, now)
            if record is None:
                return LockoutStatus(
                    identifier=identifier,
                    locked=False,
                    attempts_remaining=self._max_attempts,
                    failure_count=0,
                    blocked=identifier in self._blocks,
                )
            return self._status(record, now)

    def get_remaining_attempts(self, identifier: str) -> int:
        return self.get_status(identifier).attempts_remaining

    def get_lock_remaining_time(self, identifier: str) -> Optional[timedelta]:
        """Temps restant avant déverrouillage automatique, None si non verrouillé."""
        with self._lock:
            now = self._clock()
            record = self._current_record(identifier, now)
            if record is None or record.locked_until is None:
                return None
            return record.locked_until - now

    def block(self, identifier: str, reason: str) -> IPBlockEntry:
        """Pose un blocage dur (LOCK_003). Idempotent: conserve le blocage existant."""
        with self._lock:
            existing = self._blocks.get(identifier)
            if existing is not None:
                return existing
            entry = IPBlockEntry(ip=identifier, reason=reason, blocked_at=self._clock())
            self._blocks[identifier] = entry
            return entry

    def unblock(self, identifier: str) -> bool:
        """Lève un blocage dur et réinitialise le compteur associé."""
        with self._lock:
            removed = self._blocks.pop(identifier, None)
            if removed is None:
                return False
            self._records.pop(identifier, None)
            return True

    def is_blocked(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._blocks

    def get_block(self, identifier: str) -> Optional[IPBlockEntry]:
        with self._lock:
            return self._blocks.get(identifier)

    def get_blocked_entries(self) -> List[IPBlockEntry]:
        with self._lock:
            return sorted(self._blocks.values(), key=lambda e: e.blocked_at)

    def get_locked_identifiers(self) -> List[LockoutStatus]:
        """Identifiants verrouillés (auto-déverrouillage des verrous expirés)."""
        with self._lock:
            now = self._clock()
            locked: List[LockoutStatus] = []
            for identifier in list(self._records):
                record = self._current_record(identifier, now)
                if record is not None and record.locked_until is not None:
                    locked.append(self._status(record, now))
            return locked

    def purge_stale(self) -> int:
        """
        Supprime les enregistrements sans effet: verrou expiré, échecs hors
        fenêtre, historique d'escalade périmé. Les blocages durs sont conservés.

        Returns:
            Nombre d'enregistrements supprimés
        """
        with self._lock:
            now = self._clock()
            before = len(self._records)
            for identifier in list(self._records):
                self._current_record(identifier, now)
            return before - len(self._records)

    @property
    def tracked_count(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def locked_count(self) -> int:
        return len(self.get_locked_identifiers())

    @property
    def blocked_count(self) -> int:
        with self._lock:
            return len(self._blocks)

    def clear_all(self) -> None:
        """Efface échecs, verrous et blocages (pour tests)."""
        with self._lock:
            self._records.clear()
            self._blocks.clear()

    def _current_record(self, identifier: str, now: datetime) -> Optional[LoginAttemptRecord]:
        """
        Retourne l'enregistrement après expiration paresseuse.

        Un verrou expiré remet le compteur à zéro (LOCK_002), tout comme des
        échecs plus anciens que ``lockout_duration``. Un enregistrement sans
        échec est supprimé, sauf historique d'escalade encore valide.

        Appelant doit détenir ``self._lock``.
        """
        record = self._records.get(identifier)
        if record is None:
            return None

        if record.locked_until is not None:
            if now < record.locked_until:
                return record
            record.locked_until = None
            record.failure_count = 0
        elif now - record.last_attempt_at >= self._lockout_duration:
            record.failure_count = 0

        if record.failure_count == 0 and not self._keeps_history(record, now):
            del self._records[identifier]
            return None

        return record

    def _keeps_history(self, record: LoginAttemptRecord, now: datetime) -> bool:
        """Historique de verrouillages conservé pour l'escalade en blocage dur."""
        return (
            self._hard_block_after is not None
            and record.lockout_count > 0
            and now - record.last_attempt_at < self._history_ttl
        )

    def _status(self, record: LoginAttemptRecord, now: datetime) -> LockoutStatus:
        locked = record.locked_until is not None and now < record.locked_until
        remaining = 0 if locked else max(0, self._max_attempts - record.failure_count)
        return LockoutStatus(
            identifier=record.identifier,
            locked=locked,
            attempts_remaining=remaining,
            failure_count=record.failure_count,
            locked_until=record.locked_until if locked else None,
            blocked=record.identifier in self._blocks,
        )
