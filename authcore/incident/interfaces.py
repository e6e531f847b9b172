"""
Interfaces Incident: verrouillage et blocage

Définit les contrats du suivi des échecs d'authentification,
du verrouillage temporaire et du blocage IP dur.

Invariants:
    LOCK_001: Échecs consécutifs au seuil = identifiant verrouillé temporairement
    LOCK_002: Verrou expiré réinitialisé avant toute nouvelle évaluation
    LOCK_003: Blocage IP dur sans expiration, levée explicite uniquement
    LOCK_004: Absence d'enregistrement équivaut à zéro échec
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass
class LoginAttemptRecord:
    """
    Compteur d'échecs pour un identifiant (IP ou compte).

    Invariant:
        failure_count >= max_attempts implique locked_until renseigné
    """

    identifier: str
    failure_count: int
    last_attempt_at: datetime
    locked_until: Optional[datetime] = None
    lockout_count: int = 0  # verrouillages consécutifs, pour l'escalade en blocage


@dataclass(frozen=True)
class IPBlockEntry:
    """Blocage dur, sans expiration automatique (LOCK_003)."""

    ip: str
    reason: str
    blocked_at: datetime


@dataclass(frozen=True)
class LockoutStatus:
    """
    Statut d'un identifiant après enregistrement ou consultation.

    Attributes:
        identifier: IP ou identifiant de compte
        locked: True si verrouillé temporairement
        attempts_remaining: Tentatives restantes avant verrouillage
        failure_count: Échecs comptabilisés
        locked_until: Fin du verrouillage si verrouillé
        blocked: True si un blocage dur a été posé
    """

    identifier: str
    locked: bool
    attempts_remaining: int
    failure_count: int
    locked_until: Optional[datetime] = None
    blocked: bool = False


class ILockoutTracker(ABC):
    """
    Interface de suivi des échecs et verrouillages.

    Ne lève jamais d'exception pour un identifiant inconnu (LOCK_004).
    """

    @abstractmethod
    def record_failure(self, identifier: str) -> LockoutStatus:
        """
        Enregistre un échec et verrouille si le seuil est atteint (LOCK_001).

        Returns:
            Statut après enregistrement
        """
        pass

    @abstractmethod
    def record_success(self, identifier: str) -> None:
        """Efface l'enregistrement après authentification réussie."""
        pass

    @abstractmethod
    def is_locked(self, identifier: str) -> bool:
        """
        Vérifie le verrouillage, après réinitialisation des verrous expirés (LOCK_002).
        """
        pass

    @abstractmethod
    def block(self, identifier: str, reason: str) -> IPBlockEntry:
        """Pose un blocage dur (LOCK_003)."""
        pass

    @abstractmethod
    def unblock(self, identifier: str) -> bool:
        """
        Lève un blocage dur.

        Returns:
            True si un blocage existait
        """
        pass

    @abstractmethod
    def is_blocked(self, identifier: str) -> bool:
        """Vérifie la présence d'un blocage dur."""
        pass

    @abstractmethod
    def get_locked_identifiers(self) -> List[LockoutStatus]:
        """Retourne les identifiants actuellement verrouillés."""
        pass

    @abstractmethod
    def purge_stale(self) -> int:
        """Supprime les enregistrements expirés; retourne le nombre supprimé."""
        pass
