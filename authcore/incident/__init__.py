"""
Incident: verrouillage et blocage

Suivi des échecs d'authentification avec:
- Verrouillage temporaire au seuil d'échecs (LOCK_001)
- Réinitialisation paresseuse des verrous expirés (LOCK_002)
- Blocage IP dur levé uniquement par un opérateur (LOCK_003)

Invariants couverts:
- LOCK_001-005
"""

from .interfaces import (
    # Data classes
    LoginAttemptRecord,
    IPBlockEntry,
    LockoutStatus,
    # Interfaces
    ILockoutTracker,
)
from .lockout_tracker import LockoutTracker

__all__ = [
    # Data classes
    "LoginAttemptRecord",
    "IPBlockEntry",
    "LockoutStatus",
    # Interfaces
    "ILockoutTracker",
    # Implementations
    "LockoutTracker",
]
