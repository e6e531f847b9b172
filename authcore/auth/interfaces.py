"""
Interfaces Auth

Définit les contrats pour l'authentification, les sessions et la politique
de mots de passe. Toute implémentation DOIT respecter ces interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union


class AuthErrorCode(Enum):
    """Taxonomie des erreurs d'authentification exposées à l'appelant."""

    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_LOCKED = "account_locked"
    IP_BLOCKED = "ip_blocked"
    MFA_REQUIRED = "mfa_required"
    INVALID_OTP = "invalid_otp"
    OTP_EXPIRED = "otp_expired"
    OTP_ATTEMPTS_EXCEEDED = "otp_attempts_exceeded"
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_EXPIRED = "session_expired"
    DELIVERY_FAILED = "delivery_failed"
    DECRYPTION_FAILED = "decryption_failed"
    POLICY_VIOLATION = "policy_violation"
    CHALLENGE_NOT_FOUND = "challenge_not_found"
    RATE_LIMITED = "rate_limited"
    COOLDOWN_ACTIVE = "cooldown_active"
    CHANNEL_UNAVAILABLE = "channel_unavailable"
    NETWORK_DENIED = "network_denied"


@dataclass
class Session:
    """
    Session authentifiée.

    Attributes:
        id: Jeton opaque 256 bits (hex)
        principal_id: Propriétaire de la session
        origin_ip: IP d'origine de l'authentification
        created_at: Horodatage création
        last_activity_at: Dernière validation réussie
        expires_at: Expiration glissante (SESS_002)
        channel: Canal OTP si la session vient du parcours OTP
    """

    id: str
    principal_id: str
    origin_ip: str
    created_at: datetime
    last_activity_at: datetime
    expires_at: datetime
    channel: Optional[str] = None


@dataclass(frozen=True)
class SessionValidation:
    """Résultat de validation; reason vaut "not found" ou "expired" si invalide."""

    valid: bool
    session: Optional[Session] = None
    reason: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════
# RÉSULTATS D'AUTHENTIFICATION
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AuthSuccess:
    """Authentification complète, session émise."""

    session: Session


@dataclass(frozen=True)
class MfaRequired:
    """Identifiants valides, second facteur attendu (branche de contrôle)."""

    temp_token: str
    code: AuthErrorCode = AuthErrorCode.MFA_REQUIRED


@dataclass(frozen=True)
class AuthFailure:
    """Échec récupérable; attempts_remaining avant verrouillage."""

    code: AuthErrorCode
    reason: str
    attempts_remaining: Optional[int] = None


@dataclass(frozen=True)
class AuthLocked:
    """Refus sans évaluation des identifiants."""

    code: AuthErrorCode
    reason: str


AuthResult = Union[AuthSuccess, MfaRequired, AuthFailure, AuthLocked]


# ═══════════════════════════════════════════════════════════════════
# POLITIQUE DE MOT DE PASSE
# ═══════════════════════════════════════════════════════════════════


class ViolationKind(Enum):
    TOO_SHORT = "too_short"
    MISSING_UPPERCASE = "missing_uppercase"
    MISSING_NUMBER = "missing_number"
    MISSING_SPECIAL = "missing_special"


class StrengthLabel(Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


@dataclass(frozen=True)
class PolicyViolation:
    kind: ViolationKind
    message: str


@dataclass(frozen=True)
class PasswordStrength:
    """Score 0..100, indépendant de la validité (PWD_003)."""

    value: int
    label: StrengthLabel


@dataclass(frozen=True)
class PasswordValidation:
    valid: bool
    violations: List[PolicyViolation] = field(default_factory=list)
    strength: Optional[PasswordStrength] = None

    @property
    def violation_kinds(self) -> List[ViolationKind]:
        return [v.kind for v in self.violations]


# ═══════════════════════════════════════════════════════════════════
# INTERFACES
# ═══════════════════════════════════════════════════════════════════


class ISessionManager(ABC):
    """
    Interface gestion sessions.

    Invariants:
        SESS_001: Identifiant de session 256 bits aléatoire
        SESS_002: Expiration glissante à chaque validation réussie
        SESS_003: Session expirée évincée, jamais revalidée
    """

    @abstractmethod
    async def create_session(self, principal_id: str, origin_ip: str, channel: Optional[str] = None) -> Session:
        """Crée une session active immédiatement."""
        pass

    @abstractmethod
    async def validate_session(self, session_id: str) -> SessionValidation:
        """
        Valide et prolonge une session (SESS_002).

        Returns:
            SessionValidation avec reason "not found" ou "expired" si invalide
        """
        pass

    @abstractmethod
    async def terminate_session(self, session_id: str) -> bool:
        """
        Termine une session.

        Returns:
            True si terminée, False si inexistante
        """
        pass

    @abstractmethod
    async def cleanup_expired_sessions(self) -> int:
        """Balaye les sessions expirées, retourne le nombre évincé."""
        pass


class IPasswordPolicyEngine(ABC):
    """
    Interface politique de mot de passe.

    Invariants:
        PWD_003: Score de robustesse informatif, jamais décisionnel
    """

    @abstractmethod
    def validate(self, password: str) -> PasswordValidation:
        pass

    @abstractmethod
    def score(self, password: str) -> PasswordStrength:
        pass


class ICredentialVerifier(ABC):
    """
    Magasin d'identifiants externe.

    Ne DOIT PAS distinguer "compte inconnu" de "secret invalide".
    """

    @abstractmethod
    def verify(self, identifier: str, secret: str) -> Optional[str]:
        """
        Returns:
            principal_id si valide, None sinon
        """
        pass


class IMfaVerifier(ABC):
    """Vérification du second facteur (TOTP, OTP hors bande...)."""

    @abstractmethod
    def verify(self, principal_id: str, code: str) -> bool:
        pass


class INetworkAccessGate(ABC):
    """Passerelle d'accès réseau zero-trust consultée avant émission de session."""

    @abstractmethod
    def authorize(self, principal_id: str, origin_ip: str) -> bool:
        pass
