"""
MFA Token Service

Jeton temporaire signé émis quand les identifiants sont valides mais que
le second facteur reste à fournir.

Invariants:
    AUTH_003: MFA vérifié avant émission de session si activé
    AUTH_004: Jeton MFA temporaire MAX 10 minutes
"""

import secrets
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt

from ..core.clock import Clock, utc_now


class MfaTokenError(Exception):
    """Jeton MFA invalide."""

    def __init__(self, message: str, invariant: Optional[str] = None):
        self.invariant = invariant
        super().__init__(message)


class MfaTokenExpiredError(MfaTokenError):
    """Jeton MFA expiré."""

    def __init__(self, message: str = "MFA token expired"):
        super().__init__(message, invariant="AUTH_004")


@dataclass(frozen=True)
class MfaTokenClaims:
    principal_id: str
    origin_ip: str
    jti: str
    expires_at: datetime


class MfaTokenService:
    """
    Émission et vérification des jetons MFA (HS256).

    Le jeton est lié au principal et à l'IP d'origine, et n'est
    utilisable qu'une fois (``consume``).

    Example:
        service = MfaTokenService(secret, ttl=timedelta(minutes=5))
        token = service.issue("user-1", "10.0.0.5")
        claims = service.verify(token, "10.0.0.5")
        service.consume(claims)
    """

    ALGORITHM: str = "HS256"
    PURPOSE: str = "mfa"
    MAX_TTL: timedelta = timedelta(minutes=10)  # AUTH_004

    def __init__(
        self,
        secret: Optional[bytes] = None,
        ttl: timedelta = timedelta(minutes=5),
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            secret: Clé HMAC (défaut: 256 bits aléatoires, propre au process)
            ttl: Durée de vie des jetons
            clock: Horloge injectée

        Raises:
            MfaTokenError: Si ttl dépasse 10 minutes (AUTH_004)
        """
        if ttl > self.MAX_TTL:
            raise MfaTokenError(
                f"AUTH_004 violation: MFA token ttl {int(ttl.total_seconds())}s "
                f"exceeds maximum {int(self.MAX_TTL.total_seconds())}s",
                invariant="AUTH_004",
            )
        self._secret = secret or secrets.token_bytes(32)
        self.ttl = ttl
        self._clock = clock or utc_now
        self._consumed: Dict[str, datetime] = {}  # jti -> expiration
        self._lock = threading.Lock()

    def issue(self, principal_id: str, origin_ip: str) -> str:
        """Émet un jeton signé lié au principal et à l'IP."""
        now = self._clock()
        payload = {
            "sub": principal_id,
            "ip": origin_ip,
            "purpose": self.PURPOSE,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.ALGORITHM)

    def verify(self, token: str, origin_ip: str) -> MfaTokenClaims:
        """
        Vérifie signature, finalité, IP, expiration et usage unique.

        L'expiration est évaluée avec l'horloge injectée.

        Raises:
            MfaTokenExpiredError: Jeton expiré
            MfaTokenError: Jeton invalide, déjà utilisé ou IP différente
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.ALGORITHM],
                options={
                    "require": ["exp", "iat", "sub", "jti"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise MfaTokenError(f"Invalid MFA token: {e}")

        if payload.get("purpose") != self.PURPOSE:
            raise MfaTokenError("Invalid MFA token purpose")

        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        if self._clock() >= expires_at:
            raise MfaTokenExpiredError()

        if payload.get("ip") != origin_ip:
            raise MfaTokenError("MFA token bound to another origin")

        with self._lock:
            if payload["jti"] in self._consumed:
                raise MfaTokenError("MFA token already used")

        return MfaTokenClaims(
            principal_id=payload["sub"],
            origin_ip=payload["ip"],
            jti=payload["jti"],
            expires_at=expires_at,
        )

    def consume(self, claims: MfaTokenClaims) -> None:
        """Marque le jeton comme utilisé; purge les entrées expirées."""
        with self._lock:
            now = self._clock()
            for jti in [j for j, exp in self._consumed.items() if now >= exp]:
                del self._consumed[jti]
            self._consumed[claims.jti] = claims.expires_at
