"""
Credential Authenticator

Parcours d'authentification par identifiant et mot de passe, avec second
facteur optionnel et passerelle réseau zero-trust.

Invariants:
    AUTH_001: IP bloquée refusée avant toute vérification
    AUTH_002: Compte inexistant et mot de passe faux indiscernables
    AUTH_003: MFA vérifié avant émission de session si activé
    LOCK_001: Échecs consécutifs au seuil = identifiant verrouillé temporairement
"""

import asyncio
from functools import partial
from typing import Optional

from ..audit import ISecurityEventSink, SecurityEventType
from ..incident import ILockoutTracker, LockoutStatus
from ..logging import IStructuredLogger
from .interfaces import (
    AuthErrorCode,
    AuthFailure,
    AuthLocked,
    AuthResult,
    AuthSuccess,
    ICredentialVerifier,
    IMfaVerifier,
    INetworkAccessGate,
    ISessionManager,
    MfaRequired,
)
from .mfa_token import MfaTokenError, MfaTokenExpiredError, MfaTokenService
from .password_policy import PasswordPolicyEngine

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
INVALID_OTP_MESSAGE = "Invalid verification code"


class CredentialAuthenticator:
    """
    Authentification identifiant + secret.

    Ordre de traitement:
        1. IP bloquée → AuthLocked(IP_BLOCKED)
        2. IP verrouillée → AuthLocked(ACCOUNT_LOCKED)
        3. Pré-contrôle longueur minimale puis vérification du secret
        4. Échec → record_failure, AuthFailure avec les tentatives restantes
           (0 sur l'échec qui verrouille; la tentative suivante reçoit AuthLocked)
        5. MFA actif sans code → MfaRequired(temp_token)
        6. Code MFA faux → compté comme un échec
        7. Passerelle réseau refuse → AuthLocked(NETWORK_DENIED)
        8. Succès → record_success, création de session

    Le compteur d'échecs est indexé par IP d'origine.

    Example:
        authenticator = CredentialAuthenticator(store, sessions, lockout)
        result = await authenticator.authenticate("alice", "Str0ng!Passw0rd", "10.0.0.5")
        if isinstance(result, AuthSuccess):
            ...
    """

    def __init__(
        self,
        verifier: ICredentialVerifier,
        sessions: ISessionManager,
        lockout: ILockoutTracker,
        policy_engine: Optional[PasswordPolicyEngine] = None,
        events: Optional[ISecurityEventSink] = None,
        mfa_enabled: bool = False,
        mfa_verifier: Optional[IMfaVerifier] = None,
        mfa_tokens: Optional[MfaTokenService] = None,
        network_gate: Optional[INetworkAccessGate] = None,
        logger: Optional[IStructuredLogger] = None,
    ):
        """
        Raises:
            ValueError: MFA activé sans vérificateur de second facteur
        """
        if mfa_enabled and mfa_verifier is None:
            raise ValueError("mfa_verifier is required when MFA is enabled")

        self._verifier = verifier
        self._sessions = sessions
        self._lockout = lockout
        self._policy = policy_engine or PasswordPolicyEngine()
        self._events = events
        self._mfa_enabled = mfa_enabled
        self._mfa_verifier = mfa_verifier
        self._mfa_tokens = mfa_tokens or MfaTokenService()
        self._network_gate = network_gate
        self._logger = logger

    @property
    def mfa_enabled(self) -> bool:
        return self._mfa_enabled

    async def authenticate(
        self,
        identifier: str,
        secret: str,
        origin_ip: str,
        otp_code: Optional[str] = None,
    ) -> AuthResult:
        """
        Authentifie un identifiant depuis une IP d'origine.

        Returns:
            AuthSuccess | MfaRequired | AuthFailure | AuthLocked
        """
        refused = await self._check_origin(origin_ip)
        if refused is not None:
            return refused

        principal_id: Optional[str] = None
        if self._policy.meets_minimum_length(secret):
            # bcrypt hors de la boucle asyncio
            loop = asyncio.get_running_loop()
            principal_id = await loop.run_in_executor(None, partial(self._verifier.verify, identifier, secret))

        if principal_id is None:
            # AUTH_002: même réponse pour compte inconnu et secret invalide
            return await self._fail(origin_ip, AuthErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        if self._mfa_enabled:
            if otp_code is None:
                return MfaRequired(temp_token=self._mfa_tokens.issue(principal_id, origin_ip))
            if not self._mfa_verifier.verify(principal_id, otp_code):
                return await self._fail(origin_ip, AuthErrorCode.INVALID_OTP, INVALID_OTP_MESSAGE, principal_id)

        return await self._complete(principal_id, origin_ip)

    async def complete_mfa(self, temp_token: str, otp_code: str, origin_ip: str) -> AuthResult:
        """
        Termine une authentification à partir du jeton MFA temporaire.

        Returns:
            AuthSuccess, ou AuthFailure(SESSION_EXPIRED) si le jeton a expiré
        """
        refused = await self._check_origin(origin_ip)
        if refused is not None:
            return refused

        try:
            claims = self._mfa_tokens.verify(temp_token, origin_ip)
        except MfaTokenExpiredError:
            return AuthFailure(code=AuthErrorCode.SESSION_EXPIRED, reason="Verification session expired")
        except MfaTokenError:
            return await self._fail(origin_ip, AuthErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        if self._mfa_verifier is None or not self._mfa_verifier.verify(claims.principal_id, otp_code):
            return await self._fail(origin_ip, AuthErrorCode.INVALID_OTP, INVALID_OTP_MESSAGE, claims.principal_id)

        self._mfa_tokens.consume(claims)
        return await self._complete(claims.principal_id, origin_ip)

    async def _check_origin(self, origin_ip: str) -> Optional[AuthLocked]:
        if self._lockout.is_blocked(origin_ip):
            # AUTH_001
            return await self._locked(origin_ip, AuthErrorCode.IP_BLOCKED, "ip-blocked")
        if self._lockout.is_locked(origin_ip):
            return await self._locked(origin_ip, AuthErrorCode.ACCOUNT_LOCKED, "account-locked")
        return None

    async def _fail(
        self,
        origin_ip: str,
        code: AuthErrorCode,
        reason: str,
        principal_id: Optional[str] = None,
    ) -> AuthResult:
        status: LockoutStatus = self._lockout.record_failure(origin_ip)

        await self._emit(
            SecurityEventType.AUTH_FAILURE,
            origin_ip,
            principal_id,
            error=code.value,
            attempts_remaining=status.attempts_remaining,
        )

        if status.blocked:
            if self._logger is not None:
                self._logger.critical("Origin hard-blocked after repeated lockouts", origin_ip=origin_ip)
            await self._emit(SecurityEventType.IP_BLOCKED, origin_ip, principal_id, reason="repeated-lockouts")
            await self._emit(SecurityEventType.AUTH_LOCKED, origin_ip, principal_id, reason="ip-blocked")
        elif status.locked:
            if self._logger is not None:
                self._logger.warn(
                    "Origin locked after failed attempts",
                    origin_ip=origin_ip,
                    failures=status.failure_count,
                )
            await self._emit(SecurityEventType.AUTH_LOCKED, origin_ip, principal_id, reason="account-locked")

        # L'échec qui verrouille reste un AuthFailure (attempts_remaining == 0)
        return AuthFailure(code=code, reason=reason, attempts_remaining=status.attempts_remaining)

    async def _locked(self, origin_ip: str, code: AuthErrorCode, reason: str) -> AuthLocked:
        await self._emit(SecurityEventType.AUTH_LOCKED, origin_ip, None, reason=reason)
        return AuthLocked(code=code, reason=reason)

    async def _complete(self, principal_id: str, origin_ip: str) -> AuthResult:
        if self._network_gate is not None and not self._network_gate.authorize(principal_id, origin_ip):
            await self._emit(SecurityEventType.AUTH_LOCKED, origin_ip, principal_id, reason="network-denied")
            return AuthLocked(code=AuthErrorCode.NETWORK_DENIED, reason="network-denied")

        self._lockout.record_success(origin_ip)
        session = await self._sessions.create_session(principal_id, origin_ip)

        await self._emit(SecurityEventType.AUTH_SUCCESS, origin_ip, principal_id)
        if self._logger is not None:
            self._logger.info("Authentication succeeded", principal_id=principal_id, origin_ip=origin_ip)

        return AuthSuccess(session=session)

    async def _emit(self, event_type: SecurityEventType, origin_ip: str, principal_id: Optional[str], **metadata) -> None:
        if self._events is not None:
            await self._events.emit(event_type, principal_id=principal_id, origin_ip=origin_ip, metadata=metadata)
