"""
AUTHCORE - Auth Security Core

Point d'entrée unique: construit tous les composants depuis une seule
configuration validée et expose les opérations du cœur d'authentification.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .audit import SecurityEvent, SecurityEventSink, SecurityEventType
from .auth import (
    AuthResult,
    CredentialAuthenticator,
    ICredentialVerifier,
    IMfaVerifier,
    INetworkAccessGate,
    InMemoryCredentialStore,
    MfaTokenService,
    PasswordPolicyEngine,
    PasswordValidation,
    SessionManager,
    SessionValidation,
)
from .core import (
    ConfigIntegrityError,
    ConfigLoader,
    ConfigValidator,
    EncryptedPayload,
    FieldEncryptionService,
    SecurityConfig,
)
from .core.clock import Clock, utc_now
from .incident import IPBlockEntry, LockoutTracker
from .logging import SensitiveMasker, StructuredLogger
from .otp import (
    ChannelRouter,
    DeliveryChannelType,
    IDeliveryChannel,
    LoggingDeliveryChannel,
    OtpChannelGateway,
    OtpInitiation,
)
from .posture import PostureAssessment, SecurityPostureAssessor, snapshot_from


class AuthSecurityCore:
    """
    Façade du cœur d'authentification.

    Un seul ``SecurityConfig`` est construit au démarrage puis passé par
    référence à chaque composant. Les deux parcours (mot de passe, OTP)
    partagent le même gestionnaire de sessions.

    Example:
        core = AuthSecurityCore(encryption_key=key)
        await core.start()
        result = await core.authenticate("alice", "Str0ng!Passw0rd", "10.0.0.5")
        await core.stop()
    """

    def __init__(
        self,
        config: Optional[SecurityConfig] = None,
        encryption_key: Optional[bytes] = None,
        verifier: Optional[ICredentialVerifier] = None,
        delivery: Optional[IDeliveryChannel] = None,
        mfa_verifier: Optional[IMfaVerifier] = None,
        network_gate: Optional[INetworkAccessGate] = None,
        mfa_secret: Optional[bytes] = None,
        logger: Optional[StructuredLogger] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            config: Configuration validée (défaut: valeurs par défaut)
            encryption_key: Clé AES-256 des champs (défaut: clé éphémère)
            verifier: Magasin d'identifiants (défaut: InMemoryCredentialStore)
            delivery: Livraison OTP (défaut: routeur vers transport journalisé)
            mfa_verifier: Second facteur du parcours mot de passe
            network_gate: Passerelle d'accès réseau zero-trust
            mfa_secret: Clé HMAC des jetons MFA
            logger: Logger racine
            clock: Horloge injectée
        """
        self.config = config or SecurityConfig()
        self._clock = clock or utc_now
        self.masker = SensitiveMasker()
        self.logger = logger or StructuredLogger("authcore", masker=self.masker)

        self.events = SecurityEventSink(
            masker=self.masker,
            logger=self.logger.child("events"),
            clock=self._clock,
        )
        self.lockout = LockoutTracker(
            max_attempts=self.config.max_login_attempts,
            lockout_duration=self.config.lockout_duration,
            hard_block_after_lockouts=self.config.hard_block_after_lockouts,
            clock=self._clock,
        )
        self.sessions = SessionManager(
            session_timeout=self.config.session_timeout,
            sweep_interval=self.config.session_sweep_interval,
            clock=self._clock,
        )
        self.password_policy = PasswordPolicyEngine(self.config.password_policy)
        self.encryption = FieldEncryptionService(encryption_key or FieldEncryptionService.generate_key())
        self.credentials = verifier or InMemoryCredentialStore()

        self.authenticator = CredentialAuthenticator(
            verifier=self.credentials,
            sessions=self.sessions,
            lockout=self.lockout,
            policy_engine=self.password_policy,
            events=self.events,
            mfa_enabled=self.config.mfa_enabled,
            mfa_verifier=mfa_verifier,
            mfa_tokens=MfaTokenService(mfa_secret, ttl=self.config.mfa_token_ttl, clock=self._clock),
            network_gate=network_gate,
            logger=self.logger.child("auth"),
        )

        self.delivery = delivery or ChannelRouter(
            default=LoggingDeliveryChannel(
                channels=self.config.channels,
                logger=self.logger.child("delivery"),
                masker=self.masker,
                clock=self._clock,
            )
        )
        self.otp = OtpChannelGateway(
            delivery=self.delivery,
            sessions=self.sessions,
            config=self.config,
            events=self.events,
            masker=self.masker,
            logger=self.logger.child("otp"),
            clock=self._clock,
        )
        self.sessions.add_sweep_hook(self.lockout.purge_stale)
        self.sessions.add_sweep_hook(self.otp.purge_stale_state)
        self.posture = SecurityPostureAssessor(self.config.posture)

        self._network_gate = network_gate
        self._threat_tier_active = False
        self._unresolved_threats = 0
        self._running = False

    @classmethod
    def from_yaml(cls, path: Union[str, Path], **kwargs: Any) -> "AuthSecurityCore":
        """
        Charge, valide puis construit le cœur.

        Raises:
            ConfigIntegrityError: Fichier invalide ou invariant bloquant violé
        """
        config = ConfigLoader().load(path)
        result = ConfigValidator().validate(config)
        if not result.valid:
            rules = ", ".join(error.rule_id for error in result.errors)
            raise ConfigIntegrityError(f"Configuration rejetée: {rules}")
        return cls(config=config, **kwargs)

    # ─────────────────────────────────────────────────────────────────
    # Cycle de vie
    # ─────────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Démarre le balayage périodique des sessions."""
        if self._running:
            return
        self.sessions.start_sweeper()
        self._running = True
        self.logger.info(
            "Auth security core started",
            channels=[name for name, policy in self.config.channels.items() if policy.enabled],
            mfa_enabled=self.config.mfa_enabled,
        )

    async def stop(self) -> None:
        await self.sessions.stop_sweeper()
        self._running = False
        self.logger.info("Auth security core stopped")

    async def sweep(self) -> int:
        """Passage de balayage immédiat: sessions, verrouillages, OTP et quotas."""
        removed = await self.sessions.sweep()
        if removed:
            self.logger.debug("Stale state purged", removed=removed)
        return removed

    @property
    def is_running(self) -> bool:
        return self._running

    # ─────────────────────────────────────────────────────────────────
    # Parcours mot de passe
    # ─────────────────────────────────────────────────────────────────

    def register_credentials(self, identifier: str, secret: str, principal_id: Optional[str] = None) -> str:
        """
        Enregistre un identifiant dans le magasin intégré après contrôle de politique.

        Raises:
            ValueError: Secret non conforme ou magasin externe
        """
        if not isinstance(self.credentials, InMemoryCredentialStore):
            raise ValueError("Credentials are managed by an external store")
        validation = self.password_policy.validate(secret)
        if not validation.valid:
            kinds = ", ".join(kind.value for kind in validation.violation_kinds)
            raise ValueError(f"Password policy violation: {kinds}")
        return self.credentials.register(identifier, secret, principal_id)

    async def authenticate(
        self,
        identifier: str,
        secret: str,
        origin_ip: str,
        otp_code: Optional[str] = None,
    ) -> AuthResult:
        return await self.authenticator.authenticate(identifier, secret, origin_ip, otp_code)

    async def complete_mfa(self, temp_token: str, otp_code: str, origin_ip: str) -> AuthResult:
        return await self.authenticator.complete_mfa(temp_token, otp_code, origin_ip)

    # ─────────────────────────────────────────────────────────────────
    # Parcours OTP
    # ─────────────────────────────────────────────────────────────────

    async def initiate_otp(
        self,
        principal_id: str,
        channel: Union[DeliveryChannelType, str],
        destination: str,
        origin_ip: Optional[str] = None,
    ) -> OtpInitiation:
        return await self.otp.initiate(principal_id, channel, destination, origin_ip)

    async def verify_otp(self, challenge_id: str, code: str, origin_ip: Optional[str] = None) -> AuthResult:
        return await self.otp.verify(challenge_id, code, origin_ip)

    # ─────────────────────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────────────────────

    async def validate_session(self, session_id: str) -> SessionValidation:
        return await self.sessions.validate_session(session_id)

    async def terminate_session(self, session_id: str) -> bool:
        session = await self.sessions.get_session(session_id)
        terminated = await self.sessions.terminate_session(session_id)
        if terminated and session is not None:
            await self.events.emit(
                SecurityEventType.SESSION_TERMINATED,
                principal_id=session.principal_id,
                origin_ip=session.origin_ip,
                channel=session.channel,
            )
        return terminated

    # ─────────────────────────────────────────────────────────────────
    # Blocage IP (opérateur)
    # ─────────────────────────────────────────────────────────────────

    async def block_ip(self, ip: str, reason: str) -> IPBlockEntry:
        entry = self.lockout.block(ip, reason)
        await self.events.emit(SecurityEventType.IP_BLOCKED, origin_ip=ip, metadata={"reason": reason})
        self.logger.warn("Origin blocked by operator", origin_ip=ip, reason=reason)
        return entry

    async def unblock_ip(self, ip: str) -> bool:
        removed = self.lockout.unblock(ip)
        if removed:
            await self.events.emit(SecurityEventType.IP_UNBLOCKED, origin_ip=ip)
            self.logger.info("Origin unblocked", origin_ip=ip)
        return removed

    def is_ip_blocked(self, ip: str) -> bool:
        return self.lockout.is_blocked(ip)

    # ─────────────────────────────────────────────────────────────────
    # Politique, chiffrement
    # ─────────────────────────────────────────────────────────────────

    def validate_password(self, password: str) -> PasswordValidation:
        return self.password_policy.validate(password)

    def encrypt(self, data: Any) -> EncryptedPayload:
        return self.encryption.encrypt(data)

    def decrypt(self, payload: Union[EncryptedPayload, Dict[str, Any]]) -> Any:
        if isinstance(payload, dict):
            payload = EncryptedPayload.from_dict(payload)
        return self.encryption.decrypt(payload)

    # ─────────────────────────────────────────────────────────────────
    # Posture, statistiques, événements
    # ─────────────────────────────────────────────────────────────────

    def report_threat_tier(self, active: bool, unresolved_threats: int = 0) -> None:
        """Mise à jour de l'état remonté par le tier SIEM."""
        self._threat_tier_active = active
        self._unresolved_threats = max(0, unresolved_threats)

    def assess_security_posture(self) -> PostureAssessment:
        snapshot = snapshot_from(
            lockout=self.lockout,
            sessions=self.sessions,
            network_tier_active=self._network_gate is not None,
            threat_tier_active=self._threat_tier_active,
            application_tier_active=self._running,
            unresolved_threats=self._unresolved_threats,
        )
        return self.posture.assess(snapshot)

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "lockout": {
                "locked": self.lockout.locked_count,
                "blocked": self.lockout.blocked_count,
            },
            "sessions": {"active": self.sessions.active_count},
            "otp": self.otp.get_statistics(),
            "events": {
                "pending": self.events.pending_count,
                "emitted": self.events.emitted_count,
                "dropped": self.events.dropped_count,
            },
            "running": self._running,
        }

    def drain_events(self, max_events: Optional[int] = None) -> List[SecurityEvent]:
        return self.events.drain(max_events)
