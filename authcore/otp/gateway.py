"""
OTP Channel Gateway

Émission et vérification de codes à usage unique livrés par SMS, WhatsApp,
Telegram, email ou appel vocal.

Invariants:
    OTP_001: Code OTP 6 chiffres minimum, source cryptographique
    OTP_002: Expiration OTP MAX 10 minutes, vérifiée avant les tentatives
    OTP_003: Tentatives OTP MAX 5 puis suppression du challenge
    OTP_004: Échec d'envoi = challenge supprimé
    OTP_005: Destination TOUJOURS masquée hors envoi
    OTP_006: Limite de débit par identifiant et quota par canal
    OTP_007: Détail fournisseur JAMAIS exposé à l'utilisateur
"""

import hmac
import secrets
import threading
from datetime import timedelta
from typing import Any, Dict, Optional, Union

from ..audit import ISecurityEventSink, SecurityEventType
from ..auth.interfaces import AuthErrorCode, AuthFailure, AuthResult, AuthSuccess, ISessionManager
from ..core.clock import Clock, utc_now
from ..core.config import SecurityConfig
from ..incident import LockoutTracker
from ..logging import ISensitiveMasker, IStructuredLogger, SensitiveMasker
from .delivery import MessageFormatter
from .interfaces import DeliveryChannelType, DeliveryReceipt, IDeliveryChannel, OtpChallenge, OtpInitiation
from .rate_limiter import SlidingWindowRateLimiter


class OtpGatewayError(Exception):
    """Erreur d'initiation OTP, porteuse d'un code de la taxonomie."""

    def __init__(self, message: str, code: AuthErrorCode, retry_after: Optional[timedelta] = None):
        self.code = code
        self.retry_after = retry_after
        super().__init__(message)


class ChannelUnavailableError(OtpGatewayError):
    """Canal inconnu ou désactivé."""

    def __init__(self, channel: str):
        super().__init__(f"Authentication channel not available: {channel}", AuthErrorCode.CHANNEL_UNAVAILABLE)


class OtpCooldownError(OtpGatewayError):
    """Trop de challenges épuisés, période de refroidissement active."""

    def __init__(self, retry_after: Optional[timedelta]):
        minutes = _ceil_minutes(retry_after)
        super().__init__(
            f"Too many failed attempts. Try again in {minutes} minutes",
            AuthErrorCode.COOLDOWN_ACTIVE,
            retry_after,
        )


class OtpRateLimitedError(OtpGatewayError):
    """Limite de débit ou quota de canal atteint (OTP_006)."""

    def __init__(self, retry_after: Optional[timedelta]):
        super().__init__("Too many verification requests", AuthErrorCode.RATE_LIMITED, retry_after)


class DeliveryFailedError(OtpGatewayError):
    """Échec de livraison; aucun détail fournisseur (OTP_007)."""

    def __init__(self):
        super().__init__("could not send code", AuthErrorCode.DELIVERY_FAILED)


def _ceil_minutes(delta: Optional[timedelta]) -> int:
    if delta is None:
        return 0
    seconds = max(0, int(delta.total_seconds()))
    return -(-seconds // 60)


class OtpChannelGateway:
    """
    Passerelle OTP multi-canal.

    initiate:
        canal actif → cooldown → débit par principal → quota (canal, destination)
        → génération (secrets) → stockage → envoi hors verrou → rollback si échec

    verify:
        inconnu → expiré (supprimé) → attempts += 1 → dépassement (supprimé,
        cooldown) → comparaison à temps constant → succès (supprimé, session)

    Example:
        gateway = OtpChannelGateway(delivery, sessions, config)
        initiation = await gateway.initiate("user-1", DeliveryChannelType.SMS, "+15551231234")
        result = await gateway.verify(initiation.challenge_id, "123456")
    """

    CHALLENGE_ID_BYTES: int = 24
    UNKNOWN_ORIGIN: str = "unknown"

    def __init__(
        self,
        delivery: IDeliveryChannel,
        sessions: ISessionManager,
        config: Optional[SecurityConfig] = None,
        cooldown: Optional[LockoutTracker] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        formatter: Optional[MessageFormatter] = None,
        events: Optional[ISecurityEventSink] = None,
        masker: Optional[ISensitiveMasker] = None,
        logger: Optional[IStructuredLogger] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            delivery: Capacité de livraison (routeur de canaux)
            sessions: Gestionnaire de sessions partagé avec le parcours mot de passe
            config: Configuration sécurité (défaut: valeurs par défaut)
            cooldown: Suivi des challenges épuisés par principal
            rate_limiter: Limite de débit par principal
            formatter: Formatage des messages par canal
            events: File d'événements de sécurité
            masker: Masquage des destinations
            logger: Journal structuré
            clock: Horloge injectée
        """
        self._config = config or SecurityConfig()
        self._clock = clock or utc_now
        self._delivery = delivery
        self._sessions = sessions
        self._cooldown = cooldown or LockoutTracker(
            max_attempts=self._config.otp_max_attempts,
            lockout_duration=self._config.otp_cooldown,
            clock=self._clock,
        )
        self._rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            self._config.otp_rate_limit_requests,
            self._config.otp_rate_limit_window,
            clock=self._clock,
        )
        self._quotas: Dict[DeliveryChannelType, SlidingWindowRateLimiter] = {
            DeliveryChannelType(name): SlidingWindowRateLimiter(
                policy.quota_requests, policy.quota_window, clock=self._clock
            )
            for name, policy in self._config.channels.items()
        }
        self._formatter = formatter or MessageFormatter(clock=self._clock)
        self._events = events
        self._masker = masker or SensitiveMasker()
        self._logger = logger

        self._challenges: Dict[str, OtpChallenge] = {}
        self._lock = threading.Lock()

    @property
    def expires_in_seconds(self) -> int:
        return int(self._config.otp_expiry.total_seconds())

    def is_channel_available(self, channel: Union[DeliveryChannelType, str]) -> bool:
        try:
            channel = DeliveryChannelType(channel)
        except ValueError:
            return False
        policy = self._config.channels.get(channel.value)
        return policy is not None and policy.enabled

    async def initiate(
        self,
        principal_id: str,
        channel: Union[DeliveryChannelType, str],
        destination: str,
        origin_ip: Optional[str] = None,
    ) -> OtpInitiation:
        """
        Émet un challenge et livre le code.

        Returns:
            OtpInitiation avec destination masquée

        Raises:
            ValueError: principal_id ou destination manquant
            ChannelUnavailableError: Canal inconnu ou désactivé
            OtpCooldownError: Refroidissement actif pour ce principal
            OtpRateLimitedError: Débit ou quota de canal dépassé
            DeliveryFailedError: Échec de livraison, challenge supprimé
        """
        if not principal_id or not destination:
            raise ValueError("principal_id and destination are required")
        if not self.is_channel_available(channel):
            raise ChannelUnavailableError(getattr(channel, "value", channel))
        channel = DeliveryChannelType(channel)
        masked = self._masker.mask_destination(destination)

        if self._cooldown.is_locked(principal_id):
            raise OtpCooldownError(self._cooldown.get_lock_remaining_time(principal_id))

        if not self._rate_limiter.try_acquire(principal_id):
            raise OtpRateLimitedError(self._rate_limiter.retry_after(principal_id))

        quota = self._quotas[channel]
        if not quota.try_acquire(destination):
            raise OtpRateLimitedError(quota.retry_after(destination))

        now = self._clock()
        challenge = OtpChallenge(
            id=secrets.token_urlsafe(self.CHALLENGE_ID_BYTES),
            principal_id=principal_id,
            channel=channel,
            destination=destination,
            code=self._generate_code(),
            created_at=now,
            expires_at=now + self._config.otp_expiry,
            origin_ip=origin_ip,
        )

        with self._lock:
            self._purge_expired(now)
            self._challenges[challenge.id] = challenge

        payload = self._formatter.format(channel, challenge.code, self.expires_in_seconds)

        receipt: Optional[DeliveryReceipt] = None
        try:
            receipt = await self._delivery.send(channel, destination, payload)
        except Exception as e:
            if self._logger is not None:
                self._logger.error(
                    f"Delivery via {channel.value} raised",
                    channel=channel.value,
                    destination=masked,
                    error_type=type(e).__name__,
                )

        if receipt is None or not receipt.sent:
            # OTP_004
            with self._lock:
                self._challenges.pop(challenge.id, None)
            await self._emit(SecurityEventType.OTP_FAILED, challenge, masked, reason="delivery-failed")
            raise DeliveryFailedError()

        await self._emit(SecurityEventType.OTP_SENT, challenge, masked)
        if self._logger is not None:
            self._logger.info(
                f"Verification code sent via {channel.value}",
                principal_id=principal_id,
                channel=channel.value,
                destination=masked,
            )

        return OtpInitiation(
            challenge_id=challenge.id,
            channel=channel,
            masked_destination=masked,
            expires_in_seconds=self.expires_in_seconds,
        )

    async def verify(self, challenge_id: str, code: str, origin_ip: Optional[str] = None) -> AuthResult:
        """
        Vérifie un code contre son challenge.

        Returns:
            AuthSuccess avec session, ou AuthFailure (CHALLENGE_NOT_FOUND,
            OTP_EXPIRED, OTP_ATTEMPTS_EXCEEDED, INVALID_OTP)
        """
        max_attempts = self._config.otp_max_attempts

        with self._lock:
            challenge = self._challenges.get(challenge_id) if challenge_id else None
            if challenge is None:
                return AuthFailure(code=AuthErrorCode.CHALLENGE_NOT_FOUND, reason="Verification challenge not found")

            # OTP_002: expiration évaluée avant les tentatives
            if self._clock() > challenge.expires_at:
                del self._challenges[challenge_id]
                outcome = AuthErrorCode.OTP_EXPIRED
            else:
                challenge.attempts += 1
                if challenge.attempts > max_attempts:
                    # OTP_003
                    del self._challenges[challenge_id]
                    outcome = AuthErrorCode.OTP_ATTEMPTS_EXCEEDED
                elif not hmac.compare_digest(challenge.code.encode(), (code or "").encode()):
                    outcome = AuthErrorCode.INVALID_OTP
                else:
                    del self._challenges[challenge_id]
                    challenge.verified = True
                    outcome = None

        masked = self._masker.mask_destination(challenge.destination)

        if outcome == AuthErrorCode.OTP_EXPIRED:
            await self._emit(SecurityEventType.OTP_FAILED, challenge, masked, reason="expired")
            return AuthFailure(code=outcome, reason="Verification code expired")

        if outcome == AuthErrorCode.OTP_ATTEMPTS_EXCEEDED:
            self._cooldown.record_failure(challenge.principal_id)
            await self._emit(SecurityEventType.OTP_FAILED, challenge, masked, reason="attempts-exceeded")
            if self._logger is not None:
                self._logger.warn(
                    "Verification attempts exhausted",
                    principal_id=challenge.principal_id,
                    channel=challenge.channel.value,
                    destination=masked,
                )
            return AuthFailure(code=outcome, reason="Too many failed attempts", attempts_remaining=0)

        if outcome == AuthErrorCode.INVALID_OTP:
            remaining = max(0, max_attempts - challenge.attempts)
            await self._emit(SecurityEventType.OTP_FAILED, challenge, masked, reason="invalid", attempts_remaining=remaining)
            return AuthFailure(code=outcome, reason="Invalid verification code", attempts_remaining=remaining)

        self._cooldown.record_success(challenge.principal_id)
        session = await self._sessions.create_session(
            challenge.principal_id,
            origin_ip or challenge.origin_ip or self.UNKNOWN_ORIGIN,
            channel=challenge.channel.value,
        )
        await self._emit(SecurityEventType.OTP_VERIFIED, challenge, masked)
        if self._logger is not None:
            self._logger.info(
                f"Principal authenticated via {challenge.channel.value}",
                principal_id=challenge.principal_id,
                channel=challenge.channel.value,
            )

        return AuthSuccess(session=session)

    def cancel(self, challenge_id: str) -> bool:
        """Abandonne un challenge en attente."""
        with self._lock:
            return self._challenges.pop(challenge_id, None) is not None

    def purge_expired_challenges(self) -> int:
        """Supprime les challenges expirés jamais vérifiés."""
        with self._lock:
            return self._purge_expired(self._clock())

    def purge_stale_state(self) -> int:
        """
        Purge challenges expirés, cooldowns échus et fenêtres de débit vides.

        Returns:
            Nombre d'entrées supprimées
        """
        removed = self.purge_expired_challenges()
        removed += self._cooldown.purge_stale()
        removed += self._rate_limiter.purge_stale()
        for quota in self._quotas.values():
            removed += quota.purge_stale()
        return removed

    @property
    def active_challenges(self) -> int:
        with self._lock:
            return len(self._challenges)

    def get_statistics(self) -> Dict[str, Any]:
        """Canaux actifs, challenges en attente et état de chaque canal."""
        channel_status = {
            name: {
                "name": policy.name,
                "provider": policy.provider,
                "enabled": policy.enabled,
                "priority": policy.priority,
            }
            for name, policy in sorted(self._config.channels.items(), key=lambda item: item[1].priority)
        }
        return {
            "channels": [name for name, status in channel_status.items() if status["enabled"]],
            "active_challenges": self.active_challenges,
            "principals_in_cooldown": self._cooldown.locked_count,
            "channel_status": channel_status,
        }

    def _generate_code(self) -> str:
        """OTP_001: code décimal de longueur fixe depuis ``secrets``."""
        length = self._config.otp_length
        return f"{secrets.randbelow(10 ** length):0{length}d}"

    def _purge_expired(self, now) -> int:
        """Appelant doit détenir ``self._lock``."""
        expired = [cid for cid, challenge in self._challenges.items() if now > challenge.expires_at]
        for challenge_id in expired:
            del self._challenges[challenge_id]
        return len(expired)

    async def _emit(self, event_type: SecurityEventType, challenge: OtpChallenge, masked: str, **metadata) -> None:
        if self._events is not None:
            await self._events.emit(
                event_type,
                principal_id=challenge.principal_id,
                masked_destination=masked,
                channel=challenge.channel.value,
                origin_ip=challenge.origin_ip,
                metadata=metadata,
            )
