"""
AUTHCORE - Security Configuration
Configuration unique, validée et immuable, construite au démarrage puis
passée par référence à chaque composant.
"""

from datetime import timedelta
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PasswordPolicy(BaseModel):
    """Règles de composition des mots de passe (PWD_001)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_length: int = Field(default=12, ge=1)
    require_uppercase: bool = True
    require_numbers: bool = True
    require_special: bool = True


class ChannelPolicy(BaseModel):
    """
    Politique d'un canal de livraison OTP.

    Le quota s'applique par couple (canal, destination) sur une fenêtre glissante.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    provider: str
    enabled: bool = True
    quota_requests: int = Field(default=5, ge=1)
    quota_window_ms: int = Field(default=60_000, gt=0)
    priority: int = Field(default=1, ge=1)

    @property
    def quota_window(self) -> timedelta:
        return timedelta(milliseconds=self.quota_window_ms)


def _default_channels() -> Dict[str, ChannelPolicy]:
    return {
        "sms": ChannelPolicy(name="SMS Authentication", provider="twilio", quota_requests=5, priority=1),
        "whatsapp": ChannelPolicy(name="WhatsApp Authentication", provider="twilio", quota_requests=10, priority=2),
        "telegram": ChannelPolicy(name="Telegram Authentication", provider="telegram-bot", quota_requests=20, priority=3),
        "email": ChannelPolicy(name="Email Authentication", provider="sendgrid", quota_requests=10, priority=4),
        "voice": ChannelPolicy(name="Voice Call Authentication", provider="twilio", quota_requests=3, priority=5),
    }


class PostureThresholds(BaseModel):
    """Seuils de l'évaluation de posture sécurité."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_unresolved_threats: int = Field(default=3, ge=0)
    max_blocked_ips: int = Field(default=50, ge=0)
    max_locked_identifiers: int = Field(default=25, ge=0)
    max_active_sessions: int = Field(default=10_000, ge=0)


class SecurityConfig(BaseModel):
    """
    Configuration process-wide du cœur d'authentification.

    Les durées sont exprimées en millisecondes (surface de configuration)
    et exposées en ``timedelta`` via les propriétés.

    Note:
        Une seule durée de session (``session_timeout_ms``, 1h) s'applique
        aux parcours mot de passe et OTP.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Verrouillage
    max_login_attempts: int = Field(default=5, ge=1)
    lockout_duration_ms: int = Field(default=900_000, gt=0)
    hard_block_after_lockouts: int = Field(default=3, ge=1)

    # Sessions
    session_timeout_ms: int = Field(default=3_600_000, gt=0)
    session_sweep_interval_ms: int = Field(default=300_000, gt=0)

    # MFA (parcours mot de passe)
    mfa_enabled: bool = False
    mfa_token_ttl_ms: int = Field(default=300_000, gt=0)

    # OTP
    otp_length: int = Field(default=6, ge=4, le=12)
    otp_expiry_ms: int = Field(default=300_000, gt=0)
    otp_max_attempts: int = Field(default=3, ge=1)
    otp_cooldown_ms: int = Field(default=900_000, gt=0)
    otp_rate_limit_requests: int = Field(default=5, ge=1)
    otp_rate_limit_window_ms: int = Field(default=900_000, gt=0)

    password_policy: PasswordPolicy = Field(default_factory=PasswordPolicy)
    channels: Dict[str, ChannelPolicy] = Field(default_factory=_default_channels)
    posture: PostureThresholds = Field(default_factory=PostureThresholds)

    @model_validator(mode="after")
    def _check_channels(self) -> "SecurityConfig":
        from ..otp.interfaces import DeliveryChannelType

        known = {c.value for c in DeliveryChannelType}
        unknown = set(self.channels) - known
        if unknown:
            raise ValueError(f"Unknown delivery channels: {sorted(unknown)}")
        return self

    @property
    def lockout_duration(self) -> timedelta:
        return timedelta(milliseconds=self.lockout_duration_ms)

    @property
    def session_timeout(self) -> timedelta:
        return timedelta(milliseconds=self.session_timeout_ms)

    @property
    def session_sweep_interval(self) -> timedelta:
        return timedelta(milliseconds=self.session_sweep_interval_ms)

    @property
    def mfa_token_ttl(self) -> timedelta:
        return timedelta(milliseconds=self.mfa_token_ttl_ms)

    @property
    def otp_expiry(self) -> timedelta:
        return timedelta(milliseconds=self.otp_expiry_ms)

    @property
    def otp_cooldown(self) -> timedelta:
        return timedelta(milliseconds=self.otp_cooldown_ms)

    @property
    def otp_rate_limit_window(self) -> timedelta:
        return timedelta(milliseconds=self.otp_rate_limit_window_ms)
