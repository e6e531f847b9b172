"""
AUTHCORE - Config Validator Implementation
Valide la configuration contre les invariants de sécurité.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..invariants.rules import ALL_INVARIANTS, Severity
from .config import SecurityConfig
from .interfaces import IConfigValidator, ValidationError, ValidationResult, ValidationSeverity


RuleCheck = Callable[[SecurityConfig], Optional[ValidationError]]


class ConfigValidator(IConfigValidator):
    """Validation de SecurityConfig contre les invariants de sécurité."""

    MAX_LOGIN_ATTEMPTS: int = 10
    MAX_SESSION_TIMEOUT: timedelta = timedelta(hours=24)
    MIN_OTP_LENGTH: int = 6
    MAX_OTP_EXPIRY: timedelta = timedelta(minutes=10)
    MAX_OTP_ATTEMPTS: int = 5
    MAX_MFA_TOKEN_TTL: timedelta = timedelta(minutes=10)
    MIN_PASSWORD_LENGTH: int = 8
    RECOMMENDED_PASSWORD_LENGTH: int = 12

    def __init__(self):
        self._validators: Dict[str, RuleCheck] = {
            "LOCK_005": self._validate_lock_005,
            "SESS_004": self._validate_sess_004,
            "SESS_005": self._validate_sess_005,
            "PWD_001": self._validate_pwd_001,
            "PWD_002": self._validate_pwd_002,
            "AUTH_004": self._validate_auth_004,
            "OTP_001": self._validate_otp_001,
            "OTP_002": self._validate_otp_002,
            "OTP_003": self._validate_otp_003,
        }

    def validate(self, config: SecurityConfig) -> ValidationResult:
        """
        Valide une config contre TOUS les invariants.
        Retourne TOUTES les erreurs (pas fail-fast).
        """
        errors: List[ValidationError] = []
        warnings: List[ValidationError] = []

        for rule_id in self._validators:
            error = self.validate_rule(rule_id, config)
            if error:
                if error.severity == ValidationSeverity.BLOCKING:
                    errors.append(error)
                elif error.severity == ValidationSeverity.WARNING:
                    warnings.append(error)

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            checked_at=datetime.now(timezone.utc),
        )

    def validate_rule(self, rule_id: str, config: SecurityConfig) -> Optional[ValidationError]:
        """Valide UNE règle spécifique."""
        if rule_id not in self._validators:
            return ValidationError(
                rule_id=rule_id,
                message=f"Règle inconnue: {rule_id}",
                location="config",
                severity=ValidationSeverity.BLOCKING,
            )

        return self._validators[rule_id](config)

    def _error(self, rule_id: str, message: str, location: str, value: object) -> ValidationError:
        invariant = ALL_INVARIANTS[rule_id]
        severity = (
            ValidationSeverity.WARNING
            if invariant.severity == Severity.WARNING
            else ValidationSeverity.BLOCKING
        )
        return ValidationError(
            rule_id=rule_id,
            message=message,
            location=location,
            value=str(value),
            severity=severity,
        )

    def _validate_lock_005(self, config: SecurityConfig) -> Optional[ValidationError]:
        """LOCK_005: Seuil d'échecs MAX 10 tentatives."""
        if config.max_login_attempts > self.MAX_LOGIN_ATTEMPTS:
            return self._error(
                "LOCK_005",
                f"max_login_attempts {config.max_login_attempts} dépasse le maximum de {self.MAX_LOGIN_ATTEMPTS}",
                "max_login_attempts",
                config.max_login_attempts,
            )
        return None

    def _validate_sess_004(self, config: SecurityConfig) -> Optional[ValidationError]:
        """SESS_004: Balayage au moins aussi fréquent que la durée de session."""
        if config.session_sweep_interval > config.session_timeout:
            return self._error(
                "SESS_004",
                "session_sweep_interval_ms supérieur à session_timeout_ms",
                "session_sweep_interval_ms",
                config.session_sweep_interval_ms,
            )
        return None

    def _validate_sess_005(self, config: SecurityConfig) -> Optional[ValidationError]:
        """SESS_005: Durée de session MAX 24 heures."""
        if config.session_timeout > self.MAX_SESSION_TIMEOUT:
            return self._error(
                "SESS_005",
                f"Durée de session {config.session_timeout} dépasse le maximum de 24h",
                "session_timeout_ms",
                config.session_timeout_ms,
            )
        return None

    def _validate_pwd_001(self, config: SecurityConfig) -> Optional[ValidationError]:
        """PWD_001: Longueur minimale 8 caractères au moins."""
        min_length = config.password_policy.min_length
        if min_length < self.MIN_PASSWORD_LENGTH:
            return self._error(
                "PWD_001",
                f"Longueur minimale {min_length} inférieure à {self.MIN_PASSWORD_LENGTH}",
                "password_policy.min_length",
                min_length,
            )
        return None

    def _validate_pwd_002(self, config: SecurityConfig) -> Optional[ValidationError]:
        """PWD_002: Longueur recommandée 12 caractères."""
        min_length = config.password_policy.min_length
        if self.MIN_PASSWORD_LENGTH <= min_length < self.RECOMMENDED_PASSWORD_LENGTH:
            return self._error(
                "PWD_002",
                f"Longueur minimale {min_length} inférieure à la recommandation ({self.RECOMMENDED_PASSWORD_LENGTH})",
                "password_policy.min_length",
                min_length,
            )
        return None

    def _validate_auth_004(self, config: SecurityConfig) -> Optional[ValidationError]:
        """AUTH_004: Jeton MFA temporaire MAX 10 minutes."""
        if config.mfa_token_ttl > self.MAX_MFA_TOKEN_TTL:
            return self._error(
                "AUTH_004",
                "mfa_token_ttl_ms dépasse 10 minutes",
                "mfa_token_ttl_ms",
                config.mfa_token_ttl_ms,
            )
        return None

    def _validate_otp_001(self, config: SecurityConfig) -> Optional[ValidationError]:
        """OTP_001: Code OTP 6 chiffres minimum."""
        if config.otp_length < self.MIN_OTP_LENGTH:
            return self._error(
                "OTP_001",
                f"otp_length {config.otp_length} inférieur à {self.MIN_OTP_LENGTH}",
                "otp_length",
                config.otp_length,
            )
        return None

    def _validate_otp_002(self, config: SecurityConfig) -> Optional[ValidationError]:
        """OTP_002: Expiration OTP MAX 10 minutes."""
        if config.otp_expiry > self.MAX_OTP_EXPIRY:
            return self._error(
                "OTP_002",
                "otp_expiry_ms dépasse 10 minutes",
                "otp_expiry_ms",
                config.otp_expiry_ms,
            )
        return None

    def _validate_otp_003(self, config: SecurityConfig) -> Optional[ValidationError]:
        """OTP_003: Tentatives OTP MAX 5."""
        if config.otp_max_attempts > self.MAX_OTP_ATTEMPTS:
            return self._error(
                "OTP_003",
                f"otp_max_attempts {config.otp_max_attempts} dépasse {self.MAX_OTP_ATTEMPTS}",
                "otp_max_attempts",
                config.otp_max_attempts,
            )
        return None
