"""
Tests unitaires: Core - Config Validator

Tests des invariants:
- LOCK_005: Seuil d'échecs MAX 10 tentatives
- SESS_004: Balayage périodique des sessions expirées
- SESS_005: Durée de session MAX 24 heures
- PWD_001: Longueur minimale 8 caractères
- PWD_002: Longueur recommandée 12 caractères (avertissement)
- AUTH_004: Jeton MFA temporaire MAX 10 minutes
- OTP_001 / OTP_002 / OTP_003: Longueur, expiration, tentatives OTP
"""

import pytest

from authcore.core import (
    ConfigValidator,
    PasswordPolicy,
    SecurityConfig,
    ValidationSeverity,
)


@pytest.fixture
def validator() -> ConfigValidator:
    return ConfigValidator()


def rule_ids(errors) -> set:
    return {e.rule_id for e in errors}


class TestConfigValidator:
    """Tests pour ConfigValidator."""

    def test_defaults_are_valid(self, validator: ConfigValidator) -> None:
        result = validator.validate(SecurityConfig())

        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []
        assert result.checked_at.tzinfo is not None

    def test_LOCK_005_too_many_attempts(self, validator: ConfigValidator) -> None:
        result = validator.validate(SecurityConfig(max_login_attempts=11))

        assert result.valid is False
        assert rule_ids(result.errors) == {"LOCK_005"}
        assert result.errors[0].location == "max_login_attempts"
        assert result.errors[0].value == "11"

    def test_LOCK_005_limit_accepted(self, validator: ConfigValidator) -> None:
        assert validator.validate_rule("LOCK_005", SecurityConfig(max_login_attempts=10)) is None

    def test_SESS_004_sweep_longer_than_session(self, validator: ConfigValidator) -> None:
        config = SecurityConfig(session_timeout_ms=60_000, session_sweep_interval_ms=120_000)

        result = validator.validate(config)

        assert result.valid is True
        assert rule_ids(result.warnings) == {"SESS_004"}
        assert result.warnings[0].severity == ValidationSeverity.WARNING

    def test_SESS_005_session_over_24h(self, validator: ConfigValidator) -> None:
        config = SecurityConfig(session_timeout_ms=25 * 3_600_000)

        error = validator.validate_rule("SESS_005", config)

        assert error is not None
        assert error.severity == ValidationSeverity.BLOCKING

    def test_PWD_001_min_length_below_8(self, validator: ConfigValidator) -> None:
        config = SecurityConfig(password_policy=PasswordPolicy(min_length=6))

        result = validator.validate(config)

        assert result.valid is False
        assert rule_ids(result.errors) == {"PWD_001"}
        assert result.warnings == []

    def test_PWD_002_min_length_below_recommendation(self, validator: ConfigValidator) -> None:
        config = SecurityConfig(password_policy=PasswordPolicy(min_length=10))

        result = validator.validate(config)

        assert result.valid is True
        assert rule_ids(result.warnings) == {"PWD_002"}

    def test_AUTH_004_mfa_token_ttl(self, validator: ConfigValidator) -> None:
        config = SecurityConfig(mfa_token_ttl_ms=11 * 60_000)

        assert rule_ids(validator.validate(config).errors) == {"AUTH_004"}

    @pytest.mark.parametrize(
        "overrides,rule_id",
        [
            ({"otp_length": 5}, "OTP_001"),
            ({"otp_expiry_ms": 11 * 60_000}, "OTP_002"),
            ({"otp_max_attempts": 6}, "OTP_003"),
        ],
    )
    def test_otp_rules(self, validator: ConfigValidator, overrides: dict, rule_id: str) -> None:
        result = validator.validate(SecurityConfig(**overrides))

        assert result.valid is False
        assert rule_ids(result.errors) == {rule_id}

    def test_all_errors_reported(self, validator: ConfigValidator) -> None:
        """Pas fail-fast: toutes les erreurs sont retournées."""
        config = SecurityConfig(
            max_login_attempts=20,
            otp_length=4,
            otp_max_attempts=9,
            password_policy=PasswordPolicy(min_length=4),
        )

        result = validator.validate(config)

        assert rule_ids(result.errors) == {"LOCK_005", "OTP_001", "OTP_003", "PWD_001"}

    def test_unknown_rule(self, validator: ConfigValidator) -> None:
        error = validator.validate_rule("XXX_999", SecurityConfig())

        assert error is not None
        assert "Règle inconnue" in error.message
        assert error.severity == ValidationSeverity.BLOCKING
