"""
Tests unitaires: Logging - Structured Logger

Tests des invariants:
- LOG_001: Format JSON structuré obligatoire
- LOG_002: Champs obligatoires: timestamp, level, correlation_id, message
- LOG_003: Timestamp format ISO 8601 avec timezone UTC
- LOG_004: Niveaux: DEBUG, INFO, WARN, ERROR, CRITICAL
- LOG_005: Données sensibles JAMAIS en clair (masquées)
"""

import json
import re
from datetime import datetime

import pytest

from authcore.logging import (
    ContextualLogger,
    IStructuredLogger,
    LogConfig,
    LogLevel,
    MissingRequiredFieldError,
    SensitiveMasker,
    StructuredLogger,
)


def make_logger(name: str = "authcore.test", **kwargs) -> StructuredLogger:
    return StructuredLogger(name, output_handler=lambda line: None, **kwargs)


class TestLOG001JsonFormat:
    """Tests LOG_001: Format JSON structuré obligatoire."""

    def test_LOG_001_output_is_valid_json(self) -> None:
        """LOG_001: Output est JSON valide."""
        entry = make_logger().info("Test message")
        assert entry is not None

        parsed = json.loads(entry.to_json())
        assert isinstance(parsed, dict)

    def test_LOG_001_json_includes_extra_and_logger_name(self) -> None:
        """LOG_001: JSON inclut extra et nom du logger."""
        entry = make_logger("authcore.sessions").info("Session created", principal_id="u-123")
        assert entry is not None

        parsed = json.loads(entry.to_json())
        assert parsed["logger"] == "authcore.sessions"
        assert parsed["extra"]["principal_id"] == "u-123"

    def test_LOG_001_output_handler_receives_json(self, log_capture) -> None:
        """LOG_001: Output handler reçoit JSON."""
        logger = StructuredLogger("test", output_handler=log_capture)
        logger.info("Test message")

        assert len(log_capture.lines) == 1
        assert json.loads(log_capture.lines[0])["message"] == "Test message"

    def test_LOG_001_unicode_preserved(self) -> None:
        """LOG_001: JSON gère unicode correctement."""
        entry = make_logger().info("Message avec accents: éàü")
        assert entry is not None
        assert "éàü" in json.loads(entry.to_json())["message"]

    def test_LOG_001_empty_extra_not_in_json(self) -> None:
        """LOG_001: Extra vide non inclus dans JSON."""
        entry = make_logger().info("Test")
        assert entry is not None
        assert "extra" not in json.loads(entry.to_json())


class TestLOG002RequiredFields:
    """Tests LOG_002: Champs obligatoires."""

    def test_LOG_002_all_fields_present(self) -> None:
        """LOG_002: Tous les champs obligatoires présents."""
        entry = make_logger().info("Test")
        assert entry is not None

        parsed = json.loads(entry.to_json())
        for key in ("timestamp", "level", "correlation_id", "message"):
            assert key in parsed

    def test_LOG_002_message_required(self) -> None:
        """LOG_002: Message requis."""
        with pytest.raises(MissingRequiredFieldError) as exc:
            make_logger().info("")

        assert "message" in str(exc.value)
        assert exc.value.field_name == "message"

    def test_LOG_002_explicit_correlation_id(self) -> None:
        """LOG_002: Correlation ID explicite utilisé."""
        entry = make_logger().log(LogLevel.INFO, "Test", correlation_id="corr-explicit")
        assert entry is not None
        assert entry.correlation_id == "corr-explicit"

    def test_LOG_002_default_correlation_id(self) -> None:
        """LOG_002: Correlation ID par défaut utilisé."""
        logger = make_logger()
        logger.set_default_correlation("default-corr")

        entry = logger.info("Test")
        assert entry is not None
        assert entry.correlation_id == "default-corr"

    def test_LOG_002_auto_generated_correlation_id(self) -> None:
        """LOG_002: Correlation ID auto-généré (UUID) si non fourni."""
        entry = make_logger().info("Test")
        assert entry is not None
        assert len(entry.correlation_id) == 36
        assert entry.correlation_id.count("-") == 4

    def test_LOG_002_empty_name_rejected(self) -> None:
        """Nom de logger obligatoire."""
        with pytest.raises(ValueError):
            StructuredLogger("  ")


class TestLOG003TimestampFormat:
    """Tests LOG_003: Timestamp format ISO 8601 avec timezone UTC."""

    ISO_8601_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

    def test_LOG_003_timestamp_iso_8601_format(self) -> None:
        """LOG_003: Timestamp ISO 8601, millisecondes, suffixe Z."""
        entry = make_logger().info("Test")
        assert entry is not None
        assert self.ISO_8601_PATTERN.match(entry.timestamp)

    def test_LOG_003_timestamp_parseable_with_timezone(self) -> None:
        """LOG_003: Timestamp parseable avec timezone."""
        entry = make_logger().info("Test")
        assert entry is not None

        parsed = datetime.fromisoformat(entry.timestamp.replace("Z", "+00:00"))
        assert parsed.tzinfo is not None


class TestLOG004LogLevels:
    """Tests LOG_004: Niveaux DEBUG, INFO, WARN, ERROR, CRITICAL."""

    @pytest.mark.parametrize(
        "method,level",
        [
            ("info", LogLevel.INFO),
            ("warn", LogLevel.WARN),
            ("error", LogLevel.ERROR),
            ("critical", LogLevel.CRITICAL),
        ],
    )
    def test_LOG_004_level_methods(self, method: str, level: LogLevel) -> None:
        """LOG_004: Chaque méthode produit son niveau."""
        entry = getattr(make_logger(), method)("message")
        assert entry is not None
        assert entry.level == level

    def test_LOG_004_debug_filtered_by_default(self) -> None:
        """LOG_004: DEBUG filtré avec min_level INFO."""
        logger = make_logger()
        assert logger.debug("Debug message") is None
        assert logger.get_entries() == []

    def test_LOG_004_debug_when_enabled(self) -> None:
        """LOG_004: DEBUG émis si min_level DEBUG."""
        logger = make_logger(config=LogConfig(min_level=LogLevel.DEBUG))
        entry = logger.debug("Debug message")
        assert entry is not None
        assert entry.level == LogLevel.DEBUG

    def test_LOG_004_priority_order(self) -> None:
        """LOG_004: Ordre de sévérité."""
        priorities = [LogLevel.get_priority(level) for level in LogLevel]
        assert priorities == sorted(priorities)


class TestLOG005SensitiveMasking:
    """Tests LOG_005: Données sensibles masquées dans extra."""

    def test_LOG_005_password_masked(self) -> None:
        """LOG_005: Mot de passe jamais en clair."""
        entry = make_logger().info("Login attempt", password="hunter2", principal_id="u-1")
        assert entry is not None

        assert entry.extra["password"] == SensitiveMasker.MASK_VALUE
        assert entry.extra["principal_id"] == "u-1"
        assert "hunter2" not in entry.to_json()

    def test_LOG_005_nested_otp_masked(self) -> None:
        """LOG_005: Code OTP imbriqué masqué."""
        entry = make_logger().info("Challenge", challenge={"otp": "123456", "channel": "sms"})
        assert entry is not None

        assert entry.extra["challenge"]["otp"] == SensitiveMasker.MASK_VALUE
        assert entry.extra["challenge"]["channel"] == "sms"

    def test_LOG_005_masking_can_be_disabled(self) -> None:
        """Masquage désactivable par configuration."""
        logger = make_logger(config=LogConfig(mask_sensitive=False))
        entry = logger.info("Debug", token="abc")
        assert entry is not None
        assert entry.extra["token"] == "abc"


class TestLoggerBuffer:
    """Tampon borné et utilitaires."""

    def test_implements_interface(self) -> None:
        assert isinstance(make_logger(), IStructuredLogger)

    def test_buffer_bounded(self) -> None:
        """Tampon limité à max_buffered_entries."""
        logger = make_logger(config=LogConfig(max_buffered_entries=3))
        for i in range(5):
            logger.info(f"msg {i}")

        messages = [e.message for e in logger.get_entries()]
        assert messages == ["msg 2", "msg 3", "msg 4"]

    def test_entries_by_level_and_clear(self) -> None:
        logger = make_logger()
        logger.info("a")
        logger.error("b")

        assert [e.message for e in logger.get_entries_by_level(LogLevel.ERROR)] == ["b"]

        logger.clear_entries()
        assert logger.get_entries() == []

    def test_child_shares_output(self, log_capture) -> None:
        """Logger enfant: nom suffixé, même sortie."""
        parent = StructuredLogger("authcore", output_handler=log_capture)
        child = parent.child("otp")

        child.info("Code sent")

        assert child.name == "authcore.otp"
        assert json.loads(log_capture.lines[0])["logger"] == "authcore.otp"


class TestContextualLogger:
    """Correlation ID fixé pour un parcours."""

    def test_context_pins_correlation_id(self) -> None:
        ctx = make_logger().with_context("flow-42")
        assert isinstance(ctx, ContextualLogger)

        first = ctx.info("step 1")
        second = ctx.warn("step 2")

        assert first is not None and second is not None
        assert first.correlation_id == second.correlation_id == "flow-42"

    def test_context_generates_correlation_id(self) -> None:
        ctx = make_logger().with_context()
        assert len(ctx.correlation_id) == 36
