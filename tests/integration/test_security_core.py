"""
Tests d'intégration: AuthSecurityCore

Parcours complets à travers la façade: mot de passe, verrouillage, OTP,
sessions, blocage opérateur, chiffrement, posture et événements.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from authcore import AuthSecurityCore
from authcore.audit import SecurityEventType
from authcore.auth import AuthErrorCode, AuthFailure, AuthLocked, AuthSuccess, ICredentialVerifier, InMemoryCredentialStore
from authcore.core import ConfigIntegrityError, SecurityConfig
from authcore.logging import StructuredLogger
from authcore.otp import DeliveryChannelType


IP = "10.0.0.5"
IDENTIFIER = "alice@example.com"
PASSWORD = "Str0ng!Passw0rd"


@pytest.fixture
def core(clock, log_capture):
    core = AuthSecurityCore(
        verifier=InMemoryCredentialStore(rounds=4),
        logger=StructuredLogger("authcore", output_handler=log_capture),
        clock=clock,
    )
    core.register_credentials(IDENTIFIER, PASSWORD, principal_id="user-1")
    return core


def event_types(core):
    return [e.event_type for e in core.events.get_events()]


class TestPasswordFlow:
    """Parcours mot de passe de bout en bout."""

    @pytest.mark.asyncio
    async def test_lockout_scenario(self, core, clock):
        """10.0.0.5: 5 échecs → verrouillé → succès après la durée de verrouillage."""
        results = [await core.authenticate(IDENTIFIER, "Wr0ng!Passw0rd", IP) for _ in range(5)]
        assert [r.attempts_remaining for r in results] == [4, 3, 2, 1, 0]
        assert all(isinstance(r, AuthFailure) for r in results)

        locked = await core.authenticate(IDENTIFIER, PASSWORD, IP)
        assert isinstance(locked, AuthLocked)
        assert locked.code == AuthErrorCode.ACCOUNT_LOCKED

        clock.advance(milliseconds=core.config.lockout_duration_ms)
        result = await core.authenticate(IDENTIFIER, PASSWORD, IP)

        assert isinstance(result, AuthSuccess)
        assert result.session.expires_at == clock() + timedelta(milliseconds=core.config.session_timeout_ms)

        validation = await core.validate_session(result.session.id)
        assert validation.valid is True

    @pytest.mark.asyncio
    async def test_terminate_session_emits_event(self, core):
        result = await core.authenticate(IDENTIFIER, PASSWORD, IP)

        assert await core.terminate_session(result.session.id) is True
        assert await core.terminate_session(result.session.id) is False

        (event,) = core.events.get_events(SecurityEventType.SESSION_TERMINATED)
        assert event.principal_id == "user-1"
        assert (await core.validate_session(result.session.id)).valid is False

    def test_register_rejects_weak_password(self, core):
        with pytest.raises(ValueError) as exc_info:
            core.register_credentials("bob@example.com", "password")

        assert "Password policy violation" in str(exc_info.value)
        assert "missing_uppercase" in str(exc_info.value)

    def test_register_requires_builtin_store(self, clock):
        class DirectoryVerifier(ICredentialVerifier):
            def verify(self, identifier, secret):
                return None

        core = AuthSecurityCore(verifier=DirectoryVerifier(), clock=clock)

        with pytest.raises(ValueError):
            core.register_credentials("bob", PASSWORD)

    def test_validate_password(self, core):
        result = core.validate_password("Str0ng!Passw0rd")

        assert result.valid is True
        assert result.strength.label.value == "strong"


class TestOtpFlow:
    """Parcours OTP de bout en bout."""

    @pytest.mark.asyncio
    async def test_otp_round_trip(self, core):
        initiation = await core.initiate_otp("user-1", DeliveryChannelType.SMS, "+15551231234", origin_ip=IP)
        outbox = core.delivery.transport_for(DeliveryChannelType.SMS)
        code = outbox.last_message_to("+15551231234").payload.code

        result = await core.verify_otp(initiation.challenge_id, code)

        assert isinstance(result, AuthSuccess)
        assert result.session.channel == "sms"
        assert (await core.validate_session(result.session.id)).valid is True
        assert event_types(core) == [SecurityEventType.OTP_SENT, SecurityEventType.OTP_VERIFIED]

    @pytest.mark.asyncio
    async def test_otp_and_password_share_sessions(self, core):
        await core.authenticate(IDENTIFIER, PASSWORD, IP)
        initiation = await core.initiate_otp("user-1", "email", "user@example.com")
        code = core.delivery.transport_for(DeliveryChannelType.EMAIL).last_message_to("user@example.com").payload.code
        await core.verify_otp(initiation.challenge_id, code)

        assert len(await core.sessions.get_principal_sessions("user-1")) == 2

    @pytest.mark.asyncio
    async def test_logs_never_contain_destination_or_password(self, core, log_capture):
        await core.authenticate(IDENTIFIER, PASSWORD, IP)
        await core.initiate_otp("user-1", DeliveryChannelType.SMS, "+15551231234")

        output = "".join(log_capture.lines)
        assert PASSWORD not in output
        assert "+15551231234" not in output


class TestOperatorBlocking:
    """Blocage IP par l'opérateur."""

    @pytest.mark.asyncio
    async def test_block_and_unblock(self, core):
        await core.block_ip(IP, "brute force from SIEM")

        assert core.is_ip_blocked(IP) is True
        blocked = await core.authenticate(IDENTIFIER, PASSWORD, IP)
        assert blocked.code == AuthErrorCode.IP_BLOCKED

        assert await core.unblock_ip(IP) is True
        assert await core.unblock_ip(IP) is False
        assert isinstance(await core.authenticate(IDENTIFIER, PASSWORD, IP), AuthSuccess)

        types = event_types(core)
        assert types[0] == SecurityEventType.IP_BLOCKED
        assert SecurityEventType.IP_UNBLOCKED in types
        assert types[-1] == SecurityEventType.AUTH_SUCCESS


class TestEncryption:
    """Chiffrement des champs via la façade."""

    def test_encrypt_decrypt_dict(self, core):
        payload = core.encrypt({"iban": "FR7630006000011234567890189"})

        assert core.decrypt(payload.to_dict()) == {"iban": "FR7630006000011234567890189"}

    def test_encryption_key_injected(self, clock):
        key = b"\x01" * 32
        first = AuthSecurityCore(encryption_key=key, verifier=InMemoryCredentialStore(rounds=4), clock=clock)
        second = AuthSecurityCore(encryption_key=key, verifier=InMemoryCredentialStore(rounds=4), clock=clock)

        assert second.decrypt(first.encrypt([1, 2, 3])) == [1, 2, 3]


class TestLifecycleAndPosture:
    """Démarrage, posture, statistiques."""

    @pytest.mark.asyncio
    async def test_start_stop(self, core):
        await core.start()
        await core.start()
        assert core.is_running is True
        assert core.sessions.is_sweeping is True

        await core.stop()
        assert core.is_running is False
        assert core.sessions.is_sweeping is False

    @pytest.mark.asyncio
    async def test_posture_reflects_tiers(self, core):
        stopped = core.assess_security_posture()
        assert stopped.score == 40
        assert stopped.grade == "F"

        await core.start()
        core.report_threat_tier(active=True)
        try:
            running = core.assess_security_posture()
        finally:
            await core.stop()

        assert running.score == 80
        assert [i.issue for i in running.issues] == ["Network security layer not active"]

    @pytest.mark.asyncio
    async def test_sweep_purges_stale_state(self, core, clock):
        for last_octet in range(1, 4):
            await core.authenticate(IDENTIFIER, "Wr0ng!Passw0rd", f"10.0.1.{last_octet}")
        await core.authenticate(IDENTIFIER, PASSWORD, IP)
        await core.initiate_otp("user-1", DeliveryChannelType.SMS, "+15551231234")

        clock.advance(days=1)
        removed = await core.sweep()

        # 1 session, 3 compteurs, 1 challenge, 1 fenêtre principal, 1 quota
        assert removed == 7
        assert core.lockout.tracked_count == 0
        assert core.otp.active_challenges == 0
        assert core.sessions.active_count == 0

    @pytest.mark.asyncio
    async def test_statistics(self, core):
        await core.authenticate(IDENTIFIER, "Wr0ng!Passw0rd", IP)
        await core.authenticate(IDENTIFIER, PASSWORD, "10.0.0.6")

        stats = core.get_statistics()

        assert stats["sessions"]["active"] == 1
        assert stats["lockout"] == {"locked": 0, "blocked": 0}
        assert stats["events"]["emitted"] == 2
        assert stats["running"] is False
        assert stats["otp"]["channels"] == ["sms", "whatsapp", "telegram", "email", "voice"]

    @pytest.mark.asyncio
    async def test_drain_events(self, core):
        await core.authenticate(IDENTIFIER, PASSWORD, IP)

        drained = core.drain_events()

        assert [e.event_type for e in drained] == [SecurityEventType.AUTH_SUCCESS]
        assert core.events.pending_count == 0


class TestFromYaml:
    """Construction depuis un fichier de configuration."""

    def test_from_yaml(self, tmp_path: Path, clock):
        path = tmp_path / "security.yaml"
        path.write_text("security:\n  max_login_attempts: 3\n  otp_length: 8\n", encoding="utf-8")

        core = AuthSecurityCore.from_yaml(path, clock=clock)

        assert isinstance(core.config, SecurityConfig)
        assert core.config.max_login_attempts == 3
        assert core.lockout.max_attempts == 3

    def test_from_yaml_rejects_blocking_violation(self, tmp_path: Path):
        path = tmp_path / "security.yaml"
        path.write_text("max_login_attempts: 20\notp_length: 4\n", encoding="utf-8")

        with pytest.raises(ConfigIntegrityError) as exc_info:
            AuthSecurityCore.from_yaml(path)

        assert "LOCK_005" in str(exc_info.value)
        assert "OTP_001" in str(exc_info.value)
