"""
CaddieAI Backend — Email Service Unit Tests
============================================

What we test:
    ✅ Templates: subjects, escaped names, URL-quoted tokens, UTC timestamps
    ✅ send_email never raises and reports delivery as a bool
    ✅ Transient SMTP errors are retried, permanent ones are not
    ✅ Circuit breaker state transitions (CLOSED → OPEN → HALF_OPEN)
"""

import smtplib
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from tenacity import wait_none

from caddie.config import settings
from caddie.exceptions import CircuitBreakerOpenError, EmailDeliveryError
from caddie.services import email_templates
from caddie.services.email_service import (
    CircuitBreaker,
    EmailService,
    SmtpTransport,
    is_transient_smtp_error,
)


@pytest.fixture
def smtp_settings(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_username", "mailer")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    monkeypatch.setattr(settings, "frontend_base_url", "https://app.caddieai.com")


@pytest.fixture
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(SmtpTransport._send_with_retry.retry, "wait", wait_none())


class TestTemplates:

    def test_verification_link_quotes_token(self, smtp_settings):
        subject, body = email_templates.verification_email("Sam", "a+b/c=")
        assert subject == "Verify Your CaddieAI Account"
        assert "https://app.caddieai.com/verify-email?token=a%2Bb%2Fc%3D" in body
        assert "24 hours" in body

    def test_names_are_escaped(self):
        _, body = email_templates.password_reset_email("<script>", "tok")
        assert "<script>" not in body
        assert "&lt;script&gt;" in body

    def test_locked_until_is_rendered_in_utc(self):
        eastern = timezone(timedelta(hours=-5))
        _, body = email_templates.account_locked_email("Sam", datetime(2026, 5, 1, 10, 0, tzinfo=eastern))
        assert "2026-05-01 15:00:00 UTC" in body

    def test_welcome_lists_features(self):
        subject, body = email_templates.welcome_email("Sam")
        assert subject == "Welcome to CaddieAI!"
        assert body.count("<li>") == len(email_templates.WELCOME_FEATURES)


class TestSendEmail:

    @pytest.mark.asyncio
    async def test_unconfigured_smtp_skips_delivery(self, monkeypatch):
        monkeypatch.setattr(settings, "smtp_host", "")
        transport = MagicMock()
        transport.send = AsyncMock()
        service = EmailService(transport=transport)

        assert await service.send_email("a@example.com", "Hi", "<p>x</p>") is False
        transport.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delivered(self, smtp_settings):
        transport = MagicMock()
        transport.send = AsyncMock()
        service = EmailService(transport=transport)

        assert await service.send_welcome_email("sam@example.com", "Sam") is True

        message, recipient = transport.send.await_args[0]
        assert recipient == "sam@example.com"
        assert message["Subject"] == "Welcome to CaddieAI!"
        assert message["From"] == "CaddieAI <noreply@caddieai.com>"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            EmailDeliveryError(recipient="sam@example.com"),
            CircuitBreakerOpenError(recovery_time=30),
            RuntimeError("unexpected"),
        ],
    )
    async def test_failures_return_false(self, smtp_settings, error):
        transport = MagicMock()
        transport.send = AsyncMock(side_effect=error)
        service = EmailService(transport=transport)

        assert await service.send_password_changed_email("sam@example.com", "Sam") is False


class TestSmtpTransport:

    def test_transient_classification(self):
        assert is_transient_smtp_error(smtplib.SMTPServerDisconnected()) is True
        assert is_transient_smtp_error(smtplib.SMTPResponseException(421, b"busy")) is True
        assert is_transient_smtp_error(TimeoutError()) is True
        assert is_transient_smtp_error(smtplib.SMTPAuthenticationError(535, b"bad creds")) is False
        assert is_transient_smtp_error(smtplib.SMTPResponseException(550, b"no such user")) is False
        assert is_transient_smtp_error(smtplib.SMTPRecipientsRefused({})) is False

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, no_retry_wait):
        transport = SmtpTransport()
        message = EmailService(transport=transport).build_message("a@example.com", "Hi", "body")

        with patch.object(transport, "_deliver", side_effect=[smtplib.SMTPServerDisconnected(), None]) as deliver:
            await transport.send(message, "a@example.com")

        assert deliver.call_count == 2
        assert transport.circuit_breaker.state == CircuitBreaker.CLOSED

    @pytest.mark.asyncio
    async def test_permanent_failure_is_not_retried(self, no_retry_wait):
        transport = SmtpTransport()
        message = EmailService(transport=transport).build_message("a@example.com", "Hi", "body")
        error = smtplib.SMTPAuthenticationError(535, b"bad creds")

        with patch.object(transport, "_deliver", side_effect=error) as deliver:
            with pytest.raises(EmailDeliveryError):
                await transport.send(message, "a@example.com")

        assert deliver.call_count == 1
        assert transport.circuit_breaker.failure_count == 1

    def test_relay_without_credentials_skips_login(self, monkeypatch):
        monkeypatch.setattr(settings, "smtp_host", "relay.internal")
        monkeypatch.setattr(settings, "smtp_port", 25)
        monkeypatch.setattr(settings, "smtp_username", "")
        monkeypatch.setattr(settings, "smtp_password", "")
        monkeypatch.setattr(settings, "smtp_enable_ssl", False)
        transport = SmtpTransport()
        message = EmailService(transport=transport).build_message("a@example.com", "Hi", "body")

        with patch("caddie.services.email_service.smtplib.SMTP") as smtp:
            transport._deliver(message, "a@example.com")

        assert settings.smtp_configured is True
        server = smtp.return_value
        server.login.assert_not_called()
        server.starttls.assert_not_called()
        server.sendmail.assert_called_once()

    def test_credentials_are_used_when_given(self, smtp_settings):
        transport = SmtpTransport()
        message = EmailService(transport=transport).build_message("a@example.com", "Hi", "body")

        with patch("caddie.services.email_service.smtplib.SMTP") as smtp:
            transport._deliver(message, "a@example.com")

        smtp.return_value.login.assert_called_once_with("mailer", "secret")


class TestSmtpSettings:

    def test_username_without_password_is_reported(self, monkeypatch):
        monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
        monkeypatch.setattr(settings, "smtp_username", "mailer")
        monkeypatch.setattr(settings, "smtp_password", "")

        with pytest.raises(ValueError, match="SMTP_PASSWORD"):
            settings.validate_required_for_production()

    def test_host_alone_is_enough(self, monkeypatch):
        monkeypatch.setattr(settings, "smtp_host", "relay.internal")
        monkeypatch.setattr(settings, "smtp_username", "")
        monkeypatch.setattr(settings, "smtp_password", "")
        monkeypatch.setattr(settings, "frontend_base_url", "https://app.caddieai.com")

        settings.validate_required_for_production()


class TestCircuitBreaker:

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        assert breaker.can_execute() is True
        breaker.record_failure()

        assert breaker.state == CircuitBreaker.OPEN
        with pytest.raises(CircuitBreakerOpenError):
            breaker.can_execute()

    def test_half_open_after_timeout(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        breaker.record_failure()
        breaker.last_failure_time = time.time() - 61

        assert breaker.can_execute() is True
        assert breaker.state == CircuitBreaker.HALF_OPEN

        breaker.record_failure()
        assert breaker.state == CircuitBreaker.OPEN

    def test_success_closes(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        breaker.record_failure()
        breaker.last_failure_time = time.time() - 61
        breaker.can_execute()
        breaker.record_success()

        assert breaker.state == CircuitBreaker.CLOSED
        assert breaker.failure_count == 0
