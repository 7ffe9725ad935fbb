"""
CaddieAI Backend — Email Service (Transactional Notifications)
===============================================================

What:  Sends the account emails (verification, password reset, welcome,
       account locked, password changed) over SMTP.
How:   smtplib delivery runs in a worker thread so the event loop is never
       blocked; tenacity retries transient failures with exponential
       backoff + jitter, and a circuit breaker stops hammering a dead relay.
Who:   Called by the account flows; the health route reads the breaker state.

Failure Semantics:
    EmailService.send_email() never raises. Notification emails are best
    effort: a failed send is logged and reported as False so the calling
    flow (sign-up, password reset) can decide what to tell the user.

Resilience Strategy:
    SmtpTransport.send()
        → circuit breaker check (CircuitBreakerOpenError when OPEN)
        → _send_with_retry(): up to N attempts on transient SMTP/socket errors
        → all attempts failed → record_failure(), EmailDeliveryError
"""

import asyncio
import logging
import smtplib
import ssl
import time
import uuid
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from caddie.config import settings
from caddie.exceptions import CircuitBreakerOpenError, EmailDeliveryError
from caddie.services import email_templates

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════


class CircuitBreaker:
    """
    Circuit breaker guarding the SMTP relay.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN
        OPEN (rejecting all sends)
            → can_execute() raises CircuitBreakerOpenError
            → After recovery_timeout seconds: transition to HALF_OPEN
        HALF_OPEN (testing recovery)
            → One send goes through
            → Success: CLOSED; failure: OPEN again

    Not thread-safe: the counters are only touched from the event loop,
    never from the worker threads that perform the SMTP I/O.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True when a send may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("SMTP circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("SMTP circuit breaker transitioning to CLOSED (relay recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("SMTP circuit breaker returning to OPEN (test send failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "SMTP circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# SMTP Transport
# ══════════════════════════════════════════════════════════════════════════


def is_transient_smtp_error(exc: BaseException) -> bool:
    """
    Connection drops, timeouts and 4xx replies are worth retrying.
    Authentication failures and 5xx rejections will not fix themselves.
    """
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return False
    if isinstance(exc, (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError)):
        return True
    if isinstance(exc, smtplib.SMTPResponseException):
        return 400 <= exc.smtp_code < 500
    if isinstance(exc, smtplib.SMTPRecipientsRefused):
        return False
    return isinstance(exc, (TimeoutError, ConnectionError, OSError))


class SmtpTransport:
    """Delivers fully built MIME messages through the configured relay."""

    def __init__(self) -> None:
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.email_cb_failure_threshold,
            recovery_timeout=settings.email_cb_recovery_timeout,
        )

    async def send(self, message: MIMEMultipart, recipient: str) -> None:
        """
        Raises:
            CircuitBreakerOpenError: Too many recent failures.
            EmailDeliveryError: Delivery failed after retries.
        """
        send_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        try:
            await self._send_with_retry(message, recipient, send_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] SMTP delivery failed: %s", send_id, str(e))
            raise EmailDeliveryError(
                recipient=recipient,
                context={"send_id": send_id, "error_type": type(e).__name__},
            ) from e

        self.circuit_breaker.record_success()

    @retry(
        retry=retry_if_exception(is_transient_smtp_error),
        stop=stop_after_attempt(settings.email_retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.email_retry_min_wait,
            max=settings.email_retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _send_with_retry(self, message: MIMEMultipart, recipient: str, send_id: str) -> None:
        start_time = time.time()
        await asyncio.to_thread(self._deliver, message, recipient)
        logger.info(
            "[%s] Email delivered in %.0fms",
            send_id,
            (time.time() - start_time) * 1000,
        )

    def _deliver(self, message: MIMEMultipart, recipient: str) -> None:
        """Blocking SMTP conversation; runs in a worker thread."""
        context = ssl.create_default_context()
        if settings.smtp_port == 465:
            server = smtplib.SMTP_SSL(
                settings.smtp_host, settings.smtp_port,
                timeout=settings.smtp_timeout, context=context,
            )
        else:
            server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)

        with server:
            if settings.smtp_port != 465 and settings.smtp_enable_ssl:
                server.starttls(context=context)
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password)
            server.sendmail(settings.email_from_address, [recipient], message.as_string())


# ══════════════════════════════════════════════════════════════════════════
# Email Service
# ══════════════════════════════════════════════════════════════════════════


class EmailService:
    def __init__(self, transport: Optional[SmtpTransport] = None):
        self.transport = transport or SmtpTransport()

    async def send_verification_email(self, email: str, first_name: str, token: str) -> bool:
        subject, body = email_templates.verification_email(first_name, token)
        return await self.send_email(email, subject, body)

    async def send_password_reset_email(self, email: str, first_name: str, token: str) -> bool:
        subject, body = email_templates.password_reset_email(first_name, token)
        return await self.send_email(email, subject, body)

    async def send_welcome_email(self, email: str, first_name: str) -> bool:
        subject, body = email_templates.welcome_email(first_name)
        return await self.send_email(email, subject, body)

    async def send_account_locked_email(
        self, email: str, first_name: str, locked_until: datetime
    ) -> bool:
        subject, body = email_templates.account_locked_email(first_name, locked_until)
        return await self.send_email(email, subject, body)

    async def send_password_changed_email(
        self, email: str, first_name: str, changed_at: Optional[datetime] = None
    ) -> bool:
        subject, body = email_templates.password_changed_email(
            first_name, changed_at or datetime.now(timezone.utc)
        )
        return await self.send_email(email, subject, body)

    def build_message(self, to: str, subject: str, body: str, is_html: bool = True) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = formataddr((settings.email_from_name, settings.email_from_address))
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(body, "html" if is_html else "plain", "utf-8"))
        return message

    async def send_email(self, to: str, subject: str, body: str, is_html: bool = True) -> bool:
        """
        Send one message. Returns True on delivery, False otherwise.

        Never raises: delivery problems (including an open circuit) are
        logged and reported through the return value.
        """
        if not settings.smtp_configured:
            logger.warning("SMTP is not configured; email '%s' to %s was not sent", subject, to)
            return False

        try:
            message = self.build_message(to, subject, body, is_html)
            await self.transport.send(message, to)
        except (EmailDeliveryError, CircuitBreakerOpenError) as e:
            logger.error("Failed to send email '%s' to %s: %s", subject, to, e.message)
            return False
        except Exception as e:
            logger.error("Failed to send email '%s' to %s: %s", subject, to, str(e), exc_info=True)
            return False

        logger.info("Email '%s' sent to %s", subject, to)
        return True

    @property
    def circuit_state(self) -> str:
        return self.transport.circuit_breaker.state


# ── Singleton Instance ────────────────────────────────────────────────────
email_service = EmailService()
