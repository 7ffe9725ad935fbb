"""
HTML bodies for the transactional emails sent by EmailService.

Every function returns `(subject, html)`. Names supplied by users are
HTML-escaped and tokens are URL-quoted before they are interpolated.
"""

from datetime import datetime, timezone
from html import escape
from typing import Tuple
from urllib.parse import quote

from caddie.config import settings

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SIGNATURE = "<p>See you on the course,<br>The CaddieAI Team</p>"


def _utc(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def _link(path: str, token: str = "") -> str:
    base = settings.frontend_base_url.rstrip("/")
    if token:
        return f"{base}{path}?token={quote(token, safe='')}"
    return f"{base}{path}"


def _page(heading: str, *paragraphs: str) -> str:
    body = "\n".join(paragraphs)
    return (
        "<html>\n<body>\n"
        f"<h2>{heading}</h2>\n"
        f"{body}\n"
        "<br>\n"
        f"{SIGNATURE}\n"
        "</body>\n</html>"
    )


def verification_email(first_name: str, token: str) -> Tuple[str, str]:
    name = escape(first_name)
    hours = settings.email_verification_expiration_hours
    html = _page(
        f"Welcome to CaddieAI, {name}!",
        "<p>Thanks for joining. Confirm your email address to activate your account:</p>",
        f'<p><a href="{_link("/verify-email", token)}">Confirm my email</a></p>',
        f"<p>The link is valid for {hours} hours.</p>",
        "<p>Didn't sign up? You can safely ignore this message.</p>",
    )
    return "Verify Your CaddieAI Account", html


def password_reset_email(first_name: str, token: str) -> Tuple[str, str]:
    name = escape(first_name)
    hours = settings.password_reset_expiration_hours
    html = _page(
        "Password Reset Request",
        f"<p>Hi {name},</p>",
        "<p>We received a request to reset your password. Choose a new one here:</p>",
        f'<p><a href="{_link("/reset-password", token)}">Choose a new password</a></p>',
        f"<p>The link is valid for {hours} hour(s).</p>",
        "<p>If you did not ask for a reset, no action is needed and your password stays the same.</p>",
    )
    return "Reset Your CaddieAI Password", html


WELCOME_FEATURES = (
    "Club suggestions tailored to your game",
    "Round and score tracking",
    "Coaching tips from your AI caddie",
    "Insights into how you play each hole",
)


def welcome_email(first_name: str) -> Tuple[str, str]:
    name = escape(first_name)
    features = "\n".join(f"<li>{feature}</li>" for feature in WELCOME_FEATURES)
    html = _page(
        f"Welcome to CaddieAI, {name}!",
        "<p>Your account is verified and ready to go.</p>",
        "<p>With CaddieAI you get:</p>",
        f"<ul>\n{features}\n</ul>",
        f'<p><a href="{_link("/dashboard")}">Open your dashboard</a></p>',
    )
    return "Welcome to CaddieAI!", html


def account_locked_email(first_name: str, locked_until: datetime) -> Tuple[str, str]:
    name = escape(first_name)
    html = _page(
        "Account Security Notice",
        f"<p>Hi {name},</p>",
        "<p>After several failed sign-in attempts your CaddieAI account has been locked for a short while.</p>",
        f"<p>It will unlock automatically at {_utc(locked_until)} UTC.</p>",
        "<p>If those attempts were not you, change your password once the account is unlocked.</p>",
        "<p>Need help sooner? Contact our support team.</p>",
    )
    return "CaddieAI Account Temporarily Locked", html


def password_changed_email(first_name: str, changed_at: datetime) -> Tuple[str, str]:
    name = escape(first_name)
    html = _page(
        "Password Changed Successfully",
        f"<p>Hi {name},</p>",
        "<p>The password for your CaddieAI account was just changed.</p>",
        f"<p>Changed at: {_utc(changed_at)} UTC</p>",
        "<p>If you did not make this change, contact our support team right away.</p>",
    )
    return "CaddieAI Password Changed", html
