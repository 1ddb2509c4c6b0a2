"""
Email Service

One SMTP connection is shared by the whole process. It is opened lazily
on first use and thrown away on any SMTP/socket error, so the next send
reconnects instead of reusing a dead session. Nothing retries here:
callers treat email as best effort and log failures.

Also owns the email verification token lifecycle used by registration.
"""

import logging
import secrets
import smtplib
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from sqlalchemy import delete, select

from campus_connect.core.config import get_settings
from campus_connect.db.models import User, VerificationToken
from campus_connect.db.postgres import get_db_session

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


_transport: Optional[smtplib.SMTP] = None
_transport_lock = threading.RLock()


# ============================================================
# SHARED TRANSPORT
# ============================================================

def _open_transport() -> smtplib.SMTP:
    settings = get_settings()
    server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)
    server.ehlo()
    if settings.smtp_use_tls:
        server.starttls()
        server.ehlo()
    server.login(settings.smtp_username, settings.smtp_password)
    return server


def get_transport() -> smtplib.SMTP:
    """Get or create the shared SMTP transport."""
    global _transport
    with _transport_lock:
        if _transport is None:
            settings = get_settings()
            if not settings.smtp_configured:
                raise EmailDeliveryError("Missing SMTP credentials in environment variables")
            logger.info("Creating SMTP transport to %s:%s", settings.smtp_host, settings.smtp_port)
            _transport = _open_transport()
        return _transport


def reset_transport() -> None:
    """Drop the shared transport; the next send opens a fresh one."""
    global _transport
    with _transport_lock:
        if _transport is not None:
            try:
                _transport.close()
            except (smtplib.SMTPException, OSError) as e:
                logger.debug("Ignoring error while closing SMTP transport: %s", e)
        _transport = None


def build_message(to_email: str, subject: str, html_content: str,
                  text_content: Optional[str] = None) -> MIMEMultipart:
    settings = get_settings()
    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = f'"{settings.email_from_name}" <{settings.email_from}>'
    message["To"] = to_email
    if text_content:
        message.attach(MIMEText(text_content, "plain"))
    message.attach(MIMEText(html_content, "html"))
    return message


def send_email(to_email: str, subject: str, html_content: str,
               text_content: Optional[str] = None) -> None:
    """Send one message over the shared transport. Raises EmailDeliveryError."""
    message = build_message(to_email, subject, html_content, text_content)
    with _transport_lock:
        try:
            get_transport().send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            reset_transport()
            raise EmailDeliveryError(f"Failed to send email to {to_email}: {e}") from e
    logger.info("Email sent to %s (%s)", to_email, subject)


# ============================================================
# VERIFICATION TOKENS
# ============================================================

@dataclass
class VerificationResult:
    success: bool
    email: Optional[str] = None
    error: Optional[str] = None


def generate_verification_token(email: str) -> str:
    """Replace any outstanding token for `email` with a fresh one."""
    settings = get_settings()
    token = secrets.token_hex(32)
    with get_db_session() as db:
        db.execute(delete(VerificationToken).where(VerificationToken.identifier == email))
        db.add(VerificationToken(
            identifier=email,
            token=token,
            expires_at=datetime.utcnow() + timedelta(hours=settings.verification_token_hours),
        ))
    return token


def verify_email_token(token: str) -> VerificationResult:
    """Mark the user verified and consume the token in one transaction."""
    with get_db_session() as db:
        record = db.execute(
            select(VerificationToken).where(VerificationToken.token == token)
        ).scalar_one_or_none()

        if record is None:
            return VerificationResult(success=False, error="Invalid or expired token")

        if record.expires_at < datetime.utcnow():
            db.delete(record)
            return VerificationResult(success=False, error="Token has expired")

        user = db.execute(select(User).where(User.email == record.identifier)).scalar_one_or_none()
        if user is None:
            db.delete(record)
            return VerificationResult(success=False, error="Invalid or expired token")

        user.email_verified_at = datetime.utcnow()
        db.delete(record)
        return VerificationResult(success=True, email=record.identifier)


def verification_email_html(name: str, verification_url: str) -> str:
    return f"""
<!DOCTYPE html>
<html lang="en">
<body style="margin:0;padding:0;font-family:Arial,sans-serif;background:#f5f7fa;">
    <table width="100%" cellpadding="0" cellspacing="0" style="padding:40px 20px;">
        <tr><td align="center">
            <table width="600" cellpadding="0" cellspacing="0" style="background:#fff;border-radius:12px;overflow:hidden;">
                <tr>
                    <td style="background:linear-gradient(135deg,#8c5cff 0%,#6d28d9 100%);padding:40px;text-align:center;">
                        <h1 style="color:#fff;margin:0;font-size:28px;">SDMCET Campus Connect</h1>
                    </td>
                </tr>
                <tr>
                    <td style="padding:40px 30px;">
                        <p style="font-size:16px;color:#2d3748;margin:0 0 20px;">Welcome, <strong>{name}</strong>!</p>
                        <p style="font-size:15px;color:#4a5568;margin:0 0 30px;">Please verify your email address to finish registering.</p>
                        <p style="text-align:center;margin:32px 0;">
                            <a href="{verification_url}" style="background:#6d28d9;color:#fff;text-decoration:none;padding:16px 32px;border-radius:12px;font-weight:600;">Verify Email Address</a>
                        </p>
                        <p style="font-size:14px;color:#718096;">This link expires in <strong>24 hours</strong>.</p>
                        <p style="font-size:12px;color:#718096;word-break:break-all;">{verification_url}</p>
                    </td>
                </tr>
            </table>
        </td></tr>
    </table>
</body>
</html>
    """


def send_verification_email(email: str, name: str) -> None:
    settings = get_settings()
    token = generate_verification_token(email)
    verification_url = f"{settings.app_base_url}/api/auth/verify-email?token={token}"
    send_email(
        email,
        "Verify your email - Campus Connect",
        verification_email_html(name, verification_url),
        text_content=f"Hello {name},\n\nVerify your email: {verification_url}\n\nThis link expires in 24 hours.",
    )


def deliver_verification_email(email: str, name: str) -> bool:
    """Background-task entry point: never raises."""
    try:
        send_verification_email(email, name)
        return True
    except Exception:
        logger.exception("Failed to send verification email to %s", email)
        return False
