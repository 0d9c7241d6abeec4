import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional
from urllib.parse import urlencode

from ..core.config import settings

logger = logging.getLogger(__name__)


def build_doctor_approved_message(to: str, name: Optional[str] = None) -> MIMEMultipart:
    """Plain-text and HTML mail telling a doctor their account was approved."""
    app_name = settings.APP_NAME
    login_url = f"{settings.APP_URL.rstrip('/')}/login"
    safe_name = name or "Doctor"

    text = (
        f"Hello Dr. {safe_name},\n\n"
        f"Your account has been approved. You can now log in and start using {app_name}.\n\n"
        f"Login: {login_url}\n\n"
        f"If you have any questions, just reply to this email.\n\n"
        f"The {app_name} Team"
    )
    html = f"""
      <div style="font-family:Arial, sans-serif; line-height:1.5; color:#111">
        <h2>{escape(app_name)}: Account Approved</h2>
        <p>Hello Dr. <b>{escape(safe_name)}</b>,</p>
        <p>Your account has been <b>approved</b>. You can now log in and start using {escape(app_name)}.</p>
        <p><a href="{escape(login_url)}">Go to Login</a></p>
        <p>The {escape(app_name)} Team</p>
      </div>
    """

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"Your {app_name} account has been approved"
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))
    return msg


def build_password_reset_message(to: str, token: str) -> MIMEMultipart:
    """Mail carrying the password reset link."""
    app_name = settings.APP_NAME
    reset_url = f"{settings.APP_URL.rstrip('/')}/reset-password?{urlencode({'token': token})}"

    text = (
        f"Hello,\n\n"
        f"We received a request to reset the password for your {app_name} account.\n\n"
        f"Reset your password: {reset_url}\n\n"
        f"The link expires in one hour. If you did not ask for this, ignore this email.\n\n"
        f"The {app_name} Team"
    )
    html = f"""
      <div style="font-family:Arial, sans-serif; line-height:1.5; color:#111">
        <h2>{escape(app_name)}: Password Reset</h2>
        <p>We received a request to reset the password for your account.</p>
        <p><a href="{escape(reset_url)}">Reset your password</a></p>
        <p>The link expires in one hour. If you did not ask for this, ignore this email.</p>
        <p>The {escape(app_name)} Team</p>
      </div>
    """

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"Reset your {app_name} password"
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))
    return msg


def _send(to: str, msg: MIMEMultipart, kind: str) -> bool:
    """Deliver ``msg`` over SSL or STARTTLS; returns False when SMTP is not configured or sending fails."""
    if not settings.SMTP_HOST:
        logger.info(f"SMTP not configured, skipping {kind} email to {to}")
        return False

    from_address = settings.EMAIL_FROM.split("<")[-1].rstrip(">")

    try:
        if settings.SMTP_PORT == 465:
            server = smtplib.SMTP_SSL(
                settings.SMTP_HOST, settings.SMTP_PORT,
                context=ssl.create_default_context(), timeout=30
            )
        else:
            server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
            server.starttls(context=ssl.create_default_context())

        with server:
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(from_address, [to], msg.as_string())

        logger.info(f"{kind.capitalize()} email sent to {to}")
        return True
    except (smtplib.SMTPException, OSError) as e:
        # Runs after the response; the request itself already succeeded
        logger.error(f"Failed to send {kind} email to {to}: {e}")
        return False


def send_doctor_approved_email(to: str, name: Optional[str] = None) -> bool:
    return _send(to, build_doctor_approved_message(to, name), "approval")


def send_password_reset_email(to: str, token: str) -> bool:
    return _send(to, build_password_reset_message(to, token), "password reset")
