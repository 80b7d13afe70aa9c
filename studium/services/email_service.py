# studium/services/email_service.py
import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from .. import config

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password Reset Request - Studium AI"

# ----- Templates -----
RESET_TEXT_TEMPLATE = """
Hi {name},

We received a request to reset your password for your Studium AI account.

Please click the following link to reset your password:
{reset_url}

This link will expire in {minutes} minutes for security reasons.

If you didn't request a password reset, please ignore this email.

Best regards,
The Studium AI Team
"""

RESET_HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1>Password Reset Request</h1>
      <p>Hi {name},</p>
      <p>We received a request to reset your password for your Studium AI account.</p>
      <p><a href="{reset_url}">Reset Password</a></p>
      <p>Or copy and paste this link into your browser:</p>
      <p style="word-break: break-all;">{reset_url}</p>
      <p><strong>Important:</strong> This link will expire in {minutes} minutes for security reasons.</p>
      <p>If you didn't request a password reset, please ignore this email or contact support if you have concerns.</p>
      <p>Best regards,<br>The Studium AI Team</p>
      <p style="font-size: 12px; color: #666;">&copy; {year} Studium AI. All rights reserved.</p>
    </div>
  </body>
</html>
"""


class EmailDeliveryError(Exception):
    pass


def build_reset_url(reset_token: str) -> str:
    return f"{config.FRONTEND_URL}/reset-password?token={reset_token}"


def _open_smtp():
    if config.SMTP_USE_SSL:
        context = ssl.create_default_context()
        return smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, context=context, timeout=30)

    server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=30)
    try:
        server.ehlo()
        if config.SMTP_USE_TLS:
            server.starttls(context=ssl.create_default_context())
            server.ehlo()
    except (smtplib.SMTPException, OSError):
        server.close()
        raise
    return server


def send_email(to_email: str, subject: str, text_body: str, html_body: Optional[str] = None) -> None:
    """
    Send an email over SMTP, or just log it with the console transport.
    Raises EmailDeliveryError when the SMTP exchange fails.
    """
    if config.EMAIL_TRANSPORT == "console":
        logger.info("Email (not sent) to=%s subject=%s\n%s", to_email, subject, text_body)
        return

    from_addr = (config.SMTP_FROM or config.SMTP_USERNAME or "").strip()
    msg = MIMEMultipart("alternative")
    msg["From"] = f"Studium AI <{from_addr}>" if from_addr else "Studium AI"
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(text_body or "", "plain", "utf-8"))
    if html_body:
        msg.attach(MIMEText(html_body, "html", "utf-8"))

    try:
        with _open_smtp() as server:
            if config.SMTP_USERNAME:
                server.login(config.SMTP_USERNAME, config.SMTP_PASSWORD or "")
            server.sendmail(from_addr, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP error sending to %s: %s", to_email, e)
        raise EmailDeliveryError("Failed to send email") from e


def send_password_reset_email(to: str, reset_token: str, user_name: Optional[str] = None) -> None:
    """Email the password reset link to ``to``."""
    ctx = {
        "name": user_name or "there",
        "reset_url": build_reset_url(reset_token),
        "minutes": config.RESET_TOKEN_EXPIRE_MINUTES,
        "year": datetime.utcnow().year,
    }
    send_email(
        to,
        subject=RESET_SUBJECT,
        text_body=RESET_TEXT_TEMPLATE.format(**ctx),
        html_body=RESET_HTML_TEMPLATE.format(**ctx),
    )
    logger.info("Password reset email sent to %s", to)


def verify_email_config() -> bool:
    """Check that the SMTP server accepts a connection (and login, if configured)."""
    if config.EMAIL_TRANSPORT == "console":
        return True
    try:
        with _open_smtp() as server:
            if config.SMTP_USERNAME:
                server.login(config.SMTP_USERNAME, config.SMTP_PASSWORD or "")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email service configuration error: %s", e)
        return False
