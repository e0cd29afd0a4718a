"""
Transactional email over SMTP (STARTTLS).

Both senders propagate every exception: the caller owns the state that
assumed delivery (an activation code, a reset token) and clears it when the
send fails.
"""

import logging
import smtplib
from email.mime.text import MIMEText

from crm_backend.database.config.config import settings

logger = logging.getLogger(__name__)


def send_email(email: str, subject: str, body: str) -> None:
    """
    Send a plain-text email.

    Parameters
    ----------
    email : str
        Recipient email address.
    subject : str
        Subject line.
    body : str
        Plain-text body.

    Notes
    -----
    - Uses `settings.SENDER_EMAIL` and `settings.APP_PASSWORD` for SMTP auth.
    - Connects to `settings.SMTP_HOST:settings.SMTP_PORT` with STARTTLS.
    """
    sender_email = settings.SENDER_EMAIL
    sender_password = settings.APP_PASSWORD

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = sender_email
    msg["To"] = email

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(sender_email, sender_password)
        server.sendmail(sender_email, email, msg.as_string())
    logger.info(f"Sent '{subject}' to {email}")


def send_verification_code(email: str, code: str) -> None:
    body = (
        f"Your verification code is: {code}\n\n"
        f"The code expires in {settings.OTP_EXPIRE_MINUTES} minutes."
    )
    send_email(email=email, subject="Account verification code", body=body)


def send_reset_link(email: str, token: str) -> None:
    link = f"{settings.FRONTEND_URL.rstrip('/')}/auth/resetpassword/{token}"
    body = (
        "You are receiving this email because a password reset was requested for your account.\n\n"
        f"Open the following link to choose a new password: {link}\n\n"
        f"The link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes. "
        "If you did not request a reset, ignore this email."
    )
    send_email(email=email, subject="Password reset", body=body)
