"""
Core email sending utilities over the store's SMTP account.
"""

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def smtp_configured() -> bool:
    settings = get_settings()
    return bool(settings.EMAIL_USER and settings.EMAIL_PASS)


async def send_email(
    to_email: str,
    subject: str,
    body: str,
    html_body: Optional[str] = None,
    reply_to: Optional[str] = None,
    from_name: Optional[str] = None,
) -> bool:
    """
    Send an email through the configured SMTP account (STARTTLS).

    Args:
        to_email: Recipient email address
        subject: Email subject line
        body: Plain text body
        html_body: Optional HTML body (if not provided, plain text is used)
        reply_to: Optional Reply-To address (e.g. the customer)
        from_name: Sender display name (defaults to EMAIL_FROM_NAME)

    Returns:
        True if email was sent successfully, False otherwise
    """
    settings = get_settings()

    if not smtp_configured():
        logger.warning("EMAIL_USER/EMAIL_PASS not configured - email not sent")
        logger.info(f"Would have sent email to {to_email}: {subject}")
        return False

    sender_email = settings.EMAIL_USER
    sender_name = from_name or settings.EMAIL_FROM_NAME

    try:
        if html_body:
            msg = MIMEMultipart("alternative")
            msg.attach(MIMEText(body, "plain"))
            msg.attach(MIMEText(html_body, "html"))
        else:
            msg = MIMEText(body, "plain")

        msg["Subject"] = subject
        msg["From"] = f'"{sender_name}" <{sender_email}>'
        msg["To"] = to_email
        if reply_to:
            msg["Reply-To"] = reply_to

        logger.info(f"Sending email to {to_email}: {subject}")

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            server.starttls()
            server.login(settings.EMAIL_USER, settings.EMAIL_PASS)
            server.sendmail(sender_email, to_email, msg.as_string())

        logger.info(f"Email sent successfully to {to_email}")
        return True

    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed: {e}")
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP error sending email: {type(e).__name__}: {e}")
        return False
