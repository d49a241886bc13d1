import smtplib
from email.mime.text import MIMEText
import logging

from orderflow.config import get_settings

logger = logging.getLogger(__name__)


def _send_email_console(to_email: str, subject: str, body: str):
    # Development helper: logs the email content instead of sending
    logger.info("[EMAIL:console] To=%s Subject=%s Body=%s", to_email, subject, body)


def send_email(to_email: str, subject: str, body: str) -> bool:
    """Send an email using the configured backend.

    With EMAIL_BACKEND=console the email is logged instead of sent.
    In SMTP mode, errors are logged and never raised to callers, so a mail
    outage cannot fail an order operation that already committed.
    """
    settings = get_settings()
    backend = (settings.EMAIL_BACKEND or "console").lower()
    sender, password = settings.MAIL_SENDER, settings.MAIL_PASSWORD

    if backend != "smtp" or not sender or not password:
        if backend == "smtp":
            logger.warning(
                "EMAIL_BACKEND=smtp but credentials missing (MAIL_SENDER set=%s). Falling back to console.",
                bool(sender),
            )
        _send_email_console(to_email, subject, body)
        return True

    try:
        msg = MIMEText(body)
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to_email

        logger.debug("Attempting SMTP connection to %s:%s", settings.SMTP_SERVER, settings.SMTP_PORT)
        with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT, timeout=20) as server:
            server.starttls()
            server.login(sender, password)
            server.send_message(msg)
        logger.info("Email sent via SMTP to %s", to_email)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email via SMTP: %s", e, exc_info=True)
        return False
