"""
Plaintext email delivery via SMTP.

Sends a single letter from a fixed sender to a fixed recipient.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.utils import formataddr


logger = logging.getLogger(__name__)


@dataclass
class MailConfig:
    """Envelope and relay settings for outbound letters."""

    sender_address: str
    recipient: str
    subject: str
    sender_name: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587


class DeliveryError(Exception):
    """Raised when email sending fails."""
    pass


def build_message(config: MailConfig, body: str) -> MIMEText:
    """Build the plaintext message for one letter."""
    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = config.subject
    msg["From"] = formataddr((config.sender_name, config.sender_address))
    msg["To"] = config.recipient
    return msg


def send_email(config: MailConfig, password: str, body: str) -> None:
    """
    Send one plaintext email via SMTP with STARTTLS.

    Makes a single delivery attempt; there is no retry.

    Args:
        config: Sender, recipient, subject and relay settings.
        password: App password for the sender's account.
        body: Letter text.

    Raises:
        DeliveryError: If credentials are missing or sending fails.
    """
    if not password:
        raise DeliveryError("No mail relay password configured")
    if not body:
        raise DeliveryError("Refusing to send an empty email body")

    msg = build_message(config, body)

    try:
        with smtplib.SMTP(config.smtp_host, config.smtp_port) as server:
            server.starttls()
            server.login(config.sender_address, password)
            server.sendmail(
                config.sender_address,
                config.recipient,
                msg.as_string()
            )
        logger.info(f"Email sent to {config.recipient}")

    except smtplib.SMTPAuthenticationError as e:
        raise DeliveryError(f"SMTP authentication failed: {e}")
    except smtplib.SMTPException as e:
        raise DeliveryError(f"Failed to send email: {e}")
    except OSError as e:
        raise DeliveryError(f"Could not reach mail relay {config.smtp_host}: {e}")
