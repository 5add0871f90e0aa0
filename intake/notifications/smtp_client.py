"""SMTP transport for email delivery.

This module provides a thin wrapper around Python's smtplib with support
for TLS/SSL, authentication, and proper connection lifecycle management.
"""

import logging
import smtplib
import ssl
from email.headerregistry import Address
from email.message import EmailMessage
from typing import Callable, Optional

from .models import SenderIdentity, TransportError

logger = logging.getLogger(__name__)


def build_message(
    sender: SenderIdentity,
    recipient: str,
    subject: str,
    html: str,
    recipient_name: Optional[str] = None,
) -> EmailMessage:
    """Build an HTML EmailMessage sent as ``sender``."""
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = Address(display_name=sender.name, addr_spec=sender.email)
    message["To"] = (
        Address(display_name=recipient_name, addr_spec=recipient) if recipient_name else recipient
    )
    message.set_content("This message requires an HTML-capable email client.")
    message.add_alternative(html, subtype="html")
    return message


class SMTPTransport:
    """Delivery transport over SMTP.

    Opens one connection per send. Handles TLS/SSL negotiation and
    authentication, and reports every failure as a TransportError so the
    coordinator can move on to the next sender identity.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        user: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP transport with optional factory injection.

        Args:
            host: SMTP server hostname
            port: SMTP server port (465 means implicit TLS)
            user: Username for authentication, if any
            password: Password for authentication, if any
            use_tls: Whether to upgrade plain connections with STARTTLS
            smtp_factory: Factory function for creating SMTP instances (for mocking)
            smtp_ssl_factory: Factory function for creating SMTP_SSL instances (for mocking)
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(
        self,
        sender: SenderIdentity,
        recipient: str,
        subject: str,
        html: str,
        recipient_name: Optional[str] = None,
    ) -> None:
        """Send one HTML message as ``sender``.

        Raises:
            TransportError: If the server rejected the message or the connection failed
        """
        message = build_message(sender, recipient, subject, html, recipient_name)
        smtp = None
        try:
            if self.port == 465:
                logger.debug(f"Connecting to {self.host}:{self.port} with implicit TLS")
                context = ssl.create_default_context()
                smtp = self.smtp_ssl_factory(self.host, self.port, context=context)
            else:
                logger.debug(f"Connecting to {self.host}:{self.port}")
                smtp = self.smtp_factory(self.host, self.port)

                if self.use_tls:
                    logger.debug("Upgrading connection with STARTTLS")
                    context = ssl.create_default_context()
                    smtp.starttls(context=context)

            if self.user and self.password:
                logger.debug(f"Authenticating as {self.user}")
                smtp.login(self.user, self.password)

            smtp.send_message(message)
            logger.debug(f"Message sent successfully to {recipient} as {sender.email}")

        except smtplib.SMTPResponseException as e:
            error_msg = f"SMTP server rejected message: {e.smtp_error!r}"
            logger.warning(error_msg)
            raise TransportError(error_msg, code=str(e.smtp_code)) from e
        except smtplib.SMTPException as e:
            error_msg = f"SMTP error during message delivery: {e}"
            logger.warning(error_msg)
            raise TransportError(error_msg, code="smtp") from e
        except OSError as e:
            error_msg = f"Network error during SMTP connection: {e}"
            logger.warning(error_msg)
            raise TransportError(error_msg, code="network") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")
