"""SendGrid transport for email delivery."""

import json
import logging
from typing import Any, Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, To

from .models import SenderIdentity, TransportError

logger = logging.getLogger(__name__)


def extract_error_details(body: Any) -> Optional[str]:
    """Return a human readable description for a SendGrid error payload."""
    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages = [
                str(item["message"])
                for item in errors
                if isinstance(item, dict) and item.get("message")
            ]
            if messages:
                return "; ".join(messages)
        return json.dumps(parsed)

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


class SendGridTransport:
    """Delivery transport over the SendGrid v3 mail API.

    SendGrid rejects a message when the "from" address is not a verified
    sender, so a rejection for one identity says nothing about the next.
    """

    def __init__(self, api_key: str, client: Optional[SendGridAPIClient] = None):
        """
        Args:
            api_key: SendGrid API key
            client: Prebuilt API client (tests)
        """
        self.client = client or SendGridAPIClient(api_key)

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
            TransportError: Carrying the HTTP status as ``code`` and the
                provider's response body
        """
        message = Mail(
            from_email=(sender.email, sender.name),
            to_emails=To(recipient, recipient_name),
            subject=subject,
            html_content=html,
        )

        try:
            response = self.client.send(message)
        except Exception as e:
            # python-http-client raises HTTPError subclasses carrying status_code and body
            status_code = getattr(e, "status_code", None)
            body = getattr(e, "body", None)
            details = extract_error_details(body)
            logger.warning(
                f"SendGrid rejected message from {sender.email} "
                f"(status {status_code}): {details or e}"
            )
            raise TransportError(
                details or str(e),
                code=str(status_code) if status_code is not None else type(e).__name__,
                response=details,
            ) from e

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            details = extract_error_details(getattr(response, "body", None))
            logger.warning(f"SendGrid responded with status {status_code}: {details}")
            raise TransportError(
                f"SendGrid responded with status {status_code}",
                code=str(status_code),
                response=details,
            )

        logger.debug(f"Message accepted by SendGrid for {recipient} as {sender.email}")
