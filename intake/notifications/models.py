"""Data models and exceptions for the notification service.

This module defines the notification value types, delivery results and
custom exceptions used throughout the notification pipeline.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class NotificationDataError(NotificationError, ValueError):
    """Raised when composition input lacks a required field or a recipient."""

    pass


class TransportError(NotificationError):
    """A single send attempt was rejected or failed.

    Attributes:
        code: Provider status or error class (``"403"``, ``"smtp"``, ``"unexpected"``...)
        message: Human-readable failure description
        response: Provider response body, when there was one
    """

    def __init__(self, message: str, code: Optional[str] = None, response: Any = None):
        self.message = message
        self.code = code
        self.response = response
        super().__init__(message if code is None else f"[{code}] {message}")

    def to_details(self) -> str:
        """Serialise as the JSON text stored in ``pending_emails.error_details``."""
        return json.dumps(
            {"message": self.message, "code": self.code, "response": self.response},
            default=str,
        )


@dataclass(frozen=True)
class SenderIdentity:
    """A "from" address and display name the transport may send as."""

    email: str
    name: str

    def formatted(self) -> str:
        """Return the address as ``Name <email>``."""
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class Notification:
    """A fully rendered message, ready for delivery or queueing.

    Attributes:
        recipient: Recipient email address
        subject: Single-line subject
        html: Rendered HTML body
        kind: Template kind (``report``, ``confirmation``)
        email_type: Queue classification label (``inflation_report``...)
        recipient_name: Optional display name of the recipient
    """

    recipient: str
    subject: str
    html: str
    kind: str
    email_type: str
    recipient_name: Optional[str] = None

    @property
    def notification_id(self) -> str:
        return f"{self.kind}:{self.recipient}"


@dataclass
class DeliveryOutcome:
    """Result of walking the sender list for one notification.

    Attributes:
        sent: True if some sender identity was accepted
        attempts_tried: Number of sender identities tried
        last_error: Error of the last failed attempt, if any
        sender: Identity that succeeded, when sent
    """

    sent: bool
    attempts_tried: int
    last_error: Optional[TransportError] = None
    sender: Optional[SenderIdentity] = None


@dataclass
class NotificationResult:
    """Result of NotificationService.notify.

    Attributes:
        kind: Template kind that was sent
        recipient: Recipient address
        status: Outcome status (sent, queued, failed)
        attempts: Number of sender identities tried
        error: Optional error message if delivery failed
        queued_id: Retry queue entry id when the message was queued
    """

    kind: str
    recipient: str
    status: str  # "sent", "queued", "failed"
    attempts: int = 0
    error: Optional[str] = None
    queued_id: Optional[int] = None

    def is_success(self) -> bool:
        """Check if the notification reached the transport.

        Returns:
            True if status is "sent", False otherwise
        """
        return self.status == "sent"

    def is_pending(self) -> bool:
        """True when the message sits in the retry queue."""
        return self.status == "queued"


@dataclass
class DrainResult:
    """Summary of one RetryDrainer run.

    Attributes:
        processed: Entries picked up in this run
        sent: Entries delivered and marked sent
        failed: Entries that reached max attempts and were marked failed
        still_pending: Entries left pending for a later run
    """

    processed: int = 0
    sent: int = 0
    failed: int = 0
    still_pending: int = 0

    @property
    def has_failures(self) -> bool:
        return self.failed > 0
