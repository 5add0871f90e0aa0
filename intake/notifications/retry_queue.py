"""Durable log of notifications that could not be delivered.

The queue only records state. Draining it is the job of RetryDrainer;
nothing here schedules or sends anything.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from intake.domain.models import QueuedNotification, QueueStatus
from intake.logging import get_logger
from intake.persistence.exceptions import RecordNotFoundError
from intake.persistence.store import RecordStore
from intake.utils.timestamps import utc_now

from .models import Notification, TransportError

logger = get_logger(__name__, component="retry_queue")

TABLE = "pending_emails"

ErrorDetail = Union[TransportError, str, None]


def _error_details(error: ErrorDetail) -> Optional[str]:
    if isinstance(error, TransportError):
        return error.to_details()
    return error


class RetryQueue:
    """Retry queue stored in the ``pending_emails`` table."""

    def __init__(self, store: RecordStore):
        self.store = store

    def enqueue(self, notification: Notification, last_error: ErrorDetail = None) -> int:
        """Persist an undelivered notification as ``pending``.

        Returns:
            Id of the new queue entry

        Raises:
            StoreUnavailableError: The store cannot be reached
        """
        row = self.store.insert(
            TABLE,
            {
                "recipient_email": notification.recipient,
                "recipient_name": notification.recipient_name,
                "subject": notification.subject,
                "html_content": notification.html,
                "email_type": notification.email_type,
                "status": QueueStatus.PENDING.value,
                "error_details": _error_details(last_error),
                "attempts": 0,
            },
        )
        logger.info(
            f"Queued {notification.email_type} email for {notification.recipient} as entry {row['id']}",
            extra={"event": "retry_queue.enqueued", "queued_id": row["id"]},
        )
        return row["id"]

    def list_pending(self, limit: Optional[int] = None) -> List[QueuedNotification]:
        """Return pending entries in enqueue order (ascending id)."""
        rows = self.store.select(
            TABLE, {"status": QueueStatus.PENDING.value}, order_by="id", limit=limit
        )
        return [QueuedNotification(**row) for row in rows]

    def get(self, queued_id: int) -> QueuedNotification:
        """Return one entry.

        Raises:
            RecordNotFoundError: No entry with that id
        """
        rows = self.store.select(TABLE, {"id": queued_id}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Queued notification {queued_id} not found")
        return QueuedNotification(**rows[0])

    def mark_sent(self, queued_id: int, sent_at: Optional[datetime] = None) -> QueuedNotification:
        """Record a successful re-delivery.

        Raises:
            RecordNotFoundError: No entry with that id
        """
        entry = self.get(queued_id)
        sent_at = sent_at or utc_now()
        self.store.update(
            TABLE,
            {"id": queued_id},
            {
                "status": QueueStatus.SENT.value,
                "sent_at": sent_at,
                "attempts": entry.attempts + 1,
            },
        )
        logger.info(
            f"Queued notification {queued_id} sent",
            extra={"event": "retry_queue.sent", "queued_id": queued_id},
        )
        return self.get(queued_id)

    def mark_failed(self, queued_id: int, error: ErrorDetail, final: bool = True) -> QueuedNotification:
        """Record a failed re-delivery.

        Args:
            queued_id: Entry id
            error: Error of the failed attempt
            final: Give up on the entry (``failed``); otherwise it stays ``pending``

        Raises:
            RecordNotFoundError: No entry with that id
        """
        entry = self.get(queued_id)
        fields = {"attempts": entry.attempts + 1, "error_details": _error_details(error)}
        if final:
            fields["status"] = QueueStatus.FAILED.value
        self.store.update(TABLE, {"id": queued_id}, fields)

        logger.log(
            logging.WARNING if final else logging.INFO,
            f"Queued notification {queued_id} failed (attempt {fields['attempts']}, final={final})",
            extra={"event": "retry_queue.failed", "queued_id": queued_id, "final": final},
        )
        return self.get(queued_id)
