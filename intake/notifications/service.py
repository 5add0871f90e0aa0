"""Notification service: compose, deliver, and queue what could not be sent.

NotificationService is the only entry point ingestion uses for email. It
never raises for delivery problems: a message that no sender identity
could deliver lands in the retry queue, and the caller's operation still
succeeds.
"""

import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, List, Mapping, Optional

from intake.config.models import DeliveryConfig
from intake.logging import get_logger
from intake.logging.context import log_context
from intake.persistence.exceptions import PersistenceError
from intake.persistence.store import session_store

from .composer import NotificationComposer
from .coordinator import DeliveryCoordinator, DeliveryTransport
from .models import Notification, NotificationResult, SenderIdentity, TransportError
from .retry_queue import RetryQueue

logger = get_logger(__name__, component="notification")

StoreScope = Callable[[], AbstractContextManager]

NO_TRANSPORT = "transport not configured"


def resolve_senders(delivery_config: DeliveryConfig, kind: Optional[str]) -> List[SenderIdentity]:
    """Ordered sender identities for a notification kind."""
    return [
        SenderIdentity(email=str(sender.email), name=sender.name)
        for sender in delivery_config.get_senders(kind)
    ]


class NotificationService:
    """Sends notifications with sender fallback and durable queueing.

    Each queue write runs in its own store scope, so a queued message
    survives regardless of what the caller's transaction does next.
    """

    def __init__(
        self,
        delivery_config: Optional[DeliveryConfig] = None,
        transport: Optional[DeliveryTransport] = None,
        store_scope: Optional[StoreScope] = None,
        composer: Optional[NotificationComposer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            delivery_config: Sender lists per kind (defaults if None)
            transport: Mail transport; None queues every message unsent
            store_scope: Factory for a context manager yielding a RecordStore
            composer: Notification composer (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.delivery_config = delivery_config or DeliveryConfig()
        self.coordinator = DeliveryCoordinator(transport) if transport is not None else None
        self.store_scope = store_scope or session_store
        self.composer = composer or NotificationComposer()
        self.logger = logger_instance or logger

    def notify(
        self,
        kind: str,
        data: Mapping[str, Any],
        recipient: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> NotificationResult:
        """Compose and deliver one notification.

        Returns:
            NotificationResult with status ``sent``, ``queued`` or ``failed``
            (``failed`` only when delivery and the queue write both failed)

        Raises:
            NotificationDataError: The data cannot produce a notification
        """
        notification = self.composer.compose(kind, data, recipient, recipient_name)

        with log_context(notification_id=notification.notification_id):
            if self.coordinator is None:
                self.logger.warning(
                    f"No transport configured, queueing {kind} notification for {notification.recipient}",
                    extra={"event": "notification.skip", "reason": "no_transport"},
                )
                return self._enqueue(notification, NO_TRANSPORT, attempts=0)

            outcome = self.coordinator.deliver(
                notification, resolve_senders(self.delivery_config, kind)
            )

            if outcome.sent:
                return NotificationResult(
                    kind=kind,
                    recipient=notification.recipient,
                    status="sent",
                    attempts=outcome.attempts_tried,
                )

            error = outcome.last_error or "no sender identities configured"
            return self._enqueue(notification, error, attempts=outcome.attempts_tried)

    def _enqueue(self, notification: Notification, error: Any, attempts: int) -> NotificationResult:
        error_text = error.message if isinstance(error, TransportError) else str(error)

        try:
            with self.store_scope() as store:
                queued_id = RetryQueue(store).enqueue(notification, error)
        except PersistenceError as e:
            self.logger.error(
                f"Failed to queue {notification.kind} notification for {notification.recipient}: {e}",
                exc_info=True,
                extra={"event": "notification.queue_failed"},
            )
            return NotificationResult(
                kind=notification.kind,
                recipient=notification.recipient,
                status="failed",
                attempts=attempts,
                error=f"{error_text}; queue write failed: {e}",
            )

        return NotificationResult(
            kind=notification.kind,
            recipient=notification.recipient,
            status="queued",
            attempts=attempts,
            error=error_text,
            queued_id=queued_id,
        )
