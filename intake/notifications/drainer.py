"""Re-delivery of queued notifications.

RetryDrainer is the poll-and-dispatch job over RetryQueue. It is run
once from the CLI or periodically by the scheduler; the queue itself
never triggers it.
"""

from typing import Optional

from intake.config.models import DeliveryConfig, RetryQueueConfig
from intake.domain.models import QueuedNotification
from intake.logging import get_logger
from intake.logging.context import log_context
from intake.persistence.exceptions import PersistenceError
from intake.persistence.store import session_store

from .composer import kind_for_email_type
from .coordinator import DeliveryCoordinator, DeliveryTransport
from .models import DrainResult, Notification
from .retry_queue import RetryQueue
from .service import StoreScope, resolve_senders

logger = get_logger(__name__, component="retry_drainer")


class RetryDrainer:
    """Drains pending entries of the retry queue through the sender fallback."""

    def __init__(
        self,
        transport: Optional[DeliveryTransport],
        delivery_config: Optional[DeliveryConfig] = None,
        retry_config: Optional[RetryQueueConfig] = None,
        store_scope: Optional[StoreScope] = None,
    ):
        self.coordinator = DeliveryCoordinator(transport) if transport is not None else None
        self.delivery_config = delivery_config or DeliveryConfig()
        self.retry_config = retry_config or RetryQueueConfig()
        self.store_scope = store_scope or session_store

    def drain_once(self, limit: Optional[int] = None) -> DrainResult:
        """Attempt every pending entry once, oldest first.

        Each entry is settled in its own store scope, so a failure while
        recording one entry leaves the others' outcomes intact.

        Args:
            limit: Maximum entries to process (defaults to retry_queue.batch_size)

        Raises:
            StoreUnavailableError: If the pending list cannot be read
        """
        result = DrainResult()

        if self.coordinator is None:
            logger.warning(
                "No transport configured, skipping retry queue drain",
                extra={"event": "retry_drain.skipped"},
            )
            return result

        with self.store_scope() as store:
            pending = RetryQueue(store).list_pending(
                limit if limit is not None else self.retry_config.batch_size
            )

        logger.info(
            f"Draining {len(pending)} pending notification(s)",
            extra={"event": "retry_drain.started", "pending": len(pending)},
        )

        for entry in pending:
            result.processed += 1
            with log_context(queued_id=entry.id):
                try:
                    status = self._process(entry)
                except PersistenceError as e:
                    logger.error(
                        f"Failed to record outcome of queued notification {entry.id}: {e}",
                        exc_info=True,
                        extra={"event": "retry_drain.entry_error"},
                    )
                    status = "pending"

            if status == "sent":
                result.sent += 1
            elif status == "failed":
                result.failed += 1
            else:
                result.still_pending += 1

        logger.info(
            f"Retry drain complete: {result.sent} sent, {result.failed} failed, "
            f"{result.still_pending} still pending (processed: {result.processed})",
            extra={
                "event": "retry_drain.completed",
                "processed": result.processed,
                "sent": result.sent,
                "failed": result.failed,
                "still_pending": result.still_pending,
            },
        )
        return result

    def _process(self, entry: QueuedNotification) -> str:
        kind = kind_for_email_type(entry.email_type)
        notification = Notification(
            recipient=entry.recipient_email,
            subject=entry.subject,
            html=entry.html_content,
            kind=kind or entry.email_type,
            email_type=entry.email_type,
            recipient_name=entry.recipient_name,
        )

        outcome = self.coordinator.deliver(notification, resolve_senders(self.delivery_config, kind))

        with self.store_scope() as store:
            queue = RetryQueue(store)
            if outcome.sent:
                queue.mark_sent(entry.id)
                return "sent"

            final = entry.attempts + 1 >= self.retry_config.max_attempts
            queue.mark_failed(
                entry.id,
                outcome.last_error or "no sender identities configured",
                final=final,
            )
            return "failed" if final else "pending"
