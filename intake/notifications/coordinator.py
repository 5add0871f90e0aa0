"""Ordered sender-identity fallback for a single notification."""

from typing import Optional, Protocol, Sequence

from intake.logging import get_logger
from intake.logging.context import log_context

from .models import DeliveryOutcome, Notification, SenderIdentity, TransportError

logger = get_logger(__name__, component="delivery")


class DeliveryTransport(Protocol):
    """Outbound mail API. Raises TransportError when one attempt fails."""

    def send(
        self,
        sender: SenderIdentity,
        recipient: str,
        subject: str,
        html: str,
        recipient_name: Optional[str] = None,
    ) -> None:
        ...


class DeliveryCoordinator:
    """Tries each sender identity in order and stops at the first success.

    Failures are not classified: any rejection moves on to the next
    identity. The coordinator holds no state between calls and never
    persists anything; exhaustion is reported, not raised.
    """

    def __init__(self, transport: DeliveryTransport):
        self.transport = transport

    def deliver(
        self,
        notification: Notification,
        sender_identities: Sequence[SenderIdentity],
    ) -> DeliveryOutcome:
        """Deliver ``notification`` using the first identity the transport accepts.

        Returns:
            DeliveryOutcome; ``sent`` is False once every identity failed
        """
        last_error: Optional[TransportError] = None
        attempts = 0

        with log_context(notification_id=notification.notification_id):
            for sender in sender_identities:
                attempts += 1
                try:
                    self.transport.send(
                        sender,
                        notification.recipient,
                        notification.subject,
                        notification.html,
                        notification.recipient_name,
                    )
                except TransportError as e:
                    last_error = e
                except Exception as e:
                    last_error = TransportError(str(e) or type(e).__name__, code="unexpected")
                    last_error.__cause__ = e
                else:
                    logger.info(
                        f"Delivered {notification.kind} notification to "
                        f"{notification.recipient} as {sender.email} (attempt {attempts})",
                        extra={
                            "event": "delivery.sent",
                            "sender": sender.email,
                            "attempt": attempts,
                        },
                    )
                    return DeliveryOutcome(sent=True, attempts_tried=attempts, sender=sender)

                logger.warning(
                    f"Sender {sender.email} failed for {notification.recipient}: {last_error}",
                    extra={
                        "event": "delivery.attempt.failed",
                        "sender": sender.email,
                        "attempt": attempts,
                        "error_code": last_error.code,
                    },
                )

            logger.error(
                f"All {attempts} sender identities failed for {notification.recipient}",
                extra={"event": "delivery.exhausted", "attempts": attempts},
            )
            return DeliveryOutcome(sent=False, attempts_tried=attempts, last_error=last_error)
