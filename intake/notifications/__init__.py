"""Notification delivery for the record intake service.

Public API:
    - NotificationService: compose, deliver with sender fallback, queue on exhaustion
    - NotificationComposer: kind + data -> rendered Notification (pure)
    - DeliveryCoordinator: ordered sender-identity fallback
    - RetryQueue: durable log of undelivered notifications
    - RetryDrainer: re-delivers pending queue entries
    - build_transport: transport selected by the environment
    - SendGridTransport / SMTPTransport: delivery transports

Exceptions:
    - NotificationError: Base exception
    - NotificationDataError: Composition input invalid
    - NotificationTemplateError: Template failed to render
    - TransportError: One send attempt failed
"""

from .composer import NOTIFICATION_KINDS, NotificationComposer, kind_for_email_type
from .coordinator import DeliveryCoordinator, DeliveryTransport
from .drainer import RetryDrainer
from .factory import build_transport
from .models import (
    DeliveryOutcome,
    DrainResult,
    Notification,
    NotificationDataError,
    NotificationError,
    NotificationResult,
    NotificationTemplateError,
    SenderIdentity,
    TransportError,
)
from .retry_queue import RetryQueue
from .sendgrid_client import SendGridTransport
from .service import NotificationService, resolve_senders
from .smtp_client import SMTPTransport
from .templates import TemplateRenderer

__all__ = [
    # Services
    "NotificationService",
    "NotificationComposer",
    "DeliveryCoordinator",
    "DeliveryTransport",
    "RetryQueue",
    "RetryDrainer",
    "TemplateRenderer",
    "build_transport",
    "resolve_senders",
    "kind_for_email_type",
    "NOTIFICATION_KINDS",
    # Transports
    "SendGridTransport",
    "SMTPTransport",
    # Models
    "Notification",
    "SenderIdentity",
    "DeliveryOutcome",
    "NotificationResult",
    "DrainResult",
    # Exceptions
    "NotificationError",
    "NotificationDataError",
    "NotificationTemplateError",
    "TransportError",
]
