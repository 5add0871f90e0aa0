"""Domain models for the record intake service."""

from .models import QueuedNotification, QueueStatus, Record

__all__ = ["Record", "QueueStatus", "QueuedNotification"]
