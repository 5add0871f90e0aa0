"""Core domain models for stored records and queued notifications.

This module defines the data structures that leave the persistence layer:
- Record: one stored row of any entity type
- QueueStatus: lifecycle states of a queued notification
- QueuedNotification: a notification waiting in the retry queue
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from intake.utils.timestamps import ensure_utc


class Record(BaseModel):
    """A stored entity instance.

    ``data`` is the full persisted row, natural key and generated columns
    included. Records are snapshots: nothing keeps them in sync with the
    database after the operation that produced them.
    """

    entity_type: str = Field(..., description="Entity type name (subscription, deal_lead...)")
    id: int = Field(..., description="Store-generated identifier")
    data: Dict[str, Any] = Field(default_factory=dict, description="Persisted row")

    def get(self, field: str, default: Any = None) -> Any:
        """Return one persisted column, or ``default`` if absent."""
        return self.data.get(field, default)

    @classmethod
    def from_row(cls, entity_type: str, row: Dict[str, Any]) -> "Record":
        return cls(entity_type=entity_type, id=row["id"], data=dict(row))

    model_config = {"json_schema_extra": {"example": {
        "entity_type": "subscription",
        "id": 42,
        "data": {"id": 42, "email": "a@b.com", "created_at": "2025-11-04T10:00:00Z"},
    }}}


class QueueStatus(str, Enum):
    """Lifecycle of a queued notification."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class QueuedNotification(BaseModel):
    """A notification that could not be delivered and waits in the retry queue.

    Invariant: a ``sent`` entry has ``sent_at`` set and at least one attempt.
    """

    id: int = Field(..., description="Queue entry identifier (enqueue order)")
    recipient_email: str = Field(..., description="Recipient address")
    recipient_name: Optional[str] = Field(None, description="Recipient display name")
    subject: str = Field(..., description="Rendered subject line")
    html_content: str = Field(..., description="Rendered HTML body")
    email_type: str = Field(..., description="Notification classification label")
    status: QueueStatus = Field(QueueStatus.PENDING, description="Queue status")
    error_details: Optional[str] = Field(None, description="Last delivery error (JSON text)")
    attempts: int = Field(0, ge=0, description="Re-delivery attempts so far")
    created_at: datetime = Field(..., description="When the entry was enqueued (UTC)")
    sent_at: Optional[datetime] = Field(None, description="When the entry was delivered (UTC)")

    @field_validator("created_at", "sent_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_sent_invariant(self):
        """A sent entry must carry sent_at and at least one attempt."""
        if self.status == QueueStatus.SENT:
            if self.sent_at is None:
                raise ValueError("sent entries must have sent_at set")
            if self.attempts < 1:
                raise ValueError("sent entries must have at least one attempt")
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == QueueStatus.PENDING

    model_config = {"json_schema_extra": {"example": {
        "id": 7,
        "recipient_email": "a@b.com",
        "recipient_name": "Ada",
        "subject": "Your Inflation Impact Report - KR Property Investments",
        "html_content": "<div>...</div>",
        "email_type": "inflation_report",
        "status": "pending",
        "error_details": '{"message": "Forbidden", "code": "403", "response": null}',
        "attempts": 0,
        "created_at": "2025-11-04T10:00:00Z",
        "sent_at": None,
    }}}
