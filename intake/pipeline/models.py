"""Result types returned by the intake pipeline."""

from dataclasses import dataclass
from typing import Optional

from intake.calculator.inflation import InflationResult
from intake.domain.models import Record
from intake.notifications.models import NotificationResult


@dataclass
class SubmissionResult:
    """
    Outcome of one submission handled by IntakePipeline.

    Attributes:
        record: Stored record (None when nothing was persisted)
        created: True if this submission created the record, False for a
            duplicate, None where the distinction does not apply (upserts)
        notification: Result of the follow-up email, when one was due
        calculation: Inflation result for calculator submissions
    """

    record: Optional[Record] = None
    created: Optional[bool] = None
    notification: Optional[NotificationResult] = None
    calculation: Optional[InflationResult] = None

    @property
    def email_sent(self) -> bool:
        return self.notification is not None and self.notification.is_success()

    @property
    def email_queued(self) -> bool:
        return self.notification is not None and self.notification.is_pending()
