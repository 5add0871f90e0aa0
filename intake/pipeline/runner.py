"""Intake pipeline: one method per kind of user submission.

Every method stores its record in its own store scope, which commits
before any notification is attempted. Delivery problems never turn a
stored submission into a failure; storage and validation problems are
always raised to the caller.
"""

import math
from typing import Any, List, Mapping, Optional

from intake.calculator.inflation import InvalidCalculationInput, calculate_inflation
from intake.config.models import AppConfig
from intake.domain.models import Record
from intake.ingestion import (
    DedupIngestor,
    KeyedUpserter,
    RecordAppender,
    RecordValidationError,
)
from intake.logging import get_logger
from intake.logging.context import log_context
from intake.notifications.models import NotificationDataError, NotificationResult
from intake.notifications.service import NotificationService, StoreScope
from intake.persistence.exceptions import PersistenceError
from intake.persistence.store import session_store

from .models import SubmissionResult

logger = get_logger(__name__, component="pipeline")

# Report data fields that may arrive at the top level of the request
REPORT_FIELDS = ("name", "amount", "month", "year", "chartImage", "chart_image")


class IntakePipeline:
    """Ingress facade over DedupIngestor, KeyedUpserter and NotificationService."""

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        notification_service: Optional[NotificationService] = None,
        store_scope: Optional[StoreScope] = None,
    ):
        """
        Args:
            app_config: Application configuration (defaults if None)
            notification_service: Service for follow-up emails
            store_scope: Factory for a context manager yielding a RecordStore
        """
        self.app_config = app_config or AppConfig()
        self.store_scope = store_scope or session_store
        self.notification_service = notification_service or NotificationService(
            delivery_config=self.app_config.delivery,
            store_scope=self.store_scope,
        )

    def subscribe(self, email: str) -> SubmissionResult:
        """Add an address to the newsletter (idempotent)."""
        with self.store_scope() as store:
            result = DedupIngestor(store).ingest("subscription", email)
        return SubmissionResult(record=result.record, created=result.created)

    def join_waitlist(self, payload: Mapping[str, Any]) -> SubmissionResult:
        """Add a deal-sourcing lead and welcome them.

        Only the submission that creates the lead triggers the welcome
        email; a repeat submission returns the existing lead. A welcome
        that cannot be composed (e.g. an address the mail layer rejects)
        is reported as a ``failed`` notification on the stored lead.
        """
        with self.store_scope() as store:
            result = DedupIngestor(store).ingest("deal_lead", {"email": payload.get("email")}, payload)

        submission = SubmissionResult(record=result.record, created=result.created)
        if not result.created:
            return submission

        lead = result.record
        with log_context(entity_type="deal_lead", record_id=lead.id):
            try:
                submission.notification = self.notification_service.notify(
                    "confirmation",
                    {"name": lead.get("name")},
                    recipient=lead.get("email"),
                    recipient_name=lead.get("name"),
                )
            except NotificationDataError as e:
                logger.error(
                    f"Cannot compose welcome email for lead {lead.id}: {e}",
                    extra={"event": "pipeline.waitlist.notification_invalid"},
                )
                submission.notification = NotificationResult(
                    kind="confirmation",
                    recipient=lead.get("email"),
                    status="failed",
                    error=str(e),
                )
        return submission

    def submit_contact(self, payload: Mapping[str, Any]) -> SubmissionResult:
        """Store a contact form submission (every submission is kept)."""
        with self.store_scope() as store:
            record = RecordAppender(store).append("contact", payload)
        return SubmissionResult(record=record, created=True)

    def record_calculation(self, payload: Mapping[str, Any]) -> SubmissionResult:
        """Run the inflation calculator and keep a copy of the run.

        Storing the run is best-effort: the calculation is returned even
        when the store is unavailable.

        Raises:
            RecordValidationError: Amount, year or month missing or invalid
        """
        try:
            calculation = calculate_inflation(
                payload.get("amount"),
                payload.get("year"),
                payload.get("month"),
                rate=self.app_config.calculator.inflation_rate,
            )
        except InvalidCalculationInput as e:
            raise RecordValidationError("Invalid inflation calculation", errors=[str(e)]) from e

        submission = SubmissionResult(calculation=calculation)
        try:
            with self.store_scope() as store:
                submission.record = RecordAppender(store).append(
                    "inflation_calculation",
                    {
                        "initial_amount": calculation.original_value,
                        "years": math.floor(calculation.years_diff),
                        "inflation_rate": calculation.annual_growth_rate,
                        "final_amount": calculation.today_value,
                    },
                )
            submission.created = True
        except PersistenceError as e:
            logger.warning(
                f"Failed to save inflation calculation: {e}",
                extra={"event": "pipeline.calculation.not_saved"},
            )
        return submission

    def send_inflation_report(self, payload: Mapping[str, Any]) -> SubmissionResult:
        """Email an inflation report. Never fails because of delivery.

        Raises:
            RecordValidationError: Email or calculation data missing or invalid
        """
        email = payload.get("email")
        calculation = payload.get("calculationData") or payload.get("calculation_data")

        missing = [name for name, value in (("email", email), ("calculationData", calculation)) if not value]
        if missing:
            raise RecordValidationError(
                "Email and calculation data are required",
                errors=[f"{name}: field required" for name in missing],
            )

        data = dict(calculation)
        for field in REPORT_FIELDS:
            if payload.get(field) is not None:
                data[field] = payload[field]

        with log_context(entity_type="inflation_report"):
            try:
                notification = self.notification_service.notify(
                    "report", data, recipient=email, recipient_name=payload.get("name")
                )
            except NotificationDataError as e:
                raise RecordValidationError("Invalid inflation report request", errors=[str(e)]) from e

        logger.info(
            f"Inflation report for {notification.recipient}: {notification.status}",
            extra={"event": "pipeline.report.processed", "status": notification.status},
        )
        return SubmissionResult(notification=notification)

    def save_learning_progress(
        self,
        user_id: str,
        module_id: str,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> SubmissionResult:
        """Create or overwrite a user's progress on one module."""
        with self.store_scope() as store:
            record = KeyedUpserter(store).upsert(
                "learning_progress", {"user_id": user_id, "module_id": module_id}, payload
            )
        return SubmissionResult(record=record)

    def award_achievement(self, payload: Mapping[str, Any]) -> SubmissionResult:
        """Award a badge once; repeat awards return the original record."""
        key = {
            "user_id": payload.get("userId", payload.get("user_id")),
            "badge_id": payload.get("badgeId", payload.get("badge_id")),
        }
        with self.store_scope() as store:
            result = DedupIngestor(store).ingest("achievement", key, payload)
        return SubmissionResult(record=result.record, created=result.created)

    def record_quiz_result(self, payload: Mapping[str, Any]) -> SubmissionResult:
        """Store one quiz attempt (every attempt is kept)."""
        with self.store_scope() as store:
            record = RecordAppender(store).append("quiz_result", payload)
        return SubmissionResult(record=record, created=True)

    def list_records(self, entity_type: str, user_id: Optional[str] = None) -> List[Record]:
        """Return stored records of one type, newest first, optionally for one user."""
        filters = {"user_id": user_id} if user_id is not None else {}
        with self.store_scope() as store:
            return RecordAppender(store).find(entity_type, filters, order_by="-id")
