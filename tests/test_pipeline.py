"""Unit tests for the intake pipeline."""

import pytest

from intake.config.models import AppConfig
from intake.ingestion import RecordValidationError
from intake.notifications import NotificationService
from intake.persistence.exceptions import StoreUnavailableError
from intake.pipeline import IntakePipeline
from tests.helpers import InMemoryStore, ScriptedTransport

LEAD = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "phone": "07700 900123",
    "investmentAmount": "50k-100k",
    "experienceLevel": "beginner",
}

CALCULATION_DATA = {
    "originalValue": 1000,
    "todayValue": 1280.08,
    "lossInValue": 280.08,
    "percentageIncrease": 28.01,
}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def pipeline(store, transport):
    app_config = AppConfig()
    service = NotificationService(
        delivery_config=app_config.delivery, transport=transport, store_scope=store.scope
    )
    return IntakePipeline(app_config=app_config, notification_service=service, store_scope=store.scope)


class TestSubscriptions:
    """Test newsletter subscriptions."""

    def test_subscribe_idempotent(self, pipeline, store):
        """Test that subscribing twice keeps one record."""
        first = pipeline.subscribe("ada@example.com")
        second = pipeline.subscribe("ada@example.com")

        assert first.created is True
        assert second.created is False
        assert second.record.id == first.record.id
        assert len(store.rows("newsletter_subscriptions")) == 1

    def test_subscribe_invalid_email(self, pipeline):
        """Test that malformed addresses are rejected."""
        with pytest.raises(RecordValidationError):
            pipeline.subscribe("not-an-email")


class TestWaitlist:
    """Test the deal sourcing waitlist."""

    def test_new_lead_gets_confirmation(self, pipeline, transport):
        """Test that a new lead is stored and welcomed."""
        result = pipeline.join_waitlist(LEAD)

        assert result.created is True
        assert result.email_sent
        assert transport.senders_tried == ["deals@krpropertyinvestments.com"]
        assert transport.calls[0]["recipient"] == "ada@example.com"
        assert "Hi Ada Lovelace," in transport.calls[0]["html"]

    def test_repeat_lead_not_emailed_again(self, pipeline, transport, store):
        """Test that a duplicate submission sends nothing."""
        pipeline.join_waitlist(LEAD)
        repeat = pipeline.join_waitlist({**LEAD, "name": "Changed"})

        assert repeat.created is False
        assert repeat.notification is None
        assert repeat.record.get("name") == "Ada Lovelace"
        assert len(transport.calls) == 1
        assert len(store.rows("deal_sourcing_waitlist")) == 1

    def test_delivery_failure_still_succeeds(self, pipeline, transport, store):
        """Test that an undeliverable welcome is queued and the lead kept."""
        transport.reject("deals@krpropertyinvestments.com")

        result = pipeline.join_waitlist(LEAD)

        assert result.created is True
        assert result.email_queued
        assert len(store.rows("deal_sourcing_waitlist")) == 1
        assert store.rows("pending_emails")[0]["email_type"] == "deal_confirmation"

    def test_missing_email(self, pipeline, transport):
        """Test that a lead without an email is rejected."""
        with pytest.raises(RecordValidationError):
            pipeline.join_waitlist({k: v for k, v in LEAD.items() if k != "email"})

        assert transport.calls == []

    def test_uncomposable_welcome_does_not_fail_stored_lead(self, pipeline, transport, store):
        """Test that an address the mail layer rejects still returns the stored lead."""
        payload = {**LEAD, "email": "a..b@example.com"}

        result = pipeline.join_waitlist(payload)

        assert result.created is True
        assert result.record.get("email") == "a..b@example.com"
        assert result.notification.status == "failed"
        assert "Invalid recipient address" in result.notification.error
        assert not result.email_sent
        assert transport.calls == []
        assert len(store.rows("deal_sourcing_waitlist")) == 1

        repeat = pipeline.join_waitlist(payload)

        assert repeat.created is False
        assert repeat.record.id == result.record.id

    def test_store_unavailable(self, pipeline, store, transport):
        """Test that storage outages are raised and nothing is sent."""
        store.unavailable = True

        with pytest.raises(StoreUnavailableError):
            pipeline.join_waitlist(LEAD)

        assert transport.calls == []


class TestContactAndQuiz:
    """Test append-only submissions."""

    def test_contact_always_stored(self, pipeline, store):
        """Test that repeated contact forms are all kept."""
        payload = {
            "name": "Ada",
            "email": "ada@example.com",
            "investmentAmount": "10k",
            "message": "Call me",
        }

        pipeline.submit_contact(payload)
        result = pipeline.submit_contact(payload)

        assert result.created is True
        assert len(store.rows("contact_submissions")) == 2

    def test_quiz_results_listed_newest_first(self, pipeline):
        """Test quiz results are listed per user, newest first."""
        for quiz in ("q1", "q2"):
            pipeline.record_quiz_result(
                {"userId": "u1", "quizId": quiz, "score": 4, "totalQuestions": 5, "answers": [1, 2]}
            )
        pipeline.record_quiz_result(
            {"userId": "u2", "quizId": "q1", "score": 1, "totalQuestions": 5, "answers": []}
        )

        records = pipeline.list_records("quiz_result", user_id="u1")

        assert [r.get("quiz_id") for r in records] == ["q2", "q1"]


class TestLearning:
    """Test learning progress and achievements."""

    def test_progress_overwritten(self, pipeline, store):
        """Test that progress keeps one record per user and module."""
        pipeline.save_learning_progress("u1", "m1", {"completed": False, "score": 20})
        result = pipeline.save_learning_progress("u1", "m1", {"completed": True, "score": 95})

        assert result.record.get("completed") == "true"
        assert result.record.get("score") == "95"
        assert len(store.rows("learning_progress")) == 1

    def test_achievement_awarded_once(self, pipeline, store):
        """Test that a badge is only awarded once per user."""
        payload = {"userId": "u1", "badgeId": "b1", "title": "First Steps", "description": "Done"}

        first = pipeline.award_achievement(payload)
        second = pipeline.award_achievement({**payload, "title": "Renamed"})

        assert first.created is True
        assert second.created is False
        assert second.record.get("title") == "First Steps"
        assert len(pipeline.list_records("achievement", user_id="u1")) == 1


class TestCalculator:
    """Test calculator submissions and reports."""

    def test_record_calculation(self, pipeline, store):
        """Test that a calculation is returned and stored."""
        result = pipeline.record_calculation({"amount": 1000, "year": 2015, "month": 1})

        assert result.calculation.original_value == 1000.0
        assert result.created is True
        row = store.rows("inflation_calculations")[0]
        assert row["initial_amount"] == 1000.0
        assert row["inflation_rate"] == 2.5
        assert row["final_amount"] == result.calculation.today_value
        assert row["years"] == int(result.calculation.years_diff)

    def test_calculation_uses_configured_rate(self, store, transport):
        """Test that calculator.inflation_rate is applied."""
        app_config = AppConfig(calculator={"inflation_rate": 4.0})
        pipeline = IntakePipeline(app_config=app_config, store_scope=store.scope)

        result = pipeline.record_calculation({"amount": 1000, "year": 2015, "month": 1})

        assert result.calculation.annual_growth_rate == 4.0

    def test_invalid_calculation(self, pipeline, store):
        """Test that invalid calculator input is a validation error."""
        with pytest.raises(RecordValidationError, match="Invalid inflation calculation"):
            pipeline.record_calculation({"amount": -1, "year": 2015, "month": 1})

        assert store.rows("inflation_calculations") == []

    def test_calculation_returned_when_store_down(self, pipeline, store):
        """Test that storing the run is best-effort."""
        store.unavailable = True

        result = pipeline.record_calculation({"amount": 1000, "year": 2015, "month": 1})

        assert result.calculation is not None
        assert result.record is None
        assert result.created is None

    def test_send_report(self, pipeline, transport):
        """Test that a report goes out from the default sender list."""
        result = pipeline.send_inflation_report(
            {
                "email": "ada@example.com",
                "name": "Ada",
                "amount": 1000,
                "month": 1,
                "year": 2015,
                "calculationData": CALCULATION_DATA,
            }
        )

        assert result.email_sent
        assert transport.senders_tried == ["info@kr-properties.co.uk"]
        html = transport.calls[0]["html"]
        assert "Hello Ada," in html
        assert "£1,280.08" in html
        assert "1/2015" in html

    def test_report_queued_when_all_senders_fail(self, pipeline, transport, store):
        """Test that report delivery problems never fail the request."""
        for email in (
            "info@kr-properties.co.uk",
            "noreply@kr-properties.co.uk",
            "hello@kr-properties.co.uk",
        ):
            transport.reject(email)

        result = pipeline.send_inflation_report(
            {"email": "ada@example.com", "calculationData": CALCULATION_DATA}
        )

        assert result.email_queued
        assert result.notification.attempts == 3
        assert store.rows("pending_emails")[0]["recipient_email"] == "ada@example.com"

    def test_report_requires_email_and_data(self, pipeline):
        """Test that email and calculation data are both required."""
        with pytest.raises(RecordValidationError) as exc_info:
            pipeline.send_inflation_report({})

        assert len(exc_info.value.errors) == 2

    def test_report_with_incomplete_data(self, pipeline, transport):
        """Test that calculation data missing required values is rejected."""
        with pytest.raises(RecordValidationError, match="Invalid inflation report request"):
            pipeline.send_inflation_report(
                {"email": "ada@example.com", "calculationData": {"originalValue": 1000}}
            )

        assert transport.calls == []
