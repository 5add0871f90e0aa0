"""Unit tests for DedupIngestor."""

import logging

import pytest

from intake.ingestion import DedupIngestor, RecordValidationError
from intake.persistence.exceptions import ConstraintViolationError, StoreUnavailableError
from tests.helpers import InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def ingestor(store):
    return DedupIngestor(store)


LEAD = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "phone": "07700 900123",
    "investmentAmount": "50k-100k",
    "experienceLevel": "beginner",
}


class TestDedupIngestor:
    """Test suite for DedupIngestor."""

    def test_first_submission_creates(self, ingestor, store):
        """Test that the first submission for a key creates the record."""
        result = ingestor.ingest("subscription", "ada@example.com")

        assert result.created is True
        assert result.record.entity_type == "subscription"
        assert result.record.get("email") == "ada@example.com"
        assert len(store.rows("newsletter_subscriptions")) == 1

    def test_repeat_submission_returns_existing(self, ingestor, store):
        """Test that a repeat submission is a no-op returning the same record."""
        first = ingestor.ingest("subscription", "ada@example.com")
        second = ingestor.ingest("subscription", "ada@example.com")

        assert second.created is False
        assert second.record.id == first.record.id
        assert len(store.rows("newsletter_subscriptions")) == 1
        assert store.insert_calls == 1

    def test_first_submission_wins(self, ingestor, store):
        """Test that a duplicate's payload is discarded, not merged."""
        ingestor.ingest("deal_lead", {"email": "ada@example.com"}, LEAD)
        second = ingestor.ingest(
            "deal_lead", {"email": "ada@example.com"}, {**LEAD, "name": "Someone Else"}
        )

        assert second.created is False
        assert second.record.get("name") == "Ada Lovelace"
        assert store.rows("deal_sourcing_waitlist")[0]["name"] == "Ada Lovelace"

    def test_different_keys_create_separate_records(self, ingestor, store):
        """Test that distinct keys each get their own record."""
        a = ingestor.ingest("subscription", "a@example.com")
        b = ingestor.ingest("subscription", "b@example.com")

        assert a.created and b.created
        assert a.record.id != b.record.id

    def test_composite_key(self, ingestor, store):
        """Test deduplication on a (user, badge) key."""
        payload = {"title": "First Steps", "description": "Completed module one"}

        first = ingestor.ingest("achievement", ("u1", "b1"), payload)
        repeat = ingestor.ingest("achievement", {"userId": "u1", "badgeId": "b1"}, payload)
        other_badge = ingestor.ingest("achievement", ("u1", "b2"), payload)

        assert first.created is True
        assert repeat.created is False
        assert repeat.record.id == first.record.id
        assert other_badge.created is True
        assert len(store.rows("achievements")) == 2

    def test_key_overrides_payload(self, ingestor, store):
        """Test that the key, not the payload, decides the stored key values."""
        result = ingestor.ingest("deal_lead", "ada@example.com", {**LEAD, "email": "other@example.com"})

        assert result.record.get("email") == "ada@example.com"

    def test_missing_key_rejected_before_store(self, ingestor, store):
        """Test that a missing key fails validation without touching the store."""
        with pytest.raises(RecordValidationError):
            ingestor.ingest("achievement", {"user_id": "u1"}, {"title": "T", "description": "D"})

        assert store.insert_calls == 0

    def test_invalid_payload_rejected(self, ingestor, store):
        """Test that required payload fields are validated."""
        with pytest.raises(RecordValidationError) as exc_info:
            ingestor.ingest("deal_lead", "ada@example.com", {"name": "Ada"})

        assert len(exc_info.value.errors) == 2
        assert store.rows("deal_sourcing_waitlist") == []

    def test_store_unavailable_propagates(self, ingestor, store):
        """Test that store outages are raised to the caller."""
        store.unavailable = True

        with pytest.raises(StoreUnavailableError):
            ingestor.ingest("subscription", "ada@example.com")

    def test_lost_race_recovers_existing_record(self, store, caplog):
        """Test recovery when the lookup misses but the insert hits the unique key."""
        winner = store.insert("newsletter_subscriptions", {"email": "ada@example.com"})
        original_select = store.select
        calls = []

        def select_missing_once(table, predicate, order_by=None, limit=None):
            calls.append(predicate)
            if len(calls) == 1:
                return []
            return original_select(table, predicate, order_by, limit)

        store.select = select_missing_once

        with caplog.at_level(logging.INFO):
            result = DedupIngestor(store).ingest("subscription", "ada@example.com")

        assert result.created is False
        assert result.record.id == winner["id"]
        assert len(calls) == 2
        assert any(
            getattr(r, "event", None) == "ingest.conflict_recovered" for r in caplog.records
        )

    def test_unresolvable_conflict_raises(self, store):
        """Test that a constraint violation with no matching row is re-raised."""
        store.select = lambda table, predicate, order_by=None, limit=None: []

        def rejecting_insert(table, row):
            raise ConstraintViolationError("CHECK constraint failed")

        store.insert = rejecting_insert

        with pytest.raises(ConstraintViolationError, match="CHECK"):
            DedupIngestor(store).ingest("subscription", "ada@example.com")

    def test_created_event_logged(self, ingestor, caplog):
        """Test that creation logs an ingest.created event with the entity type."""
        with caplog.at_level(logging.INFO):
            ingestor.ingest("subscription", "ada@example.com")

        created = [r for r in caplog.records if getattr(r, "event", None) == "ingest.created"]
        assert len(created) == 1
        assert created[0].component == "ingest"
