"""Unit tests for the scheduler service.

Tests the SchedulerService including:
- Job registration with correct configuration
- Immediate first run (next_run_time set to now)
- Start/shutdown lifecycle
- Trigger now functionality
- Store outages contained to a single run
"""

import threading
from unittest.mock import Mock

import pytest

from intake.persistence.exceptions import StoreUnavailableError
from intake.scheduler import JOB_ID, SchedulerService


class TestSchedulerService:
    """Test suite for SchedulerService."""

    def test_scheduler_initialization(self):
        """Test that scheduler initializes with correct parameters."""
        mock_callable = Mock()
        shutdown_event = threading.Event()

        scheduler = SchedulerService(
            drain_callable=mock_callable,
            interval_seconds=60,
            shutdown_event=shutdown_event,
        )

        assert scheduler.interval_seconds == 60
        assert scheduler.drain_callable == mock_callable
        assert scheduler.shutdown_event == shutdown_event
        assert not scheduler.is_running()
        assert scheduler.get_next_run_time() is None

    def test_scheduler_registers_job_with_correct_config(self):
        """Test that the drain job never overlaps itself and coalesces missed runs."""
        scheduler = SchedulerService(drain_callable=Mock(), interval_seconds=900)

        scheduler.start()
        try:
            job = scheduler.scheduler.get_job(JOB_ID)
            assert job.max_instances == 1
            assert job.coalesce is True
            assert job.misfire_grace_time == 900
        finally:
            scheduler.shutdown(wait=False)

    def test_scheduler_start_and_shutdown(self):
        """Test scheduler start and shutdown lifecycle."""
        shutdown_event = threading.Event()
        scheduler = SchedulerService(
            drain_callable=Mock(), interval_seconds=300, shutdown_event=shutdown_event
        )

        scheduler.start()
        assert scheduler.is_running()
        assert scheduler.scheduler.get_job(JOB_ID) is not None

        scheduler.shutdown(wait=False)
        assert not scheduler.is_running()
        assert shutdown_event.is_set()

    def test_scheduler_immediate_first_run(self):
        """Test that the first drain runs right after start."""
        ran = threading.Event()
        scheduler = SchedulerService(drain_callable=ran.set, interval_seconds=300)

        scheduler.start()
        try:
            assert ran.wait(timeout=5)
            assert scheduler.get_next_run_time() is not None
        finally:
            scheduler.shutdown(wait=True)

    def test_trigger_now(self):
        """Test that trigger_now runs the drain synchronously."""
        mock_callable = Mock()
        scheduler = SchedulerService(drain_callable=mock_callable, interval_seconds=60)

        scheduler.trigger_now()

        mock_callable.assert_called_once_with()

    def test_store_outage_contained(self):
        """Test that a store outage ends the run without raising."""
        mock_callable = Mock(side_effect=StoreUnavailableError("database is locked"))
        scheduler = SchedulerService(drain_callable=mock_callable, interval_seconds=60)

        scheduler.trigger_now()

        mock_callable.assert_called_once()

    def test_other_errors_propagate(self):
        """Test that programming errors are not swallowed by the run wrapper."""
        scheduler = SchedulerService(
            drain_callable=Mock(side_effect=KeyError("missing")), interval_seconds=60
        )

        with pytest.raises(KeyError):
            scheduler.trigger_now()

    def test_shutdown_when_not_started(self):
        """Test that shutdown before start only sets the event."""
        shutdown_event = threading.Event()
        scheduler = SchedulerService(
            drain_callable=Mock(), interval_seconds=60, shutdown_event=shutdown_event
        )

        scheduler.shutdown()

        assert shutdown_event.is_set()
