"""
Unit tests for the job state machine and retry backoff schedule.

Tests cover:
- Permitted and rejected transitions
- Exponential backoff delays and their cap
- Retry-pending detection with naive and aware timestamps
"""

from datetime import datetime, timedelta, timezone

import pytest

from trailer_backend.boundary.db.models.job_model import JobStatus
from trailer_backend.core import job_state
from trailer_backend.core.exceptions import InvalidTransitionError


class TestTransitions:
    """Test the job transition table."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.PENDING, JobStatus.ACTIVE),
            (JobStatus.PENDING, JobStatus.FAILED),
            (JobStatus.ACTIVE, JobStatus.COMPLETED),
            (JobStatus.ACTIVE, JobStatus.FAILED),
            (JobStatus.ACTIVE, JobStatus.PENDING),
        ],
    )
    def test_permitted_transitions(self, current, target):
        """Lifecycle edges are allowed."""
        assert job_state.can_transition(current, target)
        job_state.ensure_transition(current, target)

    @pytest.mark.parametrize("terminal", [JobStatus.COMPLETED, JobStatus.FAILED])
    @pytest.mark.parametrize("target", list(JobStatus))
    def test_terminal_states_are_final(self, terminal, target):
        """Nothing leaves completed or failed."""
        assert not job_state.can_transition(terminal, target)

    def test_pending_cannot_complete_directly(self):
        """A job must be claimed before it can complete."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            job_state.ensure_transition(JobStatus.PENDING, JobStatus.COMPLETED)

        assert exc_info.value.current == "pending"
        assert exc_info.value.target == "completed"


class TestBackoff:
    """Test the retry backoff schedule."""

    def test_delay_doubles_per_retry(self):
        """5s, 10s, 20s for the first three retries."""
        delays = [job_state.backoff_delay(count, 5.0, 300.0) for count in range(3)]

        assert delays == [5.0, 10.0, 20.0]

    def test_delay_is_capped(self):
        """Delays never exceed the configured maximum."""
        assert job_state.backoff_delay(10, 5.0, 60.0) == 60.0

    def test_next_available_at(self):
        """The job becomes eligible after the delay."""
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        available_at = job_state.next_available_at(now, 1, 5.0, 300.0)

        assert available_at - now == timedelta(seconds=10)


class TestRetryPending:
    """Test retry-pending detection."""

    def test_pending_in_the_future_is_retry_pending(self):
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

        assert job_state.is_retry_pending(JobStatus.PENDING, now + timedelta(seconds=5), now)
        assert not job_state.is_retry_pending(JobStatus.PENDING, now - timedelta(seconds=5), now)

    def test_naive_store_values_compare_as_utc(self):
        """Naive datetimes read back from the store are treated as UTC."""
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        stored = datetime(2025, 1, 1, 12, 0, 5)

        assert job_state.is_retry_pending(JobStatus.PENDING, stored, now)

    def test_active_job_is_never_retry_pending(self):
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

        assert not job_state.is_retry_pending(JobStatus.ACTIVE, now + timedelta(hours=1), now)
