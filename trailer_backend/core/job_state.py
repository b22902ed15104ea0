"""
Job state machine.

Transition table for generation jobs and the retry backoff schedule.
The queue consults these guards before writing, and every write is
additionally guarded in SQL so the table holds under concurrency.

    pending --claim--> active --complete--> completed
       |                 |----fail (retries left)--> pending (retry-pending until available_at)
       |                 |----fail (exhausted)-----> failed
       +----cancel-------+----cancel---------------> failed

Dependencies: trailer_backend.boundary.db.models, trailer_backend.core.exceptions
System role: Pure job lifecycle rules
"""

from datetime import datetime, timedelta

from trailer_backend.boundary.db.models.job_model import JobStatus
from trailer_backend.core.exceptions import InvalidTransitionError

ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.ACTIVE, JobStatus.FAILED}),
    JobStatus.ACTIVE: frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.PENDING}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Return True if `current -> target` is a permitted job transition."""
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: JobStatus, target: JobStatus) -> None:
    """
    Guard a job transition.

    Args:
        current: Status the job is in
        target: Status the caller wants to move to

    Raises:
        InvalidTransitionError: If the transition is not permitted
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


def backoff_delay(retry_count: int, base_seconds: float, max_seconds: float) -> float:
    """
    Exponential retry delay for the next attempt.

    retry_count is the number of retries already consumed, so the first
    retry waits `base_seconds`, the second twice that, and so on.

    Args:
        retry_count: Retries already performed
        base_seconds: Delay before the first retry
        max_seconds: Upper bound on any delay

    Returns:
        float: Delay in seconds
    """
    return min(max_seconds, base_seconds * (2 ** max(0, retry_count)))


def is_retry_pending(status: JobStatus, available_at: datetime, now: datetime) -> bool:
    """Whether a job is PENDING but still waiting out its retry backoff."""
    return status == JobStatus.PENDING and _naive(available_at) > _naive(now)


def next_available_at(now: datetime, retry_count: int, base_seconds: float, max_seconds: float) -> datetime:
    """Time at which a job failing now becomes eligible again."""
    return now + timedelta(seconds=backoff_delay(retry_count, base_seconds, max_seconds))


def _naive(value: datetime) -> datetime:
    # SQLite returns naive UTC datetimes; compare everything as naive UTC
    if value.tzinfo is None:
        return value
    return value.replace(tzinfo=None) - (value.utcoffset() or timedelta(0))
