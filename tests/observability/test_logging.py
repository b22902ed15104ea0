"""
Tests for correlation id propagation, the logging filter and structured context helpers.
"""

import logging
import uuid

import pytest

from trailer_backend.boundary.db.models.job_model import JobStatus
from trailer_backend.core.exceptions import PersistenceError
from trailer_backend.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from trailer_backend.observability.log_context import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)
from trailer_backend.observability.logger import CorrelationIdFilter


@pytest.fixture(autouse=True)
def reset_correlation():
    yield
    clear_correlation_id()


class TestCorrelationId:
    """Test correlation id context handling."""

    def test_explicit_id_is_kept(self):
        assert set_correlation_id("job-123") == "job-123"
        assert get_correlation_id() == "job-123"

    def test_missing_id_is_generated(self):
        generated = set_correlation_id()

        assert generated
        assert get_correlation_id() == generated

    def test_clear(self):
        set_correlation_id("job-123")

        clear_correlation_id()

        assert get_correlation_id() == ""


class TestCorrelationIdFilter:
    """Test the log record filter."""

    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)

    def test_record_carries_current_id(self):
        set_correlation_id("job-42")
        record = self._record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "job-42"

    def test_placeholder_without_id(self):
        record = self._record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == "-"


class TestSafeLogValue:
    """Test context value summarising."""

    def test_collections_are_summarised(self):
        assert safe_log_value({"prompt": "a", "duration": "5"}) == "dict(2 keys)"
        assert safe_log_value(["scene_1", "scene_2", "scene_3"]) == "list(3 items)"

    def test_enum_and_uuid(self):
        job_id = uuid.uuid4()

        assert safe_log_value(JobStatus.ACTIVE) == "active"
        assert safe_log_value(job_id) == str(job_id)

    def test_long_prompt_is_truncated(self):
        value = safe_log_value("x" * 300, max_length=10)

        assert value.startswith("xxxxxxxxxx...")
        assert "300 total" in value

    def test_none(self):
        assert safe_log_value(None) == "None"


class TestLogWithContext:
    """Test structured log emission."""

    def test_context_lands_on_record(self, caplog):
        logger = logging.getLogger("tests.log_context")

        with caplog.at_level(logging.INFO, logger="tests.log_context"):
            log_with_context(logger, logging.INFO, "claimed", job_id="job-1", payload={"prompt": "a"})

        record = caplog.records[-1]
        assert record.job_id == "job-1"
        assert record.payload == "dict(1 keys)"

    def test_reserved_keys_are_prefixed(self, caplog):
        logger = logging.getLogger("tests.log_context")

        with caplog.at_level(logging.INFO, logger="tests.log_context"):
            log_with_context(logger, logging.INFO, "request", name="worker-1")

        assert caplog.records[-1].ctx_name == "worker-1"

    def test_exception_details_are_merged(self, caplog):
        logger = logging.getLogger("tests.log_context")
        error = PersistenceError("database is locked", operation="complete")

        with caplog.at_level(logging.ERROR, logger="tests.log_context"):
            log_exception_with_context(logger, "write failed", error, worker_id="worker-1")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
        assert record.error_type == "PersistenceError"
        assert record.worker_id == "worker-1"
        assert record.operation == "complete"
