"""
Unit tests for project status summarization.

Tests cover:
- Status rules in order (completed, failed, processing, pending)
- Floor-average overall progress
- Configurable failure threshold
"""

import pytest

from trailer_backend.boundary.db.models.job_model import JobStatus
from trailer_backend.boundary.db.models.project_model import ProjectStatus
from trailer_backend.configs.aggregation import AggregationSettings
from trailer_backend.core.aggregator import FailurePolicy, summarize_segments


class TestSummarizeSegments:
    """Test summarize_segments status and progress rules."""

    def test_all_completed(self):
        """Every segment completed gives a completed project at 100%."""
        summary = summarize_segments([(JobStatus.COMPLETED, 100)] * 3)

        assert summary.status == ProjectStatus.COMPLETED
        assert summary.overall_progress == 100

    def test_majority_failed(self):
        """Two of three failed crosses the default threshold."""
        summary = summarize_segments(
            [(JobStatus.FAILED, 30), (JobStatus.FAILED, 0), (JobStatus.COMPLETED, 100)]
        )

        assert summary.status == ProjectStatus.FAILED
        assert summary.overall_progress == 43

    def test_any_active_is_processing(self):
        summary = summarize_segments(
            [(JobStatus.ACTIVE, 50), (JobStatus.PENDING, 0), (JobStatus.PENDING, 0)]
        )

        assert summary.status == ProjectStatus.PROCESSING
        assert summary.overall_progress == 16

    def test_processing_string_status_counts_as_active(self):
        """Mirrors written as plain strings are accepted."""
        summary = summarize_segments([("processing", 40), ("pending", 0)])

        assert summary.status == ProjectStatus.PROCESSING
        assert summary.overall_progress == 20

    def test_no_segments_is_pending(self):
        summary = summarize_segments([])

        assert summary.status == ProjectStatus.PENDING
        assert summary.overall_progress == 0

    def test_even_split_is_not_failed_by_default(self):
        """Half failed is not strictly more than half."""
        summary = summarize_segments([(JobStatus.FAILED, 0), (JobStatus.ACTIVE, 60)])

        assert summary.status == ProjectStatus.PROCESSING

    def test_minority_failed_without_activity_is_pending(self):
        """Failures below threshold and nothing active leave the project pending."""
        summary = summarize_segments(
            [(JobStatus.FAILED, 0), (JobStatus.COMPLETED, 100), (JobStatus.COMPLETED, 100)]
        )

        assert summary.status == ProjectStatus.PENDING
        assert summary.overall_progress == 66

    def test_completed_takes_precedence_over_threshold(self):
        """An empty failure count never fails a project, even at threshold zero."""
        summary = summarize_segments([(JobStatus.COMPLETED, 100)], FailurePolicy(threshold=0.0))

        assert summary.status == ProjectStatus.COMPLETED


class TestFailurePolicy:
    """Test configurable failure thresholds."""

    def test_inclusive_threshold_fails_even_split(self):
        policy = FailurePolicy(threshold=0.5, inclusive=True)

        summary = summarize_segments([(JobStatus.FAILED, 0), (JobStatus.ACTIVE, 60)], policy)

        assert summary.status == ProjectStatus.FAILED

    @pytest.mark.parametrize(
        "failed,total,expected",
        [(0, 3, False), (1, 3, False), (2, 3, True), (3, 3, True), (1, 2, False), (0, 0, False)],
    )
    def test_default_is_strict_majority(self, failed, total, expected):
        assert FailurePolicy().is_failed(failed, total) is expected

    def test_lower_threshold(self):
        """A single failure out of four fails the project at 20%."""
        assert FailurePolicy(threshold=0.2).is_failed(1, 4)

    def test_from_settings(self):
        settings = AggregationSettings(failure_threshold=0.25, failure_threshold_inclusive=True)

        policy = FailurePolicy.from_settings(settings)

        assert policy == FailurePolicy(threshold=0.25, inclusive=True)
