"""
Job queue configuration settings.

Retry policy, retention limits, priorities and worker concurrency
for the generation job queue.

Dependencies: pydantic, pydantic_settings, trailer_backend.configs.base
System role: Queue and worker pool configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from trailer_backend.configs.base import BaseSettings


class QueueSettings(BaseSettings):
    """Job queue and worker pool configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUEUE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Retry policy
    max_retries: int = Field(default=3, description="Maximum retry attempts per job")
    backoff_base_seconds: float = Field(
        default=5.0,
        description="Base retry delay; doubles on each attempt (5s, 10s, 20s)",
    )
    backoff_max_seconds: float = Field(default=300.0, description="Maximum retry delay")

    # Retention
    keep_completed: int = Field(default=50, description="Completed jobs retained")
    keep_failed: int = Field(default=20, description="Failed jobs retained")

    # Workers
    visibility_timeout_seconds: float = Field(
        default=600.0,
        description="Lease length of a claimed job; progress reports renew it. "
        "An expired lease sends the job back through the retry policy",
    )
    concurrency: int = Field(default=2, description="Jobs processed in parallel per pool")
    idle_sleep_seconds: float = Field(
        default=1.0,
        description="Sleep between dequeue attempts when the queue is empty",
    )
    enable_workers: bool = Field(
        default=False,
        description="Run an in-process worker pool alongside the API",
    )

    # Priorities (higher is served first)
    script_generate_priority: int = Field(default=0)
    script_refine_priority: int = Field(default=10)
    segment_video_priority: int = Field(default=10)
    standalone_video_priority: int = Field(default=5)
