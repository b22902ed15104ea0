"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI and the worker process.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from trailer_backend.configs.aggregation import AggregationSettings
from trailer_backend.configs.base import BaseSettings
from trailer_backend.configs.database import DatabaseSettings
from trailer_backend.configs.gateway import GatewaySettings
from trailer_backend.configs.queue import QueueSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from trailer_backend.configs import get_settings
        settings = get_settings()
    """
    return Settings()
