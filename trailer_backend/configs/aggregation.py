"""
Project status aggregation settings.

Dependencies: pydantic_settings, trailer_backend.configs.base
System role: Failure threshold policy for project status
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from trailer_backend.configs.base import BaseSettings


class AggregationSettings(BaseSettings):
    """Threshold policy used when promoting segment failures to the project."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AGGREGATION_",
        case_sensitive=False,
        extra="ignore",
    )

    failure_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Fraction of failed segments that marks the project failed",
    )
    failure_threshold_inclusive: bool = Field(
        default=False,
        description="Treat a ratio equal to the threshold as failure",
    )
