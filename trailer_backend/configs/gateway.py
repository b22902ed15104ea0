"""
AI gateway configuration settings.

Credentials and tuning for the video (fal.ai) and script (OpenAI)
providers, including the deterministic mock mode.

Dependencies: pydantic, pydantic_settings, trailer_backend.configs.base
System role: External AI provider configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from trailer_backend.configs.base import BaseSettings


class GatewaySettings(BaseSettings):
    """External AI provider configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GATEWAY_",
        case_sensitive=False,
        extra="ignore",
    )

    fal_key: str | None = Field(default=None, description="fal.ai API key")
    fal_endpoint: str = Field(
        default="fal-ai/bytedance/seedance/v1/lite/text-to-video",
        description="fal.ai model endpoint for text-to-video",
    )
    mock_mode: bool = Field(
        default=False,
        description="Use the mock providers even when credentials are present",
    )

    mock_queued_seconds: float = Field(default=2.0, description="Mock queued window")
    mock_complete_seconds: float = Field(default=10.0, description="Mock completion threshold")

    poll_interval_seconds: float = Field(default=5.0, description="Delay between status polls")
    poll_max_attempts: int = Field(default=60, description="Poll attempts before timeout")
    max_prompt_length: int = Field(default=1000, description="Maximum prompt length")

    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    script_model: str = Field(default="gpt-4o", description="Chat model for scripts")
    script_temperature: float = Field(default=0.7, description="Script sampling temperature")

    @property
    def use_mock_video(self) -> bool:
        """Whether the video gateway should run in mock mode."""
        return self.mock_mode or not self.fal_key

    @property
    def use_mock_script(self) -> bool:
        """Whether the script gateway should run in mock mode."""
        return self.mock_mode or not self.openai_api_key
