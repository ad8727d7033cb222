"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MongoDB (job catalog + session history)
    mongodb_uri: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="careermatch")

    # OpenAI / LLM
    openai_api_key: SecretStr = Field(default=SecretStr(""))
    openai_base_url: Optional[str] = Field(
        default=None, description="Override for OpenAI-compatible gateways"
    )
    openai_model: str = Field(default="gpt-4o")
    openai_model_mini: str = Field(default="gpt-4o-mini")
    llm_request_timeout: float = Field(
        default=60.0, description="Per-call timeout in seconds"
    )
    llm_max_retries: int = Field(
        default=2, description="Additional attempts after the first failure"
    )
    llm_retry_delay: float = Field(
        default=1.0, description="Fixed delay between attempts in seconds"
    )

    # Matcher settings
    match_batch_size: int = Field(default=30, description="Jobs per scoring call")
    match_concurrency: int = Field(
        default=8, description="Maximum batches in flight at once"
    )
    match_temperature: float = Field(default=0.3)

    # Catalog import settings
    catalog_chunk_size: int = Field(
        default=3000, description="Characters of raw text per extraction call"
    )

    # Session history
    session_history_limit: int = Field(default=20)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    def require_openai_key(self) -> str:
        """Return the API key or fail fast when it is not configured."""
        key = self.openai_api_key.get_secret_value().strip()
        if not key:
            raise ConfigurationError(
                "OPENAI_API_KEY is not set; configure it in the environment or .env"
            )
        return key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
