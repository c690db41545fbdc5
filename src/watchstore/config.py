"""Configuration management for watchstore."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable overrides.

    All settings can be overridden via environment variables
    prefixed with WATCHSTORE_ (e.g. WATCHSTORE_STORAGE_TYPE, WATCHSTORE_REDIS_URL).
    Connection settings are passed through untouched to the selected backend.
    """

    model_config = {"env_prefix": "WATCHSTORE_"}

    # Backend selection: none | redis | upstash | kvrocks
    storage_type: str = "none"

    # Connection parameters, one group per backend family
    redis_url: str | None = None
    kvrocks_url: str | None = None
    upstash_url: str | None = None
    upstash_token: str | None = None

    # Behaviour shared by the remote backends
    search_history_limit: int = Field(default=20, ge=1)
    max_retries: int = Field(default=3, ge=1)
    retry_backoff: float = Field(default=0.1, ge=0.0, description="First retry delay in seconds")


# Module-level singleton, import this throughout the app
settings = Settings()
