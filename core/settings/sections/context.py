from pydantic import Field
from pydantic_settings import SettingsConfigDict

from core.settings.base import RelayBaseSettings


class ContextSettings(RelayBaseSettings):
    """
    Session context limits and retention.
    Loaded from .env with prefix RELAY_CONTEXT_*
    Sizes are in characters of the JSON-serialized form.
    """

    max_context_size: int = Field(default=10000, ge=1)
    compression_threshold: int = Field(default=5000, ge=1)
    relevant_context_limit: int = Field(default=5, ge=1)
    session_max_age_seconds: float = Field(default=24 * 60 * 60, gt=0)
    cleanup_interval_seconds: float = Field(default=60 * 60, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RELAY_CONTEXT_",
        extra="ignore",
    )
