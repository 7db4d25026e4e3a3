from pydantic import Field
from pydantic_settings import SettingsConfigDict

from core.settings.base import RelayBaseSettings


class EventSinkSettings(RelayBaseSettings):
    """
    Settings for the Redis Streams event sink.
    Loaded from .env with prefix RELAY_EVENTS_*
    """

    redis_enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    stream_name: str = "relay:orchestration:events"
    stream_maxlen: int = Field(default=10000, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RELAY_EVENTS_",
        extra="ignore",
    )
