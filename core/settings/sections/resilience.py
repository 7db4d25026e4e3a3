from pydantic import Field
from pydantic_settings import SettingsConfigDict

from core.settings.base import RelayBaseSettings


class ResilienceSettings(RelayBaseSettings):
    """
    Circuit breaker, retry and failover settings.
    Loaded from .env with prefix RELAY_RESILIENCE_*
    """

    # Registration order is the failover candidate order.
    providers: list[str] = Field(default_factory=lambda: ["cloudflare", "github", "asana"])
    circuit_breaker_threshold: int = Field(default=5, ge=1)
    circuit_breaker_timeout_seconds: float = Field(default=60.0, ge=0)
    max_retries: int = Field(default=3, ge=1)
    base_delay_seconds: float = Field(default=1.0, ge=0)
    max_backoff_seconds: float = Field(default=30.0, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RELAY_RESILIENCE_",
        extra="ignore",
    )
