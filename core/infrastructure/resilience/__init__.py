"""Resilience layer - circuit breaking, retry with backoff, failover."""
from .manager import ResilienceManager
from .provider import ProviderRecord

__all__ = ["ProviderRecord", "ResilienceManager"]
