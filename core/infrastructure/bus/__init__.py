"""Message bus infrastructure - Redis Streams integration."""
from .redis_stream_sink import RedisStreamEventSink

__all__ = ["RedisStreamEventSink"]
