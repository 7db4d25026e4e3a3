"""
Redis Streams Event Sink.

Forwards orchestration events (step and workflow completion) to a Redis
Stream so that out-of-process consumers can follow workflow progress.
"""
import json
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional

import redis.asyncio as aioredis

if TYPE_CHECKING:
    from orchestration.bus import EventBusProtocol
    from orchestration.events import Event


logger = logging.getLogger(__name__)


class RedisStreamEventSink:
    """
    Appends events to a Redis Stream.

    Message format: {
        "event_name": str,
        "execution_id": str,
        "workflow_name": str,
        "session_id": str,
        "timestamp": str,  # ISO format
        "payload": str,  # JSON
    }
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        stream_name: str = "relay:orchestration:events",
        maxlen: int = 10000,
        client: Optional[aioredis.Redis] = None,
    ):
        """
        Initialize Redis Stream event sink.

        Args:
            redis_url: Redis connection URL
            stream_name: Redis Stream name
            maxlen: Approximate number of messages kept in the stream
            client: Pre-built client (skips connect)
        """
        self.redis_url = redis_url
        self.stream_name = stream_name
        self.maxlen = maxlen
        self._redis_client: Optional[aioredis.Redis] = client

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._redis_client is None:
            try:
                self._redis_client = aioredis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
                await self._redis_client.ping()
                logger.info(f"Connected to Redis: {self.redis_url}")
            except Exception as e:
                logger.error(f"Failed to connect to Redis: {e}")
                self._redis_client = None
                raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None
            logger.info("Disconnected from Redis")

    def attach(self, bus: "EventBusProtocol", event_names: Iterable[str]) -> None:
        """Subscribe this sink to the given events on a bus."""
        for event_name in event_names:
            bus.subscribe(event_name, self.handle)

    @staticmethod
    def build_message(event: "Event") -> dict[str, Any]:
        return {
            "event_name": event.name,
            "execution_id": event.metadata.execution_id,
            "workflow_name": event.metadata.workflow_name,
            "session_id": event.metadata.session_id,
            "timestamp": event.metadata.timestamp.isoformat(),
            "payload": json.dumps(event.payload, default=str),
        }

    async def handle(self, event: "Event") -> str:
        """
        Append one event to the stream.

        Returns:
            Message ID from Redis Stream
        """
        if self._redis_client is None:
            await self.connect()

        message = self.build_message(event)
        try:
            msg_id = await self._redis_client.xadd(
                self.stream_name,
                message,
                maxlen=self.maxlen,
                approximate=True,
            )
        except Exception as e:
            logger.error(f"Failed to publish to Redis Stream: {e}", exc_info=True)
            raise

        logger.debug(
            f"Published {event.name} for execution {event.metadata.execution_id}: "
            f"msg_id={msg_id}"
        )
        return msg_id

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
