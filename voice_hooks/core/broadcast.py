"""Fan-out of conversation events to live observers (SSE clients)."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Set
from uuid import uuid4

from voice_hooks.core.logger import get_logger

logger = get_logger("broadcast")

EVENT_TYPES = (
    "connected",
    "utterance-added",
    "utterance-status-changed",
    "utterance-deleted",
    "queue-cleared",
    "assistant-message-added",
)


class ChannelClosed(Exception):
    """Raised when writing to a channel whose observer went away."""


def serialize_event(event_type: str, payload: Optional[Dict[str, Any]] = None) -> str:
    """Serialize an event as the JSON document sent to observers."""
    return json.dumps(
        {
            "type": event_type,
            **(payload or {}),
            "ts": datetime.now(timezone.utc).isoformat(),
        },
        ensure_ascii=False,
    )


def format_sse(message: str) -> str:
    return f"data: {message}\n\n"


class EventChannel:
    """One observer's bounded outbox."""

    def __init__(self, maxsize: int = 256) -> None:
        self.id = uuid4().hex[:12]
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def write(self, message: str) -> None:
        if self.closed:
            raise ChannelClosed(self.id)
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull as exc:
            # A reader this far behind is treated as gone.
            raise ChannelClosed(self.id) from exc

    async def read(self) -> str:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self.closed = True


class BroadcastHub:
    """Best-effort, at-most-once delivery to every subscribed channel."""

    def __init__(self, buffer_size: int = 256) -> None:
        self.buffer_size = buffer_size
        self._channels: Set[EventChannel] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._channels)

    def subscribe(self) -> EventChannel:
        channel = EventChannel(maxsize=self.buffer_size)
        channel.write(serialize_event("connected"))
        self._channels.add(channel)
        logger.info("Observer subscribed", extra={"channel": channel.id, "observers": len(self._channels)})
        return channel

    def unsubscribe(self, channel: EventChannel) -> None:
        channel.close()
        if channel in self._channels:
            self._channels.discard(channel)
            logger.info("Observer unsubscribed", extra={"channel": channel.id, "observers": len(self._channels)})

    def publish(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> int:
        """Write the event to all live channels and return how many received it."""
        message = serialize_event(event_type, payload)
        delivered = 0
        for channel in list(self._channels):
            try:
                channel.write(message)
            except ChannelClosed:
                self._channels.discard(channel)
                channel.close()
                logger.debug("Dropped dead observer", extra={"channel": channel.id, "event": event_type})
                continue
            delivered += 1
        return delivered


async def event_stream(
    hub: BroadcastHub,
    is_disconnected: Callable[[], Awaitable[bool]],
    heartbeat: float = 15.0,
) -> AsyncIterator[str]:
    """Subscribe to ``hub`` and yield SSE frames until the client disconnects.

    The channel only exists while the generator runs.
    """
    channel = hub.subscribe()
    try:
        while not channel.closed:
            if await is_disconnected():
                break
            try:
                message = await asyncio.wait_for(channel.read(), timeout=heartbeat)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(message)
    finally:
        hub.unsubscribe(channel)
