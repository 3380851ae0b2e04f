"""
Fan-out of game events to connected devices.

LocalHub keeps one bounded queue per subscriber inside this process.
RedisHub relays through a Redis pub/sub channel so every API worker sees
events published by any other worker. Both speak plain JSON dicts; the
websocket layer turns them back into typed events.
"""
from __future__ import annotations
import asyncio
import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable
import redis.asyncio as redis
from redis.exceptions import RedisError
import structlog

from banfoo.config import settings

log = structlog.get_logger()

QUEUE_SIZE = 256


class LocalHub:
    def __init__(self) -> None:
        self._queues: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    async def publish(self, event) -> None:
        message = event.model_dump(mode="json")
        for q in list(self._queues):
            try:
                q.put_nowait(message)
            except asyncio.QueueFull:
                # slow consumer: drop its oldest message rather than block admins
                q.get_nowait()
                q.put_nowait(message)
                log.warning("subscriber_queue_full", kind=message.get("kind"))

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[AsyncIterator[dict]]:
        q: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        self._queues.add(q)

        async def _messages():
            while True:
                yield await q.get()

        try:
            yield _messages()
        finally:
            self._queues.discard(q)

    async def close(self) -> None:
        self._queues.clear()


class RedisHub:
    def __init__(self, url: str, channel: str) -> None:
        self._redis = redis.from_url(url, decode_responses=True)
        self._channel = channel

    async def publish(self, event) -> None:
        await self._redis.publish(self._channel, event.model_dump_json())

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[AsyncIterator[dict]]:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)

        async def _messages():
            async for raw in pubsub.listen():
                if raw.get("type") != "message":
                    continue
                try:
                    yield json.loads(raw["data"])
                except (TypeError, ValueError):
                    log.warning("bad_bus_message", channel=self._channel)

        try:
            yield _messages()
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()

    async def close(self) -> None:
        await self._redis.aclose()


def build_hub(url: str = "", channel: str = "banfoo:events") -> LocalHub | RedisHub:
    if url:
        return RedisHub(url, channel)
    return LocalHub()

hub = build_hub(settings.event_bus_url, settings.event_bus_channel)


async def publish_all(events: Iterable) -> None:
    """Publish after commit. A bus failure is logged; the database write already stands."""
    for event in events:
        try:
            await hub.publish(event)
        except (RedisError, OSError) as e:
            log.error("publish_failed", kind=event.kind, event_id=str(event.event_id), error=str(e))
