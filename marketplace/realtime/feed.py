"""
Realtime change feed - row-level insert/update/delete events per table and filter.
Challenge: Several UI surfaces (and reloads) must learn a job's outcome.
Design: subscribe() returns a handle the consumer owns; every subscription is an
independent channel and unsubscribe() is idempotent.
"""

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from redis.asyncio import Redis

from marketplace.config import get_settings

logger = logging.getLogger(__name__)

Callback = Callable[["ChangeEvent"], Awaitable[None] | None]


@dataclass
class ChangeEvent:
    table: str
    event: str  # insert | update | delete
    new: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps({"table": self.table, "event": self.event, "new": self.new})

    @classmethod
    def from_json(cls, raw: str) -> "ChangeEvent":
        data = json.loads(raw)
        return cls(table=data["table"], event=data["event"], new=data.get("new") or {})


def channel_name(table: str, column: str, value: str) -> str:
    return f"{table}:{column}=eq.{value}"


async def _deliver(callback: Callback, event: ChangeEvent) -> None:
    try:
        result = callback(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        # One faulty listener must not break delivery to the others
        logger.exception("Change feed callback failed for %s", event.table)


class Subscription:
    """Handle returned by subscribe(). Safe to close more than once."""

    def __init__(self, channel: str, close: Callable[[], Awaitable[None]]):
        self.channel = channel
        self._close = close
        self.closed = False

    async def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self._close()
        except Exception as exc:
            logger.debug("Channel %s already gone on unsubscribe: %s", self.channel, exc)


class ChangeFeed:
    async def publish(self, table: str, column: str, value: str, event: ChangeEvent) -> None:
        raise NotImplementedError

    async def subscribe(self, table: str, column: str, value: str, callback: Callback) -> Subscription:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class InMemoryChangeFeed(ChangeFeed):
    """Single-process feed: events are delivered from the publisher's task."""

    def __init__(self):
        self._listeners: dict[str, dict[int, Callback]] = {}
        self._next_id = 0

    def listener_count(self, table: str, column: str, value: str) -> int:
        return len(self._listeners.get(channel_name(table, column, value), {}))

    async def publish(self, table: str, column: str, value: str, event: ChangeEvent) -> None:
        channel = channel_name(table, column, value)
        for callback in list(self._listeners.get(channel, {}).values()):
            await _deliver(callback, event)

    async def subscribe(self, table: str, column: str, value: str, callback: Callback) -> Subscription:
        channel = channel_name(table, column, value)
        self._next_id += 1
        key = self._next_id
        self._listeners.setdefault(channel, {})[key] = callback

        async def close() -> None:
            listeners = self._listeners.get(channel)
            if listeners is not None:
                listeners.pop(key, None)
                if not listeners:
                    self._listeners.pop(channel, None)

        return Subscription(channel, close)


class RedisChangeFeed(ChangeFeed):
    """Cross-process feed over Redis pub/sub (Celery workers publish, API listens)."""

    def __init__(self, redis: Redis):
        self.redis = redis

    async def publish(self, table: str, column: str, value: str, event: ChangeEvent) -> None:
        try:
            await self.redis.publish(channel_name(table, column, value), event.to_json())
        except Exception as exc:
            logger.warning("Change feed publish failed table=%s %s=%s: %s", table, column, value, exc)

    async def subscribe(self, table: str, column: str, value: str, callback: Callback) -> Subscription:
        channel = channel_name(table, column, value)
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(channel)

        async def reader() -> None:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await _deliver(callback, ChangeEvent.from_json(message["data"]))

        task = asyncio.create_task(reader())

        async def close() -> None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()

        return Subscription(channel, close)

    async def close(self) -> None:
        await self.redis.aclose()


_feed: ChangeFeed | None = None


def build_change_feed() -> ChangeFeed:
    """New feed bound to the running loop (Celery tasks build one per task)."""
    settings = get_settings()
    if settings.realtime_backend == "redis":
        return RedisChangeFeed(
            Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        )
    return InMemoryChangeFeed()


def get_change_feed() -> ChangeFeed:
    """Process-wide feed. FastAPI dependency; tests override it."""
    global _feed
    if _feed is None:
        _feed = build_change_feed()
    return _feed
