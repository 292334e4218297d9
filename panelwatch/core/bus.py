"""In-process delivery of panelist change events to their consumers.

Every subscriber owns a bounded queue drained by its own task. Publishing
waits for room in each queue, so a slow consumer (e.g. the webhook forwarder)
slows the poll down instead of losing events.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Coroutine
from uuid import uuid4

from panelwatch.utils.logging import get_logger

log = get_logger(__name__)


class EventType(str, Enum):
    PANELIST_ADDED = "panelist.added"
    PANELIST_DELETED = "panelist.deleted"
    PANELIST_CHANGED = "panelist.changed"


@dataclass
class Event:
    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid4().hex[:12])
    summary: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Event], Coroutine[Any, Any, None]]


@dataclass
class Subscription:
    handler: Handler
    types: frozenset[EventType]
    queue: asyncio.Queue[Event]
    task: asyncio.Task[None] | None = None

    @property
    def name(self) -> str:
        return getattr(self.handler, "__qualname__", repr(self.handler))


class EventBus:
    def __init__(self, max_queue_size: int = 256) -> None:
        self._subscriptions: list[Subscription] = []
        self._max_queue_size = max_queue_size
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        self._add(handler, frozenset({event_type}))

    def subscribe_all(self, handler: Handler) -> None:
        self._add(handler, frozenset(EventType))

    def _add(self, handler: Handler, types: frozenset[EventType]) -> None:
        sub = Subscription(handler, types, asyncio.Queue(maxsize=self._max_queue_size))
        self._subscriptions.append(sub)
        if self._running:
            self._spawn(sub)

    async def publish(self, event: Event) -> None:
        """Queue *event* for every matching subscriber, waiting while a queue is full."""
        targets = [s for s in self._subscriptions if event.type in s.types]
        if targets and not self._running:
            # Nobody would ever drain the queues
            raise RuntimeError("EventBus.publish called before start()")
        for sub in targets:
            if sub.queue.full():
                log.debug("event_queue_backpressure", subscriber=sub.name, event_id=event.id)
            await sub.queue.put(event)

    async def start(self) -> None:
        self._running = True
        for sub in self._subscriptions:
            if sub.task is None:
                self._spawn(sub)

    def _spawn(self, sub: Subscription) -> None:
        sub.task = asyncio.create_task(self._consume(sub), name=f"bus-{sub.name}")

    async def _consume(self, sub: Subscription) -> None:
        while True:
            event = await sub.queue.get()
            try:
                await sub.handler(event)
            except Exception:
                log.exception("handler_error", subscriber=sub.name, event_id=event.id)
            finally:
                sub.queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        if not self._running:
            return
        for sub in self._subscriptions:
            await sub.queue.join()

    async def stop(self) -> None:
        self._running = False
        tasks = [s.task for s in self._subscriptions if s.task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for sub in self._subscriptions:
            sub.task = None
