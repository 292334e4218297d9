"""Event sink with "unique" deduplication in front of the bus."""

from __future__ import annotations

from collections import deque
from typing import Any

from panelwatch.core.bus import Event, EventBus, EventType
from panelwatch.models import EventMeta
from panelwatch.utils.logging import get_logger

log = get_logger(__name__)


class EventEmitter:
    """Publishes change payloads to the bus, dropping ids seen recently.

    Only the last ``dedupe_window`` ids are remembered, so a repeated
    ``panelist.changed`` for the same panelist is delivered again once its
    id has aged out of the window. State is in-process and resets on restart.
    """

    def __init__(self, bus: EventBus, dedupe_window: int = 100) -> None:
        self._bus = bus
        self._recent: deque[str] = deque(maxlen=dedupe_window)
        self._recent_set: set[str] = set()

    async def emit(self, payload: dict[str, Any], meta: EventMeta) -> bool:
        """Emit *payload* unless *meta.id* is still in the dedupe window.

        Returns True if the event was published.
        """
        if meta.id in self._recent_set:
            log.debug("event_deduplicated", event_id=meta.id)
            return False
        event = Event(
            type=EventType(payload["eventType"]),
            data=payload,
            id=meta.id,
            summary=meta.summary,
        )
        await self._bus.publish(event)
        # Only ids that actually reached the bus count as delivered
        self._remember(meta.id)
        log.debug("event_emitted", event_id=meta.id, summary=meta.summary)
        return True

    def _remember(self, event_id: str) -> None:
        if len(self._recent) == self._recent.maxlen:
            self._recent_set.discard(self._recent[0])
        self._recent.append(event_id)
        self._recent_set.add(event_id)
