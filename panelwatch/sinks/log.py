"""Logs every emitted event."""

from __future__ import annotations

from panelwatch.core.bus import Event
from panelwatch.utils.logging import get_logger

log = get_logger(__name__)


async def log_event(event: Event) -> None:
    log.info(
        "panelist_event",
        event_type=event.type.value,
        event_id=event.id,
        webinar_id=event.data.get("webinarID"),
        summary=event.summary,
    )
