"""Panelist records, snapshots and change events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from panelwatch.core.bus import EventType

# Upstream records are opaque: id, email, optional name, plus whatever Zoom returns
Panelist = dict[str, Any]
Snapshot = dict[str, Panelist]


@dataclass(frozen=True)
class EventMeta:
    id: str
    summary: str


@dataclass
class ChangeEvent:
    event_type: EventType
    webinar_id: str
    panelist: Panelist
    meta: EventMeta

    def to_payload(self) -> dict[str, Any]:
        """Flat payload: event type, then the panelist fields, then the webinar."""
        return {
            "eventType": self.event_type.value,
            **self.panelist,
            "webinarID": self.webinar_id,
        }
