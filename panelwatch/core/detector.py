"""Snapshot-diff change detection for webinar panelists.

Each run compares the panelists Zoom reports for a webinar against the
snapshot stored at the end of the previous run:

* ids only in the snapshot   -> ``panelist.deleted`` (carrying the stored record)
* ids only in the new list   -> ``panelist.added``
* ids in both, content differs -> ``panelist.changed``

Content is compared by fingerprint (SHA-256 of the compact JSON form). By
default the serialization keeps field order, so Zoom reordering an otherwise
identical record is reported as a change. ``canonical_fingerprint`` sorts keys
first and removes that sensitivity.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Protocol

from panelwatch.core.bus import EventType
from panelwatch.models import ChangeEvent, EventMeta, Panelist, Snapshot
from panelwatch.utils.logging import get_logger

log = get_logger(__name__)


class WebinarClient(Protocol):
    async def list_webinars(self, next_page_token: str | None = None) -> dict[str, Any]: ...

    async def list_webinar_panelists(self, webinar_id: str) -> dict[str, Any]: ...


class SnapshotBackend(Protocol):
    async def get(self, webinar_id: str) -> Snapshot | None: ...

    async def set(self, webinar_id: str, snapshot: Snapshot) -> None: ...


class EventSink(Protocol):
    async def emit(self, payload: dict[str, Any], meta: EventMeta) -> Any: ...


def fingerprint(record: Panelist, canonical: bool = False) -> str:
    serialized = json.dumps(
        record, separators=(",", ":"), ensure_ascii=False, sort_keys=canonical
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def generate_meta(event_type: EventType, panelist: Panelist) -> EventMeta:
    """Dedupe id and display summary for a panelist event."""
    kind = event_type.value
    email = panelist.get("email")
    name = panelist.get("name")
    summary = f"{kind} - {name} - {email}" if name else f"{kind} - {email}"
    return EventMeta(id=f"{panelist['id']}-{kind}", summary=summary)


def _change(event_type: EventType, webinar_id: str, panelist: Panelist) -> ChangeEvent:
    return ChangeEvent(
        event_type=event_type,
        webinar_id=webinar_id,
        panelist=panelist,
        meta=generate_meta(event_type, panelist),
    )


def diff_panelists(
    webinar_id: str,
    old: Snapshot,
    current: list[Panelist],
    canonical: bool = False,
) -> list[ChangeEvent]:
    """Compute change events between a stored snapshot and the current list.

    Deletions come first, in snapshot order; additions and changes follow in
    the order of *current*.
    """
    new_ids = {str(p["id"]) for p in current}
    events = [
        _change(EventType.PANELIST_DELETED, webinar_id, record)
        for panelist_id, record in old.items()
        if panelist_id not in new_ids
    ]

    for panelist in current:
        panelist_id = str(panelist["id"])
        if panelist_id not in old:
            events.append(_change(EventType.PANELIST_ADDED, webinar_id, panelist))
        elif fingerprint(panelist, canonical) != fingerprint(old[panelist_id], canonical):
            events.append(_change(EventType.PANELIST_CHANGED, webinar_id, panelist))

    return events


def build_snapshot(current: list[Panelist]) -> Snapshot:
    return {str(p["id"]): p for p in current}


class PanelistChangeDetector:
    """Polls panelists for a set of webinars and emits their changes.

    Webinars are processed one after another; each snapshot is written as
    soon as its webinar is done. An API error aborts the rest of the run.
    """

    def __init__(
        self,
        client: WebinarClient,
        store: SnapshotBackend,
        sink: EventSink,
        webinars: list[str] | None = None,
        canonical_fingerprint: bool = False,
    ) -> None:
        self._client = client
        self._store = store
        self._sink = sink
        self._webinars = [str(w) for w in webinars or []]
        self._canonical = canonical_fingerprint

    async def run(self) -> list[ChangeEvent]:
        webinar_ids = await self.resolve_webinars()
        log.info("poll_started", webinars=len(webinar_ids))

        events: list[ChangeEvent] = []
        for webinar_id in webinar_ids:
            events.extend(await self.process_webinar(webinar_id))

        log.info("poll_finished", webinars=len(webinar_ids), events=len(events))
        return events

    async def resolve_webinars(self) -> list[str]:
        """Configured webinars, or every webinar Zoom lists when none are set."""
        if self._webinars:
            return list(self._webinars)

        webinar_ids: list[str] = []
        next_page_token: str | None = None
        while True:
            resp = await self._client.list_webinars(next_page_token=next_page_token)
            webinar_ids.extend(str(w["id"]) for w in resp.get("webinars", []))
            next_page_token = resp.get("next_page_token")
            if not next_page_token:
                break
        log.debug("webinars_discovered", count=len(webinar_ids))
        return webinar_ids

    async def process_webinar(self, webinar_id: str) -> list[ChangeEvent]:
        resp = await self._client.list_webinar_panelists(webinar_id)
        panelists: list[Panelist] = resp.get("panelists", [])
        old = await self._store.get(webinar_id) or {}

        events = diff_panelists(webinar_id, old, panelists, canonical=self._canonical)
        for event in events:
            await self._sink.emit(event.to_payload(), event.meta)

        await self._store.set(webinar_id, build_snapshot(panelists))

        log.info(
            "panelist_diff",
            webinar_id=webinar_id,
            old=len(old),
            new=len(panelists),
            events=len(events),
        )
        return events
