"""Persistent per-webinar panelist snapshots with SQLite backend."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from panelwatch.models import Snapshot
from panelwatch.utils.logging import get_logger

log = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    webinar_id TEXT PRIMARY KEY,
    panelists TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SnapshotStore:
    """Key-value store holding one panelist snapshot per webinar.

    Each ``set`` replaces the whole snapshot in a single statement; there is
    no merging with the previous value.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def start(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._db_path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def stop(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def get(self, webinar_id: str) -> Snapshot | None:
        """Return the stored snapshot, or None if the webinar was never polled."""
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT panelists FROM snapshots WHERE webinar_id = ?",
            (str(webinar_id),),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    async def set(self, webinar_id: str, snapshot: Snapshot) -> None:
        """Replace the snapshot for a webinar."""
        assert self._db is not None
        now = datetime.now(timezone.utc).isoformat()
        await self._db.execute(
            "INSERT INTO snapshots (webinar_id, panelists, created_at, updated_at) "
            "VALUES (?, ?, ?, ?) "
            "ON CONFLICT(webinar_id) DO UPDATE SET "
            "panelists = excluded.panelists, "
            "updated_at = excluded.updated_at",
            (str(webinar_id), json.dumps(snapshot), now, now),
        )
        await self._db.commit()
        log.debug("snapshot_written", webinar_id=webinar_id, panelists=len(snapshot))

    async def delete(self, webinar_id: str) -> bool:
        """Forget a webinar's snapshot. Returns True if one was stored."""
        assert self._db is not None
        cursor = await self._db.execute(
            "DELETE FROM snapshots WHERE webinar_id = ?",
            (str(webinar_id),),
        )
        await self._db.commit()
        return cursor.rowcount > 0

    async def list_webinars(self) -> list[dict]:
        """List stored webinars with their panelist counts, newest first."""
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT webinar_id, panelists, updated_at FROM snapshots "
            "ORDER BY updated_at DESC"
        )
        rows = await cursor.fetchall()
        return [
            {
                "webinar_id": row[0],
                "panelist_count": len(json.loads(row[1])),
                "updated_at": row[2],
            }
            for row in rows
        ]
