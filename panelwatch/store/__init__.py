"""Snapshot persistence for panelwatch."""

from panelwatch.store.snapshots import SnapshotStore

__all__ = ["SnapshotStore"]
