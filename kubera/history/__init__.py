"""Net worth history package."""

from kubera.history.snapshots import SnapshotHistory, list_snapshots

__all__ = ["SnapshotHistory", "list_snapshots"]
