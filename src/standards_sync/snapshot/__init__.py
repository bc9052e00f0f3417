"""Hashed, read-only snapshots of the standards tree."""

from standards_sync.snapshot.manager import (
    MANIFEST_NAME,
    ChangeType,
    PinSnapshot,
    SnapshotManager,
    sanitize_tag,
)

__all__ = ["MANIFEST_NAME", "ChangeType", "PinSnapshot", "SnapshotManager", "sanitize_tag"]
