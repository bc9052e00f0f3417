"""
Snapshot / pin manager.

Manifesto:
    A pinned project must keep reading exactly the guides it was pinned to.
    Snapshots are plain directory copies of the standards tree, read-only on
    disk, with a manifest of per-file SHA-256 hashes. Any later edit to a
    snapshot is detected on verification.

Layout::

    <snapshot_root>/
        v1.2.0/
            manifest.json        {"version", "name", "created_at", "manifest_hash", "files"}
            AGENTS.md            (0o444)
            guides/...

Tag sanitizing:
    ``/ : @`` and spaces become ``-``; other characters outside
    ``[A-Za-z0-9._-]`` are dropped; an empty result becomes ``ref``.

Examples:
    >>> sanitize_tag("release/2024:01@main")
    'release-2024-01-main'
    >>> sanitize_tag("!!!")
    'ref'

Tags:
    snapshot, pinning, integrity, sha256, standards-sync
"""

from __future__ import annotations

import fnmatch
import json
import os
import re
import shutil
import stat
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from standards_sync.core.errors import (
    SnapshotError,
    SnapshotExistsError,
    SnapshotHashMismatchError,
    SnapshotNotFoundError,
)
from standards_sync.core.files import remove_tree
from standards_sync.core.hashing import file_hash, manifest_hash
from standards_sync.core.logging import get_logger

logger = get_logger(__name__)

MANIFEST_NAME = "manifest.json"
MANIFEST_FORMAT = 1
DEFAULT_EXCLUDES = ("node_modules", "__pycache__", "*.pyc")
READ_ONLY = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH

_TAG_SEPARATORS = str.maketrans({"/": "-", ":": "-", "@": "-", " ": "-"})
_TAG_DISALLOWED = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_tag(tag: str) -> str:
    """Directory name for a version tag."""
    sanitized = _TAG_DISALLOWED.sub("", tag.translate(_TAG_SEPARATORS))
    return sanitized or "ref"


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class PinSnapshot:
    """
    An immutable copy of the standards tree at one version.

    Attributes:
        version: The tag the snapshot was created for
        files: Root-relative posix path → SHA-256
        manifest_hash: SHA-256 over the sorted ``path:hash`` lines
        created_at: UTC ISO-8601 timestamp
        path: Snapshot directory
    """

    version: str
    files: Mapping[str, str]
    manifest_hash: str
    created_at: str
    path: Path
    name: str = field(default="")

    def to_manifest(self) -> dict[str, Any]:
        return {
            "format": MANIFEST_FORMAT,
            "version": self.version,
            "name": self.name or sanitize_tag(self.version),
            "created_at": self.created_at,
            "manifest_hash": self.manifest_hash,
            "files": dict(sorted(self.files.items())),
        }


class SnapshotManager:
    """
    Create, verify, diff and list snapshots of a standards tree.

    Args:
        standards_root: The live standards tree to copy from
        snapshot_root: Directory holding one subdirectory per snapshot
        exclude: Glob patterns matched against each path component;
            hidden files and directories are always skipped
    """

    def __init__(
        self,
        standards_root: Path | None,
        snapshot_root: Path,
        exclude: Iterable[str] = DEFAULT_EXCLUDES,
    ):
        self.standards_root = Path(standards_root).resolve() if standards_root is not None else None
        self.snapshot_root = Path(snapshot_root).resolve()
        self.exclude = tuple(exclude)

    def snapshot_path(self, version_tag: str) -> Path:
        return self.snapshot_root / sanitize_tag(version_tag)

    # ── Create ───────────────────────────────────────────────────────

    def _source_files(self) -> list[str]:
        assert self.standards_root is not None
        root = self.standards_root
        files: list[str] = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d
                for d in dirnames
                if not self._skipped(d) and (current / d).resolve() != self.snapshot_root
            )
            for filename in filenames:
                if self._skipped(filename):
                    continue
                relative = (current / filename).relative_to(root).as_posix()
                if relative == MANIFEST_NAME:
                    logger.warning("snapshot.reserved_name_skipped", path=relative)
                    continue
                files.append(relative)
        return sorted(files)

    def _skipped(self, name: str) -> bool:
        return name.startswith(".") or any(fnmatch.fnmatch(name, p) for p in self.exclude)

    def create_snapshot(self, version_tag: str, *, force: bool = False) -> PinSnapshot:
        """
        Copy the standards tree into ``<snapshot_root>/<sanitized tag>/``.

        Raises:
            SnapshotError: No standards root, or it does not exist
            SnapshotExistsError: The snapshot exists and ``force`` is False
        """
        if self.standards_root is None or not self.standards_root.is_dir():
            raise SnapshotError(f"Standards path not found: {self.standards_root}")

        destination = self.snapshot_path(version_tag)
        if destination.exists():
            if not force:
                raise SnapshotExistsError(version_tag, str(destination))
            logger.info("snapshot.superseded", version=version_tag, path=str(destination))
            remove_tree(destination)

        files: dict[str, str] = {}
        try:
            for relative in self._source_files():
                source = self.standards_root / relative
                target = destination / relative
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
                os.chmod(target, READ_ONLY)
                files[relative] = file_hash(target)
        except OSError as e:
            remove_tree(destination)
            raise SnapshotError(f"Failed to copy standards tree: {e}", cause=e) from e

        snapshot = PinSnapshot(
            version=version_tag,
            files=files,
            manifest_hash=manifest_hash(files),
            created_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            path=destination,
            name=destination.name,
        )
        destination.mkdir(parents=True, exist_ok=True)
        manifest_path = destination / MANIFEST_NAME
        manifest_path.write_text(json.dumps(snapshot.to_manifest(), indent=2) + "\n", encoding="utf-8")
        os.chmod(manifest_path, READ_ONLY)

        logger.info(
            "snapshot.created",
            version=version_tag,
            path=str(destination),
            files=len(files),
            manifest_hash=snapshot.manifest_hash[:12],
        )
        return snapshot

    # ── Read ─────────────────────────────────────────────────────────

    def load_snapshot(self, version_tag: str) -> PinSnapshot:
        """Read a snapshot's manifest without verifying file contents."""
        directory = self.snapshot_path(version_tag)
        manifest_path = directory / MANIFEST_NAME
        if not manifest_path.is_file():
            raise SnapshotNotFoundError(version_tag, str(directory))
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
            files = {str(k): str(v) for k, v in data["files"].items()}
            return PinSnapshot(
                version=str(data.get("version", version_tag)),
                files=files,
                manifest_hash=str(data["manifest_hash"]),
                created_at=str(data.get("created_at", "")),
                path=directory,
                name=directory.name,
            )
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise SnapshotError(f"Corrupt manifest at {manifest_path}: {e}", cause=e).with_context(
                version=version_tag, path=str(manifest_path)
            ) from e

    def _present_files(self, directory: Path) -> dict[str, Path]:
        present: dict[str, Path] = {}
        for dirpath, _dirnames, filenames in os.walk(directory):
            for filename in filenames:
                full = Path(dirpath) / filename
                relative = full.relative_to(directory).as_posix()
                if relative != MANIFEST_NAME:
                    present[relative] = full
        return present

    def verify_snapshot(self, version_tag: str) -> PinSnapshot:
        """
        Recompute every hash and compare with the manifest.

        Raises:
            SnapshotNotFoundError: No snapshot for ``version_tag``
            SnapshotHashMismatchError: First drifted, missing or unexpected
                file in sorted path order, or a tampered manifest hash
        """
        snapshot = self.load_snapshot(version_tag)

        recomputed = manifest_hash(snapshot.files)
        if recomputed != snapshot.manifest_hash:
            raise SnapshotHashMismatchError(
                MANIFEST_NAME, expected=snapshot.manifest_hash, actual=recomputed, version=version_tag
            )

        present = self._present_files(snapshot.path)
        for relative in sorted(set(snapshot.files) | set(present)):
            expected = snapshot.files.get(relative)
            actual = file_hash(present[relative]) if relative in present else None
            if expected != actual:
                logger.warning(
                    "snapshot.mismatch",
                    version=version_tag,
                    path=relative,
                    missing=actual is None,
                    unexpected=expected is None,
                )
                raise SnapshotHashMismatchError(
                    relative, expected=expected, actual=actual, version=version_tag
                )

        logger.info("snapshot.verified", version=version_tag, files=len(snapshot.files))
        return snapshot

    def diff_snapshots(self, version_a: str, version_b: str) -> list[tuple[str, ChangeType]]:
        """Manifest-level changes from ``version_a`` to ``version_b``, sorted by path."""
        a = self.load_snapshot(version_a).files
        b = self.load_snapshot(version_b).files
        changes: list[tuple[str, ChangeType]] = []
        for path in sorted(set(a) | set(b)):
            if path not in a:
                changes.append((path, ChangeType.ADDED))
            elif path not in b:
                changes.append((path, ChangeType.REMOVED))
            elif a[path] != b[path]:
                changes.append((path, ChangeType.MODIFIED))
        return changes

    def list_snapshots(self) -> list[PinSnapshot]:
        """Every readable snapshot, oldest first."""
        if not self.snapshot_root.is_dir():
            return []
        snapshots: list[PinSnapshot] = []
        for child in sorted(self.snapshot_root.iterdir()):
            if not (child / MANIFEST_NAME).is_file():
                continue
            try:
                snapshots.append(self.load_snapshot(child.name))
            except SnapshotError as e:
                logger.warning("snapshot.unreadable", path=str(child), error=e.message)
        return sorted(snapshots, key=lambda s: (s.created_at, s.name))
