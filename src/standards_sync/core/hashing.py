"""
Deterministic hashing utilities for managed blocks and snapshots.

Two hash shapes are used throughout standards-sync:

- **Block hash:** a short SHA-256 prefix written into the
  ``<!-- source-hash: ... -->`` trailer of a managed block. Comparing it to
  the hash of the block's current content detects local edits (drift).
- **File hash:** the full SHA-256 of a file's bytes, stored per file in a
  snapshot manifest and recomputed on verification.

Examples:
    >>> compute_hash("abc") == compute_hash("abc")
    True
    >>> len(compute_hash("abc", length=16))
    16
    >>> manifest_hash({"b.md": "2", "a.md": "1"}) == manifest_hash({"a.md": "1", "b.md": "2"})
    True

Tags:
    hashing, drift-detection, snapshot, standards-sync
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from pathlib import Path

BLOCK_HASH_LENGTH = 16
_CHUNK_SIZE = 64 * 1024


def compute_hash(*values: object, length: int = 64) -> str:
    """
    Compute a deterministic hash from values.

    Values are converted to strings and joined with ``|`` before hashing, so
    ``("a", "b")`` and ``("b", "a")`` hash differently.

    Args:
        *values: Values to hash (converted to strings)
        length: Hex digest length (default 64, the full SHA-256)

    Returns:
        Hex string of the requested length
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:length]


def block_hash(content: str) -> str:
    """Hash of a managed block's content, as written into its trailer."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:BLOCK_HASH_LENGTH]


def file_hash(path: Path) -> str:
    """Full SHA-256 of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def manifest_hash(files: Mapping[str, str]) -> str:
    """
    Combined hash for a whole snapshot manifest.

    Order-independent over the mapping: entries are sorted by path and
    hashed as ``path:hash`` lines.
    """
    lines = "".join(f"{path}:{digest}\n" for path, digest in sorted(files.items()))
    return hashlib.sha256(lines.encode("utf-8")).hexdigest()
