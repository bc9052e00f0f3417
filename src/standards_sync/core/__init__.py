"""Standards-sync core -- errors, hashing, logging and configuration.

Architecture::

    errors.py      Structured error hierarchy (StandardsError and subclasses)
    hashing.py     Block hashes, file hashes, manifest hashes
    logging.py     structlog configuration and context helpers
    settings.py    Environment-driven defaults (pydantic-settings)
    config.py      AdoptionConfig / NavigationConfig (pydantic, YAML/JSON)
"""

from standards_sync.core.errors import (
    AdoptionError,
    BrokenLinkError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    MergeConflictError,
    OrphanGuideError,
    ParseError,
    ScenarioAssertionError,
    SnapshotError,
    SnapshotExistsError,
    SnapshotHashMismatchError,
    SnapshotNotFoundError,
    StaleIndexError,
    DuplicateIndexEntryError,
    StandardsError,
    ValidationFinding,
)
from standards_sync.core.hashing import block_hash, compute_hash, file_hash, manifest_hash

__all__ = [
    "AdoptionError",
    "BrokenLinkError",
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "MergeConflictError",
    "OrphanGuideError",
    "ParseError",
    "ScenarioAssertionError",
    "SnapshotError",
    "SnapshotExistsError",
    "SnapshotHashMismatchError",
    "SnapshotNotFoundError",
    "StaleIndexError",
    "DuplicateIndexEntryError",
    "StandardsError",
    "ValidationFinding",
    "block_hash",
    "compute_hash",
    "file_hash",
    "manifest_hash",
]
