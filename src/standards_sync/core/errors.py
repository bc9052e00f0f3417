"""
Structured error types for standards-sync.

Every failure the toolkit can report is a ``StandardsError`` subclass carrying
a category, structured context and an optional chained cause. Validation
findings are exceptions too, but the validator collects them into a report
instead of raising them, so one CI run surfaces every problem.

Manifesto:
    - **Typed hierarchy:** Parse, validation, merge and snapshot failures are
      distinct types with distinct recovery policies
    - **Rich context:** Errors carry path, line and marker id for reporting
    - **Error chaining:** Original exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       StandardsError                             │
        │  (category, context, cause)                                      │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ParseError        ValidationFinding       MergeConflictError    │
        │  (PARSE)           (VALIDATION)            (MERGE)               │
        │                        │                                         │
        │                    OrphanGuideError                              │
        │                    BrokenLinkError                               │
        │                    StaleIndexError                               │
        │                    DuplicateIndexEntryError                      │
        │                                                                  │
        │  SnapshotError     ConfigError     AdoptionError                 │
        │  (SNAPSHOT)        (CONFIG)        (ADOPTION)                    │
        │       │                                                          │
        │  SnapshotHashMismatchError   ScenarioAssertionError              │
        │  SnapshotNotFoundError       (SCENARIO)                          │
        │  SnapshotExistsError                                             │
        └─────────────────────────────────────────────────────────────────┘

Recovery policy:
    - ParseError: fatal for the containing file
    - ValidationFinding subclasses: accumulated in report-all mode
    - MergeConflictError: fatal for one marker only, the merge continues
    - SnapshotError subclasses: fatal for the call

Tags:
    error-handling, exception-hierarchy, error-context, standards-sync
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from standards_sync.markdown.models import IndexEntry


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    PARSE = "PARSE"               # Malformed markers, unterminated blocks
    VALIDATION = "VALIDATION"     # Orphans, broken links, stale index rows
    MERGE = "MERGE"               # Local edits inside managed blocks
    SNAPSHOT = "SNAPSHOT"         # Pin creation and integrity failures
    CONFIG = "CONFIG"             # Missing or invalid configuration
    ADOPTION = "ADOPTION"         # Wrong mode for the downstream state
    SCENARIO = "SCENARIO"         # Simulator assertion failures
    IO = "IO"                     # File system errors
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        path: File the error refers to (root-relative where possible)
        line: 1-based line number inside ``path``
        marker_id: Merge marker id, for merge errors
        version: Snapshot version tag, for snapshot errors
        metadata: Additional key-value pairs
    """

    path: str | None = None
    line: int | None = None
    marker_id: str | None = None
    version: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["path", "line", "marker_id", "version"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StandardsError(Exception):
    """
    Base exception for all standards-sync errors.

    Subclasses set ``default_category``. Every instance carries a message,
    a category, an ``ErrorContext`` and an optional chained cause.

    Examples:
        >>> error = StandardsError("boom").with_context(path="AGENTS.md", line=3)
        >>> error.context.path
        'AGENTS.md'
        >>> error.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> StandardsError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PARSE ERRORS
# =============================================================================


class ParseError(StandardsError):
    """Malformed marker structure in a markdown file."""

    default_category = ErrorCategory.PARSE

    def __init__(self, path: str, line: int | None, message: str, **kwargs: Any):
        location = f"{path}:{line}" if line is not None else path
        super().__init__(f"{location}: {message}", **kwargs)
        self.path = path
        self.line = line
        self.reason = message
        self.context.path = path
        self.context.line = line


# =============================================================================
# VALIDATION FINDINGS (non-fatal in report-all mode)
# =============================================================================


class ValidationFinding(StandardsError):
    """
    Base class for navigation validation errors.

    Findings are collected by the validator rather than raised. ``sort_key``
    gives the deterministic ordering used in reports.
    """

    default_category = ErrorCategory.VALIDATION
    kind: str = "finding"

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.context.path or "", self.context.line or 0, self.message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind
        return result


class OrphanGuideError(ValidationFinding):
    """A guide file is not listed in a required index file."""

    kind = "orphan-guide"

    def __init__(self, path: str, missing_from_index: str):
        super().__init__(f"Guide '{path}' is not listed in {missing_from_index}")
        self.path = path
        self.missing_from_index = missing_from_index
        self.context.path = path
        self.context.metadata["missing_from_index"] = missing_from_index

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.path, 0, self.missing_from_index)


class BrokenLinkError(ValidationFinding):
    """A markdown link whose target file or anchor does not resolve."""

    kind = "broken-link"

    def __init__(self, source: str, target: str, *, line: int | None = None, reason: str = ""):
        detail = f" ({reason})" if reason else ""
        super().__init__(f"{source}: broken link to '{target}'{detail}")
        self.source = source
        self.target = target
        self.reason = reason
        self.context.path = source
        self.context.line = line
        self.context.metadata["target"] = target

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.source, self.context.line or 0, self.target)


class StaleIndexError(ValidationFinding):
    """An index entry points at a missing or renamed target."""

    kind = "stale-index"

    def __init__(self, entry: IndexEntry, reason: str = ""):
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"{entry.index_file}: index entry '{entry.title}' points at '{entry.target}'{detail}"
        )
        self.entry = entry
        self.reason = reason
        self.context.path = entry.index_file
        self.context.line = entry.line
        self.context.metadata["target"] = entry.target

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.entry.index_file, self.entry.line, self.entry.target)


class DuplicateIndexEntryError(ValidationFinding):
    """A required index lists the same guide more than once."""

    kind = "duplicate-index-entry"

    def __init__(self, entry: IndexEntry, count: int):
        super().__init__(f"{entry.index_file}: lists '{entry.path}' {count} times (expected once)")
        self.entry = entry
        self.count = count
        self.context.path = entry.index_file
        self.context.line = entry.line
        self.context.metadata["guide"] = entry.path
        self.context.metadata["count"] = count

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.entry.index_file, self.entry.line, self.entry.path)


# =============================================================================
# MERGE ERRORS
# =============================================================================


class MergeConflictError(StandardsError):
    """
    A managed block was edited locally since the last merge.

    Fatal for that marker only; the engine keeps the downstream block
    byte-identical and continues with the remaining markers.
    """

    default_category = ErrorCategory.MERGE

    def __init__(self, marker_id: str, downstream_content: str, template_content: str):
        super().__init__(
            f"Managed block '{marker_id}' has local edits; refusing to overwrite (use --force)"
        )
        self.marker_id = marker_id
        self.downstream_content = downstream_content
        self.template_content = template_content
        self.context.marker_id = marker_id


# =============================================================================
# SNAPSHOT ERRORS
# =============================================================================


class SnapshotError(StandardsError):
    """Snapshot creation or integrity failure."""

    default_category = ErrorCategory.SNAPSHOT


class SnapshotHashMismatchError(SnapshotError):
    """A snapshot file no longer matches its manifest hash."""

    def __init__(
        self,
        path: str,
        *,
        expected: str | None = None,
        actual: str | None = None,
        version: str | None = None,
    ):
        if actual is None:
            detail = "file is missing"
        elif expected is None:
            detail = "file is not in the manifest"
        else:
            detail = f"expected {expected[:12]}, found {actual[:12]}"
        super().__init__(f"Snapshot content drifted at '{path}': {detail}")
        self.path = path
        self.expected = expected
        self.actual = actual
        self.context.path = path
        self.context.version = version


class SnapshotNotFoundError(SnapshotError):
    """No snapshot exists for the requested version."""

    def __init__(self, version: str, location: str):
        super().__init__(f"Snapshot '{version}' not found at {location}")
        self.version = version
        self.context.version = version
        self.context.path = location


class SnapshotExistsError(SnapshotError):
    """A snapshot for the version already exists and was not superseded."""

    def __init__(self, version: str, location: str):
        super().__init__(f"Snapshot '{version}' already exists at {location} (use --force to supersede)")
        self.version = version
        self.context.version = version
        self.context.path = location


# =============================================================================
# CONFIGURATION / ADOPTION / SIMULATOR ERRORS
# =============================================================================


class ConfigError(StandardsError):
    """Configuration is missing or invalid."""

    default_category = ErrorCategory.CONFIG


class AdoptionError(StandardsError):
    """The requested adoption mode does not fit the downstream project state."""

    default_category = ErrorCategory.ADOPTION


class ScenarioAssertionError(StandardsError):
    """A simulator assertion failed."""

    default_category = ErrorCategory.SCENARIO

    def __init__(self, assertion: str, *, expected: Any = None, actual: Any = None):
        super().__init__(f"{assertion}\n  expected: {expected!r}\n  actual:   {actual!r}")
        self.assertion = assertion
        self.expected = expected
        self.actual = actual


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "StandardsError",
    "ParseError",
    "ValidationFinding",
    "OrphanGuideError",
    "BrokenLinkError",
    "StaleIndexError",
    "DuplicateIndexEntryError",
    "MergeConflictError",
    "SnapshotError",
    "SnapshotHashMismatchError",
    "SnapshotNotFoundError",
    "SnapshotExistsError",
    "ConfigError",
    "AdoptionError",
    "ScenarioAssertionError",
]
