"""
Completeness and link validator.

Manifesto:
    A single CI run must surface every navigation problem, in the same
    order every time, so runs can be diffed. The validator is a pure
    function of the :class:`NavigationGraph`.

Checks, in report order:
    0. marker parse errors (one per broken file)
    1. orphan guides: every guide listed in every required index
    2. link resolution: every local link's file and anchor exist
    3. stale index entries: every index row points at a live target
    4. duplicate rows: each guide listed once per required index
    Warnings: contents-table drift, missing contents

Modes:
    - report-all (default): every violation, grouped and sorted
    - strict: stop at the first error and return just that one

Examples:
    >>> from standards_sync.core.config import NavigationConfig
    >>> report = validate(NavigationConfig(root="."))     # doctest: +SKIP
    >>> report.ok                                          # doctest: +SKIP
    True

Tags:
    validation, navigation, links, orphans, standards-sync
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import unquote

from standards_sync.core.config import NavigationConfig
from standards_sync.core.errors import (
    BrokenLinkError,
    DuplicateIndexEntryError,
    OrphanGuideError,
    ParseError,
    StaleIndexError,
    StandardsError,
)
from standards_sync.core.logging import get_logger
from standards_sync.markdown.models import DocumentNode, LinkEdge
from standards_sync.markdown.parser import resolve_path
from standards_sync.navigation.graph import NavigationGraph, build_graph, is_markdown

logger = get_logger(__name__)

CONTENTS_HEADING = "Contents"


class WarningKind(str, Enum):
    """Non-fatal findings."""

    CONTENTS_DRIFT = "ContentsDrift"
    MISSING_CONTENTS = "MissingContents"


@dataclass(frozen=True)
class ValidationWarning:
    kind: WarningKind
    path: str
    message: str
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "path": self.path, "line": self.line, "message": self.message}


@dataclass
class ValidationReport:
    """Result of one validation run."""

    errors: list[StandardsError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    files_checked: int = 0
    links: list[LinkEdge] = field(default_factory=list)
    strict: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    def counts(self) -> dict[str, int]:
        counts: Counter[str] = Counter(getattr(e, "kind", "parse-error") for e in self.errors)
        return dict(sorted(counts.items()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "strict": self.strict,
            "files_checked": self.files_checked,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "errors": [_error_dict(e) for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def _error_dict(error: StandardsError) -> dict[str, Any]:
    result = error.to_dict()
    result.setdefault("kind", "parse-error" if isinstance(error, ParseError) else "error")
    return result


# =============================================================================
# CHECKS
# =============================================================================


def check_parse_errors(graph: NavigationGraph) -> list[ParseError]:
    return sorted(graph.parse_errors, key=lambda e: (e.path, e.line or 0))


def check_orphans(graph: NavigationGraph) -> list[OrphanGuideError]:
    """One error per unlisted guide, naming every required index it is missing from."""
    listed = {
        index_file: {entry.path for entry in graph.index_entries(index_file)}
        for index_file in graph.config.effective_required_indexes
    }
    errors: list[OrphanGuideError] = []
    for guide in graph.guides:
        missing = [index_file for index_file, paths in listed.items() if guide not in paths]
        if missing:
            errors.append(OrphanGuideError(guide, ", ".join(missing)))
    return sorted(errors, key=lambda e: e.sort_key)


def _anchor_problem(node: DocumentNode | None, anchor: str) -> str | None:
    if node is None:
        return None
    if unquote(anchor) not in node.slugs:
        return f"anchor '#{anchor}' not found in {node.path}"
    return None


def resolve_link(graph: NavigationGraph, link: LinkEdge) -> str | None:
    """
    Check one link.

    Returns:
        ``None`` when the link resolves, otherwise the reason it does not.
    """
    if not link.path:
        if link.anchor is None:
            return None
        return _anchor_problem(graph.node_for(link.source), link.anchor)

    target = resolve_path(link.source, link.path)
    if not target or not graph.exists(target):
        return f"file '{target or link.path}' does not exist"
    if link.anchor is not None and is_markdown(target):
        return _anchor_problem(graph.node_for(target), link.anchor)
    return None


def check_links(graph: NavigationGraph) -> tuple[list[BrokenLinkError], list[LinkEdge]]:
    """
    Resolve every local link not already covered by an index entry.

    Links whose target still holds a ``{{TOKEN}}`` placeholder belong to
    templates and are skipped.
    """
    errors: list[BrokenLinkError] = []
    checked: list[LinkEdge] = []

    for source, node in graph.nodes.items():
        lifted = {(entry.line, entry.target) for entry in node.index_entries}
        for link in node.links:
            if link.is_external or "{{" in link.target or (link.line, link.target) in lifted:
                continue
            reason = resolve_link(graph, link)
            checked.append(link.with_resolution(reason is None))
            if reason is not None:
                errors.append(BrokenLinkError(source, link.target, line=link.line, reason=reason))

    return sorted(errors, key=lambda e: e.sort_key), checked


def check_index_entries(graph: NavigationGraph) -> list[StaleIndexError]:
    errors: list[StaleIndexError] = []
    for index_file in graph.index_files:
        for entry in graph.index_entries(index_file):
            if not entry.path or not graph.exists(entry.path):
                errors.append(StaleIndexError(entry, f"file '{entry.path}' does not exist"))
                continue
            if entry.anchor is not None and is_markdown(entry.path):
                problem = _anchor_problem(graph.node_for(entry.path), entry.anchor)
                if problem:
                    errors.append(StaleIndexError(entry, problem))
    return sorted(errors, key=lambda e: e.sort_key)


def check_contents_tables(graph: NavigationGraph) -> list[ValidationWarning]:
    """
    Compare each guide's ``## Contents`` table with its H2 sections.

    Contents tables may list only key sections, so only a table with more
    anchor entries than the guide has H2 sections is flagged.
    """
    warnings: list[ValidationWarning] = []
    for guide in graph.guides:
        node = graph.nodes[guide]
        h2 = [h for h in node.headings if h.level == 2]
        contents = next((h for h in h2 if h.text == CONTENTS_HEADING), None)
        if contents is None:
            warnings.append(
                ValidationWarning(WarningKind.MISSING_CONTENTS, guide, f"{guide} has no Contents table")
            )
            continue

        section_end = next(
            (h.line for h in node.headings if h.line > contents.line and h.level <= 2),
            None,
        )
        listed = [
            link
            for link in node.links
            if not link.path
            and link.anchor is not None
            and link.line > contents.line
            and (section_end is None or link.line < section_end)
        ]
        sections = len(h2) - 1
        if len(listed) > sections:
            warnings.append(
                ValidationWarning(
                    WarningKind.CONTENTS_DRIFT,
                    guide,
                    f"{guide} Contents may have stale entries (H2s: {sections}, Contents: {len(listed)})",
                    line=contents.line,
                )
            )
    return warnings


def check_duplicate_entries(graph: NavigationGraph) -> list[DuplicateIndexEntryError]:
    """One error per guide listed more than once in a required index, at its first row."""
    errors: list[DuplicateIndexEntryError] = []
    guides = set(graph.guides)
    for index_file in graph.config.effective_required_indexes:
        if index_file not in graph.nodes:
            continue
        entries = graph.index_entries(index_file)
        counts = Counter(entry.path for entry in entries if entry.path in guides)
        for path, count in counts.items():
            if count > 1:
                first = min((e for e in entries if e.path == path), key=lambda e: e.line)
                errors.append(DuplicateIndexEntryError(first, count))
    return sorted(errors, key=lambda e: e.sort_key)


# =============================================================================
# ENTRY POINT
# =============================================================================


def validate(target: NavigationConfig | NavigationGraph, *, strict: bool = False) -> ValidationReport:
    """
    Validate a standards tree.

    Args:
        target: A config (the graph is built from it) or a prebuilt graph
        strict: Return as soon as the first error is known

    Returns:
        ValidationReport with errors in deterministic order
    """
    graph = target if isinstance(target, NavigationGraph) else build_graph(target)
    report = ValidationReport(files_checked=len(graph), strict=strict)

    def stop() -> bool:
        if strict and report.errors:
            del report.errors[1:]
            return True
        return False

    report.errors.extend(check_parse_errors(graph))
    if stop():
        return _finish(report, graph)

    report.errors.extend(check_orphans(graph))
    if stop():
        return _finish(report, graph)

    link_errors, checked = check_links(graph)
    report.links = checked
    report.errors.extend(link_errors)
    if stop():
        return _finish(report, graph)

    report.errors.extend(check_index_entries(graph))
    if stop():
        return _finish(report, graph)

    report.errors.extend(check_duplicate_entries(graph))
    if stop():
        return _finish(report, graph)

    if graph.config.check_contents_tables:
        report.warnings.extend(check_contents_tables(graph))
    return _finish(report, graph)


def _finish(report: ValidationReport, graph: NavigationGraph) -> ValidationReport:
    logger.info(
        "validate.complete",
        root=str(graph.root),
        files=report.files_checked,
        errors=len(report.errors),
        warnings=len(report.warnings),
        strict=report.strict,
    )
    return report
