"""
Post-adoption health check for a downstream project.

Manifesto:
    ``adopt`` writes the file; this module tells you whether the file is
    still healthy weeks later. Everything is read-only: the check never
    touches the project, it only reports.

Errors:
    - the adopted config file is missing
    - ``{{TOKEN}}`` placeholders were never rendered
    - malformed marker blocks, or managed blocks edited by hand (drift)
    - the standards path line is missing, points nowhere, or differs from
      the expected location
    - a local link in the file points at a missing file
    - a ``standards-pin`` block refers to a missing or corrupt snapshot

Warnings:
    - the standards location has no ``README.md``
    - fewer than three guide references
    - a pinned version that is neither a semver tag nor a commit sha
    - ``CLAUDE.md`` missing, or neither a symlink to nor a copy of the
      adopted file

Tags:
    adoption, health-check, pinning, standards-sync
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from standards_sync.core.errors import ParseError, SnapshotError
from standards_sync.core.files import read_text
from standards_sync.core.logging import get_logger
from standards_sync.markdown.markers import scan_blocks
from standards_sync.markdown.parser import parse_document
from standards_sync.merge.adoption import PIN_MARKER_ID
from standards_sync.merge.render import unresolved_tokens
from standards_sync.snapshot.manager import SnapshotManager

logger = get_logger(__name__)

STANDARDS_LINE_RE = re.compile(
    r"^This project follows organizational standards defined in `([^`]*?)/?`\.\s*$"
)
PIN_ROW_RE = re.compile(r"^\|\s*([A-Za-z ]+?)\s*\|\s*`?([^`|]*?)`?\s*\|\s*$")
PINNED_REF_RE = re.compile(r"^(v?\d+\.\d+\.\d+([-.][A-Za-z0-9]+)?|[0-9a-f]{7,40})$")
MIN_GUIDE_REFERENCES = 3


@dataclass
class CheckReport:
    """Errors and warnings from a read-only health check."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def passed(self, strict: bool = False) -> bool:
        """No errors, and no warnings either when ``strict``."""
        return self.ok and not (strict and self.warnings)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "details": dict(self.details),
        }


def _resolve_from(project_dir: Path, raw: str) -> Path:
    path = Path(os.path.expanduser(raw))
    if not path.is_absolute():
        path = project_dir / path
    return path.resolve()


def _pin_fields(content: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in content.splitlines():
        match = PIN_ROW_RE.match(line.strip())
        if match and match.group(1) not in ("Field",):
            fields[match.group(1)] = match.group(2).strip()
    return fields


def _check_claude_file(project_dir: Path, config_file: str, text: str, report: CheckReport) -> None:
    claude = project_dir / "CLAUDE.md"
    if claude.is_symlink():
        target = os.readlink(claude)
        report.details["claude"] = f"symlink -> {target}"
        if Path(target).name != Path(config_file).name:
            report.warn(f"CLAUDE.md is a symlink but does not target {config_file} (target: {target})")
    elif claude.is_file():
        report.details["claude"] = "copy"
        if read_text(claude) != text:
            report.warn(f"CLAUDE.md exists as a regular file and differs from {config_file}")
    else:
        report.details["claude"] = "missing"
        report.warn("CLAUDE.md is missing (recommended: symlink to AGENTS.md)")


def _check_pin(
    project_dir: Path, content: str, standards_resolved: Path | None, report: CheckReport
) -> None:
    fields = _pin_fields(content)
    version = fields.get("Version", "")
    snapshot_display = fields.get("Snapshot", "")
    report.details["pinned_version"] = version or None

    if not version or not snapshot_display:
        report.error(f"'{PIN_MARKER_ID}' block is missing the Version or Snapshot row")
        return
    if not PINNED_REF_RE.match(version):
        report.warn(f"Pinned version '{version}' is not a semantic version tag or commit sha")

    snapshot_dir = _resolve_from(project_dir, snapshot_display)
    if standards_resolved is not None and standards_resolved != snapshot_dir:
        report.error(
            f"Standards path does not point at the pinned snapshot "
            f"(standards: {standards_resolved}, snapshot: {snapshot_dir})"
        )

    manager = SnapshotManager(None, snapshot_dir.parent)
    try:
        snapshot = manager.verify_snapshot(snapshot_dir.name)
    except SnapshotError as e:
        report.error(f"Pinned snapshot '{version}' failed verification: {e.message}")
        return
    recorded = fields.get("Manifest hash")
    if recorded and recorded != snapshot.manifest_hash:
        report.error(
            f"Pinned manifest hash {recorded[:12]} does not match snapshot manifest "
            f"{snapshot.manifest_hash[:12]}"
        )


def check_adoption(
    project_dir: Path,
    *,
    config_file: str = "AGENTS.md",
    expect_standards_path: str | None = None,
    strict: bool = False,
) -> CheckReport:
    """
    Inspect an adopted project without modifying it.

    ``strict`` is recorded in the report details; callers decide pass/fail
    with ``report.passed(strict)``.
    """
    project_dir = Path(project_dir)
    report = CheckReport(details={"project_dir": str(project_dir), "strict": strict})
    config_path = project_dir / config_file

    if not config_path.is_file():
        report.error(f"{config_file} is missing at {config_path}")
        _check_claude_file(project_dir, config_file, "", report)
        logger.info("adoption_check.complete", errors=len(report.errors), warnings=len(report.warnings))
        return report

    text = read_text(config_path)

    tokens = unresolved_tokens(text)
    if tokens:
        report.error(
            f"{config_file} contains unresolved placeholders: "
            + ", ".join("{{" + t + "}}" for t in tokens)
        )

    try:
        blocks = scan_blocks(text, config_file)
    except ParseError as e:
        report.error(e.message)
        blocks = ()
    report.details["blocks"] = len(blocks)
    for block in blocks:
        if block.has_drift:
            report.error(
                f"Managed block '{block.marker_id}' was edited locally "
                f"(source-hash {block.stored_hash} != {block.content_hash})"
            )

    standards_resolved: Path | None = None
    standards_display = None
    for line in text.splitlines():
        match = STANDARDS_LINE_RE.match(line.strip())
        if match:
            standards_display = match.group(1)
            break
    if standards_display is None:
        report.error(f"Could not find the standards path line in {config_file}")
    else:
        standards_resolved = _resolve_from(project_dir, standards_display)
        report.details["standards_path"] = standards_display
        if not standards_resolved.is_dir():
            report.error(f"Standards path does not exist: {standards_resolved}")
        elif not (standards_resolved / "README.md").is_file():
            report.warn(f"Standards path has no README.md: {standards_resolved}")
        if expect_standards_path is not None:
            expected = _resolve_from(project_dir, expect_standards_path)
            if expected != standards_resolved:
                report.error(
                    f"Standards path mismatch (expected: {expected}, actual: {standards_resolved})"
                )

    document = parse_document(text, config_file, markers=False)
    guide_refs = 0
    missing: list[str] = []
    for link in document.links:
        if link.is_external or not link.path or "{{" in link.path:
            continue
        target = _resolve_from(project_dir, unquote(link.path))
        if "guides/" in link.path:
            guide_refs += 1
        if not target.exists() and link.path not in missing:
            missing.append(link.path)
    for path in missing:
        report.error(f"Referenced file does not exist: {path}")
    report.details["guide_references"] = guide_refs
    if guide_refs < MIN_GUIDE_REFERENCES:
        report.warn(f"Only {guide_refs} guide reference(s) found; expected at least {MIN_GUIDE_REFERENCES}")

    pin = next((b for b in blocks if b.marker_id == PIN_MARKER_ID), None)
    if pin is not None:
        _check_pin(project_dir, pin.content, standards_resolved, report)

    _check_claude_file(project_dir, config_file, text, report)

    logger.info(
        "adoption_check.complete",
        path=str(config_path),
        errors=len(report.errors),
        warnings=len(report.warnings),
    )
    return report
