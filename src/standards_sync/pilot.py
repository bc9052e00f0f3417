"""
Pilot tooling: scaffold pilot artifacts, check readiness, summarize findings.

A pilot is a trial adoption tracked in plain markdown files inside the
project::

    <project>/.standards/pilot/
        README.md                      generated overview
        kickoff.md                     from docs/templates/pilot-kickoff-template.md
        weekly-checkin-template.md     copied each week to weekly-01.md, ...
        retrospective-template.md      completed as retrospective*.md
        pilot-summary.md               written by summarize_pilot_findings

Weekly and retrospective files carry ``| Key | Value |`` rows; the summary
lifts a fixed set of keys out of them.
"""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path

from standards_sync.adoption_check import STANDARDS_LINE_RE, CheckReport, check_adoption
from standards_sync.core.errors import AdoptionError, ConfigError
from standards_sync.core.files import read_text, write_text_atomic
from standards_sync.core.logging import get_logger
from standards_sync.merge.adoption import resolve_standards_path
from standards_sync.merge.render import render_template

logger = get_logger(__name__)

DEFAULT_PILOT_DIR = ".standards/pilot"
SUMMARY_NAME = "pilot-summary.md"
TEMPLATE_DIR = "docs/templates"

PILOT_TEMPLATES = {
    "kickoff.md": "pilot-kickoff-template.md",
    "weekly-checkin-template.md": "pilot-weekly-checkin-template.md",
    "retrospective-template.md": "pilot-retrospective-template.md",
}
REQUIRED_FILES = ("kickoff.md", "weekly-checkin-template.md", "retrospective-template.md", "README.md")

WEEKLY_FIELDS = (
    "Reporting Period",
    "Blockers encountered",
    "Critical defects linked to guidance",
)
RETROSPECTIVE_FIELDS = (
    ("Rollout decision", "Continue rollout / pause / iterate"),
    ("Preferred adoption mode", "Preferred adoption mode (latest or pinned)"),
    ("Follow-up owners/deadlines", "Follow-up owners and deadlines"),
)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class PilotPreparation:
    pilot_dir: Path
    standards_path: str
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass
class PilotSummary:
    """Rendered findings summary plus the checks made while building it."""

    markdown: str
    report: CheckReport
    weekly_count: int = 0
    retrospective_count: int = 0
    output_path: Path | None = None


def _pilot_path(project_dir: Path, pilot_dir: str) -> Path:
    path = Path(pilot_dir).expanduser()
    if not path.is_absolute():
        path = project_dir.resolve() / path
    return path


def _matching(directory: Path, pattern: str, template: str) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        p
        for p in directory.iterdir()
        if p.is_file() and fnmatch.fnmatch(p.name, pattern) and p.name != template
    )


def weekly_checkins(pilot_dir: Path) -> list[Path]:
    return _matching(pilot_dir, "weekly-*.md", "weekly-checkin-template.md")


def retrospectives(pilot_dir: Path) -> list[Path]:
    return _matching(pilot_dir, "retrospective*.md", "retrospective-template.md")


# ── Prepare ──────────────────────────────────────────────────────────


def _effective_standards_path(project_dir: Path, config_file: str, fallback: str) -> str:
    config_path = project_dir / config_file
    if config_path.is_file():
        for line in read_text(config_path).splitlines():
            match = STANDARDS_LINE_RE.match(line.strip())
            if match:
                return match.group(1)
    return fallback


def _readme(tokens: dict[str, str]) -> str:
    return (
        "# Adoption Pilot Artifacts\n"
        "\n"
        f"Generated by `standards-sync pilot prepare` on {tokens['START_DATE']}.\n"
        "\n"
        "| File | Purpose |\n"
        "| --- | --- |\n"
        "| kickoff.md | Pilot setup checklist and baseline metadata |\n"
        "| weekly-checkin-template.md | Weekly progress and friction tracking |\n"
        "| retrospective-template.md | End-of-pilot outcomes and decisions |\n"
        "\n"
        "| Context | Value |\n"
        "| --- | --- |\n"
        f"| Project | {tokens['PROJECT_NAME']} |\n"
        f"| Project directory | {tokens['PROJECT_DIR']} |\n"
        f"| Adoption mode | {tokens['ADOPTION_MODE']} |\n"
        f"| Standards path in AGENTS | {tokens['STANDARDS_PATH']} |\n"
        f"| Pilot owner | {tokens['PILOT_OWNER']} |\n"
        "\n"
        "## Suggested Workflow\n"
        "\n"
        "1. Fill `kickoff.md` before week 1 starts.\n"
        "2. Duplicate `weekly-checkin-template.md` each week (for example, `weekly-01.md`).\n"
        f"3. File concrete issues using `{tokens['STANDARDS_PATH']}/docs/templates/feedback-template.md` "
        "when guidance fails.\n"
        "4. Complete `retrospective-template.md` at pilot end and link resulting change requests.\n"
    )


def prepare_pilot(
    project_dir: Path,
    standards_path: str | None = None,
    *,
    pilot_dir: str = DEFAULT_PILOT_DIR,
    project_name: str | None = None,
    owner: str = "TBD",
    start_date: str | None = None,
    adoption_mode: str = "latest",
    config_file: str = "AGENTS.md",
    overwrite: bool = False,
) -> PilotPreparation:
    """
    Copy the pilot templates into ``pilot_dir`` with project tokens filled in.

    The standards path written into the artifacts is the one the adopted
    config file already points at, falling back to ``standards_path``.
    Existing artifacts are left alone unless ``overwrite`` is set.

    Raises:
        AdoptionError: Project directory or a pilot template is missing
        ConfigError: ``start_date`` is not ``YYYY-MM-DD`` or the adoption
            mode is not ``latest``/``pinned``
    """
    project_dir = Path(project_dir)
    if not project_dir.is_dir():
        raise AdoptionError(f"Project directory not found: {project_dir}")
    if adoption_mode not in ("latest", "pinned"):
        raise ConfigError(f"Adoption mode must be 'latest' or 'pinned', got '{adoption_mode}'")
    start_date = start_date or date.today().isoformat()
    if not _DATE_RE.match(start_date):
        raise ConfigError(f"Start date must be in YYYY-MM-DD format, got '{start_date}'")

    display, standards_root = resolve_standards_path(project_dir, standards_path)
    templates = {}
    for artifact, template in PILOT_TEMPLATES.items():
        source = standards_root / TEMPLATE_DIR / template
        if not source.is_file():
            raise AdoptionError(f"Pilot template not found: {source}")
        templates[artifact] = source

    project_abs = project_dir.resolve()
    effective = _effective_standards_path(project_dir, config_file, display)
    tokens = {
        "PROJECT_NAME": project_name or project_abs.name,
        "PROJECT_DIR": str(project_abs),
        "PILOT_OWNER": owner,
        "START_DATE": start_date,
        "ADOPTION_MODE": adoption_mode,
        "STANDARDS_PATH": effective,
    }

    target_dir = _pilot_path(project_dir, pilot_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    result = PilotPreparation(pilot_dir=target_dir, standards_path=effective)

    contents = {name: render_template(read_text(src), tokens) for name, src in templates.items()}
    contents["README.md"] = _readme(tokens)
    for name, content in contents.items():
        destination = target_dir / name
        if destination.exists() and not overwrite:
            logger.info("pilot.artifact_skipped", path=str(destination))
            result.skipped.append(name)
            continue
        write_text_atomic(destination, content)
        result.written.append(name)

    logger.info(
        "pilot.prepared",
        pilot_dir=str(target_dir),
        written=len(result.written),
        skipped=len(result.skipped),
    )
    return result


# ── Readiness ────────────────────────────────────────────────────────


def check_pilot_readiness(
    project_dir: Path,
    *,
    pilot_dir: str = DEFAULT_PILOT_DIR,
    min_weekly_checkins: int = 1,
    require_retrospective: bool = False,
    strict: bool = False,
    config_file: str = "AGENTS.md",
) -> CheckReport:
    """
    Check that a pilot is set up and being tracked.

    Adoption check errors are carried over; in ``strict`` mode adoption
    warnings fail the adoption step as well.
    """
    project_dir = Path(project_dir)
    if min_weekly_checkins < 0:
        raise ConfigError("min_weekly_checkins must be a non-negative integer")
    target_dir = _pilot_path(project_dir, pilot_dir)
    report = CheckReport(details={"project_dir": str(project_dir), "pilot_dir": str(target_dir)})

    adoption = check_adoption(project_dir, config_file=config_file, strict=strict)
    for message in adoption.errors:
        report.error(f"Adoption: {message}")
    for message in adoption.warnings:
        if strict:
            report.error(f"Adoption: {message}")
        else:
            report.warn(f"Adoption: {message}")

    if not target_dir.is_dir():
        report.error(f"Pilot directory missing at {target_dir}")
        return report

    for name in REQUIRED_FILES:
        if not (target_dir / name).is_file():
            report.error(f"Missing pilot artifact file: {target_dir / name}")

    kickoff = target_dir / "kickoff.md"
    if kickoff.is_file() and "{{" in read_text(kickoff):
        report.error("kickoff.md still contains unresolved template tokens")

    weekly_count = len(weekly_checkins(target_dir))
    retrospective_count = len(retrospectives(target_dir))
    report.details.update(weekly_checkins=weekly_count, retrospectives=retrospective_count)

    if weekly_count < min_weekly_checkins:
        message = f"Weekly check-ins below target. Required: {min_weekly_checkins}, found: {weekly_count}"
        if strict:
            report.error(message)
        else:
            report.warn(message)
    if require_retrospective and retrospective_count == 0:
        report.error("Completed retrospective file not found (expected retrospective*.md excluding template)")

    logger.info(
        "pilot.readiness_checked",
        errors=len(report.errors),
        warnings=len(report.warnings),
        weekly=weekly_count,
    )
    return report


# ── Summary ──────────────────────────────────────────────────────────


def table_value(text: str, key: str) -> str:
    """Value of the first ``| key | value |`` row, or an empty string."""
    pattern = re.compile(rf"^\| {re.escape(key)} \| (.*) \|$")
    for line in text.splitlines():
        match = pattern.match(line)
        if match:
            return match.group(1)
    return ""


def escape_cell(value: str) -> str:
    """
    Make ``value`` safe for a table cell.

    >>> escape_cell("a | b")
    'a \\\\| b'
    >>> escape_cell("   ")
    'N/A'
    """
    value = value.replace("|", "\\|").replace("\r", "")
    return value if value.strip() else "N/A"


def summarize_pilot_findings(
    project_dir: Path,
    *,
    pilot_dir: str = DEFAULT_PILOT_DIR,
    output: str | None = None,
    min_weekly_checkins: int = 1,
    require_retrospective: bool = False,
    print_only: bool = False,
    now: datetime | None = None,
) -> PilotSummary:
    """
    Build ``pilot-summary.md`` from the weekly and retrospective files.

    The summary is always returned; it is written to ``output`` (default
    ``<pilot_dir>/pilot-summary.md``) unless ``print_only`` is set.
    """
    project_dir = Path(project_dir)
    if not project_dir.is_dir():
        raise AdoptionError(f"Project directory not found: {project_dir}")
    project_abs = project_dir.resolve()
    target_dir = _pilot_path(project_dir, pilot_dir)
    report = CheckReport(details={"pilot_dir": str(target_dir)})

    weekly: list[Path] = []
    retros: list[Path] = []
    if not target_dir.is_dir():
        report.error(f"Pilot directory not found: {target_dir}")
    else:
        weekly = weekly_checkins(target_dir)
        retros = retrospectives(target_dir)
        if len(weekly) < min_weekly_checkins:
            report.warn(
                f"Weekly check-ins below target. Required: {min_weekly_checkins}, found: {len(weekly)}"
            )
        if not retros:
            if require_retrospective:
                report.error("No completed retrospective found (expected retrospective*.md excluding template).")
            else:
                report.warn("No completed retrospective found yet.")

    generated_at = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    lines = [
        "# Pilot Findings Summary",
        "",
        f"Generated by `standards-sync pilot summarize` on {generated_at}.",
        "",
        "| Field | Value |",
        "| --- | --- |",
        f"| Project | {project_abs.name} |",
        f"| Project Directory | {project_abs} |",
        f"| Pilot Directory | {target_dir} |",
        f"| Weekly Check-ins Found | {len(weekly)} |",
        f"| Retrospectives Found | {len(retros)} |",
        "",
        "## Weekly Snapshot",
        "",
        "| Weekly File | Reporting Period | Blockers Encountered | Critical Defects |",
        "| --- | --- | --- | --- |",
    ]
    for path in weekly:
        text = read_text(path)
        cells = [escape_cell(table_value(text, key)) for key in WEEKLY_FIELDS]
        lines.append(f"| `{path.name}` | " + " | ".join(cells) + " |")
    if not weekly:
        lines.append("| N/A | N/A | N/A | N/A |")

    lines += ["", "## Retrospective Snapshot", "", "| Field | Value |", "| --- | --- |"]
    if retros:
        latest = retros[-1]
        text = read_text(latest)
        lines.append(f"| Latest retrospective | `{latest.name}` |")
        for label, key in RETROSPECTIVE_FIELDS:
            lines.append(f"| {label} | {escape_cell(table_value(text, key))} |")
    else:
        lines.append("| Latest retrospective | N/A |")
        for label, _key in RETROSPECTIVE_FIELDS:
            lines.append(f"| {label} | N/A |")

    lines += [
        "",
        "## Backlog Intake Checklist",
        "",
        "| Item | Owner | Status |",
        "| --- | --- | --- |",
        "| Review weekly blockers and defects from all weekly files | Maintainer + pilot owner | Pending |",
        "| Convert confirmed gaps into feedback issues using `docs/templates/feedback-template.md` "
        "| Maintainer + contributors | Pending |",
        "| Map accepted issues into next release backlog and roadmap milestones | Maintainer | Pending |",
    ]
    summary = PilotSummary(
        markdown="\n".join(lines) + "\n",
        report=report,
        weekly_count=len(weekly),
        retrospective_count=len(retros),
    )

    if not print_only:
        if output:
            output_path = Path(output).expanduser()
            if not output_path.is_absolute():
                output_path = project_abs / output_path
        else:
            output_path = target_dir / SUMMARY_NAME
        output_path.parent.mkdir(parents=True, exist_ok=True)
        write_text_atomic(output_path, summary.markdown)
        summary.output_path = output_path
        logger.info("pilot.summary_written", path=str(output_path), weekly=len(weekly))
    return summary
