"""
Adoption simulator.

Manifesto:
    Every workflow the toolkit supports is exercised end to end against a
    real file system, in a sandbox that is thrown away afterwards. A
    scenario is data (a file tree) plus a function that drives the public
    API and asserts on the result.

Architecture:
    ::

        run_scenarios(only=...)
            │
            ├── for each Scenario
            │      with Sandbox(name):                 fresh temp dir
            │          sandbox.write_tree(tree)        standards/ + project/
            │          scenario.run(sandbox)           adopt / validate / pin ...
            │      ScenarioOutcome(passed | assertion, expected, actual | error)
            │
            └── SimulationReport(outcomes)

Sandbox layout::

    <tmp>/standards/    mini standards repository (fixtures.standards_tree)
    <tmp>/project/      downstream project; standards_path is ../standards

Tags:
    simulator, end-to-end, sandbox, scenarios, standards-sync
"""

from __future__ import annotations

import os
import stat
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from standards_sync.adoption_check import check_adoption
from standards_sync.core.config import AdoptionConfig, NavigationConfig
from standards_sync.core.errors import (
    AdoptionError,
    ConfigError,
    OrphanGuideError,
    ScenarioAssertionError,
    SnapshotHashMismatchError,
    StandardsError,
)
from standards_sync.core.logging import LogContext, get_logger
from standards_sync.merge.adoption import AdoptionResult, adopt
from standards_sync.navigation.validator import validate
from standards_sync.pilot import check_pilot_readiness, prepare_pilot, summarize_pilot_findings
from standards_sync.simulator.fixtures import (
    EXISTING_AGENTS,
    PROJECT_DIR,
    PROJECT_SHAPES,
    STANDARDS_DIR,
    STANDARDS_PATH,
    standards_tree,
)
from standards_sync.simulator.sandbox import Sandbox
from standards_sync.snapshot.manager import SnapshotManager

logger = get_logger(__name__)

AGENTS = f"{PROJECT_DIR}/AGENTS.md"


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    tree: Mapping[str, str]
    run: Callable[[Sandbox], None]


@dataclass
class ScenarioOutcome:
    name: str
    passed: bool
    assertion: str | None = None
    expected: Any = None
    actual: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "assertion": self.assertion,
            "expected": None if self.expected is None else str(self.expected),
            "actual": None if self.actual is None else str(self.actual),
            "error": self.error,
        }


@dataclass
class SimulationReport:
    outcomes: list[ScenarioOutcome] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(o.passed for o in self.outcomes)

    @property
    def failed(self) -> list[ScenarioOutcome]:
        return [o for o in self.outcomes if not o.passed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "total": len(self.outcomes),
            "failed": len(self.failed),
            "scenarios": [o.to_dict() for o in self.outcomes],
        }


# =============================================================================
# HELPERS
# =============================================================================


def _adopt(sandbox: Sandbox, project: str = PROJECT_DIR, **options: Any) -> AdoptionResult:
    config = AdoptionConfig.from_dict({"standards_path": STANDARDS_PATH, **options}, source=project)
    return adopt(sandbox.path(project), config)


def _with_project(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    tree = standards_tree()
    tree[f"{PROJECT_DIR}/README.md"] = "# Payments Service\n"
    tree.update(extra or {})
    return tree


def _messages(errors: Iterable[StandardsError]) -> list[str]:
    return [e.message for e in errors]


# =============================================================================
# SCENARIOS
# =============================================================================


def _fresh_adopt_and_validate(sandbox: Sandbox) -> None:
    report = validate(NavigationConfig(root=sandbox.path(STANDARDS_DIR)))
    sandbox.assert_equals("standards tree validates cleanly", [], _messages(report.errors))

    result = _adopt(sandbox, mode="fresh")
    sandbox.assert_equals("fresh adoption creates the file", "created", result.operation)
    sandbox.assert_contains(AGENTS, "<!-- BEGIN:standards-reference -->")
    sandbox.assert_contains(AGENTS, "<!-- source-hash: ")
    sandbox.assert_contains(AGENTS, "standards defined in `../standards`")
    sandbox.assert_not_contains(AGENTS, "{{")

    adopted = validate(NavigationConfig(root=sandbox.path(PROJECT_DIR)))
    sandbox.assert_equals("adopted project validates cleanly", [], _messages(adopted.errors))

    health = check_adoption(sandbox.path(PROJECT_DIR))
    sandbox.assert_equals("adopted project has no health errors", [], health.errors)

    sandbox.assert_raises(
        "fresh adoption refuses an existing file",
        AdoptionError,
        lambda: _adopt(sandbox, mode="fresh"),
    )


def _merge_and_idempotence(sandbox: Sandbox) -> None:
    first = _adopt(sandbox, mode="merge")
    sandbox.assert_equals("merge writes the file", "merged", first.operation)
    sandbox.assert_equals(
        "both blocks inserted",
        ["standards-reference", "project-commands"],
        first.merge.inserted if first.merge else None,
    )
    text = sandbox.read(AGENTS)
    sandbox.assert_equals("author-owned text is untouched", True, text.startswith(EXISTING_AGENTS))
    sandbox.assert_equals("a backup was written", True, bool(first.backup_path and first.backup_path.exists()))

    second = _adopt(sandbox, mode="merge")
    sandbox.assert_equals("second merge is a no-op", "unchanged", second.operation)
    sandbox.assert_equals("merged text is stable", text, sandbox.read(AGENTS))

    sandbox.assert_raises(
        "merge mode requires an existing file",
        AdoptionError,
        lambda: _adopt(sandbox, mode="merge", config_file="CONTRIBUTING.md"),
    )


def _pinned_mode(sandbox: Sandbox) -> None:
    result = _adopt(sandbox, mode="pinned", pinned_version="v1.0.0")
    sandbox.assert_equals("pinned adoption bootstraps the file", "created", result.operation)
    sandbox.assert_exists(f"{PROJECT_DIR}/.standards/pinned/v1.0.0/manifest.json")
    sandbox.assert_contains(AGENTS, "<!-- BEGIN:standards-pin -->")
    sandbox.assert_contains(AGENTS, "standards defined in `.standards/pinned/v1.0.0`")
    sandbox.assert_contains(AGENTS, "| Version | `v1.0.0` |")

    # Live edits upstream must not leak into a pinned project
    sandbox.write_tree({f"{STANDARDS_DIR}/guides/testing.md": "# Testing\n\nRewritten upstream.\n"})
    again = _adopt(sandbox, mode="pinned", pinned_version="v1.0.0")
    sandbox.assert_equals("re-running a pin is a no-op", "unchanged", again.operation)
    sandbox.assert_not_contains(f"{PROJECT_DIR}/.standards/pinned/v1.0.0/guides/testing.md", "Rewritten upstream")

    health = check_adoption(sandbox.path(PROJECT_DIR))
    sandbox.assert_equals("pinned project has no health errors", [], health.errors)

    sandbox.assert_raises(
        "pinned mode requires a version",
        ConfigError,
        lambda: _adopt(sandbox, mode="pinned"),
    )


def _conflicting_local_edit(sandbox: Sandbox) -> None:
    _adopt(sandbox, mode="fresh")
    edited = sandbox.read(AGENTS).replace("| Before writing tests |", "| Before writing any test |")
    sandbox.write_tree({AGENTS: edited})

    result = _adopt(sandbox, mode="merge")
    conflicts = [c.marker_id for c in result.merge.conflicts] if result.merge else []
    sandbox.assert_equals("local edit is reported as a conflict", ["standards-reference"], conflicts)
    sandbox.assert_equals("conflicting run is not ok", False, result.ok)
    sandbox.assert_equals("file is left byte-identical", edited, sandbox.read(AGENTS))

    health = check_adoption(sandbox.path(PROJECT_DIR))
    drift = [e for e in health.errors if "edited locally" in e]
    sandbox.assert_equals("health check flags the drift", 1, len(drift))

    forced = _adopt(sandbox, mode="merge", force=True)
    statuses = {o.marker_id: o.status.value for o in forced.merge.outcomes} if forced.merge else {}
    sandbox.assert_equals("force overwrites the edited block", "forced", statuses.get("standards-reference"))
    sandbox.assert_not_contains(AGENTS, "Before writing any test")


_EXPECTED_COMMANDS = {
    "node": ("`pnpm run test`", "`pnpm run build`"),
    "python": ("`uv run pytest`", "`uv run ruff check .`"),
    "go": ("`go test ./...`", "`go build ./...`"),
    "generic": ("`make check`", "`make lint`"),
}


def _stack_shapes(sandbox: Sandbox) -> None:
    for stack, (first, second) in _EXPECTED_COMMANDS.items():
        project = f"project-{stack}"
        overrides = {"test": "make check"} if stack == "generic" else {}
        result = _adopt(sandbox, project, mode="fresh", command_overrides=overrides)
        sandbox.assert_equals(f"{stack} project detected", stack, result.stack.stack)
        sandbox.assert_contains(f"{project}/AGENTS.md", first)
        sandbox.assert_contains(f"{project}/AGENTS.md", second)
        sandbox.assert_contains(f"{project}/AGENTS.md", f"Stack: {stack} (")


def _snapshot_tamper(sandbox: Sandbox) -> None:
    manager = SnapshotManager(sandbox.path(STANDARDS_DIR), sandbox.path("pins"))
    created = manager.create_snapshot("v1.0.0")
    verified = manager.verify_snapshot("v1.0.0")
    sandbox.assert_equals("fresh snapshot verifies", created.manifest_hash, verified.manifest_hash)

    target = sandbox.path("pins/v1.0.0/guides/testing.md")
    os.chmod(target, stat.S_IRUSR | stat.S_IWUSR)
    with open(target, "a", encoding="utf-8") as fh:
        fh.write("\nTampered.\n")

    error = sandbox.assert_raises(
        "tampered snapshot fails verification",
        SnapshotHashMismatchError,
        lambda: manager.verify_snapshot("v1.0.0"),
    )
    sandbox.assert_equals("mismatch names the file", "guides/testing.md", getattr(error, "path", None))


def _orphan_guide(sandbox: Sandbox) -> None:
    report = validate(NavigationConfig(root=sandbox.path(STANDARDS_DIR)))
    orphans = [e.path for e in report.errors if isinstance(e, OrphanGuideError)]
    sandbox.assert_equals("exactly one orphan reported", ["guides/unindexed.md"], orphans)
    sandbox.assert_equals("no other errors", len(orphans), len(report.errors))

    strict = validate(NavigationConfig(root=sandbox.path(STANDARDS_DIR)), strict=True)
    sandbox.assert_equals("strict mode stops at the first error", 1, len(strict.errors))


def _pilot_readiness(sandbox: Sandbox) -> None:
    _adopt(sandbox, mode="fresh")
    sandbox.write_tree({f"{PROJECT_DIR}/CLAUDE.md": sandbox.read(AGENTS)})

    missing = check_pilot_readiness(sandbox.path(PROJECT_DIR))
    sandbox.assert_equals("readiness fails before preparation", False, missing.ok)

    prepared = prepare_pilot(
        sandbox.path(PROJECT_DIR),
        STANDARDS_PATH,
        owner="Platform Team",
        start_date="2026-01-05",
    )
    sandbox.assert_equals(
        "all pilot artifacts written",
        ["kickoff.md", "weekly-checkin-template.md", "retrospective-template.md", "README.md"],
        prepared.written,
    )
    sandbox.assert_contains(f"{PROJECT_DIR}/.standards/pilot/kickoff.md", "| Pilot owner | Platform Team |")

    report = check_pilot_readiness(sandbox.path(PROJECT_DIR))
    sandbox.assert_equals("prepared pilot has no errors", [], report.errors)
    sandbox.assert_equals("missing check-ins only warn", False, report.passed(strict=True))

    sandbox.write_tree({f"{PROJECT_DIR}/.standards/pilot/weekly-01.md": "# Week 1\n"})
    strict = check_pilot_readiness(sandbox.path(PROJECT_DIR), strict=True)
    sandbox.assert_equals("strict readiness passes", [], strict.errors + strict.warnings)

    rerun = prepare_pilot(sandbox.path(PROJECT_DIR), STANDARDS_PATH, start_date="2026-01-05")
    sandbox.assert_equals("existing artifacts are skipped", 4, len(rerun.skipped))


_WEEKLY = """\
# Weekly Check-in

| Field | Value |
| --- | --- |
| Reporting Period | 2026-01-05 to 2026-01-09 |
| Blockers encountered | Flaky CI on arm64 |
| Critical defects linked to guidance | |
"""

_RETRO = """\
# Retrospective

| Field | Value |
| --- | --- |
| Continue rollout / pause / iterate | Continue rollout |
| Preferred adoption mode (latest or pinned) | pinned |
| Follow-up owners and deadlines | Platform Team, 2026-03-01 |
"""


def _findings_summary(sandbox: Sandbox) -> None:
    _adopt(sandbox, mode="fresh")
    prepare_pilot(sandbox.path(PROJECT_DIR), STANDARDS_PATH, start_date="2026-01-05")
    pilot = f"{PROJECT_DIR}/.standards/pilot"
    sandbox.write_tree({f"{pilot}/weekly-01.md": _WEEKLY, f"{pilot}/retrospective-final.md": _RETRO})

    summary = summarize_pilot_findings(sandbox.path(PROJECT_DIR))
    sandbox.assert_equals("summary has no errors", [], summary.report.errors)
    sandbox.assert_equals("one weekly check-in counted", 1, summary.weekly_count)
    sandbox.assert_contains(f"{pilot}/pilot-summary.md", "# Pilot Findings Summary")
    sandbox.assert_contains(
        f"{pilot}/pilot-summary.md",
        "| `weekly-01.md` | 2026-01-05 to 2026-01-09 | Flaky CI on arm64 | N/A |",
    )
    sandbox.assert_contains(f"{pilot}/pilot-summary.md", "| Rollout decision | Continue rollout |")
    sandbox.assert_contains(f"{pilot}/pilot-summary.md", "## Backlog Intake Checklist")


def _stack_tree() -> dict[str, str]:
    tree = standards_tree()
    for stack, files in PROJECT_SHAPES.items():
        for name, content in files.items():
            tree[f"project-{stack}/{name}"] = content
    return tree


BUILTIN_SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        "fresh-adopt",
        "Fresh adoption into an empty project; the standards tree and the result both validate",
        _with_project(),
        _fresh_adopt_and_validate,
    ),
    Scenario(
        "merge-idempotent",
        "Merge into a pre-existing AGENTS.md keeps author text and is idempotent",
        _with_project({AGENTS: EXISTING_AGENTS}),
        _merge_and_idempotence,
    ),
    Scenario(
        "pinned",
        "Pinned adoption reads from a hashed snapshot and ignores later upstream edits",
        _with_project(),
        _pinned_mode,
    ),
    Scenario(
        "conflict",
        "A hand-edited managed block is reported as a conflict and only --force overwrites it",
        _with_project(),
        _conflicting_local_edit,
    ),
    Scenario(
        "stack-shapes",
        "Node, Python, Go and generic projects get their own commands; overrides win",
        _stack_tree(),
        _stack_shapes,
    ),
    Scenario(
        "snapshot-tamper",
        "Editing a file inside a snapshot is detected on verification",
        standards_tree(),
        _snapshot_tamper,
    ),
    Scenario(
        "orphan-guide",
        "A guide missing from the indexes is reported exactly once",
        {**standards_tree(), f"{STANDARDS_DIR}/guides/unindexed.md": "# Unindexed\n\n## Contents\n"},
        _orphan_guide,
    ),
    Scenario(
        "pilot-readiness",
        "Pilot artifacts are scaffolded and readiness checks pass once check-ins exist",
        _with_project(),
        _pilot_readiness,
    ),
    Scenario(
        "findings-summary",
        "Weekly and retrospective tables are lifted into pilot-summary.md",
        _with_project(),
        _findings_summary,
    ),
)


# =============================================================================
# RUNNER
# =============================================================================


def run_scenario(scenario: Scenario) -> ScenarioOutcome:
    """Run one scenario in its own sandbox."""
    with LogContext(scenario=scenario.name):
        logger.info("scenario.started", description=scenario.description)
        try:
            with Sandbox(scenario.name) as sandbox:
                sandbox.write_tree(scenario.tree)
                scenario.run(sandbox)
        except ScenarioAssertionError as e:
            logger.warning("scenario.failed", assertion=e.assertion)
            return ScenarioOutcome(
                scenario.name, False, assertion=e.assertion, expected=e.expected, actual=e.actual
            )
        except StandardsError as e:
            logger.warning("scenario.error", error=e.message, category=e.category.value)
            return ScenarioOutcome(scenario.name, False, error=f"{type(e).__name__}: {e.message}")
        except Exception as e:
            logger.exception("scenario.crashed")
            return ScenarioOutcome(scenario.name, False, error=f"{type(e).__name__}: {e}")
        logger.info("scenario.passed")
        return ScenarioOutcome(scenario.name, True)


def run_scenarios(
    scenarios: Iterable[Scenario] | None = None,
    *,
    only: str | Iterable[str] | None = None,
) -> SimulationReport:
    """
    Run scenarios (the built-in set by default) and collect their outcomes.

    Raises:
        ConfigError: ``only`` names a scenario that does not exist
    """
    selected = list(scenarios if scenarios is not None else BUILTIN_SCENARIOS)
    if only is not None:
        wanted = [only] if isinstance(only, str) else list(only)
        known = {s.name for s in selected}
        unknown = [name for name in wanted if name not in known]
        if unknown:
            raise ConfigError(f"Unknown scenario(s) {unknown}; available: {sorted(known)}")
        selected = [s for s in selected if s.name in wanted]

    report = SimulationReport()
    for scenario in selected:
        report.outcomes.append(run_scenario(scenario))
    logger.info("simulate.complete", total=len(report.outcomes), failed=len(report.failed))
    return report
