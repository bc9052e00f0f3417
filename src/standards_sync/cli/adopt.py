"""
CLI: ``standards-sync adopt`` and ``standards-sync check-adoption``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from standards_sync.adoption_check import check_adoption
from standards_sync.cli.utils import (
    console,
    echo_json,
    err_console,
    exit_for,
    print_check_report,
    print_table,
    standards_errors,
)
from standards_sync.core.config import AdoptionConfig, AdoptionMode
from standards_sync.core.errors import ConfigError
from standards_sync.merge.adoption import AdoptionResult, adopt


def parse_command_overrides(values: list[str] | None) -> dict[str, str]:
    """``["test=make check"]`` → ``{"test": "make check"}``."""
    overrides: dict[str, str] = {}
    for value in values or []:
        name, sep, command = value.partition("=")
        if not sep or not name.strip():
            raise ConfigError(f"Invalid --command '{value}'; expected NAME=COMMAND")
        overrides[name.strip()] = command
    return overrides


def _result_payload(result: AdoptionResult) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ok": result.ok,
        "mode": result.mode.value,
        "path": str(result.path),
        "operation": result.operation,
        "stack": result.stack.stack,
        "standards_path": result.standards_path,
        "backup_path": str(result.backup_path) if result.backup_path else None,
        "blocks": [
            {"marker_id": o.marker_id, "status": o.status.value, "message": o.message}
            for o in result.outcomes
        ],
        "conflicts": [],
    }
    if result.merge is not None:
        payload["conflicts"] = [c.marker_id for c in result.merge.conflicts]
    if result.snapshot is not None:
        payload["pinned_version"] = result.snapshot.version
        payload["manifest_hash"] = result.snapshot.manifest_hash
    return payload


def adopt_cmd(
    mode: AdoptionMode | None = typer.Option(
        None, "--mode", "-m", case_sensitive=False, help="fresh | merge | pinned (default: merge)."
    ),
    project_dir: Path = typer.Option(Path("."), "--project-dir", "-p", help="Downstream project."),
    config_file: Path | None = typer.Option(
        None, "--config-file", "-c", help="YAML/JSON adoption config; flags override its keys."
    ),
    target_file: str | None = typer.Option(
        None, "--target-file", help="Downstream file to manage (default: AGENTS.md)."
    ),
    standards_path: str | None = typer.Option(None, "--standards-path", "-s"),
    pinned_version: str | None = typer.Option(None, "--pinned-version"),
    stack: str | None = typer.Option(None, "--stack", help="Force the detected stack label."),
    command: list[str] | None = typer.Option(
        None, "--command", help="Override a rendered command, NAME=COMMAND (repeatable)."
    ),
    anchor: str | None = typer.Option(None, "--anchor", help="end | start | after:<Heading>."),
    force: bool = typer.Option(False, "--force", help="Overwrite locally edited blocks."),
    no_backup: bool = typer.Option(False, "--no-backup", help="Skip the .bak copy."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Apply the standards template to a project.

    Example:
        standards-sync adopt --mode fresh --standards-path ~/agentic-best-practices
        standards-sync adopt --mode pinned --pinned-version v1.2.0 --command test="make check"
    """
    with standards_errors():
        base = AdoptionConfig.from_file(config_file) if config_file else AdoptionConfig()
        overrides = parse_command_overrides(command)
        config = base.merged(
            mode=mode,
            config_file=target_file,
            standards_path=standards_path,
            pinned_version=pinned_version,
            stack_override=stack,
            command_overrides={**base.command_overrides, **overrides} if overrides else None,
            anchor=anchor,
            force=True if force else None,
            backup=False if no_backup else None,
        )
        result = adopt(project_dir, config)

    if json_out:
        echo_json(_result_payload(result))
    else:
        print_table(
            f"{result.path.name} ({result.mode.value})",
            ["Marker", "Status", "Note"],
            [[o.marker_id, o.status.value, o.message] for o in result.outcomes],
        )
        for conflict in result.merge.conflicts if result.merge else []:
            err_console.print(f"[red]CONFLICT[/red]: {conflict.message}", highlight=False)
        console.print(
            f"{result.operation.capitalize()} {result.path} "
            f"(stack: {result.stack.stack}, standards: {result.standards_path})"
        )
        if result.backup_path:
            console.print(f"[dim]Backup: {result.backup_path}[/dim]")

    exit_for(result.ok)


def check_adoption_cmd(
    project_dir: Path = typer.Option(Path("."), "--project-dir", "-p"),
    target_file: str = typer.Option("AGENTS.md", "--target-file"),
    expect_standards_path: str | None = typer.Option(
        None, "--expect-standards-path", help="Fail if the file points elsewhere."
    ),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings too."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Check an adopted project's health without modifying it."""
    with standards_errors():
        report = check_adoption(
            project_dir,
            config_file=target_file,
            expect_standards_path=expect_standards_path,
            strict=strict,
        )

    if json_out:
        echo_json(report.to_dict() | {"passed": report.passed(strict)})
    else:
        print_check_report(report, title="Adoption check")
    exit_for(report.passed(strict))
