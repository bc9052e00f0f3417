"""
CLI: ``standards-sync validate`` — navigation, link and completeness checks.
"""

from __future__ import annotations

from pathlib import Path

import typer

from standards_sync.cli.utils import console, echo_json, exit_for, print_table, standards_errors
from standards_sync.core.config import NavigationConfig
from standards_sync.navigation.validator import validate


def _location(error) -> str:  # type: ignore[no-untyped-def]
    path = error.context.path or ""
    return f"{path}:{error.context.line}" if error.context.line else path


def validate_cmd(
    root: Path | None = typer.Argument(None, help="Standards repository root (default: .)."),
    strict: bool = typer.Option(False, "--strict", help="Stop at the first error."),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="YAML/JSON file with a 'navigation' section."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
    fail_on_warnings: bool = typer.Option(
        False, "--fail-on-warnings", help="Exit non-zero on warnings too."
    ),
) -> None:
    """Validate index completeness, links and index freshness.

    Example:
        standards-sync validate
        standards-sync validate ~/agentic-best-practices --strict --json
    """
    with standards_errors():
        nav = NavigationConfig.from_file(config) if config else NavigationConfig()
        if root is not None:
            nav.root = root
        report = validate(nav, strict=strict)

    if json_out:
        echo_json(report.to_dict())
    else:
        if report.errors:
            print_table(
                "Errors",
                ["Kind", "Location", "Message"],
                [
                    [getattr(e, "kind", "parse-error"), _location(e), e.message]
                    for e in report.errors
                ],
            )
        if report.warnings:
            print_table(
                "Warnings",
                ["Kind", "Location", "Message"],
                [
                    [w.kind.value, f"{w.path}:{w.line}" if w.line else w.path, w.message]
                    for w in report.warnings
                ],
            )
        status = "[green]passed[/green]" if report.ok else "[red]failed[/red]"
        console.print(
            f"Validation {status}: {report.files_checked} files, "
            f"{len(report.errors)} errors, {len(report.warnings)} warnings"
        )

    exit_for(report.ok and not (fail_on_warnings and report.warnings))
