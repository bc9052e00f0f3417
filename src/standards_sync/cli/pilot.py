"""
CLI: ``standards-sync pilot`` — pilot scaffolding, readiness and findings.
"""

from __future__ import annotations

from pathlib import Path

import typer

from standards_sync.cli.utils import (
    console,
    echo_json,
    exit_for,
    print_check_report,
    standards_errors,
)
from standards_sync.pilot import (
    DEFAULT_PILOT_DIR,
    check_pilot_readiness,
    prepare_pilot,
    summarize_pilot_findings,
)

app = typer.Typer(no_args_is_help=True)


@app.command("prepare")
def prepare_cmd(
    project_dir: Path = typer.Option(Path("."), "--project-dir", "-p"),
    standards_path: str | None = typer.Option(None, "--standards-path", "-s"),
    pilot_dir: str = typer.Option(DEFAULT_PILOT_DIR, "--pilot-dir"),
    project_name: str | None = typer.Option(None, "--project-name"),
    owner: str = typer.Option("TBD", "--pilot-owner"),
    start_date: str | None = typer.Option(None, "--start-date", help="YYYY-MM-DD (default: today)."),
    adoption_mode: str = typer.Option("latest", "--adoption-mode", help="latest | pinned."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing artifacts."),
) -> None:
    """Scaffold kickoff, weekly check-in and retrospective files."""
    with standards_errors():
        result = prepare_pilot(
            project_dir,
            standards_path,
            pilot_dir=pilot_dir,
            project_name=project_name,
            owner=owner,
            start_date=start_date,
            adoption_mode=adoption_mode,
            overwrite=overwrite,
        )
    for name in result.skipped:
        console.print(f"[dim]Skipping existing pilot artifact: {name}[/dim]")
    console.print(f"Pilot artifacts in {result.pilot_dir}")
    console.print(f"  [cyan]written[/cyan]: {', '.join(result.written) or '-'}")
    console.print(f"  [cyan]standards_path[/cyan]: {result.standards_path}")
    console.print("Next: fill kickoff.md and start weekly check-ins.")


@app.command("check")
def check_cmd(
    project_dir: Path = typer.Option(Path("."), "--project-dir", "-p"),
    pilot_dir: str = typer.Option(DEFAULT_PILOT_DIR, "--pilot-dir"),
    min_weekly_checkins: int = typer.Option(1, "--min-weekly-checkins", min=0),
    require_retrospective: bool = typer.Option(False, "--require-retrospective"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings too."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Check that the pilot is set up and being tracked."""
    with standards_errors():
        report = check_pilot_readiness(
            project_dir,
            pilot_dir=pilot_dir,
            min_weekly_checkins=min_weekly_checkins,
            require_retrospective=require_retrospective,
            strict=strict,
        )
    if json_out:
        echo_json(report.to_dict() | {"passed": report.passed(strict)})
    else:
        print_check_report(report, title="Pilot readiness")
    exit_for(report.passed(strict))


@app.command("summarize")
def summarize_cmd(
    project_dir: Path = typer.Option(Path("."), "--project-dir", "-p"),
    pilot_dir: str = typer.Option(DEFAULT_PILOT_DIR, "--pilot-dir"),
    output: str | None = typer.Option(None, "--output", "-o"),
    min_weekly_checkins: int = typer.Option(1, "--min-weekly-checkins", min=0),
    require_retrospective: bool = typer.Option(False, "--require-retrospective"),
    print_only: bool = typer.Option(False, "--print-only", help="Print instead of writing."),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings too."),
) -> None:
    """Summarize weekly check-ins and the latest retrospective."""
    with standards_errors():
        summary = summarize_pilot_findings(
            project_dir,
            pilot_dir=pilot_dir,
            output=output,
            min_weekly_checkins=min_weekly_checkins,
            require_retrospective=require_retrospective,
            print_only=print_only,
        )
    if print_only:
        typer.echo(summary.markdown, nl=False)
    else:
        console.print(f"Pilot summary written to: {summary.output_path}")
        print_check_report(summary.report, title="Summary checks")
    exit_for(summary.report.passed(strict))
