"""
CLI: ``standards-sync simulate`` — run the adoption scenarios.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from standards_sync.cli.utils import console, echo_json, err_console, exit_for, standards_errors
from standards_sync.simulator.scenarios import BUILTIN_SCENARIOS, run_scenarios


def simulate_cmd(
    only: list[str] | None = typer.Option(
        None, "--only", help="Run only the named scenario (repeatable)."
    ),
    list_only: bool = typer.Option(False, "--list", help="List scenarios and exit."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run every scripted adoption scenario in a throwaway sandbox.

    Example:
        standards-sync simulate
        standards-sync simulate --only pinned --only conflict
    """
    if list_only:
        for scenario in BUILTIN_SCENARIOS:
            console.print(f"[cyan]{scenario.name}[/cyan]  {scenario.description}")
        return

    with standards_errors():
        report = run_scenarios(only=only or None)

    if json_out:
        echo_json(report.to_dict())
    else:
        for outcome in report.outcomes:
            if outcome.passed:
                console.print(f"[green]PASS[/green] {outcome.name}")
                continue
            console.print(f"[red]FAIL[/red] {outcome.name}")
            if outcome.assertion:
                err_console.print(f"  assertion: {escape(outcome.assertion)}", highlight=False)
                err_console.print(f"  expected:  {escape(repr(outcome.expected))}", highlight=False)
                err_console.print(f"  actual:    {escape(repr(outcome.actual))}", highlight=False)
            if outcome.error:
                err_console.print(f"  error: {escape(outcome.error)}", highlight=False)
        console.print(
            f"\n{len(report.outcomes) - len(report.failed)}/{len(report.outcomes)} scenarios passed"
        )

    exit_for(report.passed)
