"""
CLI utility helpers — output formatting and error mapping.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from standards_sync.adoption_check import CheckReport
from standards_sync.core.errors import StandardsError

console = Console()
err_console = Console(stderr=True)


# ── Error mapping ────────────────────────────────────────────────────────


@contextmanager
def standards_errors() -> Iterator[None]:
    """Turn a ``StandardsError`` into a red message on stderr and exit code 1."""
    try:
        yield
    except StandardsError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {escape(e.message)}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def echo_json(payload: Any) -> None:
    """Plain JSON on stdout (no rich markup) so it can be piped."""
    typer.echo(json.dumps(payload, indent=2, default=str))


def print_table(title: str, columns: list[str], rows: list[list[Any]]) -> None:
    """Render rows as a Rich table."""
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(escape(str(v)) for v in row))
    console.print(table)


def print_check_report(report: CheckReport, *, title: str) -> None:
    """Errors, warnings and a summary line for a health check."""
    for message in report.errors:
        err_console.print(f"[red]ERROR[/red]: {escape(message)}", highlight=False)
    for message in report.warnings:
        console.print(f"[yellow]WARN[/yellow]: {escape(message)}", highlight=False)
    console.print(f"\n[bold]{title}[/bold]")
    for key, value in report.details.items():
        console.print(f"  [cyan]{key}[/cyan]: {escape(str(value))}")
    console.print(f"  [cyan]errors[/cyan]: {len(report.errors)}")
    console.print(f"  [cyan]warnings[/cyan]: {len(report.warnings)}")


def exit_for(passed: bool) -> None:
    if not passed:
        raise typer.Exit(code=1)
