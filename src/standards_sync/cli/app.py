"""
Root Typer application for the standards-sync CLI.

Exit codes: 0 success, 1 violations, conflicts, failed checks or any
``StandardsError`` (printed in red on stderr). Logs go to stderr.
"""

from __future__ import annotations

import typer
from typer import Typer

from standards_sync import __version__
from standards_sync.core.logging import configure_logging
from standards_sync.core.settings import get_settings

app = Typer(
    name="standards-sync",
    help="standards-sync — validate, adopt and pin a markdown standards repository.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"standards-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR (default: STANDARDS_SYNC_LOG_LEVEL)."
    ),
    log_json: bool | None = typer.Option(
        None, "--log-json/--log-console", help="Force JSON or console log output."
    ),
) -> None:
    """standards-sync CLI — navigation validation, adoption, pinning and pilots."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=log_json if log_json is not None else settings.log_json,
    )


# ── Command registration ─────────────────────────────────────────────────

from standards_sync.cli.adopt import adopt_cmd, check_adoption_cmd  # noqa: E402
from standards_sync.cli.pilot import app as pilot_app  # noqa: E402
from standards_sync.cli.pins import diff_pins_cmd, list_pins_cmd, pin_cmd, verify_pin_cmd  # noqa: E402
from standards_sync.cli.simulate import simulate_cmd  # noqa: E402
from standards_sync.cli.validate import validate_cmd  # noqa: E402

app.command("validate")(validate_cmd)
app.command("adopt")(adopt_cmd)
app.command("check-adoption")(check_adoption_cmd)
app.command("pin")(pin_cmd)
app.command("verify-pin")(verify_pin_cmd)
app.command("diff-pins")(diff_pins_cmd)
app.command("list-pins")(list_pins_cmd)
app.command("simulate")(simulate_cmd)
app.add_typer(pilot_app, name="pilot", help="Pilot scaffolding, readiness and findings.")
