"""
CLI: ``standards-sync pin``, ``verify-pin``, ``diff-pins`` and ``list-pins``.

Snapshots live in ``--snapshot-dir`` (default ``.standards/pinned``, from
``STANDARDS_SYNC_SNAPSHOT_DIR``), one directory per sanitized version tag.
"""

from __future__ import annotations

from pathlib import Path

import typer

from standards_sync.cli.utils import console, echo_json, print_table, standards_errors
from standards_sync.core.settings import get_settings
from standards_sync.merge.adoption import resolve_standards_path
from standards_sync.snapshot.manager import SnapshotManager

_STANDARDS_HELP = "Standards repository to snapshot (default: STANDARDS_SYNC_STANDARDS_PATH)."
_SNAPSHOT_HELP = "Directory holding snapshots (default: .standards/pinned)."


def _manager(standards_path: str | None, snapshot_dir: Path | None) -> SnapshotManager:
    _, standards_root = resolve_standards_path(Path("."), standards_path)
    return SnapshotManager(standards_root, snapshot_dir or Path(get_settings().snapshot_dir))


def pin_cmd(
    version: str = typer.Argument(..., help="Version tag, e.g. v1.2.0."),
    standards_path: str | None = typer.Option(None, "--standards-path", "-s", help=_STANDARDS_HELP),
    snapshot_dir: Path | None = typer.Option(None, "--snapshot-dir", help=_SNAPSHOT_HELP),
    force: bool = typer.Option(False, "--force", help="Supersede an existing snapshot."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Create a hashed, read-only snapshot of the standards tree."""
    with standards_errors():
        snapshot = _manager(standards_path, snapshot_dir).create_snapshot(version, force=force)

    if json_out:
        echo_json(snapshot.to_manifest() | {"path": str(snapshot.path)})
        return
    console.print(f"Pinned [bold]{version}[/bold] at {snapshot.path}")
    console.print(f"  [cyan]files[/cyan]: {len(snapshot.files)}")
    console.print(f"  [cyan]manifest_hash[/cyan]: {snapshot.manifest_hash}")


def verify_pin_cmd(
    version: str = typer.Argument(..., help="Version tag to verify."),
    snapshot_dir: Path | None = typer.Option(None, "--snapshot-dir", help=_SNAPSHOT_HELP),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Recompute every snapshot hash and compare with the manifest."""
    manager = SnapshotManager(None, snapshot_dir or Path(get_settings().snapshot_dir))
    with standards_errors():
        snapshot = manager.verify_snapshot(version)

    if json_out:
        echo_json({"ok": True, "version": snapshot.version, "manifest_hash": snapshot.manifest_hash})
        return
    console.print(f"[green]Intact[/green]: {version} ({len(snapshot.files)} files)")


def diff_pins_cmd(
    version_a: str = typer.Argument(..., help="Older version tag."),
    version_b: str = typer.Argument(..., help="Newer version tag."),
    snapshot_dir: Path | None = typer.Option(None, "--snapshot-dir", help=_SNAPSHOT_HELP),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show files added, removed or modified between two snapshots."""
    manager = SnapshotManager(None, snapshot_dir or Path(get_settings().snapshot_dir))
    with standards_errors():
        changes = manager.diff_snapshots(version_a, version_b)

    if json_out:
        echo_json([{"path": path, "change": change.value} for path, change in changes])
        return
    if not changes:
        console.print("[dim]No differences.[/dim]")
        return
    print_table(f"{version_a} → {version_b}", ["Path", "Change"], [[p, c.value] for p, c in changes])


def list_pins_cmd(
    snapshot_dir: Path | None = typer.Option(None, "--snapshot-dir", help=_SNAPSHOT_HELP),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List snapshots, oldest first."""
    snapshots = SnapshotManager(None, snapshot_dir or Path(get_settings().snapshot_dir)).list_snapshots()
    if json_out:
        echo_json([s.to_manifest() | {"path": str(s.path)} for s in snapshots])
        return
    if not snapshots:
        console.print("[dim]No snapshots.[/dim]")
        return
    print_table(
        "Snapshots",
        ["Version", "Created", "Files", "Manifest"],
        [[s.version, s.created_at, len(s.files), s.manifest_hash[:12]] for s in snapshots],
    )
