"""
Adoption modes built on the merge engine.

Manifesto:
    Adopting the standards into a project is one primitive (merge marker
    blocks) used three ways. The mode decides where the template comes from
    and what state the downstream file must be in; everything else is shared.

Modes:
    fresh   the downstream file must not exist; the rendered template is
            written verbatim with every block marked
    merge   the downstream file must exist; ``merge_text`` patches it
    pinned  the template comes from a verified snapshot, the standards path
            points at the snapshot and a ``standards-pin`` block records the
            version and manifest hash; a missing downstream file is
            bootstrapped as in fresh mode

Examples:
    >>> config = AdoptionConfig(standards_path="../standards", mode="fresh")
    >>> result = adopt(Path("my-api"), config)          # doctest: +SKIP
    >>> result.operation                                 # doctest: +SKIP
    'created'

Tags:
    adoption, merge, pinning, templates, standards-sync
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from standards_sync.core.config import AdoptionConfig, AdoptionMode
from standards_sync.core.errors import AdoptionError
from standards_sync.core.files import backup_file, read_text, write_text_atomic
from standards_sync.core.logging import LogContext, get_logger
from standards_sync.core.settings import get_settings
from standards_sync.markdown.markers import render_block, scan_blocks
from standards_sync.merge.engine import BlockOutcome, BlockStatus, MergeResult, mark_template, merge_text
from standards_sync.merge.render import build_tokens, render_template
from standards_sync.merge.stack import StackProfile, stack_profile
from standards_sync.snapshot.manager import PinSnapshot, SnapshotManager

logger = get_logger(__name__)

PIN_MARKER_ID = "standards-pin"


@dataclass
class AdoptionResult:
    mode: AdoptionMode
    path: Path
    operation: str
    stack: StackProfile
    standards_path: str
    merge: MergeResult | None = None
    backup_path: Path | None = None
    snapshot: PinSnapshot | None = None
    created_blocks: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.merge is None or not self.merge.has_conflicts

    @property
    def outcomes(self) -> list[BlockOutcome]:
        """Per-marker outcomes; every block of a newly created file is inserted."""
        if self.merge is not None:
            return list(self.merge.outcomes)
        return [BlockOutcome(marker_id, BlockStatus.INSERTED) for marker_id in self.created_blocks]


def pin_block_content(snapshot: PinSnapshot, snapshot_path: str) -> str:
    """Body of the ``standards-pin`` block."""
    return (
        "## Standards Pin\n"
        "\n"
        "| Field | Value |\n"
        "| --- | --- |\n"
        f"| Version | `{snapshot.version}` |\n"
        f"| Snapshot | `{snapshot_path}` |\n"
        f"| Manifest hash | `{snapshot.manifest_hash}` |\n"
        f"| Pinned at | `{snapshot.created_at}` |\n"
    )


def resolve_standards_path(project_dir: Path, standards_path: str | None) -> tuple[str, Path]:
    """
    Return ``(display, resolved)`` for the standards location.

    ``display`` is what gets rendered into the downstream file: the
    configured string with ``~`` expanded. Relative paths resolve against
    the project directory.
    """
    raw = standards_path if standards_path else str(get_settings().standards_path)
    display = os.path.expanduser(raw)
    if display != "/":
        display = display.rstrip("/")
    resolved = Path(display)
    if not resolved.is_absolute():
        resolved = Path(project_dir) / resolved
    return display, resolved.resolve()


def _relative_posix(path: Path, start: Path) -> str:
    return Path(os.path.relpath(path, start)).as_posix()


def _load_pinned(
    project_dir: Path, config: AdoptionConfig, standards_root: Path
) -> tuple[PinSnapshot, str]:
    """Verify (or first create) the pinned snapshot; returns it and its display path."""
    assert config.pinned_version is not None
    manager = SnapshotManager(
        standards_root if standards_root.is_dir() else None,
        project_dir / config.snapshot_dir,
    )
    if manager.snapshot_path(config.pinned_version).exists():
        snapshot = manager.verify_snapshot(config.pinned_version)
    else:
        snapshot = manager.create_snapshot(config.pinned_version)
    return snapshot, _relative_posix(snapshot.path, project_dir.resolve())


def adopt(project_dir: Path, config: AdoptionConfig) -> AdoptionResult:
    """
    Apply the standards template to ``project_dir`` in ``config.mode``.

    Raises:
        AdoptionError: Project or standards directory missing, template
            missing, or the downstream file state does not fit the mode
        SnapshotHashMismatchError: Pinned snapshot failed verification
        ParseError: Malformed markers in the template or downstream file
    """
    project_dir = Path(project_dir)
    if not project_dir.is_dir():
        raise AdoptionError(f"Project directory not found: {project_dir}")

    mode = AdoptionMode(config.mode)
    display_path, standards_root = resolve_standards_path(project_dir, config.standards_path)
    downstream = project_dir / config.config_file

    with LogContext(mode=mode.value, project=str(project_dir)):
        snapshot: PinSnapshot | None = None
        if mode == AdoptionMode.PINNED:
            snapshot, display_path = _load_pinned(project_dir, config, standards_root)
            template_root = snapshot.path
        else:
            if not standards_root.is_dir():
                raise AdoptionError(f"Standards path does not exist: {standards_root}")
            template_root = standards_root

        template_path = template_root / config.template
        if not template_path.is_file():
            raise AdoptionError(f"Template file not found: {template_path}")

        profile = stack_profile(
            project_dir,
            stack_override=config.stack_override,
            command_overrides=config.command_overrides,
        )
        tokens = build_tokens(
            profile,
            standards_path=display_path,
            project_name=config.project_name or project_dir.resolve().name,
            pinned_version=snapshot.version if snapshot else None,
        )
        rendered = render_template(read_text(template_path), tokens)
        if snapshot is not None:
            rendered = _with_pin_block(rendered, snapshot, display_path)

        result = AdoptionResult(
            mode=mode,
            path=downstream,
            operation="created",
            stack=profile,
            standards_path=display_path,
            snapshot=snapshot,
        )

        if mode == AdoptionMode.FRESH or (mode == AdoptionMode.PINNED and not downstream.exists()):
            if downstream.exists():
                raise AdoptionError(
                    f"{config.config_file} already exists in {project_dir}; use merge mode"
                ).with_context(path=str(downstream))
            marked = mark_template(rendered, str(template_path))
            write_text_atomic(downstream, marked)
            result.created_blocks = tuple(b.marker_id for b in scan_blocks(marked))
            logger.info("adopt.created", path=str(downstream), stack=profile.stack)
            return result

        if not downstream.is_file():
            raise AdoptionError(
                f"{config.config_file} not found in {project_dir}; use fresh mode for first-time setup"
            ).with_context(path=str(downstream))

        merge = merge_text(
            rendered,
            read_text(downstream),
            force=config.force,
            anchor=config.anchor,
            path=str(downstream),
            template_path=str(template_path),
        )
        result.merge = merge
        if merge.changed:
            if config.backup:
                result.backup_path = backup_file(downstream)
            write_text_atomic(downstream, merge.text)
            merge.written = True
            merge.backup_path = result.backup_path
            result.operation = "merged"
        else:
            result.operation = "unchanged"

        logger.info(
            "adopt.complete",
            path=str(downstream),
            operation=result.operation,
            conflicts=len(merge.conflicts),
            stack=profile.stack,
        )
        return result


def _with_pin_block(rendered: str, snapshot: PinSnapshot, display_path: str) -> str:
    if any(b.marker_id == PIN_MARKER_ID for b in scan_blocks(rendered)):
        return rendered
    block = render_block(PIN_MARKER_ID, pin_block_content(snapshot, display_path))
    if rendered and not rendered.endswith("\n"):
        rendered += "\n"
    separator = "\n" if rendered and not rendered.endswith("\n\n") else ""
    return f"{rendered}{separator}{block}"
