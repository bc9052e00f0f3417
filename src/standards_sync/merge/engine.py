"""
Marker-block merge engine.

Manifesto:
    A downstream ``AGENTS.md`` has two owners. Marker blocks belong to the
    tool and may be rewritten; every byte outside them belongs to the
    project's authors and is never touched. Local edits inside a block are
    detected through the block's ``source-hash`` trailer and are never
    overwritten silently.

Architecture:
    ::

        template ──scan_blocks──► template blocks (template order)
                                        │
        downstream ──scan_blocks──► downstream blocks by id
                                        │
                  ┌─────────────────────┼──────────────────────┐
                  ▼                     ▼                      ▼
              absent               trailer == hash         drift / no trailer
           insert at anchor      replace (updated or       conflict (or forced
                                 unchanged)                with force=True)

        downstream-only blocks: retained as-is

Block statuses:
    inserted   new block placed at the anchor
    updated    block rewritten with new template content and trailer
    unchanged  rewritten bytes would be identical
    conflict   local edits detected; block left byte-identical
    forced     local edits overwritten because force=True
    retained   block exists downstream only; left untouched

Idempotence:
    ``merge_text(t, merge_text(t, d).text).text == merge_text(t, d).text``

Tags:
    merge, markers, drift-detection, idempotent, standards-sync
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from standards_sync.core.errors import MergeConflictError
from standards_sync.core.files import backup_file, read_text, write_text_atomic
from standards_sync.core.logging import get_logger
from standards_sync.markdown.fences import fenced_lines, open_fence_start
from standards_sync.markdown.markers import render_block, scan_blocks
from standards_sync.markdown.models import MergeBlock
from standards_sync.markdown.parser import parse_heading

logger = get_logger(__name__)


class BlockStatus(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"
    FORCED = "forced"
    RETAINED = "retained"


@dataclass(frozen=True)
class BlockOutcome:
    marker_id: str
    status: BlockStatus
    message: str = ""


@dataclass
class MergeResult:
    """
    Aggregate result of one merge.

    ``text`` is the merged document. Conflicting blocks keep their
    downstream bytes; the remaining blocks are still merged.
    """

    text: str
    original: str
    outcomes: list[BlockOutcome] = field(default_factory=list)
    conflicts: list[MergeConflictError] = field(default_factory=list)
    path: str | None = None
    written: bool = False
    backup_path: Path | None = None

    @property
    def changed(self) -> bool:
        return self.text != self.original

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def _ids(self, *statuses: BlockStatus) -> list[str]:
        return [o.marker_id for o in self.outcomes if o.status in statuses]

    @property
    def inserted(self) -> list[str]:
        return self._ids(BlockStatus.INSERTED)

    @property
    def updated(self) -> list[str]:
        return self._ids(BlockStatus.UPDATED, BlockStatus.FORCED)

    @property
    def unchanged(self) -> list[str]:
        return self._ids(BlockStatus.UNCHANGED)

    @property
    def skipped(self) -> list[str]:
        return self._ids(BlockStatus.CONFLICT)

    @property
    def retained(self) -> list[str]:
        return self._ids(BlockStatus.RETAINED)


# =============================================================================
# TEXT HELPERS
# =============================================================================


def _detect_newline(text: str) -> str:
    """The first line terminator in ``text`` (``\\r\\n``, ``\\r`` or ``\\n``)."""
    lines = text.splitlines(keepends=True)
    if not lines:
        return "\n"
    first = lines[0]
    if first.endswith("\r\n"):
        return "\r\n"
    if first.endswith("\r"):
        return "\r"
    return "\n"


def _is_blank(line: str) -> bool:
    return not line.strip()


def _same_content(a: str, b: str) -> bool:
    """Content equality ignoring a missing final newline."""
    return a.rstrip("\r\n") == b.rstrip("\r\n")


def mark_template(text: str, path: str = "<template>") -> str:
    """
    Return ``text`` with every marker block carrying a fresh trailer.

    Text outside the blocks is returned unchanged. Used for fresh adoption,
    where the rendered template is written verbatim.
    """
    blocks = scan_blocks(text, path)
    if not blocks:
        return text
    newline = _detect_newline(text)
    lines = text.splitlines(keepends=True)
    out: list[str] = []
    cursor = 0
    for block in blocks:
        out.extend(lines[cursor : block.begin_line])
        out.append(_render_for(block, block.content, lines, newline))
        cursor = block.end_line + 1
    out.extend(lines[cursor:])
    return "".join(out)


def _render_for(block: MergeBlock, content: str, lines: list[str], newline: str) -> str:
    """Render ``content`` as ``block``, keeping a missing final newline at EOF."""
    rendered = render_block(block.marker_id, content, newline)
    if not lines[block.end_line].endswith(("\n", "\r")):
        rendered = rendered[: -len(newline)]
    return rendered


# =============================================================================
# INSERT POSITIONS
# =============================================================================


def _outline(lines: list[str], blocks: tuple[MergeBlock, ...]) -> list[tuple[int, int, str]]:
    """
    ``(line_index, level, text)`` for headings outside fences and blocks.

    A block containing headings appears once, at its BEGIN line, with the
    level of its highest heading, so inserts never split a block.
    """
    in_fence = fenced_lines(lines)
    block_at = {b.begin_line: b for b in blocks}
    inside: set[int] = set()
    for b in blocks:
        inside.update(range(b.begin_line, b.end_line + 1))

    outline: list[tuple[int, int, str]] = []
    for index, raw in enumerate(lines):
        if index in block_at:
            block = block_at[index]
            levels = []
            for i in range(block.begin_line + 1, block.end_line):
                inner = None if in_fence[i] else parse_heading(lines[i].rstrip("\r\n"))
                if inner is not None:
                    levels.append(inner[0])
            if levels:
                outline.append((index, min(levels), ""))
            continue
        if index in inside or in_fence[index]:
            continue
        heading = parse_heading(raw.rstrip("\r\n"))
        if heading is not None:
            outline.append((index, heading[0], heading[1]))
    return outline


def insert_position(lines: list[str], blocks: tuple[MergeBlock, ...], anchor: str) -> int:
    """
    Line index where new blocks go for ``anchor``.

    ``end`` appends; ``start`` goes before the first H2 (or the end when
    there is none); ``after:<Heading text>`` goes before the next heading of
    the same or higher level after that heading, falling back to ``end``.
    """
    end = len(lines)
    if anchor == "end":
        return end

    outline = _outline(lines, blocks)
    if anchor == "start":
        return next((i for i, level, _ in outline if level == 2), end)

    if anchor.startswith("after:"):
        wanted = anchor[len("after:"):].strip()
        for pos, (index, level, text) in enumerate(outline):
            if text == wanted:
                return next((i for i, lvl, _ in outline[pos + 1 :] if lvl <= level), end)
        logger.debug("merge.anchor_not_found", anchor=anchor)
        return end

    raise ValueError(f"Unknown anchor {anchor!r}")


def _splice(lines: list[str], position: int, chunk: str, newline: str) -> list[str]:
    before = lines[:position]
    after = lines[position:]

    prefix = ""
    if before:
        if not before[-1].endswith(("\n", "\r")):
            prefix = newline + newline
        elif not _is_blank(before[-1]):
            prefix = newline

    suffix = newline if after and not _is_blank(after[0]) else ""
    return before + [prefix + chunk + suffix] + after


# =============================================================================
# MERGE
# =============================================================================


def merge_text(
    template_text: str,
    downstream_text: str,
    *,
    force: bool = False,
    anchor: str = "end",
    path: str = "<downstream>",
    template_path: str = "<template>",
) -> MergeResult:
    """
    Merge the template's marker blocks into ``downstream_text``.

    Args:
        template_text: Rendered template containing marker blocks
        downstream_text: Current downstream file contents
        force: Overwrite blocks with local edits instead of reporting conflicts
        anchor: Insert point for new blocks (``end``, ``start`` or ``after:<Heading>``)
        path: Downstream path, for error messages
        template_path: Template path, for error messages

    Returns:
        MergeResult with per-marker outcomes and collected conflicts

    Raises:
        ParseError: Malformed markers in either input
    """
    template_blocks = scan_blocks(template_text, template_path)
    downstream_blocks = scan_blocks(downstream_text, path)
    by_id = {b.marker_id: b for b in downstream_blocks}
    template_ids = {b.marker_id for b in template_blocks}

    newline = _detect_newline(downstream_text) if downstream_text else _detect_newline(template_text)
    lines = downstream_text.splitlines(keepends=True)

    result = MergeResult(text=downstream_text, original=downstream_text, path=path)
    replacements: dict[int, tuple[int, str]] = {}
    inserts: list[str] = []

    for tpl in template_blocks:
        current = by_id.get(tpl.marker_id)
        if current is None:
            inserts.append(render_block(tpl.marker_id, tpl.content, newline))
            result.outcomes.append(BlockOutcome(tpl.marker_id, BlockStatus.INSERTED))
            logger.debug("merge.block_inserted", marker_id=tpl.marker_id, anchor=anchor)
            continue

        old_text = "".join(lines[current.begin_line : current.end_line + 1])
        new_text = _render_for(current, tpl.content, lines, newline)

        if current.stored_hash is None:
            clean = _same_content(current.content, tpl.content)
        else:
            clean = current.stored_hash == current.content_hash

        if clean:
            if new_text == old_text:
                status = BlockStatus.UNCHANGED
            else:
                status = BlockStatus.UPDATED
                replacements[current.begin_line] = (current.end_line, new_text)
            result.outcomes.append(BlockOutcome(tpl.marker_id, status))
            logger.debug(f"merge.block_{status.value}", marker_id=tpl.marker_id)
            continue

        if force:
            replacements[current.begin_line] = (current.end_line, new_text)
            result.outcomes.append(
                BlockOutcome(tpl.marker_id, BlockStatus.FORCED, "local edits overwritten")
            )
            logger.warning("merge.block_forced", marker_id=tpl.marker_id, path=path)
            continue

        conflict = MergeConflictError(tpl.marker_id, current.content, tpl.content)
        conflict.context.path = path
        result.conflicts.append(conflict)
        reason = "no source-hash trailer" if current.stored_hash is None else "source-hash mismatch"
        result.outcomes.append(BlockOutcome(tpl.marker_id, BlockStatus.CONFLICT, reason))
        logger.warning("merge.block_conflict", marker_id=tpl.marker_id, path=path, reason=reason)

    for block in downstream_blocks:
        if block.marker_id not in template_ids:
            result.outcomes.append(BlockOutcome(block.marker_id, BlockStatus.RETAINED))

    merged: list[str] = []
    index = 0
    while index < len(lines):
        if index in replacements:
            end_line, text = replacements[index]
            merged.append(text)
            index = end_line + 1
        else:
            merged.append(lines[index])
            index += 1

    if inserts:
        merged_text = "".join(merged)
        merged_lines = merged_text.splitlines(keepends=True)
        position = insert_position(merged_lines, scan_blocks(merged_text, path), anchor)
        # Blocks inside a fence are invisible to scan_blocks; an unclosed one runs to EOF.
        opener = open_fence_start(merged_lines)
        if opener is not None and position > opener:
            logger.debug("merge.insert_before_open_fence", path=path, line=opener + 1)
            position = opener
        chunk = newline.join(inserts)
        merged = _splice(merged_lines, position, chunk, newline)

    result.text = "".join(merged)
    logger.info(
        "merge.complete",
        path=path,
        inserted=len(result.inserted),
        updated=len(result.updated),
        conflicts=len(result.conflicts),
        changed=result.changed,
    )
    return result


def merge_file(
    template_path: Path,
    downstream_path: Path,
    *,
    force: bool = False,
    anchor: str = "end",
    backup: bool = False,
    render: Callable[[str], str] | None = None,
) -> MergeResult:
    """
    Merge a template file into a downstream file on disk.

    The downstream file is replaced atomically, and only when the merged
    text differs. With ``backup=True`` the previous version is copied to
    ``<name>.bak.<YYYYmmddHHMMSS>`` first.
    """
    template_path = Path(template_path)
    downstream_path = Path(downstream_path)

    template_text = read_text(template_path)
    if render is not None:
        template_text = render(template_text)

    result = merge_text(
        template_text,
        read_text(downstream_path),
        force=force,
        anchor=anchor,
        path=str(downstream_path),
        template_path=str(template_path),
    )

    if result.changed:
        if backup:
            result.backup_path = backup_file(downstream_path)
        write_text_atomic(downstream_path, result.text)
        result.written = True
        logger.info("merge.written", path=str(downstream_path), backup=str(result.backup_path or ""))
    return result
