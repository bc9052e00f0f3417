"""
Marker block scanning.

Managed regions look like::

    <!-- BEGIN:standards-reference -->
    ## Standards Reference
    ...
    <!-- source-hash: 3f2a9c1d0b7e4a55 -->
    <!-- END:standards-reference -->

The ``source-hash`` trailer is optional and, when present, must be the last
line inside the block. Markers inside fenced code are ignored so guides can
document the syntax.
"""

from __future__ import annotations

import re

from standards_sync.core.errors import ParseError
from standards_sync.core.hashing import block_hash
from standards_sync.markdown.fences import fenced_lines
from standards_sync.markdown.models import MergeBlock

MARKER_ID_PATTERN = r"[A-Za-z0-9_.:-]+"

BEGIN_RE = re.compile(rf"^[ \t]*<!--[ \t]*BEGIN:({MARKER_ID_PATTERN})[ \t]*-->[ \t]*$")
END_RE = re.compile(rf"^[ \t]*<!--[ \t]*END:({MARKER_ID_PATTERN})[ \t]*-->[ \t]*$")
HASH_RE = re.compile(r"^[ \t]*<!--[ \t]*source-hash:[ \t]*([0-9a-fA-F]+)[ \t]*-->[ \t]*$")


def begin_marker(marker_id: str) -> str:
    return f"<!-- BEGIN:{marker_id} -->"


def end_marker(marker_id: str) -> str:
    return f"<!-- END:{marker_id} -->"


def hash_trailer(digest: str) -> str:
    return f"<!-- source-hash: {digest} -->"


def render_block(marker_id: str, content: str, newline: str = "\n") -> str:
    """
    Render a complete managed block with a trailer for ``content``.

    ``content`` is kept byte for byte; a newline is added before the trailer
    only when the content does not already end with one. The trailer hashes
    the content exactly as a later scan will read it back.
    """
    body = content
    if body and not body.endswith(("\n", "\r")):
        body += newline
    return (
        f"{begin_marker(marker_id)}{newline}"
        f"{body}"
        f"{hash_trailer(block_hash(body))}{newline}"
        f"{end_marker(marker_id)}{newline}"
    )


def scan_blocks(text: str, path: str = "<string>") -> tuple[MergeBlock, ...]:
    """
    Find every marker block in ``text``.

    Raises:
        ParseError: END without BEGIN, END for another id than the open
            block (overlap), BEGIN inside an open block (nesting), a
            duplicate id, or a BEGIN that is never closed.
    """
    lines = text.splitlines(keepends=True)
    in_fence = fenced_lines(lines)

    blocks: list[MergeBlock] = []
    seen: dict[str, int] = {}
    open_id: str | None = None
    open_line = 0

    for index, raw in enumerate(lines):
        if in_fence[index]:
            continue
        line = raw.rstrip("\r\n")

        begin = BEGIN_RE.match(line)
        if begin:
            marker_id = begin.group(1)
            if open_id is not None:
                raise ParseError(
                    path, index + 1,
                    f"BEGIN:{marker_id} inside open block '{open_id}' (nested markers)",
                )
            if marker_id in seen:
                raise ParseError(
                    path, index + 1,
                    f"duplicate marker id '{marker_id}' (first seen on line {seen[marker_id]})",
                )
            open_id = marker_id
            open_line = index
            seen[marker_id] = index + 1
            continue

        end = END_RE.match(line)
        if end:
            marker_id = end.group(1)
            if open_id is None:
                raise ParseError(path, index + 1, f"END:{marker_id} without matching BEGIN")
            if marker_id != open_id:
                raise ParseError(
                    path, index + 1,
                    f"END:{marker_id} while block '{open_id}' is open (overlapping markers)",
                )
            blocks.append(_build_block(open_id, open_line, index, lines))
            open_id = None

    if open_id is not None:
        raise ParseError(path, open_line + 1, f"BEGIN:{open_id} is never closed (unterminated block)")

    return tuple(blocks)


def _build_block(marker_id: str, begin: int, end: int, lines: list[str]) -> MergeBlock:
    inner = lines[begin + 1 : end]
    stored_hash = None
    if inner:
        trailer = HASH_RE.match(inner[-1].rstrip("\r\n"))
        if trailer:
            stored_hash = trailer.group(1).lower()
            inner = inner[:-1]
    return MergeBlock(
        marker_id=marker_id,
        begin_line=begin,
        end_line=end,
        content="".join(inner),
        stored_hash=stored_hash,
    )
