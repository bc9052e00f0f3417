"""Fenced code block tracking shared by the heading, link and marker scanners."""

from __future__ import annotations

import re
from collections.abc import Sequence

_FENCE_OPEN = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_FENCE_CLOSE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")


def _scan(lines: Sequence[str]) -> tuple[list[bool], int | None]:
    flags: list[bool] = []
    fence_char = ""
    fence_len = 0
    opened_at: int | None = None

    for index, raw in enumerate(lines):
        line = raw.rstrip("\r\n")
        if fence_char:
            flags.append(True)
            close = _FENCE_CLOSE.match(line)
            if close and close.group(1)[0] == fence_char and len(close.group(1)) >= fence_len:
                fence_char = ""
                fence_len = 0
                opened_at = None
            continue

        opening = _FENCE_OPEN.match(line)
        if opening and not (opening.group(1)[0] == "`" and "`" in opening.group(2)):
            fence_char = opening.group(1)[0]
            fence_len = len(opening.group(1))
            opened_at = index
            flags.append(True)
            continue

        flags.append(False)

    return flags, opened_at


def fenced_lines(lines: Sequence[str]) -> list[bool]:
    """
    Flag every line that is part of a fenced code block.

    Fence delimiters themselves are flagged. An unclosed fence runs to the
    end of the document.
    """
    return _scan(lines)[0]


def open_fence_start(lines: Sequence[str]) -> int | None:
    """Index of the opener of a fence still open at end of document, if any."""
    return _scan(lines)[1]
