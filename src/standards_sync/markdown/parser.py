"""
Markdown structure parser.

Extracts exactly what the validator and the merge engine need from a file:
ATX headings with disambiguated slugs, inline and reference-style links,
navigation table rows (for index files) and marker blocks. Everything is
line based; fenced code blocks and inline code spans are skipped.

Examples:
    >>> node = parse_document("# Guide\\n\\nSee [setup](#guide).\\n", "guides/a.md")
    >>> [h.slug for h in node.headings]
    ['guide']
    >>> node.links[0].anchor
    'guide'

Tags:
    markdown, parser, links, headings, standards-sync
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterator
from urllib.parse import unquote

from standards_sync.markdown.fences import fenced_lines
from standards_sync.markdown.markers import scan_blocks
from standards_sync.markdown.models import DocumentNode, Heading, IndexEntry, LinkEdge, is_external_target
from standards_sync.markdown.slug import SlugRegistry

_ATX = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_CLOSING_HASHES = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
_CODE_SPAN = re.compile(r"(`+).+?\1")
_REF_DEFINITION = re.compile(r"^ {0,3}\[([^\]]+)\]:[ \t]*(<[^>]*>|\S+)(?:[ \t]+.*)?$")
_LINK = re.compile(
    r'''
    (?P<bang>!?)\[(?P<text>(?:[^\[\]]|\[[^\[\]]*\])*)\]
    (?:
        \([ \t]*(?P<dest><[^<>\n]*>|(?:[^\s()]|\([^\s()]*\))*)
        (?:[ \t]+(?:"[^"]*"|'[^']*'|\([^)]*\)))?[ \t]*\)
      |
        \[(?P<ref>[^\[\]]*)\]
    )
    ''',
    re.VERBOSE,
)
_TABLE_SEPARATOR_CELL = re.compile(r"^[ \t]*:?-+:?[ \t]*$")
_CELL_SPLIT = re.compile(r"(?<!\\)\|")


def split_target(target: str) -> tuple[str, str | None]:
    """Split a link destination into ``(path, anchor)``."""
    path, sep, anchor = target.partition("#")
    return path, (anchor if sep and anchor else None)


def resolve_path(source: str, link_path: str) -> str:
    """
    Resolve a link path against the root-relative ``source`` file.

    A leading ``/`` resolves from the root. Percent-escapes are decoded.
    The result is a normalized posix path, possibly starting with ``..``
    when the link leaves the root.
    """
    link_path = unquote(link_path)
    if link_path.startswith("/"):
        joined = link_path.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(source), link_path)
    normalized = posixpath.normpath(joined) if joined else ""
    return "" if normalized == "." else normalized


def _normalize_label(label: str) -> str:
    return " ".join(label.split()).lower()


def _reference_definitions(lines: list[str], in_fence: list[bool]) -> dict[str, str]:
    definitions: dict[str, str] = {}
    for index, line in enumerate(lines):
        if in_fence[index]:
            continue
        match = _REF_DEFINITION.match(line)
        if match:
            label = _normalize_label(match.group(1))
            # First definition wins, as in CommonMark
            definitions.setdefault(label, match.group(2).strip("<>"))
    return definitions


def _iter_links(line: str, references: dict[str, str]) -> Iterator[tuple[str, str]]:
    """Yield ``(text, destination)`` for each non-image link on ``line``."""
    line = _CODE_SPAN.sub("", line)
    for match in _LINK.finditer(line):
        if match.group("bang"):
            continue
        text = match.group("text")
        if match.group("ref") is not None:
            label = _normalize_label(match.group("ref") or text)
            destination = references.get(label)
            if destination is None:
                continue
        else:
            destination = (match.group("dest") or "").strip("<>")
        if not destination:
            continue
        yield text, destination


def parse_heading(line: str) -> tuple[int, str] | None:
    match = _ATX.match(line)
    if not match:
        return None
    text = match.group(2) or ""
    text = _CLOSING_HASHES.sub("", text).strip()
    return len(match.group(1)), text


def _split_cells(line: str) -> list[str]:
    stripped = line.strip()
    cells = _CELL_SPLIT.split(stripped)
    if stripped.startswith("|"):
        cells = cells[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|"):
        cells = cells[:-1]
    return cells


def _is_table_row(line: str) -> bool:
    return line.lstrip().startswith("|")


def _is_separator_row(line: str) -> bool:
    if not _is_table_row(line):
        return False
    cells = _split_cells(line)
    return bool(cells) and all(_TABLE_SEPARATOR_CELL.match(cell) for cell in cells)


def _index_entries(
    path: str, lines: list[str], in_fence: list[bool], references: dict[str, str]
) -> list[IndexEntry]:
    entries: list[IndexEntry] = []
    for index, line in enumerate(lines):
        if in_fence[index] or not _is_table_row(line) or _is_separator_row(line):
            continue
        if index + 1 < len(lines) and _is_separator_row(lines[index + 1]):
            continue  # header row

        for cell in _split_cells(line)[:2]:
            local = [
                (text, dest)
                for text, dest in _iter_links(cell, references)
                if not is_external_target(dest) and split_target(dest)[0]
            ]
            if local:
                text, dest = local[0]
                link_path, anchor = split_target(dest)
                entries.append(
                    IndexEntry(
                        index_file=path,
                        target=dest,
                        path=resolve_path(path, link_path),
                        anchor=anchor,
                        title=text.strip(),
                        line=index + 1,
                    )
                )
                break
    return entries


def parse_document(
    text: str, path: str, *, index_file: bool = False, markers: bool = True
) -> DocumentNode:
    """
    Parse one markdown file into a :class:`DocumentNode`.

    Args:
        text: File contents
        path: Root-relative posix path of the file
        index_file: Collect navigation table rows as ``IndexEntry`` objects
        markers: Scan marker blocks; ``False`` leaves ``blocks`` empty

    Raises:
        ParseError: Malformed marker blocks (see :func:`scan_blocks`)
    """
    lines = text.splitlines()
    in_fence = fenced_lines(lines)
    references = _reference_definitions(lines, in_fence)
    registry = SlugRegistry()

    headings: list[Heading] = []
    links: list[LinkEdge] = []

    for index, line in enumerate(lines):
        if in_fence[index]:
            continue

        heading = parse_heading(line)
        if heading is not None:
            level, heading_text = heading
            headings.append(Heading(heading_text, level, registry.claim(heading_text), index + 1))

        if _REF_DEFINITION.match(line):
            continue

        for link_text, destination in _iter_links(line, references):
            link_path, anchor = split_target(destination)
            links.append(
                LinkEdge(
                    source=path,
                    target=destination,
                    path=link_path,
                    anchor=anchor,
                    line=index + 1,
                    text=link_text,
                )
            )

    entries = _index_entries(path, lines, in_fence, references) if index_file else []

    return DocumentNode(
        path=path,
        headings=tuple(headings),
        links=tuple(links),
        index_entries=tuple(entries),
        blocks=scan_blocks(text, path) if markers else (),
    )
