"""Data models for parsed markdown documents.

Stability: stable
Dependencies: stdlib-only
Tags: markdown, model, dataclass

Frozen dataclasses produced by the parser and consumed by the navigation
validator and the merge engine. Paths are root-relative posix strings.
Line numbers on headings, links and index entries are 1-based; marker block
offsets are 0-based so they can index ``text.splitlines()`` directly.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from standards_sync.core.hashing import block_hash

# ---------------------------------------------------------------------------
# Headings and links
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Heading:
    """An ATX heading and its disambiguated anchor slug (empty if none)."""

    text: str
    level: int
    slug: str
    line: int


@dataclass(frozen=True)
class LinkEdge:
    """
    A markdown link found in ``source``.

    ``target`` is the raw link destination. ``path`` is the file part (empty
    for same-document anchors) and ``anchor`` the fragment, if any.
    ``resolved`` is set by the validator through :meth:`with_resolution`.
    """

    source: str
    target: str
    path: str
    anchor: str | None
    line: int
    text: str = ""
    resolved: bool = False

    @property
    def is_external(self) -> bool:
        return is_external_target(self.target)

    def with_resolution(self, resolved: bool) -> LinkEdge:
        return replace(self, resolved=resolved)


@dataclass(frozen=True)
class IndexEntry:
    """A navigation table row that links to a local document."""

    index_file: str
    target: str
    path: str
    anchor: str | None
    title: str
    line: int


# ---------------------------------------------------------------------------
# Marker blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MergeBlock:
    """
    A ``<!-- BEGIN:id -->`` ... ``<!-- END:id -->`` region.

    ``begin_line`` and ``end_line`` are the 0-based offsets of the marker
    lines themselves. ``content`` is everything between them except the
    ``source-hash`` trailer, joined with its original line endings.
    """

    marker_id: str
    begin_line: int
    end_line: int
    content: str
    stored_hash: str | None = None

    @property
    def content_hash(self) -> str:
        return block_hash(self.content)

    @property
    def has_drift(self) -> bool:
        """True when a trailer exists and no longer matches the content."""
        return self.stored_hash is not None and self.stored_hash != self.content_hash


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentNode:
    """One parsed markdown file."""

    path: str
    headings: tuple[Heading, ...] = ()
    links: tuple[LinkEdge, ...] = ()
    index_entries: tuple[IndexEntry, ...] = ()
    blocks: tuple[MergeBlock, ...] = ()

    @property
    def slugs(self) -> frozenset[str]:
        return frozenset(h.slug for h in self.headings if h.slug)

    def block(self, marker_id: str) -> MergeBlock | None:
        for block in self.blocks:
            if block.marker_id == marker_id:
                return block
        return None


def is_external_target(target: str) -> bool:
    """URLs with a scheme, ``mailto:`` and protocol-relative links."""
    if target.startswith("//"):
        return True
    head, sep, _ = target.partition(":")
    if not sep or not head:
        return False
    return head[0].isalpha() and all(c.isalnum() or c in "+.-" for c in head) and "/" not in head
