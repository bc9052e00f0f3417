"""
Navigation graph over the standards tree.

Manifesto:
    The validator should never touch the file system directly. The graph
    owns discovery, parsing and path existence so validation stays a pure
    function of the graph.

Architecture:
    ::

        NavigationConfig
            │ discover_files()   guide roots + doc roots + index files
            ▼
        parse_document() per file ──► DocumentNode
            │                          (ParseError recorded, file re-parsed
            ▼                           without markers)
        NavigationGraph
            nodes / guides / index_entries(index) / edges()
            node_for(path)  lazily parses targets outside the discovered set

Tags:
    navigation, graph, discovery, standards-sync
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable
from pathlib import Path

from standards_sync.core.config import NavigationConfig
from standards_sync.core.errors import ParseError
from standards_sync.core.logging import get_logger
from standards_sync.markdown.models import DocumentNode, IndexEntry
from standards_sync.markdown.parser import parse_document, resolve_path

logger = get_logger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")


def is_markdown(path: str) -> bool:
    return path.lower().endswith(MARKDOWN_SUFFIXES)


def _excluded(relative: str, patterns: Iterable[str]) -> bool:
    parts = relative.split("/")
    return any(fnmatch.fnmatch(part, pattern) for part in parts for pattern in patterns)


def discover_files(config: NavigationConfig) -> tuple[list[str], list[str]]:
    """
    Find markdown files to parse.

    Returns:
        ``(all_files, guides)`` as sorted root-relative posix paths. Guides
        are the files under the guide roots, minus the index files.
    """
    root = Path(config.root)
    found: set[str] = set()
    guides: set[str] = set()

    for group, dirs in (("guide", config.guide_roots), ("doc", config.doc_roots)):
        for directory in dirs:
            base = root / directory
            if not base.is_dir():
                continue
            for dirpath, dirnames, filenames in os.walk(base):
                rel_dir = Path(dirpath).relative_to(root).as_posix()
                prefix = "" if rel_dir == "." else f"{rel_dir}/"
                dirnames[:] = sorted(
                    d for d in dirnames if not _excluded(f"{prefix}{d}", config.exclude)
                )
                for filename in filenames:
                    relative = f"{prefix}{filename}"
                    if not is_markdown(filename) or _excluded(relative, config.exclude):
                        continue
                    found.add(relative)
                    if group == "guide":
                        guides.add(relative)

    for index_file in config.index_files:
        if (root / index_file).is_file():
            found.add(Path(index_file).as_posix())

    guides -= set(config.index_files)
    return sorted(found), sorted(guides)


class NavigationGraph:
    """Parsed documents plus the reference edges between them."""

    def __init__(
        self,
        config: NavigationConfig,
        nodes: dict[str, DocumentNode],
        guides: list[str],
        parse_errors: list[ParseError] | None = None,
    ):
        self.config = config
        self.root = Path(config.root)
        self.nodes = dict(sorted(nodes.items()))
        self.guides = tuple(guides)
        self.parse_errors = list(parse_errors or [])
        self._extra: dict[str, DocumentNode | None] = {}

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def index_files(self) -> tuple[str, ...]:
        return tuple(f for f in self.config.index_files if f in self.nodes)

    def index_entries(self, index_file: str) -> tuple[IndexEntry, ...]:
        node = self.nodes.get(index_file)
        return node.index_entries if node is not None else ()

    def exists(self, path: str) -> bool:
        """True if the root-relative ``path`` exists (directories included)."""
        if path in self.nodes:
            return True
        return os.path.exists(os.path.normpath(self.root / path))

    def node_for(self, path: str) -> DocumentNode | None:
        """
        Parsed node for ``path``.

        Files outside the discovered set (for example ``../standards/x.md``
        or a root-level ``CONTRIBUTING.md``) are parsed on first use.
        """
        if path in self.nodes:
            return self.nodes[path]
        if path not in self._extra:
            self._extra[path] = self._load(path)
        return self._extra[path]

    def edges(self) -> list[tuple[str, str]]:
        """Local ``(source, resolved target)`` pairs in document order."""
        result: list[tuple[str, str]] = []
        for source, node in self.nodes.items():
            for link in node.links:
                if link.is_external:
                    continue
                target = resolve_path(source, link.path) if link.path else source
                result.append((source, target))
        return result

    def __len__(self) -> int:
        return len(self.nodes)

    def _load(self, path: str) -> DocumentNode | None:
        full = Path(os.path.normpath(self.root / path))
        if not full.is_file():
            return None
        text = full.read_text(encoding="utf-8", errors="replace")
        try:
            return parse_document(text, path)
        except ParseError:
            return parse_document(text, path, markers=False)


def build_graph(config: NavigationConfig) -> NavigationGraph:
    """Discover and parse every markdown file the config covers."""
    all_files, guides = discover_files(config)
    root = Path(config.root)
    index_files = set(config.index_files)

    nodes: dict[str, DocumentNode] = {}
    parse_errors: list[ParseError] = []

    for relative in all_files:
        text = (root / relative).read_text(encoding="utf-8", errors="replace")
        is_index = relative in index_files
        try:
            nodes[relative] = parse_document(text, relative, index_file=is_index)
        except ParseError as e:
            logger.warning("navigation.parse_error", path=relative, line=e.line, reason=e.reason)
            parse_errors.append(e)
            nodes[relative] = parse_document(text, relative, index_file=is_index, markers=False)

    logger.debug(
        "navigation.graph_built",
        root=str(root),
        files=len(nodes),
        guides=len(guides),
        parse_errors=len(parse_errors),
    )
    return NavigationGraph(config, nodes, guides, parse_errors)
