"""Markdown parsing: headings, slugs, links, index tables and marker blocks."""

from standards_sync.markdown.markers import render_block, scan_blocks
from standards_sync.markdown.models import DocumentNode, Heading, IndexEntry, LinkEdge, MergeBlock
from standards_sync.markdown.parser import parse_document, resolve_path, split_target
from standards_sync.markdown.slug import SlugRegistry, slugify

__all__ = [
    "DocumentNode",
    "Heading",
    "IndexEntry",
    "LinkEdge",
    "MergeBlock",
    "SlugRegistry",
    "parse_document",
    "render_block",
    "resolve_path",
    "scan_blocks",
    "slugify",
    "split_target",
]
