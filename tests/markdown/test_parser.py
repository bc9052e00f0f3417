"""
Tests for the markdown structure parser.

Tests cover:
- Headings, including fenced and closing-hash forms
- Inline, reference-style and anchor-only links
- Navigation table rows in index files
- Path resolution helpers
"""

from standards_sync.markdown.parser import parse_document, resolve_path, split_target

GUIDE = """\
# Testing Guide

## Contents

| Section | Description |
| --- | --- |
| [Setup](#setup) | Getting started |

## Setup ##

See [review](../guides/code-review.md#checklist) and [the docs][docs].
Inline `[not a link](x.md)` and ![diagram](img.png) are skipped.

```markdown
# Not a heading
[nor a link](y.md)
```

## Setup

[docs]: ../docs/overview.md "Overview"
"""


class TestHeadings:
    def test_headings_and_slugs(self):
        node = parse_document(GUIDE, "guides/testing.md")

        assert [(h.level, h.text, h.slug) for h in node.headings] == [
            (1, "Testing Guide", "testing-guide"),
            (2, "Contents", "contents"),
            (2, "Setup", "setup"),
            (2, "Setup", "setup-1"),
        ]
        assert node.slugs == {"testing-guide", "contents", "setup", "setup-1"}

    def test_heading_line_numbers_are_one_based(self):
        node = parse_document(GUIDE, "guides/testing.md")

        assert node.headings[0].line == 1


class TestLinks:
    def test_link_kinds(self):
        node = parse_document(GUIDE, "guides/testing.md")

        targets = [(link.target, link.path, link.anchor) for link in node.links]
        assert targets == [
            ("#setup", "", "setup"),
            ("../guides/code-review.md#checklist", "../guides/code-review.md", "checklist"),
            ("../docs/overview.md", "../docs/overview.md", None),
        ]

    def test_link_text_and_line(self):
        node = parse_document(GUIDE, "guides/testing.md")

        review = node.links[1]
        assert review.text == "review"
        assert review.line == 11
        assert review.source == "guides/testing.md"

    def test_external_links_flagged(self):
        node = parse_document(
            "[a](https://example.com) [b](mailto:x@example.com) [c](local.md)\n", "README.md"
        )

        assert [link.is_external for link in node.links] == [True, True, False]

    def test_angle_bracket_destination(self):
        node = parse_document("[a](<guides/with space.md>)\n", "README.md")

        assert node.links[0].path == "guides/with space.md"


class TestIndexEntries:
    def test_table_rows_become_entries(self):
        text = (
            "| Guide | Purpose |\n"
            "| --- | --- |\n"
            "| [Testing](guides/testing.md) | Tests |\n"
            "| [Site](https://example.com) | External |\n"
            "| Review | [Code review](guides/code-review.md#checklist) |\n"
        )

        node = parse_document(text, "README.md", index_file=True)

        assert [(e.path, e.anchor, e.title, e.line) for e in node.index_entries] == [
            ("guides/testing.md", None, "Testing", 3),
            ("guides/code-review.md", "checklist", "Code review", 5),
        ]

    def test_entries_only_for_index_files(self):
        text = "| A |\n| - |\n| [x](x.md) |\n"

        assert parse_document(text, "README.md").index_entries == ()

    def test_markers_can_be_skipped(self):
        node = parse_document("<!-- END:x -->\n", "docs/marker-syntax.md", markers=False)

        assert node.blocks == ()


class TestPathHelpers:
    def test_split_target(self):
        assert split_target("a.md#b") == ("a.md", "b")
        assert split_target("a.md#") == ("a.md", None)
        assert split_target("#only") == ("", "only")

    def test_resolve_relative(self):
        assert resolve_path("guides/testing.md", "../docs/a.md") == "docs/a.md"
        assert resolve_path("guides/testing.md", "code-review.md") == "guides/code-review.md"

    def test_resolve_root_and_escapes(self):
        assert resolve_path("guides/testing.md", "/README.md") == "README.md"
        assert resolve_path("README.md", "guides/with%20space.md") == "guides/with space.md"
        assert resolve_path("README.md", "../outside.md") == "../outside.md"
