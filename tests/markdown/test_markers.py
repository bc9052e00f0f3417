"""
Tests for marker block scanning and rendering.

Tests cover:
- Trailer parsing and drift detection
- Every malformed-marker ParseError
- Markers inside fenced code being ignored
"""

import pytest

from standards_sync.core.errors import ParseError
from standards_sync.core.hashing import block_hash
from standards_sync.markdown.markers import render_block, scan_blocks


class TestScanBlocks:
    def test_block_with_trailer(self):
        content = "## Standards\nSee guides.\n"
        text = f"# Title\n\n{render_block('standards-reference', content)}tail\n"

        (block,) = scan_blocks(text, "AGENTS.md")

        assert block.marker_id == "standards-reference"
        assert block.content == content
        assert block.stored_hash == block_hash(content)
        assert block.begin_line == 2
        assert block.end_line == 6
        assert not block.has_drift

    def test_local_edit_is_drift(self):
        text = render_block("x", "original\n").replace("original", "edited")

        (block,) = scan_blocks(text)

        assert block.has_drift

    def test_block_without_trailer_has_no_drift(self):
        (block,) = scan_blocks("<!-- BEGIN:x -->\nbody\n<!-- END:x -->\n")

        assert block.stored_hash is None
        assert not block.has_drift

    def test_crlf_content_preserved(self):
        (block,) = scan_blocks("<!-- BEGIN:x -->\r\nbody\r\n<!-- END:x -->\r\n")

        assert block.content == "body\r\n"

    def test_markers_in_fenced_code_ignored(self):
        text = "```markdown\n<!-- BEGIN:example -->\n```\n"

        assert scan_blocks(text) == ()

    @pytest.mark.parametrize(
        ("text", "line", "reason"),
        [
            ("<!-- END:a -->\n", 1, "without matching BEGIN"),
            ("<!-- BEGIN:a -->\n<!-- BEGIN:b -->\n", 2, "nested"),
            ("<!-- BEGIN:a -->\n<!-- END:b -->\n", 2, "overlapping"),
            ("<!-- BEGIN:a -->\nbody\n", 1, "unterminated"),
            (
                "<!-- BEGIN:a -->\n<!-- END:a -->\n<!-- BEGIN:a -->\n<!-- END:a -->\n",
                3,
                "duplicate",
            ),
        ],
    )
    def test_malformed_markers(self, text, line, reason):
        with pytest.raises(ParseError) as excinfo:
            scan_blocks(text, "AGENTS.md")

        assert excinfo.value.line == line
        assert reason in excinfo.value.reason
        assert excinfo.value.path == "AGENTS.md"


class TestRenderBlock:
    def test_adds_missing_newline_before_trailer(self):
        rendered = render_block("x", "no newline")

        assert rendered.splitlines()[1] == "no newline"
        (block,) = scan_blocks(rendered)
        assert block.stored_hash == block.content_hash

    def test_uses_requested_newline(self):
        rendered = render_block("x", "body\r\n", newline="\r\n")

        assert rendered.endswith("<!-- END:x -->\r\n")
        assert "\n" not in rendered.replace("\r\n", "")
