"""
Tests for standards_sync.core.errors.

Tests cover:
- Default categories per subclass
- Context propagation and the fluent with_context API
- Serialization via to_dict
- Deterministic sort keys for validation findings
"""

from standards_sync.core.errors import (
    AdoptionError,
    BrokenLinkError,
    ErrorCategory,
    MergeConflictError,
    OrphanGuideError,
    ParseError,
    ScenarioAssertionError,
    SnapshotHashMismatchError,
    StaleIndexError,
    StandardsError,
)
from standards_sync.markdown.models import IndexEntry


class TestStandardsError:
    """Tests for the base error."""

    def test_default_category_is_internal(self):
        assert StandardsError("boom").category == ErrorCategory.INTERNAL

    def test_with_context_sets_known_fields_and_metadata(self):
        error = StandardsError("boom").with_context(path="AGENTS.md", line=4, extra="x")

        assert error.context.path == "AGENTS.md"
        assert error.context.line == 4
        assert error.context.metadata == {"extra": "x"}

    def test_cause_is_chained(self):
        cause = OSError("disk full")
        error = StandardsError("write failed", cause=cause)

        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "disk full"

    def test_to_dict_includes_context(self):
        error = AdoptionError("no template").with_context(path="standards/adoption")
        data = error.to_dict()

        assert data["error_type"] == "AdoptionError"
        assert data["category"] == "ADOPTION"
        assert data["context"] == {"path": "standards/adoption"}


class TestParseError:
    def test_message_includes_location(self):
        error = ParseError("AGENTS.md", 12, "END:x without matching BEGIN")

        assert str(error) == "AGENTS.md:12: END:x without matching BEGIN"
        assert error.line == 12
        assert error.reason == "END:x without matching BEGIN"
        assert error.category == ErrorCategory.PARSE

    def test_without_line(self):
        assert ParseError("a.md", None, "bad").message == "a.md: bad"


class TestValidationFindings:
    def test_orphan_sort_key_orders_by_path(self):
        errors = [OrphanGuideError("guides/z.md", "README.md"), OrphanGuideError("guides/a.md", "README.md")]

        assert [e.path for e in sorted(errors, key=lambda e: e.sort_key)] == ["guides/a.md", "guides/z.md"]

    def test_broken_link_carries_reason(self):
        error = BrokenLinkError("guides/a.md", "b.md#x", line=3, reason="anchor '#x' not found")

        assert error.kind == "broken-link"
        assert "anchor '#x' not found" in error.message
        assert error.to_dict()["kind"] == "broken-link"

    def test_stale_index_uses_entry_location(self):
        entry = IndexEntry("README.md", "guides/gone.md", "guides/gone.md", None, "Gone", 7)
        error = StaleIndexError(entry, "file 'guides/gone.md' does not exist")

        assert error.context.path == "README.md"
        assert error.sort_key == ("README.md", 7, "guides/gone.md")


class TestOtherErrors:
    def test_merge_conflict_keeps_both_contents(self):
        error = MergeConflictError("standards-reference", "local\n", "template\n")

        assert error.context.marker_id == "standards-reference"
        assert error.downstream_content == "local\n"
        assert error.category == ErrorCategory.MERGE

    def test_hash_mismatch_messages(self):
        missing = SnapshotHashMismatchError("a.md", expected="ab" * 32, actual=None)
        extra = SnapshotHashMismatchError("b.md", expected=None, actual="cd" * 32)

        assert "missing" in missing.message
        assert "not in the manifest" in extra.message

    def test_scenario_assertion_reports_expected_and_actual(self):
        error = ScenarioAssertionError("file should exist", expected="exists", actual="missing")

        assert "expected: 'exists'" in error.message
        assert "actual:   'missing'" in error.message
        assert error.category == ErrorCategory.SCENARIO
