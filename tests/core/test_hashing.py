"""
Tests for standards_sync.core.hashing.

Tests cover:
- Deterministic hash computation
- Block hash length
- Order-independent manifest hashes
"""

from standards_sync.core.hashing import (
    BLOCK_HASH_LENGTH,
    block_hash,
    compute_hash,
    file_hash,
    manifest_hash,
)


class TestComputeHash:
    def test_hash_deterministic(self):
        assert compute_hash("a", "b") == compute_hash("a", "b")

    def test_hash_order_matters(self):
        assert compute_hash("a", "b") != compute_hash("b", "a")

    def test_custom_length(self):
        assert len(compute_hash("a", length=12)) == 12


class TestBlockHash:
    def test_length(self):
        assert len(block_hash("## Heading\n")) == BLOCK_HASH_LENGTH

    def test_whitespace_is_significant(self):
        assert block_hash("text\n") != block_hash("text \n")


class TestFileAndManifestHash:
    def test_file_hash_matches_bytes(self, tmp_path):
        path = tmp_path / "a.md"
        path.write_bytes(b"# A\n")

        assert file_hash(path) == compute_hash("# A\n")

    def test_manifest_hash_ignores_mapping_order(self):
        assert manifest_hash({"b.md": "2", "a.md": "1"}) == manifest_hash({"a.md": "1", "b.md": "2"})

    def test_manifest_hash_changes_with_any_file(self):
        assert manifest_hash({"a.md": "1"}) != manifest_hash({"a.md": "2"})
