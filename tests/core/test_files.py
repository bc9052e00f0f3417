"""
Tests for standards_sync.core.files.
"""

import os
import stat
from datetime import datetime

from standards_sync.core.files import backup_file, read_text, remove_tree, write_text_atomic


class TestWriteTextAtomic:
    def test_creates_parents_and_preserves_newlines(self, tmp_path):
        path = tmp_path / "a" / "b.md"

        write_text_atomic(path, "one\r\ntwo\n")

        assert path.read_bytes() == b"one\r\ntwo\n"
        assert read_text(path) == "one\r\ntwo\n"

    def test_replaces_existing_without_leftovers(self, tmp_path):
        path = tmp_path / "AGENTS.md"
        path.write_text("old", encoding="utf-8")

        write_text_atomic(path, "new")

        assert path.read_text(encoding="utf-8") == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["AGENTS.md"]


class TestBackupFile:
    def test_missing_file(self, tmp_path):
        assert backup_file(tmp_path / "nope.md") is None

    def test_timestamped_copy(self, tmp_path):
        path = tmp_path / "AGENTS.md"
        path.write_text("x", encoding="utf-8")
        now = datetime(2026, 1, 2, 3, 4, 5)

        first = backup_file(path, now=now)
        second = backup_file(path, now=now)

        assert first.name == "AGENTS.md.bak.20260102030405"
        assert second.name == "AGENTS.md.bak.20260102030405.1"
        assert first.read_text(encoding="utf-8") == "x"


class TestRemoveTree:
    def test_removes_read_only_files(self, tmp_path):
        root = tmp_path / "snap"
        root.mkdir()
        locked = root / "a.md"
        locked.write_text("x", encoding="utf-8")
        os.chmod(locked, stat.S_IREAD)

        remove_tree(root)

        assert not root.exists()

    def test_missing_is_noop(self, tmp_path):
        remove_tree(tmp_path / "missing")
