"""
Shared pytest fixtures for standards-sync tests.

This module provides:
- A mini standards repository (every guide indexed, pilot templates present)
- An empty downstream project next to it
- A helper to write file trees

Layout created under ``tmp_path``::

    standards/   AGENTS.md, README.md, guides/*.md, adoption/template-agents.md,
                 docs/templates/pilot-*.md
    project/     README.md
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import pytest

from standards_sync.core.settings import get_settings
from standards_sync.simulator.fixtures import standards_tree


def write_tree(root: Path, files: Mapping[str, str]) -> None:
    """Write ``{relative_path: content}`` under ``root`` byte for byte."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep STANDARDS_SYNC_* settings from the developer's shell out of tests."""
    for key in ("STANDARDS_SYNC_STANDARDS_PATH", "STANDARDS_SYNC_SNAPSHOT_DIR", "STANDARDS_SYNC_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def write_files():
    """The ``write_tree`` helper, as a fixture."""
    return write_tree


@pytest.fixture
def standards_root(tmp_path: Path) -> Path:
    """A complete mini standards repository."""
    root = tmp_path / "standards"
    write_tree(root, standards_tree(prefix=""))
    return root


@pytest.fixture
def project_dir(tmp_path: Path, standards_root: Path) -> Path:
    """An empty downstream project; ``../standards`` points at ``standards_root``."""
    project = tmp_path / "project"
    write_tree(project, {"README.md": "# Payments Service\n"})
    return project
