"""
Disposable scenario sandboxes.

A ``Sandbox`` owns one fresh temporary directory for the lifetime of a
``with`` block. Paths handed to its helpers are sandbox-relative posix
strings. Assertion helpers raise ``ScenarioAssertionError`` carrying the
expected and actual values so failures can be reported without a traceback.
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from standards_sync.core.errors import ScenarioAssertionError
from standards_sync.core.files import read_text, remove_tree
from standards_sync.core.logging import get_logger

logger = get_logger(__name__)


class Sandbox:
    """
    Context manager around a temporary directory.

    Example:
        with Sandbox("fresh-adopt") as sandbox:
            sandbox.write_tree({"project/README.md": "# Demo\\n"})
            sandbox.assert_exists("project/README.md")
    """

    def __init__(self, name: str = "scenario"):
        self.name = name
        self._root: Path | None = None

    def __enter__(self) -> Sandbox:
        self._root = Path(tempfile.mkdtemp(prefix=f"standards-sync-{self.name}-"))
        logger.debug("sandbox.created", path=str(self._root))
        return self

    def __exit__(self, *args: object) -> None:
        if self._root is not None:
            remove_tree(self._root)
            logger.debug("sandbox.removed", path=str(self._root))
            self._root = None

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("Sandbox is not active; use it as a context manager")
        return self._root

    def path(self, relative: str = "") -> Path:
        return self.root / relative if relative else self.root

    def write_tree(self, files: Mapping[str, str]) -> None:
        for relative, content in files.items():
            target = self.path(relative)
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8", newline="") as fh:
                fh.write(content)

    def read(self, relative: str) -> str:
        return read_text(self.path(relative))

    # ── Assertions ───────────────────────────────────────────────────

    def assert_exists(self, relative: str) -> None:
        if not self.path(relative).exists():
            raise ScenarioAssertionError(f"{relative} should exist", expected="exists", actual="missing")

    def assert_contains(self, relative: str, needle: str) -> None:
        self.assert_exists(relative)
        text = self.read(relative)
        if needle not in text:
            raise ScenarioAssertionError(f"{relative} should contain text", expected=needle, actual=text)

    def assert_not_contains(self, relative: str, needle: str) -> None:
        self.assert_exists(relative)
        text = self.read(relative)
        if needle in text:
            raise ScenarioAssertionError(
                f"{relative} should not contain text", expected=f"no {needle!r}", actual=text
            )

    def assert_equals(self, label: str, expected: Any, actual: Any) -> None:
        if expected != actual:
            raise ScenarioAssertionError(label, expected=expected, actual=actual)

    def assert_raises(
        self, label: str, error_type: type[BaseException], func: Callable[[], Any]
    ) -> BaseException:
        try:
            func()
        except error_type as e:
            return e
        raise ScenarioAssertionError(label, expected=error_type.__name__, actual="no exception")
