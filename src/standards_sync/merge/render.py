"""Template token rendering (``{{TOKEN}}`` substitution)."""

from __future__ import annotations

import re
from collections.abc import Mapping

from standards_sync.merge.stack import StackProfile

TOKEN_RE = re.compile(r"\{\{([A-Z][A-Z0-9_]*)\}\}")

TEMPLATE_TOKENS = (
    "STANDARDS_PATH",
    "PROJECT_NAME",
    "STACK",
    "LANGUAGE",
    "RUNTIME",
    "TESTING",
    "DEV_CMD",
    "TEST_CMD",
    "COVERAGE_CMD",
    "LINT_CMD",
    "TYPECHECK_CMD",
    "BUILD_CMD",
    "PINNED_VERSION",
)


def build_tokens(
    profile: StackProfile,
    *,
    standards_path: str,
    project_name: str,
    pinned_version: str | None = None,
) -> dict[str, str]:
    """Token values for one adoption run."""
    tokens = {
        "STANDARDS_PATH": standards_path.rstrip("/") or "/",
        "PROJECT_NAME": project_name,
        "STACK": profile.stack,
        "LANGUAGE": profile.language,
        "RUNTIME": profile.runtime,
        "TESTING": profile.testing,
        "PINNED_VERSION": pinned_version or "latest",
    }
    for name, command in profile.commands.items():
        tokens[f"{name.upper()}_CMD"] = command
    return tokens


def render_template(text: str, tokens: Mapping[str, str]) -> str:
    """Replace known ``{{TOKEN}}`` placeholders; unknown tokens stay intact."""

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        return tokens[name] if name in tokens else match.group(0)

    return TOKEN_RE.sub(substitute, text)


def unresolved_tokens(text: str) -> list[str]:
    """Distinct ``{{TOKEN}}`` names left in ``text``, in first-seen order."""
    seen: dict[str, None] = {}
    for match in TOKEN_RE.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)
