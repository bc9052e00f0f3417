"""
Heading anchor slugs.

The rule matches the GitHub-style renderer the standards docs are published
through, restricted to ASCII:

1. inline link syntax is reduced to its text
2. lowercase
3. emphasis markers (``*``, ``_``, backtick, ``~``) are removed
4. characters outside ``[a-z0-9 -]`` are stripped
5. each run of whitespace becomes a single hyphen
6. leading and trailing hyphens are trimmed

Examples:
    >>> slugify("Error Handling")
    'error-handling'
    >>> slugify("**Step 2:** Configure `AGENTS.md`")
    'step-2-configure-agentsmd'
    >>> registry = SlugRegistry()
    >>> [registry.claim("Setup"), registry.claim("Setup"), registry.claim("Setup")]
    ['setup', 'setup-1', 'setup-2']
"""

from __future__ import annotations

import re

_INLINE_LINK = re.compile(r"!?\[([^\]]*)\](?:\([^)]*\)|\[[^\]]*\])")
_EMPHASIS = re.compile(r"[*_`~]")
_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")


def slugify(text: str) -> str:
    """Compute the anchor slug for heading text. Idempotent."""
    text = _INLINE_LINK.sub(r"\1", text)
    text = text.lower()
    text = _EMPHASIS.sub("", text)
    text = _DISALLOWED.sub("", text)
    text = _WHITESPACE.sub("-", text.strip())
    return text.strip("-")


class SlugRegistry:
    """
    Per-document slug disambiguation.

    The first heading producing a slug keeps it; later ones get ``-1``,
    ``-2``, ... If a suffixed slug collides with one already claimed (for
    example a literal "Setup 1" heading), the counter keeps increasing.
    """

    def __init__(self) -> None:
        self._used: set[str] = set()
        self._counters: dict[str, int] = {}

    def claim(self, text: str) -> str:
        base = slugify(text)
        if not base:
            return ""
        if base not in self._used:
            self._used.add(base)
            self._counters.setdefault(base, 0)
            return base

        count = self._counters.get(base, 0)
        while True:
            count += 1
            candidate = f"{base}-{count}"
            if candidate not in self._used:
                break
        self._counters[base] = count
        self._used.add(candidate)
        return candidate

    def __contains__(self, slug: object) -> bool:
        return slug in self._used
