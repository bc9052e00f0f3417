"""Mini standards tree and downstream project shapes used by the scenarios."""

from __future__ import annotations

STANDARDS_DIR = "standards"
PROJECT_DIR = "project"
STANDARDS_PATH = "../standards"

GUIDES = {
    "guides/testing.md": ("Testing", ("Strategy", "Coverage")),
    "guides/code-review.md": ("Code Review", ("Checklist", "Feedback")),
    "guides/security.md": ("Security", ("Secrets", "Dependencies")),
}


def guide(title: str, sections: tuple[str, ...]) -> str:
    lines = [f"# {title}", "", "## Contents", "", "| Section |", "| --- |"]
    for section in sections:
        anchor = section.lower().replace(" ", "-")
        lines.append(f"| [{section}](#{anchor}) |")
    for section in sections:
        lines += ["", f"## {section}", "", f"Guidance on {section.lower()}."]
    return "\n".join(lines) + "\n"


TEMPLATE = """\
# {{PROJECT_NAME}} Agent Guide

## Contents

| Section |
| --- |
| [Standards Reference](#standards-reference) |
| [Commands](#commands) |

<!-- BEGIN:standards-reference -->
## Standards Reference

This project follows organizational standards defined in `{{STANDARDS_PATH}}`.

| Guide | When to read |
| --- | --- |
| [Testing]({{STANDARDS_PATH}}/guides/testing.md) | Before writing tests |
| [Code Review]({{STANDARDS_PATH}}/guides/code-review.md) | Before opening a pull request |
| [Security]({{STANDARDS_PATH}}/guides/security.md) | When touching secrets or dependencies |
<!-- END:standards-reference -->

<!-- BEGIN:project-commands -->
## Commands

Stack: {{STACK}} ({{LANGUAGE}}, {{RUNTIME}}, tests with {{TESTING}}).

| Task | Command |
| --- | --- |
| Dev | `{{DEV_CMD}}` |
| Test | `{{TEST_CMD}}` |
| Coverage | `{{COVERAGE_CMD}}` |
| Lint | `{{LINT_CMD}}` |
| Typecheck | `{{TYPECHECK_CMD}}` |
| Build | `{{BUILD_CMD}}` |
<!-- END:project-commands -->
"""


def _index(title: str) -> str:
    rows = [f"| [{name}]({path}) | {name} guidance |" for path, (name, _) in GUIDES.items()]
    rows.append("| [Adoption Template](adoption/template-agents.md) | Starting point for AGENTS.md |")
    return "\n".join(
        [f"# {title}", "", "## Guides", "", "| Guide | Summary |", "| --- | --- |", *rows, ""]
    )


PILOT_KICKOFF = """\
# Pilot Kickoff: {{PROJECT_NAME}}

| Field | Value |
| --- | --- |
| Pilot owner | {{PILOT_OWNER}} |
| Start date | {{START_DATE}} |
| Adoption mode | {{ADOPTION_MODE}} |
| Standards path | {{STANDARDS_PATH}} |
"""

PILOT_WEEKLY = """\
# Weekly Check-in: {{PROJECT_NAME}}

| Field | Value |
| --- | --- |
| Reporting Period | |
| Blockers encountered | |
| Critical defects linked to guidance | |
"""

PILOT_RETROSPECTIVE = """\
# Pilot Retrospective: {{PROJECT_NAME}}

| Field | Value |
| --- | --- |
| Continue rollout / pause / iterate | |
| Preferred adoption mode (latest or pinned) | |
| Follow-up owners and deadlines | |
"""


def standards_tree(prefix: str = STANDARDS_DIR) -> dict[str, str]:
    """A small but complete standards repository: every guide indexed twice."""
    tree = {
        "AGENTS.md": _index("Agent Standards"),
        "README.md": _index("Agentic Best Practices"),
        "adoption/template-agents.md": TEMPLATE,
        "docs/templates/pilot-kickoff-template.md": PILOT_KICKOFF,
        "docs/templates/pilot-weekly-checkin-template.md": PILOT_WEEKLY,
        "docs/templates/pilot-retrospective-template.md": PILOT_RETROSPECTIVE,
    }
    for path, (title, sections) in GUIDES.items():
        tree[path] = guide(title, sections)
    if not prefix:
        return tree
    return {f"{prefix}/{path}": content for path, content in tree.items()}


EXISTING_AGENTS = """\
# Payments Service

Local notes written by the team.

## Local Conventions

- Feature flags live in `config/flags.yaml`.
"""

PROJECT_SHAPES = {
    "node": {"package.json": '{"name": "web"}\n', "pnpm-lock.yaml": "lockfileVersion: 9\n"},
    "python": {"pyproject.toml": '[project]\nname = "svc"\n', "uv.lock": "version = 1\n"},
    "go": {"go.mod": "module example.com/svc\n"},
    "generic": {"Makefile": "test:\n\ttrue\n"},
}
