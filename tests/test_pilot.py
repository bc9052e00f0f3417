"""
Tests for pilot scaffolding, readiness checks and the findings summary.
"""

import os
from datetime import datetime, timezone

import pytest

from standards_sync.core.config import AdoptionConfig
from standards_sync.core.errors import AdoptionError, ConfigError
from standards_sync.merge.adoption import adopt
from standards_sync.pilot import (
    DEFAULT_PILOT_DIR,
    SUMMARY_NAME,
    check_pilot_readiness,
    escape_cell,
    prepare_pilot,
    summarize_pilot_findings,
    table_value,
)

WEEKLY = """\
# Weekly Check-in

| Field | Value |
| --- | --- |
| Reporting Period | {period} |
| Blockers encountered | {blockers} |
| Critical defects linked to guidance | 0 |
"""

RETRO = """\
# Retrospective

| Field | Value |
| --- | --- |
| Continue rollout / pause / iterate | Continue rollout |
| Preferred adoption mode (latest or pinned) | pinned |
| Follow-up owners and deadlines | Dana, 2026-11-01 |
"""


@pytest.fixture
def adopted_project(project_dir):
    config = AdoptionConfig.from_dict({"standards_path": "../standards", "mode": "fresh"})
    adopt(project_dir, config)
    os.symlink("AGENTS.md", project_dir / "CLAUDE.md")
    return project_dir


@pytest.fixture
def prepared(adopted_project):
    prepare_pilot(adopted_project, "../standards", owner="Dana", start_date="2026-10-01")
    return adopted_project / DEFAULT_PILOT_DIR


class TestPreparePilot:
    def test_writes_rendered_artifacts(self, adopted_project):
        result = prepare_pilot(
            adopted_project, "../standards", owner="Dana", start_date="2026-10-01", adoption_mode="pinned"
        )

        kickoff = (result.pilot_dir / "kickoff.md").read_text(encoding="utf-8")
        assert result.written == ["kickoff.md", "weekly-checkin-template.md", "retrospective-template.md", "README.md"]
        assert "# Pilot Kickoff: project" in kickoff
        assert "| Pilot owner | Dana |" in kickoff
        assert "| Adoption mode | pinned |" in kickoff
        assert "| Standards path | ../standards |" in kickoff
        assert "{{" not in kickoff

    def test_readme_lists_context(self, adopted_project):
        result = prepare_pilot(adopted_project, "../standards", start_date="2026-10-01")

        readme = (result.pilot_dir / "README.md").read_text(encoding="utf-8")
        assert "Generated by `standards-sync pilot prepare` on 2026-10-01." in readme
        assert f"| Project directory | {adopted_project.resolve()} |" in readme
        assert "| Pilot owner | TBD |" in readme

    def test_standards_path_taken_from_agents(self, adopted_project, standards_root, tmp_path):
        other = tmp_path / "elsewhere"
        standards_root.rename(other)
        os.symlink(other, standards_root)

        result = prepare_pilot(adopted_project, str(other), start_date="2026-10-01")

        assert result.standards_path == "../standards"

    def test_existing_artifacts_skipped(self, prepared, adopted_project):
        (prepared / "kickoff.md").write_text("# Filled in\n", encoding="utf-8")

        result = prepare_pilot(adopted_project, "../standards", start_date="2026-10-02")

        assert result.written == []
        assert "kickoff.md" in result.skipped
        assert (prepared / "kickoff.md").read_text(encoding="utf-8") == "# Filled in\n"

    def test_overwrite(self, prepared, adopted_project):
        (prepared / "kickoff.md").write_text("# Filled in\n", encoding="utf-8")

        result = prepare_pilot(adopted_project, "../standards", start_date="2026-10-02", overwrite=True)

        assert "kickoff.md" in result.written
        assert "Pilot Kickoff" in (prepared / "kickoff.md").read_text(encoding="utf-8")

    @pytest.mark.parametrize(
        ("options", "match"),
        [
            ({"start_date": "10/01/2026"}, "YYYY-MM-DD"),
            ({"adoption_mode": "nightly"}, "latest' or 'pinned"),
        ],
    )
    def test_invalid_options(self, adopted_project, options, match):
        with pytest.raises(ConfigError, match=match):
            prepare_pilot(adopted_project, "../standards", **options)

    def test_missing_template(self, adopted_project, standards_root):
        (standards_root / "docs/templates/pilot-retrospective-template.md").unlink()

        with pytest.raises(AdoptionError, match="Pilot template not found"):
            prepare_pilot(adopted_project, "../standards", start_date="2026-10-01")

    def test_missing_project(self, tmp_path):
        with pytest.raises(AdoptionError, match="Project directory not found"):
            prepare_pilot(tmp_path / "missing", "../standards")


class TestReadiness:
    def test_no_weekly_checkins_is_warning(self, prepared, adopted_project):
        report = check_pilot_readiness(adopted_project)

        assert report.ok
        assert report.warnings == ["Weekly check-ins below target. Required: 1, found: 0"]
        assert report.details["weekly_checkins"] == 0

    def test_strict_makes_shortfall_an_error(self, prepared, adopted_project):
        report = check_pilot_readiness(adopted_project, strict=True)

        assert report.errors == ["Weekly check-ins below target. Required: 1, found: 0"]

    def test_ready(self, prepared, adopted_project):
        (prepared / "weekly-01.md").write_text(WEEKLY.format(period="Week 1", blockers="None"), encoding="utf-8")
        (prepared / "retrospective.md").write_text(RETRO, encoding="utf-8")

        report = check_pilot_readiness(adopted_project, require_retrospective=True, strict=True)

        assert report.errors == []
        assert report.warnings == []
        assert report.details["retrospectives"] == 1

    def test_missing_retrospective(self, prepared, adopted_project):
        report = check_pilot_readiness(adopted_project, min_weekly_checkins=0, require_retrospective=True)

        assert report.errors == [
            "Completed retrospective file not found (expected retrospective*.md excluding template)"
        ]

    def test_missing_pilot_directory(self, adopted_project):
        report = check_pilot_readiness(adopted_project)

        assert report.errors[0].startswith("Pilot directory missing at")

    def test_missing_artifact_and_tokens(self, prepared, adopted_project):
        (prepared / "README.md").unlink()
        (prepared / "kickoff.md").write_text("# {{PROJECT_NAME}}\n", encoding="utf-8")

        errors = check_pilot_readiness(adopted_project, min_weekly_checkins=0).errors

        assert errors[0].startswith("Missing pilot artifact file:")
        assert errors[1] == "kickoff.md still contains unresolved template tokens"

    def test_adoption_problems_carried_over(self, prepared, adopted_project):
        (adopted_project / "CLAUDE.md").unlink()

        lenient = check_pilot_readiness(adopted_project, min_weekly_checkins=0)
        strict = check_pilot_readiness(adopted_project, min_weekly_checkins=0, strict=True)

        assert lenient.warnings == ["Adoption: CLAUDE.md is missing (recommended: symlink to AGENTS.md)"]
        assert strict.errors == ["Adoption: CLAUDE.md is missing (recommended: symlink to AGENTS.md)"]

    def test_negative_minimum(self, adopted_project):
        with pytest.raises(ConfigError):
            check_pilot_readiness(adopted_project, min_weekly_checkins=-1)


class TestSummary:
    NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)

    def test_summary_contents(self, prepared, adopted_project):
        (prepared / "weekly-01.md").write_text(WEEKLY.format(period="Week 1", blockers="CI | flaky"), encoding="utf-8")
        (prepared / "weekly-02.md").write_text(WEEKLY.format(period="Week 2", blockers=""), encoding="utf-8")
        (prepared / "retrospective.md").write_text(RETRO, encoding="utf-8")

        summary = summarize_pilot_findings(adopted_project, now=self.NOW)

        text = (prepared / SUMMARY_NAME).read_text(encoding="utf-8")
        assert summary.output_path == prepared / SUMMARY_NAME
        assert text == summary.markdown
        assert "Generated by `standards-sync pilot summarize` on 2026-10-16T12:00:00Z." in text
        assert "| Weekly Check-ins Found | 2 |" in text
        assert "| `weekly-01.md` | Week 1 | CI \\| flaky | 0 |" in text
        assert "| `weekly-02.md` | Week 2 | N/A | 0 |" in text
        assert "| Latest retrospective | `retrospective.md` |" in text
        assert "| Rollout decision | Continue rollout |" in text
        assert "| Follow-up owners/deadlines | Dana, 2026-11-01 |" in text
        assert summary.report.passed(strict=True)

    def test_empty_pilot(self, prepared, adopted_project):
        summary = summarize_pilot_findings(adopted_project, print_only=True, now=self.NOW)

        assert summary.output_path is None
        assert not (prepared / SUMMARY_NAME).exists()
        assert "| N/A | N/A | N/A | N/A |" in summary.markdown
        assert "| Latest retrospective | N/A |" in summary.markdown
        assert summary.report.warnings == [
            "Weekly check-ins below target. Required: 1, found: 0",
            "No completed retrospective found yet.",
        ]

    def test_required_retrospective_is_error(self, prepared, adopted_project):
        summary = summarize_pilot_findings(adopted_project, require_retrospective=True, print_only=True)

        assert not summary.report.ok

    def test_custom_output(self, prepared, adopted_project):
        summary = summarize_pilot_findings(adopted_project, output="reports/pilot.md", now=self.NOW)

        assert summary.output_path == adopted_project.resolve() / "reports/pilot.md"
        assert summary.output_path.is_file()

    def test_missing_pilot_dir(self, adopted_project):
        summary = summarize_pilot_findings(adopted_project, print_only=True)

        assert summary.report.errors[0].startswith("Pilot directory not found")


class TestTableHelpers:
    def test_table_value(self):
        text = "| Reporting Period | Week 3 |\n| Other | x |\n"

        assert table_value(text, "Reporting Period") == "Week 3"
        assert table_value(text, "Missing") == ""

    def test_escape_cell(self):
        assert escape_cell("a | b") == "a \\| b"
        assert escape_cell("") == "N/A"
