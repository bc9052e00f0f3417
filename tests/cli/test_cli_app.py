"""Tests for standards_sync.cli — every command through typer's CliRunner.

Logs are forced to ERROR so JSON on stdout is never mixed with log lines.
"""

from __future__ import annotations

import json
import os
import stat

import pytest
from typer.testing import CliRunner

from standards_sync import __version__
from standards_sync.cli.adopt import parse_command_overrides
from standards_sync.cli.app import app
from standards_sync.core.errors import ConfigError
from standards_sync.simulator.fixtures import EXISTING_AGENTS

runner = CliRunner()


def invoke(*args):
    return runner.invoke(app, ["--log-level", "ERROR", *[str(a) for a in args]])


def invoke_json(*args):
    result = invoke(*args, "--json")
    return result, json.loads(result.stdout)


# ─── Root ────────────────────────────────────────────────────────────────


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"standards-sync {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])

        assert "validate" in result.output
        assert "adopt" in result.output


# ─── validate ────────────────────────────────────────────────────────────


class TestValidate:
    def test_clean_tree(self, standards_root):
        result, data = invoke_json("validate", standards_root)

        assert result.exit_code == 0
        assert data["ok"] is True
        assert data["files_checked"] == 9

    def test_orphan_fails(self, standards_root, write_files):
        write_files(standards_root, {"guides/unindexed.md": "# U\n\n## Contents\n"})

        result, data = invoke_json("validate", standards_root)

        assert result.exit_code == 1
        assert data["error_count"] == 1
        assert data["errors"][0]["kind"] == "orphan-guide"

    def test_table_output(self, standards_root, write_files):
        write_files(standards_root, {"docs/notes.md": "[x](missing.md)\n"})

        result = invoke("validate", standards_root)

        assert result.exit_code == 1
        assert "Validation failed" in result.output

    def test_fail_on_warnings(self, standards_root):
        (standards_root / "guides/security.md").write_text("# Security\n", encoding="utf-8")

        assert invoke("validate", standards_root).exit_code == 0
        assert invoke("validate", standards_root, "--fail-on-warnings").exit_code == 1

    def test_config_file(self, standards_root, tmp_path):
        config = tmp_path / "nav.yaml"
        config.write_text(
            f"navigation:\n  root: {standards_root}\n  index_files: [README.md]\n", encoding="utf-8"
        )

        result, data = invoke_json("validate", "--config", config)

        assert result.exit_code == 0
        assert data["ok"] is True

    def test_bad_config_file(self, tmp_path):
        config = tmp_path / "nav.yaml"
        config.write_text("navigation:\n  index_files: 3\n", encoding="utf-8")

        result = invoke("validate", "--config", config)

        assert result.exit_code == 1
        assert "CONFIG" in result.output


# ─── adopt / check-adoption ──────────────────────────────────────────────


class TestAdopt:
    def test_fresh(self, project_dir):
        result, data = invoke_json("adopt", "--mode", "fresh", "-p", project_dir, "-s", "../standards")

        assert result.exit_code == 0
        assert data["operation"] == "created"
        assert data["standards_path"] == "../standards"
        assert [(b["marker_id"], b["status"]) for b in data["blocks"]] == [
            ("standards-reference", "inserted"),
            ("project-commands", "inserted"),
        ]
        assert (project_dir / "AGENTS.md").is_file()

    def test_fresh_prints_marker_table(self, project_dir):
        result = invoke("adopt", "--mode", "fresh", "-p", project_dir, "-s", "../standards")

        assert result.exit_code == 0
        assert "standards-reference" in result.output
        assert "inserted" in result.output

    def test_merge_with_command_override(self, project_dir, write_files):
        write_files(project_dir, {"AGENTS.md": EXISTING_AGENTS})

        result, data = invoke_json(
            "adopt", "-p", project_dir, "-s", "../standards", "--command", "test=make check", "--no-backup"
        )

        assert result.exit_code == 0
        assert data["operation"] == "merged"
        assert data["backup_path"] is None
        assert [b["status"] for b in data["blocks"]] == ["inserted", "inserted"]
        assert "`make check`" in (project_dir / "AGENTS.md").read_text(encoding="utf-8")

    def test_conflict_exits_nonzero(self, project_dir):
        invoke("adopt", "--mode", "fresh", "-p", project_dir, "-s", "../standards")
        agents = project_dir / "AGENTS.md"
        agents.write_text(
            agents.read_text(encoding="utf-8").replace("Before writing tests", "Whenever"),
            encoding="utf-8",
        )

        result, data = invoke_json("adopt", "-p", project_dir, "-s", "../standards")

        assert result.exit_code == 1
        assert data["ok"] is False
        assert data["conflicts"] == ["standards-reference"]

    def test_force(self, project_dir):
        invoke("adopt", "--mode", "fresh", "-p", project_dir, "-s", "../standards")
        agents = project_dir / "AGENTS.md"
        agents.write_text(
            agents.read_text(encoding="utf-8").replace("Before writing tests", "Whenever"),
            encoding="utf-8",
        )

        result = invoke("adopt", "-p", project_dir, "-s", "../standards", "--force")

        assert result.exit_code == 0
        assert "Whenever" not in agents.read_text(encoding="utf-8")

    def test_config_file(self, project_dir, tmp_path):
        config = tmp_path / "adoption.yaml"
        config.write_text(
            "standards_path: ../standards\nmode: pinned\npinned_version: v1.0.0\nstack_override: go\n",
            encoding="utf-8",
        )

        result, data = invoke_json("adopt", "-p", project_dir, "--config-file", config)

        assert result.exit_code == 0
        assert data["pinned_version"] == "v1.0.0"
        assert data["stack"] == "go"
        assert (project_dir / ".standards/pinned/v1.0.0/manifest.json").is_file()

    def test_adoption_error(self, project_dir):
        result = invoke("adopt", "-p", project_dir, "-s", "../standards")

        assert result.exit_code == 1
        assert "ADOPTION" in result.output

    def test_invalid_command_override(self, project_dir):
        result = invoke("adopt", "-p", project_dir, "--command", "no-equals-sign")

        assert result.exit_code == 1
        assert "NAME=COMMAND" in result.output


class TestParseCommandOverrides:
    def test_parses_pairs(self):
        assert parse_command_overrides(["test=make check", "lint = ruff check ."]) == {
            "test": "make check",
            "lint": " ruff check .",
        }

    def test_rejects_missing_name(self):
        with pytest.raises(ConfigError):
            parse_command_overrides(["=make check"])


class TestCheckAdoption:
    def test_passes(self, project_dir):
        invoke("adopt", "--mode", "fresh", "-p", project_dir, "-s", "../standards")

        result, data = invoke_json("check-adoption", "-p", project_dir)

        assert result.exit_code == 0
        assert data["passed"] is True
        assert data["warnings"] == ["CLAUDE.md is missing (recommended: symlink to AGENTS.md)"]

    def test_strict_fails_on_warning(self, project_dir):
        invoke("adopt", "--mode", "fresh", "-p", project_dir, "-s", "../standards")

        result = invoke("check-adoption", "-p", project_dir, "--strict")

        assert result.exit_code == 1
        assert "WARN" in result.output

    def test_missing_file(self, project_dir):
        result = invoke("check-adoption", "-p", project_dir)

        assert result.exit_code == 1
        assert "ERROR" in result.output


# ─── pins ────────────────────────────────────────────────────────────────


class TestPins:
    @pytest.fixture
    def pins(self, tmp_path):
        return tmp_path / "pins"

    def test_pin_verify_list(self, standards_root, pins):
        result, data = invoke_json("pin", "v1.0.0", "-s", standards_root, "--snapshot-dir", pins)
        assert result.exit_code == 0
        assert data["version"] == "v1.0.0"

        result, data = invoke_json("verify-pin", "v1.0.0", "--snapshot-dir", pins)
        assert result.exit_code == 0
        assert data["ok"] is True

        result, data = invoke_json("list-pins", "--snapshot-dir", pins)
        assert [s["version"] for s in data] == ["v1.0.0"]

    def test_pin_twice_needs_force(self, standards_root, pins):
        invoke("pin", "v1", "-s", standards_root, "--snapshot-dir", pins)

        assert invoke("pin", "v1", "-s", standards_root, "--snapshot-dir", pins).exit_code == 1
        assert invoke("pin", "v1", "-s", standards_root, "--snapshot-dir", pins, "--force").exit_code == 0

    def test_verify_detects_tamper(self, standards_root, pins):
        invoke("pin", "v1", "-s", standards_root, "--snapshot-dir", pins)
        target = pins / "v1" / "AGENTS.md"
        os.chmod(target, stat.S_IRUSR | stat.S_IWUSR)
        target.write_text("tampered\n", encoding="utf-8")

        result = invoke("verify-pin", "v1", "--snapshot-dir", pins)

        assert result.exit_code == 1
        assert "SNAPSHOT" in result.output

    def test_diff(self, standards_root, pins):
        invoke("pin", "v1", "-s", standards_root, "--snapshot-dir", pins)
        (standards_root / "guides/new.md").write_text("# New\n", encoding="utf-8")
        invoke("pin", "v2", "-s", standards_root, "--snapshot-dir", pins)

        result, data = invoke_json("diff-pins", "v1", "v2", "--snapshot-dir", pins)

        assert result.exit_code == 0
        assert data == [{"path": "guides/new.md", "change": "added"}]

    def test_empty_list(self, pins):
        result = invoke("list-pins", "--snapshot-dir", pins)

        assert result.exit_code == 0
        assert "No snapshots" in result.output

    def test_verify_missing(self, pins):
        assert invoke("verify-pin", "v9", "--snapshot-dir", pins).exit_code == 1


# ─── simulate ────────────────────────────────────────────────────────────


class TestSimulate:
    def test_list(self):
        result = invoke("simulate", "--list")

        assert result.exit_code == 0
        assert "fresh-adopt" in result.output

    def test_only_json(self):
        result, data = invoke_json("simulate", "--only", "orphan-guide")

        assert result.exit_code == 0
        assert data["total"] == 1
        assert data["passed"] is True

    def test_unknown_scenario(self):
        result = invoke("simulate", "--only", "nope")

        assert result.exit_code == 1
        assert "CONFIG" in result.output


# ─── pilot ───────────────────────────────────────────────────────────────


class TestPilot:
    @pytest.fixture
    def adopted(self, project_dir):
        invoke("adopt", "--mode", "fresh", "-p", project_dir, "-s", "../standards")
        os.symlink("AGENTS.md", project_dir / "CLAUDE.md")
        return project_dir

    def test_prepare_check_summarize(self, adopted):
        result = invoke(
            "pilot", "prepare", "-p", adopted, "-s", "../standards", "--start-date", "2026-10-01"
        )
        assert result.exit_code == 0
        assert (adopted / ".standards/pilot/kickoff.md").is_file()

        result, data = invoke_json("pilot", "check", "-p", adopted)
        assert result.exit_code == 0
        assert data["warnings"] == ["Weekly check-ins below target. Required: 1, found: 0"]

        assert invoke("pilot", "check", "-p", adopted, "--strict").exit_code == 1

        result = invoke("pilot", "summarize", "-p", adopted, "--print-only")
        assert result.exit_code == 0
        assert "# Pilot Findings Summary" in result.stdout
        assert not (adopted / ".standards/pilot/pilot-summary.md").exists()

        result = invoke("pilot", "summarize", "-p", adopted)
        assert result.exit_code == 0
        assert (adopted / ".standards/pilot/pilot-summary.md").is_file()

    def test_prepare_bad_date(self, adopted):
        result = invoke("pilot", "prepare", "-p", adopted, "-s", "../standards", "--start-date", "tomorrow")

        assert result.exit_code == 1
        assert "CONFIG" in result.output
