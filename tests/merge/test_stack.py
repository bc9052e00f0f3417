"""
Tests for downstream stack detection and command resolution.
"""

import pytest

from standards_sync.core.errors import ConfigError
from standards_sync.merge.stack import detect_package_manager, detect_stack, stack_profile
from standards_sync.simulator.fixtures import PROJECT_SHAPES


class TestDetectStack:
    @pytest.mark.parametrize("shape", sorted(PROJECT_SHAPES))
    def test_project_shapes(self, tmp_path, write_files, shape):
        write_files(tmp_path, PROJECT_SHAPES[shape])

        assert detect_stack(tmp_path) == shape

    @pytest.mark.parametrize(
        ("marker", "stack"),
        [
            ("requirements.txt", "python"),
            ("Cargo.toml", "rust"),
            ("pom.xml", "jvm"),
            ("build.gradle.kts", "jvm"),
        ],
    )
    def test_marker_files(self, tmp_path, marker, stack):
        (tmp_path / marker).write_text("", encoding="utf-8")

        assert detect_stack(tmp_path) == stack

    def test_node_wins_over_python(self, tmp_path, write_files):
        write_files(tmp_path, {"package.json": "{}", "pyproject.toml": ""})

        assert detect_stack(tmp_path) == "node"

    @pytest.mark.parametrize(
        ("lockfile", "manager"),
        [("pnpm-lock.yaml", "pnpm"), ("yarn.lock", "yarn"), ("bun.lockb", "bun"), (None, "npm")],
    )
    def test_package_manager(self, tmp_path, lockfile, manager):
        if lockfile:
            (tmp_path / lockfile).write_text("", encoding="utf-8")

        assert detect_package_manager(tmp_path) == manager


class TestStackProfile:
    def test_node_commands(self, tmp_path, write_files):
        write_files(tmp_path, PROJECT_SHAPES["node"])

        profile = stack_profile(tmp_path)

        assert profile.package_manager == "pnpm"
        assert profile.commands["test"] == "pnpm run test"
        assert profile.commands["coverage"] == "pnpm run test:coverage"
        assert profile.language == "JavaScript/TypeScript"

    def test_yarn_scripts_have_no_run(self, tmp_path, write_files):
        write_files(tmp_path, {"package.json": "{}", "yarn.lock": "", "tsconfig.json": "{}"})

        profile = stack_profile(tmp_path)

        assert profile.commands["build"] == "yarn build"
        assert profile.language == "TypeScript"

    def test_python_uses_lockfile_prefix(self, tmp_path, write_files):
        write_files(tmp_path, {**PROJECT_SHAPES["python"], "manage.py": ""})

        profile = stack_profile(tmp_path)

        assert profile.commands["test"] == "uv run pytest"
        assert profile.commands["dev"] == "uv run python manage.py runserver"
        assert profile.testing == "pytest"

    def test_gradle_wrapper(self, tmp_path, write_files):
        write_files(tmp_path, {"build.gradle": "", "gradlew": ""})

        assert stack_profile(tmp_path).commands["test"] == "./gradlew test"

    def test_maven_wrapper(self, tmp_path, write_files):
        write_files(tmp_path, {"pom.xml": "", "mvnw": ""})

        assert stack_profile(tmp_path).commands["build"] == "./mvnw -DskipTests package"

    def test_generic_defaults(self, tmp_path):
        profile = stack_profile(tmp_path)

        assert profile.stack == "generic"
        assert profile.commands["test"] == "make test"
        assert profile.runtime == "TBD"

    def test_stack_override(self, tmp_path, write_files):
        write_files(tmp_path, PROJECT_SHAPES["python"])

        profile = stack_profile(tmp_path, stack_override="go")

        assert profile.stack == "go"
        assert profile.commands["test"] == "go test ./..."

    def test_command_overrides(self, tmp_path):
        profile = stack_profile(tmp_path, command_overrides={"test": "just test", "lint": ""})

        assert profile.commands["test"] == "just test"
        assert profile.commands["lint"] == "make lint"

    def test_unknown_stack(self, tmp_path):
        with pytest.raises(ConfigError, match="Unknown stack"):
            stack_profile(tmp_path, stack_override="cobol")

    def test_unknown_command(self, tmp_path):
        with pytest.raises(ConfigError, match="Unknown command"):
            stack_profile(tmp_path, command_overrides={"deploy": "make deploy"})
