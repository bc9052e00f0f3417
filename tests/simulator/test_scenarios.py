"""
Tests for the adoption simulator runner.

Tests cover:
- Every built-in scenario passing end to end
- Failure reporting (assertion / expected / actual, StandardsError, crashes)
- Scenario selection with ``only``
"""

import pytest

from standards_sync.core.errors import ConfigError, SnapshotError
from standards_sync.simulator import BUILTIN_SCENARIOS, Scenario, run_scenario, run_scenarios


def scenario(run, name="custom", tree=None):
    return Scenario(name, "test scenario", tree or {"project/README.md": "# Demo\n"}, run)


class TestBuiltinScenarios:
    def test_names_are_unique(self):
        names = [s.name for s in BUILTIN_SCENARIOS]

        assert len(names) == len(set(names))
        assert {"fresh-adopt", "merge-idempotent", "pinned", "conflict", "orphan-guide"} <= set(names)

    @pytest.mark.slow
    @pytest.mark.parametrize("builtin", BUILTIN_SCENARIOS, ids=lambda s: s.name)
    def test_scenario_passes(self, builtin):
        outcome = run_scenario(builtin)

        assert outcome.passed, outcome.to_dict()


class TestFailureReporting:
    def test_assertion_failure(self):
        def run(sandbox):
            sandbox.assert_equals("two plus two", 4, 5)

        outcome = run_scenario(scenario(run))

        assert not outcome.passed
        assert outcome.assertion == "two plus two"
        assert outcome.expected == 4
        assert outcome.actual == 5
        assert outcome.to_dict()["expected"] == "4"

    def test_standards_error(self):
        def run(sandbox):
            raise SnapshotError("no snapshot here")

        outcome = run_scenario(scenario(run))

        assert outcome.error == "SnapshotError: no snapshot here"
        assert outcome.assertion is None

    def test_unexpected_exception(self):
        def run(sandbox):
            raise KeyError("boom")

        outcome = run_scenario(scenario(run))

        assert not outcome.passed
        assert outcome.error.startswith("KeyError")

    def test_sandbox_removed_after_failure(self):
        roots = []

        def run(sandbox):
            roots.append(sandbox.root)
            sandbox.assert_exists("project/missing.md")

        outcome = run_scenario(scenario(run))

        assert outcome.assertion == "project/missing.md should exist"
        assert not roots[0].exists()


class TestRunScenarios:
    def test_report(self):
        passing = scenario(lambda sandbox: sandbox.assert_exists("project/README.md"), name="ok")
        failing = scenario(lambda sandbox: sandbox.assert_exists("nope"), name="bad")

        report = run_scenarios([passing, failing])

        assert not report.passed
        assert [o.name for o in report.failed] == ["bad"]
        assert report.to_dict()["total"] == 2
        assert report.to_dict()["failed"] == 1

    def test_only_selects_by_name(self):
        a = scenario(lambda sandbox: None, name="a")
        b = scenario(lambda sandbox: None, name="b")

        assert [o.name for o in run_scenarios([a, b], only="b").outcomes] == ["b"]
        assert [o.name for o in run_scenarios([a, b], only=["a", "b"]).outcomes] == ["a", "b"]

    def test_unknown_name(self):
        with pytest.raises(ConfigError, match="Unknown scenario"):
            run_scenarios(only=["does-not-exist"])
