"""End-to-end adoption scenarios run in disposable sandboxes."""

from standards_sync.simulator.sandbox import Sandbox
from standards_sync.simulator.scenarios import (
    BUILTIN_SCENARIOS,
    Scenario,
    ScenarioOutcome,
    SimulationReport,
    run_scenario,
    run_scenarios,
)

__all__ = [
    "BUILTIN_SCENARIOS",
    "Sandbox",
    "Scenario",
    "ScenarioOutcome",
    "SimulationReport",
    "run_scenario",
    "run_scenarios",
]
