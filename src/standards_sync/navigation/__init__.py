"""Navigation graph and completeness / link validation."""

from standards_sync.navigation.graph import NavigationGraph, build_graph, discover_files
from standards_sync.navigation.validator import (
    ValidationReport,
    ValidationWarning,
    WarningKind,
    validate,
)

__all__ = [
    "NavigationGraph",
    "ValidationReport",
    "ValidationWarning",
    "WarningKind",
    "build_graph",
    "discover_files",
    "validate",
]
