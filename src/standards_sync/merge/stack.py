"""
Downstream project stack detection.

Looks at marker files in the project root to pick an ecosystem label and the
default dev / test / coverage / lint / typecheck / build commands rendered
into the adopted ``AGENTS.md``.

    package.json                              → node   (pnpm / yarn / bun / npm)
    pyproject.toml, requirements.txt,
    setup.py, Pipfile                         → python (uv / poetry / pipenv prefix)
    go.mod                                    → go
    Cargo.toml                                → rust
    pom.xml, build.gradle(.kts)               → jvm    (gradle or maven, wrapper aware)
    anything else                             → generic (make targets)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from standards_sync.core.config import COMMAND_NAMES
from standards_sync.core.errors import ConfigError

STACKS = ("node", "python", "go", "rust", "jvm", "generic")

_RUNTIMES = {
    "node": "Node.js 20+",
    "python": "Python 3.11+",
    "go": "Go 1.22+",
    "rust": "Rust stable",
    "jvm": "JVM 17+",
}

_TESTING = {
    "node": "Jest/Vitest/TBD",
    "python": "pytest",
    "go": "go test",
    "rust": "cargo test",
    "jvm": "JUnit/TestNG",
}

_LANGUAGES = {
    "python": "Python",
    "go": "Go",
    "rust": "Rust",
    "jvm": "Java/Kotlin",
}


@dataclass(frozen=True)
class StackProfile:
    """Detected (or forced) stack plus the commands to render."""

    stack: str
    language: str
    runtime: str
    testing: str
    commands: dict[str, str] = field(default_factory=dict)
    package_manager: str | None = None


def detect_stack(project_dir: Path) -> str:
    project_dir = Path(project_dir)

    def has(*names: str) -> bool:
        return any((project_dir / name).is_file() for name in names)

    if has("package.json"):
        return "node"
    if has("pyproject.toml", "requirements.txt", "setup.py", "Pipfile"):
        return "python"
    if has("go.mod"):
        return "go"
    if has("Cargo.toml"):
        return "rust"
    if has("pom.xml", "build.gradle", "build.gradle.kts"):
        return "jvm"
    return "generic"


def detect_package_manager(project_dir: Path) -> str:
    project_dir = Path(project_dir)
    if (project_dir / "pnpm-lock.yaml").is_file():
        return "pnpm"
    if (project_dir / "yarn.lock").is_file():
        return "yarn"
    if (project_dir / "bun.lock").is_file() or (project_dir / "bun.lockb").is_file():
        return "bun"
    return "npm"


def _node_commands(package_manager: str) -> dict[str, str]:
    def script(name: str) -> str:
        if package_manager == "yarn":
            return f"yarn {name}"
        return f"{package_manager} run {name}"

    return {
        "dev": script("dev"),
        "test": script("test"),
        "coverage": script("test:coverage"),
        "lint": script("lint"),
        "typecheck": script("typecheck"),
        "build": script("build"),
    }


def _python_commands(project_dir: Path) -> dict[str, str]:
    if (project_dir / "uv.lock").is_file():
        prefix = "uv run "
    elif (project_dir / "poetry.lock").is_file():
        prefix = "poetry run "
    elif (project_dir / "Pipfile.lock").is_file() or (project_dir / "Pipfile").is_file():
        prefix = "pipenv run "
    else:
        prefix = ""

    for entry, command in (
        ("manage.py", "python manage.py runserver"),
        ("app.py", "python app.py"),
        ("src/main.py", "python src/main.py"),
        ("main.py", "python main.py"),
    ):
        if (project_dir / entry).is_file():
            dev = command
            break
    else:
        dev = "python -m app"

    return {
        "dev": prefix + dev,
        "test": prefix + "pytest",
        "coverage": prefix + "pytest --cov",
        "lint": prefix + "ruff check .",
        "typecheck": prefix + "mypy .",
        "build": prefix + "python -m build",
    }


def _jvm_commands(project_dir: Path) -> dict[str, str]:
    gradle = any(
        (project_dir / name).is_file() for name in ("gradlew", "build.gradle", "build.gradle.kts")
    )
    if gradle:
        return {
            "dev": "./gradlew run",
            "test": "./gradlew test",
            "coverage": "./gradlew test",
            "lint": "./gradlew check",
            "typecheck": "./gradlew classes",
            "build": "./gradlew build",
        }
    mvn = "./mvnw" if (project_dir / "mvnw").is_file() else "mvn"
    return {
        "dev": f"{mvn} spring-boot:run",
        "test": f"{mvn} test",
        "coverage": f"{mvn} test",
        "lint": f"{mvn} -q -DskipTests verify",
        "typecheck": f"{mvn} -q -DskipTests compile",
        "build": f"{mvn} -DskipTests package",
    }


_STATIC_COMMANDS = {
    "go": {
        "dev": "go run .",
        "test": "go test ./...",
        "coverage": "go test ./... -cover",
        "lint": "go vet ./...",
        "typecheck": "go test ./...",
        "build": "go build ./...",
    },
    "rust": {
        "dev": "cargo run",
        "test": "cargo test",
        "coverage": "cargo test",
        "lint": "cargo clippy --all-targets --all-features -- -D warnings",
        "typecheck": "cargo check",
        "build": "cargo build --release",
    },
    "generic": {
        "dev": "make dev",
        "test": "make test",
        "coverage": "make test-coverage",
        "lint": "make lint",
        "typecheck": "make typecheck",
        "build": "make build",
    },
}


def default_commands(stack: str, project_dir: Path) -> tuple[dict[str, str], str | None]:
    """Default commands for ``stack`` and the package manager, if any."""
    project_dir = Path(project_dir)
    if stack == "node":
        package_manager = detect_package_manager(project_dir)
        return _node_commands(package_manager), package_manager
    if stack == "python":
        return _python_commands(project_dir), None
    if stack == "jvm":
        return _jvm_commands(project_dir), None
    return dict(_STATIC_COMMANDS.get(stack, _STATIC_COMMANDS["generic"])), None


def stack_profile(
    project_dir: Path,
    *,
    stack_override: str | None = None,
    command_overrides: Mapping[str, str] | None = None,
) -> StackProfile:
    """
    Detect the project's stack and resolve its commands.

    ``stack_override`` forces the label; ``command_overrides`` replace
    individual defaults (empty values are ignored).

    Raises:
        ConfigError: Unknown stack label or command name
    """
    project_dir = Path(project_dir)
    if stack_override is not None and stack_override not in STACKS:
        raise ConfigError(f"Unknown stack '{stack_override}'; expected one of {list(STACKS)}")
    stack = stack_override or detect_stack(project_dir)

    commands, package_manager = default_commands(stack, project_dir)
    for name, command in (command_overrides or {}).items():
        if name not in COMMAND_NAMES:
            raise ConfigError(f"Unknown command '{name}'; expected one of {list(COMMAND_NAMES)}")
        if command:
            commands[name] = command

    if stack == "node":
        typescript = any((project_dir / f).is_file() for f in ("tsconfig.json", "tsconfig.base.json"))
        language = "TypeScript" if typescript else "JavaScript/TypeScript"
    else:
        language = _LANGUAGES.get(stack, "TBD")

    return StackProfile(
        stack=stack,
        language=language,
        runtime=_RUNTIMES.get(stack, "TBD"),
        testing=_TESTING.get(stack, "TBD"),
        commands=commands,
        package_manager=package_manager,
    )
