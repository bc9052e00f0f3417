"""Pydantic models for adoption and navigation configuration.

Configuration files are YAML (``.yaml``/``.yml``) or JSON (``.json``).

Usage::

    from standards_sync.core.config import AdoptionConfig

    config = AdoptionConfig.from_file(".standards/adoption.yaml")
    config.mode            # AdoptionMode.MERGE
    config.navigation      # NavigationConfig for `standards-sync validate`

Example YAML::

    standards_path: ../agentic-best-practices
    mode: pinned
    pinned_version: v1.2.0
    stack_override: python
    command_overrides:
      test: make test
      lint: make lint
    navigation:
      index_files: [AGENTS.md, README.md]
      guide_roots: [guides, adoption]

Tags:
    configuration, pydantic, yaml, standards-sync
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from standards_sync.core.errors import ConfigError

COMMAND_NAMES = ("dev", "test", "coverage", "lint", "typecheck", "build")
DEFAULT_EXCLUDES = (".*", "node_modules", "__pycache__")


class AdoptionMode(str, Enum):
    """How the merge engine is applied to a downstream project."""

    FRESH = "fresh"
    MERGE = "merge"
    PINNED = "pinned"


def _load_mapping(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON config file into a mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", cause=e) from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}", cause=e) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def _validate(model: type[BaseModel], data: dict[str, Any], source: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration in {source}: {problems}", cause=e) from e


class NavigationConfig(BaseModel):
    """Where to look for index files, guides and docs when validating."""

    model_config = ConfigDict(extra="forbid")

    root: Path = Field(default=Path("."), description="Repository root")
    index_files: list[str] = Field(
        default_factory=lambda: ["AGENTS.md", "README.md"],
        description="Root navigation documents whose tables list guides",
    )
    required_indexes: list[str] | None = Field(
        default=None,
        description="Index files every guide must appear in (default: all index files)",
    )
    guide_roots: list[str] = Field(
        default_factory=lambda: ["guides", "adoption"],
        description="Directories whose markdown files must be indexed",
    )
    doc_roots: list[str] = Field(
        default_factory=lambda: ["docs"],
        description="Directories whose markdown files are link-checked only",
    )
    exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDES),
        description="Glob patterns matched against each path component",
    )
    check_contents_tables: bool = Field(default=True)

    @model_validator(mode="after")
    def validate_required_indexes(self) -> NavigationConfig:
        """Required indexes must be a subset of the index files."""
        if self.required_indexes is not None:
            unknown = set(self.required_indexes) - set(self.index_files)
            if unknown:
                raise ValueError(f"required_indexes not in index_files: {sorted(unknown)}")
        return self

    @property
    def effective_required_indexes(self) -> list[str]:
        if self.required_indexes is None:
            return list(self.index_files)
        return list(self.required_indexes)

    @classmethod
    def from_file(cls, path: Path) -> NavigationConfig:
        """Load from a config file, reading the ``navigation:`` section if present."""
        path = Path(path)
        data = _load_mapping(path)
        section = data.get("navigation", data)
        if not isinstance(section, dict):
            raise ConfigError(f"'navigation' in {path} must be a mapping")
        config = _validate(cls, section, str(path))
        if not config.root.is_absolute():
            config.root = (path.parent / config.root).resolve()
        return config


class AdoptionConfig(BaseModel):
    """
    Settings for ``standards-sync adopt``.

    Recognized keys: ``standards_path``, ``mode``, ``pinned_version``,
    ``stack_override``, ``command_overrides``, plus ``config_file``,
    ``template``, ``snapshot_dir``, ``anchor``, ``project_name``, ``backup``,
    ``force`` and an optional ``navigation`` section.
    """

    model_config = ConfigDict(extra="forbid")

    standards_path: str | None = Field(default=None, description="Where the standards tree lives")
    mode: AdoptionMode = Field(default=AdoptionMode.MERGE)
    pinned_version: str | None = Field(default=None, description="Snapshot version for pinned mode")
    stack_override: str | None = Field(default=None, description="Force a detected stack label")
    command_overrides: dict[str, str] = Field(default_factory=dict)

    config_file: str = Field(default="AGENTS.md", description="Downstream file to manage")
    template: str = Field(
        default="adoption/template-agents.md",
        description="Template path, relative to the standards path",
    )
    snapshot_dir: str = Field(default=".standards/pinned", description="Project-relative pin directory")
    anchor: str = Field(default="end", description="Insert point for new blocks")
    project_name: str | None = None
    backup: bool = True
    force: bool = False

    navigation: NavigationConfig | None = None

    @field_validator("command_overrides")
    @classmethod
    def validate_command_names(cls, v: dict[str, str]) -> dict[str, str]:
        unknown = set(v) - set(COMMAND_NAMES)
        if unknown:
            raise ValueError(f"Unknown command names {sorted(unknown)}; expected one of {list(COMMAND_NAMES)}")
        return v

    @field_validator("anchor")
    @classmethod
    def validate_anchor(cls, v: str) -> str:
        if v in ("end", "start"):
            return v
        if v.startswith("after:") and v[len("after:"):].strip():
            return v
        raise ValueError("anchor must be 'end', 'start' or 'after:<Heading text>'")

    @model_validator(mode="after")
    def validate_pinned_version(self) -> AdoptionConfig:
        if self.mode == AdoptionMode.PINNED and not self.pinned_version:
            raise ValueError("pinned_version is required when mode is 'pinned'")
        return self

    @classmethod
    def from_file(cls, path: Path) -> AdoptionConfig:
        """Load and validate a YAML or JSON adoption config file."""
        path = Path(path)
        return _validate(cls, _load_mapping(path), str(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "<dict>") -> AdoptionConfig:
        return _validate(cls, data, source)

    def merged(self, **overrides: Any) -> AdoptionConfig:
        """Return a copy with non-None overrides applied and re-validated."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return _validate(AdoptionConfig, data, "<overrides>")


__all__ = [
    "COMMAND_NAMES",
    "AdoptionMode",
    "AdoptionConfig",
    "NavigationConfig",
]
