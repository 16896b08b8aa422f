"""Hook settings.

Defaults match the layout most projects use. A project can override any
field from ``.claude/delivery-hooks.yaml`` (or the file named by
``DELIVERY_HOOKS_CONFIG``). A broken settings file never stops a hook: the
defaults are used and a warning is logged.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from . import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DELIVERY_HOOKS_CONFIG"
DEFAULT_CONFIG_PATH = Path(".claude", "delivery-hooks.yaml")


class HookSettings(BaseModel):
    """Paths, tool names and markers shared by every hook."""

    model_config = ConfigDict(validate_default=True)

    # Persisted state
    state_dir: Path = Path(".claude", "state")
    pointer_file: str = "current-delivery-plan.txt"
    manifest_path: Path = Path(".claude", "transient-artifacts.json")

    # Plan discovery, searched in order
    default_plan_path: Path = Path("docs", "delivery-plan.md")
    standard_plan_paths: list[Path] = [
        Path("docs", "delivery-plan.md"),
        Path("docs", "delivery_plan.md"),
        Path("DELIVERY_PLAN.md"),
        Path("delivery-plan.md"),
        Path("delivery_plan.md"),
    ]
    plan_search_dirs: list[Path] = [
        Path("docs", "plans"),
        Path("~", ".claude", "plans"),
        Path(".omc"),
        Path(".omc", "plans"),
    ]

    # Tool routing
    delegation_tools: set[str] = {"Task", "Agent"}
    edit_tools: set[str] = {"Edit", "MultiEdit"}
    write_tools: set[str] = {"Write"}

    tracked_extensions: set[str] = {".sh", ".ps1", ".bat", ".py", ".js", ".cjs", ".mjs"}
    context_tools: list[str] = [
        "qmd_search",
        "grepai",
        "GetCodeContext",
        "GetProjectStructure",
    ]

    git_timeout_seconds: float = 10.0

    @field_validator("plan_search_dirs")
    @classmethod
    def _expand_home(cls, value: list[Path]) -> list[Path]:
        return [path.expanduser() for path in value]

    @field_validator("tracked_extensions")
    @classmethod
    def _normalize_extensions(cls, value: set[str]) -> set[str]:
        normalized = set()
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.add(ext if ext.startswith(".") else f".{ext}")
        return normalized

    @property
    def pointer_path(self) -> Path:
        return self.state_dir / self.pointer_file


def config_path() -> Path:
    """Return the settings file location, honouring the env override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH


def parse_settings(raw: Any, source: Path | str = "<memory>") -> HookSettings:
    """Validate already-decoded settings data.

    Raises:
        ConfigError: If the data is not a mapping or fails validation.
    """
    if raw is None:
        return HookSettings()
    if not isinstance(raw, dict):
        raise ConfigError(f"{source}: expected a mapping, got {type(raw).__name__}")
    try:
        return HookSettings.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"{source}: {e}") from e


def load_settings(path: Path | None = None) -> HookSettings:
    """Load settings from YAML, falling back to defaults on any problem."""
    path = path or config_path()
    try:
        if not path.is_file():
            return HookSettings()
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        return parse_settings(raw, path)
    except (OSError, yaml.YAMLError, ConfigError) as e:
        logger.warning("Ignoring settings file %s, using defaults: %s", path, e)
        return HookSettings()
