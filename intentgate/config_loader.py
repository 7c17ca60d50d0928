"""
INTENT Config Loader

Settings live in `.intent/config.yaml` at the repository root. Every key
is optional; a missing file means defaults.

    paths:
      system_file: system.intent
      policy_dir: policies
      plan_file: intent.plan.json
    diff:
      base: origin/main
      head: HEAD
      unified: 3
    scope:
      default_tags: []

DIFF_BASE / DIFF_HEAD in the environment override the diff refs so CI
can pin them without touching the file.

`paths` is read by the controller and by `intent init`. The repo root
itself is found before this file is read, by the first directory holding
system.intent, .intent/ or .git.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

CONFIG_RELPATH = Path(".intent") / "config.yaml"


class ConfigError(Exception):
    pass


class PathsConfig(BaseModel):
    system_file: str = "system.intent"
    policy_dir: str = "policies"
    plan_file: str = "intent.plan.json"


class DiffConfig(BaseModel):
    base: str = "HEAD~1"
    head: str = "HEAD"
    unified: int = Field(default=3, ge=0)


class ScopeConfig(BaseModel):
    default_tags: list[str] = Field(default_factory=list)


class IntentConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    scope: ScopeConfig = Field(default_factory=ScopeConfig)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    diff = dict(data.get("diff") or {})
    if os.environ.get("DIFF_BASE"):
        diff["base"] = os.environ["DIFF_BASE"]
    if os.environ.get("DIFF_HEAD"):
        diff["head"] = os.environ["DIFF_HEAD"]
    if diff:
        data["diff"] = diff
    return data


def load_config(repo_path: Path) -> IntentConfig:
    """Load `.intent/config.yaml` under repo_path, falling back to defaults."""
    config_file = repo_path / CONFIG_RELPATH
    data: dict[str, Any] = {}

    if config_file.exists():
        try:
            with open(config_file) as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_file} must contain a mapping at top level")
        data = loaded
        logger.debug(f"[CONFIG] Loaded {config_file}")

    try:
        return IntentConfig(**_apply_env_overrides(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_file}: {e}") from e
