"""
INTENT Spec Loader

Finds the repository root and reads system.intent plus every
policies/*.intent file (sorted, so evaluation order is stable).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from intentgate.config_loader import IntentConfig


class SpecLoadError(Exception):
    pass


@dataclass
class PolicyFile:
    path: Path
    source: str


@dataclass
class IntentFiles:
    system_path: Path
    system_source: str
    policy_files: list[PolicyFile] = field(default_factory=list)


ROOT_MARKERS = ("system.intent", ".intent", ".git")


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SpecLoadError(f"{path}: not valid UTF-8 ({e.reason} at byte {e.start})") from e
    except OSError as e:
        raise SpecLoadError(f"{path}: cannot read ({e})") from e


def find_repo_root(start: Path | None = None) -> Path:
    """
    Walk upward to the first directory holding system.intent, a .intent
    config directory, or .git. Runs before any config is read, so a repo
    with a renamed system file is found through .intent/ or .git.
    """
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        if any((directory / marker).exists() for marker in ROOT_MARKERS):
            return directory
    return origin


def load_intent_files(repo_root: Path, config: IntentConfig | None = None) -> IntentFiles:
    config = config or IntentConfig()
    system_path = repo_root / config.paths.system_file
    if not system_path.is_file():
        raise SpecLoadError(f"No {config.paths.system_file} found in {repo_root}")

    files = IntentFiles(
        system_path=system_path,
        system_source=_read_source(system_path),
    )

    policy_dir = repo_root / config.paths.policy_dir
    if policy_dir.is_dir():
        for path in sorted(policy_dir.glob("*.intent")):
            files.policy_files.append(
                PolicyFile(path=path, source=_read_source(path))
            )

    logger.debug(
        f"[LOAD] {system_path.name} + {len(files.policy_files)} policy files from {repo_root}"
    )
    return files
