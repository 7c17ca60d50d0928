"""
INTENT Version Control

Reads what changed between two refs and turns it into ModifyFile actions.

Two sources, in order of preference:
  1. the unified diff (gives hunks, so evidence can point at a line)
  2. `git diff --name-only` (paths only)

An empty or unavailable diff falls through to the second source.
CHANGED_FILES in the environment (newline separated) replaces the
name-only listing, so CI systems without a usable checkout still get a
file list.
"""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from loguru import logger

from intentgate.dsl.ast import Domain
from intentgate.governance.domains import resolve_domain
from intentgate.governance.models import Action, Hunk


class GitError(Exception):
    pass


DIFF_FILE_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$")
HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass
class FileDiff:
    path: str
    hunks: list[Hunk] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Diff parsing
# ---------------------------------------------------------------------------

def parse_diff(diff_text: str) -> list[FileDiff]:
    """Parse unified diff text into per-file hunk headers."""
    files: list[FileDiff] = []
    current: FileDiff | None = None

    for line in diff_text.split("\n"):
        m = DIFF_FILE_RE.match(line)
        if m:
            current = FileDiff(path=m.group(2).replace("\\", "/"))
            files.append(current)
            continue

        if current is None:
            continue

        h = HUNK_RE.match(line)
        if h:
            current.hunks.append(Hunk(
                old_start=int(h.group(1)),
                old_lines=int(h.group(2) or 1),
                new_start=int(h.group(3)),
                new_lines=int(h.group(4) or 1),
            ))

    return files


# ---------------------------------------------------------------------------
# Git plumbing
# ---------------------------------------------------------------------------

def _git(repo_path: Path, *args: str) -> str:
    cmd = ["git", *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=repo_path,
            capture_output=True,
            text=True,
            timeout=60,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise GitError(f"Command failed: {' '.join(cmd)}\n{e}") from e
    if result.returncode != 0:
        raise GitError(
            f"Command failed: {' '.join(cmd)}\n"
            f"stderr: {result.stderr}"
        )
    return result.stdout


def _git_range(repo_path: Path, base: str, head: str, *args: str) -> str:
    """Try the merge-base form `base...head`, then the plain two-ref form."""
    try:
        return _git(repo_path, "diff", *args, f"{base}...{head}")
    except GitError:
        logger.debug(f"[GIT] {base}...{head} failed, retrying as two refs")
        return _git(repo_path, "diff", *args, base, head)


def get_raw_diff(repo_path: Path, base: str, head: str, unified: int = 3) -> str:
    return _git_range(repo_path, base, head, f"--unified={unified}", "--no-color")


def get_changed_files(repo_path: Path, base: str, head: str) -> list[str]:
    override = os.environ.get("CHANGED_FILES")
    if override:
        return [f.strip() for f in override.splitlines() if f.strip()]
    out = _git_range(repo_path, base, head, "--name-only")
    return [f.strip() for f in out.splitlines() if f.strip()]


# ---------------------------------------------------------------------------
# Action log
# ---------------------------------------------------------------------------

def build_action_log(
    domains: Sequence[Domain],
    repo_path: Path,
    base: str,
    head: str,
    raw_diff: str | None = None,
    unified: int = 3,
) -> list[Action]:
    """One ModifyFile action per changed file, with its resolved domain."""
    diff = raw_diff
    if diff is None:
        try:
            diff = get_raw_diff(repo_path, base, head, unified)
        except GitError as e:
            if os.environ.get("CHANGED_FILES"):
                logger.debug(f"[GIT] Full diff unavailable, using CHANGED_FILES: {e}")
            else:
                logger.warning(f"[GIT] Full diff unavailable, using file list: {e}")

    if diff:
        actions = [
            Action(path=f.path, file_domain=resolve_domain(f.path, domains), hunks=f.hunks)
            for f in parse_diff(diff)
        ]
    else:
        actions = [
            Action(path=p, file_domain=resolve_domain(p, domains))
            for p in get_changed_files(repo_path, base, head)
        ]

    logger.info(f"[GIT] {len(actions)} changed files between {base} and {head}")
    return actions
