from __future__ import annotations

import sys
from pathlib import Path

import pytest
from loguru import logger

from intentgate import vcs
from intentgate.dsl import parse_policy, parse_system
from intentgate.vcs import GitError

FIXTURES = Path(__file__).parent / "fixtures"

# Environment the pipeline reads; tests start from a clean slate.
INTENT_ENV = (
    "CHANGED_FILES",
    "PR_BODY",
    "GITHUB_EVENT_PATH",
    "DIFF_BASE",
    "DIFF_HEAD",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in INTENT_ENV:
        monkeypatch.delenv(name, raising=False)
    yield
    # CLI invocations swap the loguru sink for a captured stderr
    logger.remove()
    logger.add(sys.stderr, level="WARNING")


@pytest.fixture(autouse=True)
def _no_git(monkeypatch):
    """Every git call fails unless a test installs its own `_git`."""

    def unavailable(repo_path, *args):
        raise GitError(f"git unavailable in tests: {' '.join(args)}")

    monkeypatch.setattr(vcs, "_git", unavailable)


@pytest.fixture
def system_source() -> str:
    return (FIXTURES / "system.intent").read_text(encoding="utf-8")


@pytest.fixture
def policy_source() -> str:
    return (FIXTURES / "default.intent").read_text(encoding="utf-8")


@pytest.fixture
def system_spec(system_source):
    return parse_system(system_source, "system.intent")


@pytest.fixture
def policy_spec(policy_source):
    return parse_policy(policy_source, "default.intent")


@pytest.fixture
def intent_repo(tmp_path, system_source, policy_source) -> Path:
    """A repo root holding the fixture system.intent and policies/default.intent."""
    (tmp_path / "system.intent").write_text(system_source, encoding="utf-8")
    (tmp_path / "policies").mkdir()
    (tmp_path / "policies" / "default.intent").write_text(policy_source, encoding="utf-8")
    (tmp_path / ".git").mkdir()
    return tmp_path
