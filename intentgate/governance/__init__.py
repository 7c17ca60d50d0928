"""
INTENT Governance: Domain Resolution + Rule Evaluation
"""

from __future__ import annotations

from intentgate.governance.domains import glob_to_regex, resolve_domain
from intentgate.governance.engine import evaluate
from intentgate.governance.models import (
    Action,
    Bypass,
    EvaluationResult,
    Evidence,
    Hunk,
    Remediation,
    Task,
    Violation,
)

__all__ = [
    "Action",
    "Bypass",
    "EvaluationResult",
    "Evidence",
    "Hunk",
    "Remediation",
    "Task",
    "Violation",
    "evaluate",
    "glob_to_regex",
    "resolve_domain",
]
