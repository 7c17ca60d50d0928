"""
INTENT Evaluation Engine

It is NOT smart. It is deterministic.

For every rule of every policy, for every action:
  - build the evaluation context (dotted field path -> value)
  - evaluate the rule's `when` predicate
  - on a match, resolve severity (bypass, then confidence) and emit a
    violation with interpolated message and evidence

Then sort the violations and fold them into one status. Same inputs, same
bytes out. No environment reads, no shared state between calls.
"""

from __future__ import annotations

import re
from typing import Sequence, Union

from loguru import logger

from intentgate.dsl.ast import (
    CONTEXT_FIELDS,
    And,
    Compare,
    FieldRef,
    Literal,
    Null,
    PolicySpec,
    Predicate,
    ViolationRule,
)
from intentgate.governance.models import (
    Action,
    Bypass,
    EvaluationResult,
    Evidence,
    Remediation,
    Task,
    Violation,
)

ContextValue = Union[str, int, float, list, None]

SEVERITY_RANK = {"error": 0, "warn": 1, "info": 2}

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


# ---------------------------------------------------------------------------
# Evaluation context
# ---------------------------------------------------------------------------

class EvalContext:
    """
    String-keyed view of one (action, task) pair.

    Lookups of paths outside CONTEXT_FIELDS resolve to None and are
    remembered so the caller can report them.
    """

    def __init__(self, action: Action, task: Task, unresolved: set[str] | None = None):
        self.values: dict[str, ContextValue] = {
            "action.kind": action.kind,
            "action.path": action.path,
            "action.fileDomain": action.file_domain,
            "file.domain": action.file_domain,
            "file.path": action.path,
            "task.domain": task.domain,
            "task.tags": list(task.tags),
            "source.domain": action.source_domain,
            "source.path": action.source_path,
            "target.domain": action.target_domain,
            "target.import": action.target_import,
        }
        self.unresolved = unresolved if unresolved is not None else set()

    def lookup(self, path: str) -> ContextValue:
        if path not in CONTEXT_FIELDS:
            self.unresolved.add(path)
            return None
        return self.values.get(path)


def _operand_value(node: Predicate, ctx: EvalContext) -> ContextValue:
    if isinstance(node, FieldRef):
        return ctx.lookup(node.path)
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Null):
        return None
    raise TypeError(f"Not a comparison operand: {type(node).__name__}")


def eval_predicate(node: Predicate, ctx: EvalContext) -> bool:
    if isinstance(node, And):
        return eval_predicate(node.left, ctx) and eval_predicate(node.right, ctx)
    if isinstance(node, Compare):
        left = _operand_value(node.left, ctx)
        right = _operand_value(node.right, ctx)
        if node.op == "==":
            return left == right
        if node.op == "!=":
            return left != right
        raise ValueError(f"Unknown comparison operator: {node.op}")
    if isinstance(node, FieldRef):
        return ctx.lookup(node.path) is not None
    if isinstance(node, Literal):
        return bool(node.value)
    if isinstance(node, Null):
        return False
    raise TypeError(f"Unknown predicate node: {type(node).__name__}")


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def _stringify(value: ContextValue) -> str:
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    return str(value)


def interpolate(template: str, ctx: EvalContext) -> str:
    """Replace `{field.path}` with its value, or `<field.path>` when null."""

    def sub(m: re.Match[str]) -> str:
        key = m.group(1).strip()
        value = ctx.values.get(key)
        return _stringify(value) if value is not None else f"<{key}>"

    return _PLACEHOLDER.sub(sub, template)


# ---------------------------------------------------------------------------
# Severity, bypass, status
# ---------------------------------------------------------------------------

def is_bypassed(rule: ViolationRule, task: Task) -> bool:
    return rule.except_when_tagged is not None and rule.except_when_tagged in task.tags


def effective_severity(severity: str, confidence: str, bypassed: bool) -> str:
    if bypassed:
        return "warn"
    if confidence == "medium" and severity == "error":
        return "warn"
    if confidence == "low":
        return "info"
    return severity


def compute_status(violations: Sequence[Violation], task: Task) -> str:
    status = "pass"
    for v in violations:
        if v.bypassed is not None:
            if status == "pass":
                status = "warn"
        elif v.severity == "error" and v.confidence == "high":
            status = "blocked"
        elif status == "pass":
            status = "warn"

    if task.source == "unknown" and status == "pass":
        status = "warn"
    return status


def sort_key(v: Violation) -> tuple[int, str, str]:
    return (SEVERITY_RANK.get(v.severity, 9), v.evidence.path or "", v.code)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_evidence(action: Action, task: Task) -> Evidence:
    return Evidence(
        path=action.path,
        file_domain=action.file_domain or None,
        task_domain=task.domain or None,
        first_hunk_line=action.hunks[0].new_start if action.hunks else None,
    )


def _emit(rule: ViolationRule, action: Action, task: Task, ctx: EvalContext) -> Violation:
    bypassed = is_bypassed(rule, task)
    suggest = interpolate(rule.suggest, ctx) if rule.suggest is not None else None

    return Violation(
        code=rule.code,
        severity=effective_severity(rule.severity, rule.confidence, bypassed),
        confidence=rule.confidence,
        message=interpolate(rule.message, ctx),
        suggest=suggest,
        evidence=build_evidence(action, task),
        remediation=Remediation(actions=[suggest] if suggest is not None else []),
        bypassed=Bypass(
            tag=rule.except_when_tagged,
            approval_required=rule.requires_approval,
        ) if bypassed else None,
    )


def evaluate(
    *,
    policy_specs: Sequence[PolicySpec],
    actions: Sequence[Action],
    task: Task,
) -> EvaluationResult:
    """
    Run every rule against every action.

    Returns violations ordered by severity, evidence path, then code, and
    the aggregate status. Never raises on unknown fields; they read as null.
    """
    violations: list[Violation] = []
    unresolved: set[str] = set()
    contexts = [EvalContext(action, task, unresolved) for action in actions]

    for spec in policy_specs:
        for rule in spec.rules():
            for action, ctx in zip(actions, contexts):
                if eval_predicate(rule.when, ctx):
                    violations.append(_emit(rule, action, task, ctx))

    violations.sort(key=sort_key)
    status = compute_status(violations, task)

    if unresolved:
        logger.warning(f"[ENGINE] Unresolved predicate fields (always null): {sorted(unresolved)}")
    logger.debug(
        f"[ENGINE] {len(actions)} actions, {len(violations)} violations, status={status}"
    )
    return EvaluationResult(violations=violations, status=status)
