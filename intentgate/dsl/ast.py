"""
INTENT AST

Node shapes for both grammars plus the predicate sub-language.

Every node is a frozen dataclass; children are tuples so whole trees are
immutable once the parser hands them over. Predicates form a closed sum
type (`And | Compare | FieldRef | Literal | Null`) consumed by the
evaluation engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal as TypingLiteral, Union

Confidence = TypingLiteral["high", "medium", "low"]
Severity = TypingLiteral["error", "warn", "info"]
CompareOp = TypingLiteral["==", "!="]

CONFIDENCE_LEVELS: tuple[str, ...] = ("high", "medium", "low")
SEVERITY_LEVELS: tuple[str, ...] = ("error", "warn", "info")

# Field paths a predicate or message template may reference.
CONTEXT_FIELDS: tuple[str, ...] = (
    "action.kind", "action.path", "action.fileDomain",
    "file.domain", "file.path",
    "task.domain", "task.tags",
    "source.domain", "source.path",
    "target.domain", "target.import",
)


# ---------------------------------------------------------------------------
# System topology
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Domain:
    name: str
    allow_globs: tuple[str, ...]
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class SystemSpec:
    intent_version: str
    system_name: str
    domains: tuple[Domain, ...]
    imports: tuple[str, ...] = ()

    def domain(self, name: str) -> Domain | None:
        for d in self.domains:
            if d.name == name:
                return d
        return None


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldRef:
    """Dotted context path, e.g. `file.domain`."""
    path: str


@dataclass(frozen=True)
class Literal:
    value: str | int | float


@dataclass(frozen=True)
class Null:
    pass


Operand = Union[FieldRef, Literal, Null]


@dataclass(frozen=True)
class Compare:
    op: CompareOp
    left: Operand
    right: Operand


@dataclass(frozen=True)
class And:
    left: Predicate
    right: Predicate


Predicate = Union[And, Compare, FieldRef, Literal, Null]


def field_paths(node: Predicate) -> list[str]:
    """All field paths referenced by a predicate, in source order."""
    if isinstance(node, And):
        return field_paths(node.left) + field_paths(node.right)
    if isinstance(node, Compare):
        return field_paths(node.left) + field_paths(node.right)
    if isinstance(node, FieldRef):
        return [node.path]
    return []


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ViolationRule:
    code: str
    confidence: Confidence
    severity: Severity
    when: Predicate
    message: str
    suggest: str | None = None
    except_when_tagged: str | None = None
    requires_approval: str | None = None
    auto_fix: str | None = None


@dataclass(frozen=True)
class Policy:
    name: str
    violations: tuple[ViolationRule, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PolicySpec:
    intent_version: str
    policies: tuple[Policy, ...] = field(default_factory=tuple)

    def rules(self) -> list[ViolationRule]:
        return [rule for policy in self.policies for rule in policy.violations]
