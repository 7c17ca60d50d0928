"""
INTENT Governance Models

Strict schemas for what crosses the engine boundary: actions and task scope
coming in from collaborators, violations and the aggregate verdict going
out to the report and plan writers.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ActionKind = Literal["ModifyFile", "ImportCrossDomain"]
TaskSource = Literal[
    "cli_override", "pr_header", "issue_label", "slash_command", "inferred", "unknown"
]
Status = Literal["pass", "warn", "blocked"]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class Hunk(BaseModel):
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int


class Action(BaseModel):
    """One observed change. `file_domain` comes from the domain resolver."""
    kind: ActionKind = "ModifyFile"
    path: str
    file_domain: str | None = None
    hunks: list[Hunk] = Field(default_factory=list)

    # Reserved for ImportCrossDomain actions; nothing produces them yet.
    source_domain: str | None = None
    source_path: str | None = None
    target_domain: str | None = None
    target_import: str | None = None


class Task(BaseModel):
    domain: str | None = None
    tags: list[str] = Field(default_factory=list)
    source: TaskSource = "unknown"


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

class Evidence(BaseModel):
    path: str = ""
    file_domain: str | None = None
    task_domain: str | None = None
    first_hunk_line: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Remediation(BaseModel):
    actions: list[str] = Field(default_factory=list)
    approved_interfaces: list[str] = Field(default_factory=list)


class Bypass(BaseModel):
    tag: str
    approval_required: str | None = None
    approved: bool = False


class Violation(BaseModel):
    code: str
    severity: Literal["error", "warn", "info"]
    confidence: Literal["high", "medium", "low"]
    message: str
    suggest: str | None = None
    evidence: Evidence
    remediation: Remediation = Field(default_factory=Remediation)
    bypassed: Bypass | None = None


class EvaluationResult(BaseModel):
    violations: list[Violation] = Field(default_factory=list)
    status: Status = "pass"
