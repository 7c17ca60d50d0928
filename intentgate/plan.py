"""
INTENT Plan Document

The machine-readable verdict written to intent.plan.json. Downstream
tooling depends on its key set, so the shape is a versioned schema:

{
  "intent_version": "2.0",
  "status": "pass|warn|blocked",
  "task": {"domain": ..., "tags": [...], "source": ...},
  "actions_summary": {"modify_files": N, "import_cross_domain": N},
  "violations": [
    {"code", "severity", "confidence", "evidence", "remediation", "bypassed"}
  ]
}

No timestamps, no random ids: the same evaluation writes the same bytes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from intentgate.governance.models import (
    Action,
    Bypass,
    Remediation,
    Status,
    Task,
    TaskSource,
    Violation,
)

DEFAULT_INTENT_VERSION = "2.0"


class PlanTask(BaseModel):
    domain: str | None = None
    tags: list[str] = Field(default_factory=list)
    source: TaskSource = "unknown"


class ActionsSummary(BaseModel):
    modify_files: int = 0
    import_cross_domain: int = 0


class PlanViolation(BaseModel):
    code: str
    severity: str
    confidence: str
    evidence: dict[str, Any]
    remediation: Remediation = Field(default_factory=Remediation)
    bypassed: Bypass | None = None


class PlanDocument(BaseModel):
    intent_version: str = DEFAULT_INTENT_VERSION
    status: Status
    task: PlanTask
    actions_summary: ActionsSummary
    violations: list[PlanViolation] = Field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=2, ensure_ascii=False)


def build_plan(
    *,
    intent_version: str | None,
    status: Status,
    task: Task,
    actions: Sequence[Action],
    violations: Sequence[Violation],
) -> PlanDocument:
    return PlanDocument(
        intent_version=intent_version or DEFAULT_INTENT_VERSION,
        status=status,
        task=PlanTask(domain=task.domain, tags=list(task.tags), source=task.source),
        actions_summary=ActionsSummary(
            modify_files=sum(1 for a in actions if a.kind == "ModifyFile"),
            import_cross_domain=sum(1 for a in actions if a.kind == "ImportCrossDomain"),
        ),
        violations=[
            PlanViolation(
                code=v.code,
                severity=v.severity,
                confidence=v.confidence,
                evidence=v.evidence.as_dict(),
                remediation=v.remediation,
                bypassed=v.bypassed,
            )
            for v in violations
        ],
    )


def write_plan(plan: PlanDocument, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(plan.to_json() + "\n", encoding="utf-8")
    logger.debug(f"[PLAN] Wrote {out_path} (status={plan.status})")
    return out_path
