"""
INTENT Controller

The whole `intent plan` pipeline, start to finish:

  load specs -> parse -> validate -> build action log -> resolve task scope
  -> evaluate -> build plan -> write intent.plan.json

It never renders. It only coordinates. Any structural problem in a spec
file stops the run; there is no partial evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from loguru import logger

from intentgate.config_loader import IntentConfig, load_config
from intentgate.dsl import parse_policy, parse_system, validate_policy, validate_system
from intentgate.dsl.ast import PolicySpec, SystemSpec
from intentgate.governance import evaluate
from intentgate.governance.models import Action, Task, Violation
from intentgate.loader import load_intent_files
from intentgate.plan import PlanDocument, build_plan, write_plan
from intentgate.taskscope import resolve_task_scope
from intentgate.vcs import build_action_log


class SpecValidationError(Exception):
    """A spec parsed but failed semantic checks. Carries every problem found."""

    def __init__(self, path: Path | str, errors: list[str]):
        self.path = str(path)
        self.errors = errors
        super().__init__(f"Invalid {self.path}:\n  " + "\n  ".join(errors))


@dataclass
class LoadedSpecs:
    system: SystemSpec
    policies: list[PolicySpec] = field(default_factory=list)


@dataclass
class PlanOutcome:
    plan: PlanDocument
    violations: list[Violation]
    system: SystemSpec
    task: Task
    actions: list[Action]
    plan_path: Path | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.plan.status == "blocked" else 0


class Controller:
    """Deterministic orchestration of one policy evaluation."""

    def __init__(self, repo_path: Path, config: IntentConfig | None = None):
        self.repo_path = repo_path.resolve()
        self.config = config or load_config(self.repo_path)

    def load_specs(self) -> LoadedSpecs:
        """Parse and validate system.intent and every policy file."""
        files = load_intent_files(self.repo_path, self.config)

        system = parse_system(files.system_source, str(files.system_path))
        errors = validate_system(system)
        if errors:
            raise SpecValidationError(files.system_path, errors)

        specs = LoadedSpecs(system=system)
        for pf in files.policy_files:
            spec = parse_policy(pf.source, str(pf.path))
            errors = validate_policy(spec)
            if errors:
                raise SpecValidationError(pf.path, errors)
            specs.policies.append(spec)

        logger.info(
            f"[CONTROLLER] system {system.system_name}: {len(system.domains)} domains, "
            f"{len(specs.policies)} policy files"
        )
        return specs

    def run(
        self,
        scope: str | None = None,
        base: str | None = None,
        head: str | None = None,
        raw_diff: str | None = None,
        pr_body: str | None = None,
        labels: Sequence[str] | None = None,
        out_path: Path | None = None,
        write: bool = True,
    ) -> PlanOutcome:
        specs = self.load_specs()

        actions = build_action_log(
            specs.system.domains,
            self.repo_path,
            base or self.config.diff.base,
            head or self.config.diff.head,
            raw_diff=raw_diff,
            unified=self.config.diff.unified,
        )

        task = resolve_task_scope(
            scope_override=scope,
            pr_body=pr_body,
            labels=labels,
            actions=actions,
            default_tags=self.config.scope.default_tags,
        )

        result = evaluate(policy_specs=specs.policies, actions=actions, task=task)

        plan = build_plan(
            intent_version=specs.system.intent_version,
            status=result.status,
            task=task,
            actions=actions,
            violations=result.violations,
        )

        outcome = PlanOutcome(
            plan=plan,
            violations=result.violations,
            system=specs.system,
            task=task,
            actions=actions,
        )
        if write:
            target = out_path or self.repo_path / self.config.paths.plan_file
            outcome.plan_path = write_plan(plan, target)

        logger.info(
            f"[CONTROLLER] status={plan.status} violations={len(result.violations)} "
            f"files={len(actions)}"
        )
        return outcome
