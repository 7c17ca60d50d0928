"""
INTENT Auto-Fix

`intent fix` handles the one violation with a mechanical fix:
UnknownDomainFile. Each unmapped file gets a glob covering its directory
(at most two segments deep), added to an `Unmapped` domain in
system.intent. Moving those globs into their real domains is left to a human.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from intentgate.controller import Controller

FIXABLE_CODES = ("UnknownDomainFile",)
UNMAPPED_RE = re.compile(r"^domain Unmapped\s*\{", re.MULTILINE)


@dataclass
class FixReport:
    globs: list[str] = field(default_factory=list)
    applied: bool = False
    system_path: Path | None = None


def suggest_domain_glob(file_path: str) -> str:
    """
    `app/billing/invoice.ts` -> `app/billing/**`, `tools/gen.py` -> `tools/**`.
    Top-level files map to themselves.
    """
    parts = file_path.replace("\\", "/").split("/")
    dirs = parts[:-1][:2]
    if not dirs:
        return file_path
    return "/".join(dirs) + "/**"


def insert_globs(content: str, globs: list[str]) -> str:
    """
    Add every glob to the Unmapped domain, creating it after the last block
    when it does not exist yet.
    """
    if not globs:
        return content
    listed = ", ".join(f'"{g}"' for g in globs)

    existing = UNMAPPED_RE.search(content)
    if existing:
        at = existing.end()
        return content[:at] + f"\n  paths allow {listed}\n" + content[at:]

    block = f"\ndomain Unmapped {{\n  paths allow {listed}\n}}\n"
    last_close = content.rfind("}")
    if last_close == -1:
        return content + block
    return content[: last_close + 1] + "\n" + block + content[last_close + 1 :]


def fix_unknown_domains(
    controller: Controller,
    scope: str | None = None,
    base: str | None = None,
    head: str | None = None,
    dry_run: bool = False,
) -> FixReport:
    outcome = controller.run(scope=scope, base=base, head=head)
    report = FixReport(system_path=controller.repo_path / controller.config.paths.system_file)

    for v in outcome.violations:
        if v.code not in FIXABLE_CODES:
            continue
        glob = suggest_domain_glob(v.evidence.path)
        if glob not in report.globs:
            report.globs.append(glob)

    if not report.globs or dry_run:
        logger.info(f"[FIX] {len(report.globs)} globs suggested (dry_run={dry_run})")
        return report

    content = report.system_path.read_text(encoding="utf-8")
    report.system_path.write_text(insert_globs(content, report.globs), encoding="utf-8")
    report.applied = True
    logger.info(f"[FIX] Added {len(report.globs)} globs to {report.system_path}")
    return report
