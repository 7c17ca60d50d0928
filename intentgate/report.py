"""
INTENT Report

Human-readable rendering of an evaluation for terminals and CI logs.
Colour comes from rich and switches itself off when stdout is not a TTY.
"""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from intentgate.governance.models import Violation
from intentgate.plan import PlanDocument

SEV_ICON = {
    "error": "[red]✖[/]",
    "warn": "[yellow]⚠[/]",
    "info": "[blue]ℹ[/]",
}

STATUS_LABEL = {
    "pass": "[bold green]PASS[/]",
    "warn": "[bold yellow]WARN[/]",
    "blocked": "[bold red]BLOCKED[/]",
}


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def render_header(plan: PlanDocument, system_name: str | None) -> str:
    parts = ["[bold cyan]▲ INTENT[/]", f"[dim]v{escape(plan.intent_version)}[/]"]
    if system_name:
        parts.append(f"• {escape(system_name)}")
    if plan.task.domain:
        parts.append(f"• scope: {escape(plan.task.domain)} ({plan.task.source})")
    parts.append(f"[dim]• {_plural(plan.actions_summary.modify_files, 'file')}[/]")
    return " ".join(parts)


def render_violation(v: Violation) -> str:
    location = escape(v.evidence.path)
    if v.evidence.first_hunk_line:
        location += f":{v.evidence.first_hunk_line}"

    lines = [f"  {SEV_ICON.get(v.severity, '?')} [bold]\\[{escape(v.code)}][/] {location}"]
    if v.message:
        lines.append(f"    [dim]{escape(v.message)}[/]")
    if v.suggest:
        lines.append(f"    [cyan]→[/] {escape(v.suggest)}")
    if v.bypassed:
        note = f'    [yellow]⊘[/] Bypassed via tag "{escape(v.bypassed.tag)}"'
        if v.bypassed.approval_required:
            note += f" (needs {escape(v.bypassed.approval_required)} approval)"
        lines.append(note)
    return "\n".join(lines)


def render_summary(plan: PlanDocument, violations: Sequence[Violation]) -> str:
    errors = sum(1 for v in violations if v.severity == "error")
    warns = sum(1 for v in violations if v.severity == "warn")
    infos = sum(1 for v in violations if v.severity == "info")

    counts = []
    if errors:
        counts.append(f"[red]{_plural(errors, 'error')}[/]")
    if warns:
        counts.append(f"[yellow]{_plural(warns, 'warning')}[/]")
    if infos:
        counts.append(f"[blue]{infos} info[/]")

    return f"{STATUS_LABEL.get(plan.status, plan.status)}  {', '.join(counts) or '[green]clean[/]'}"


def next_steps(plan: PlanDocument, violations: Sequence[Violation]) -> list[str]:
    if plan.status == "pass":
        return []

    steps = []
    if plan.task.source == "unknown":
        steps.append("Add [bold]INTENT-SCOPE: <Domain>[/] to the PR body")

    blocking = [v for v in violations if v.severity == "error" and v.bypassed is None]
    if blocking:
        steps.append(f"Fix {_plural(len(blocking), 'blocking violation')} to unblock merge")
    return steps


def render_report(
    plan: PlanDocument,
    violations: Sequence[Violation],
    system_name: str | None = None,
    console: Console | None = None,
) -> None:
    """Print the full report. `violations` carry the messages the plan omits."""
    console = console or Console()

    console.print()
    console.print(render_header(plan, system_name))
    console.print()

    if not violations:
        console.print("  [green]✔[/] No violations.")
    else:
        groups = [
            ("error", "[bold red]🚨 {n} BLOCKING VIOLATION{s}[/]"),
            ("warn", "[bold yellow]⚠ {n} WARNING{s}[/]"),
            ("info", None),
        ]
        for severity, title in groups:
            group = [v for v in violations if v.severity == severity]
            if not group:
                continue
            if title:
                console.print("  " + title.format(n=len(group), s="" if len(group) == 1 else "S"))
                console.print()
            for v in group:
                console.print(render_violation(v))
            console.print()

    console.print(Panel(render_summary(plan, violations), border_style="dim", expand=False))

    steps = next_steps(plan, violations)
    if steps:
        console.print("  [bold]Next steps:[/]")
        for step in steps:
            console.print(f"  [cyan]→[/] {step}")
    console.print()
