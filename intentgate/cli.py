"""
INTENT CLI

Commands:
    intent plan     Evaluate policies against the current PR / diff
    intent check    Parse and validate the spec files only
    intent init     Scaffold system.intent and policies/default.intent
    intent fix      Apply deterministic auto-fixes (UnknownDomainFile)

Exit codes: 0 pass or warn, 1 blocked, 2 anything went wrong.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from intentgate import __version__
from intentgate.config_loader import ConfigError, load_config
from intentgate.controller import Controller, SpecValidationError
from intentgate.dsl import IntentSyntaxError, unknown_field_warnings
from intentgate.fixer import fix_unknown_domains
from intentgate.loader import SpecLoadError, find_repo_root
from intentgate.report import render_report
from intentgate.scaffold import init_repo
from intentgate.vcs import GitError

EXIT_ERROR = 2

# Everything the pipeline raises on purpose. Anything else is a bug and
# should surface with a traceback.
KNOWN_ERRORS = (
    IntentSyntaxError,
    SpecValidationError,
    SpecLoadError,
    ConfigError,
    GitError,
)

app = typer.Typer(
    help="Architectural governance for code changes. Stateless, deterministic, PR-time.",
    no_args_is_help=True,
    add_completion=False,
)


@dataclass
class CliState:
    cwd: Path | None
    console: Console

    @property
    def repo_root(self) -> Path:
        return find_repo_root(self.cwd)

    def controller(self) -> Controller:
        root = self.repo_root
        return Controller(root, load_config(root))


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"intent {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    cwd: Path = typer.Option(None, "--cwd", help="Override repository root directory"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback, is_eager=True,
        help="Show version and exit",
    ),
):
    _configure_logging(verbose)
    ctx.obj = CliState(cwd=cwd, console=Console(no_color=no_color, highlight=False))


# =============================================================================
# PLAN
# =============================================================================


@app.command()
def plan(
    ctx: typer.Context,
    scope: str = typer.Option(None, "--scope", help="Override task domain scope"),
    base: str = typer.Option(None, "--base", help="Diff base ref (default: HEAD~1 or DIFF_BASE)"),
    head: str = typer.Option(None, "--head", help="Diff head ref (default: HEAD or DIFF_HEAD)"),
    json_only: bool = typer.Option(False, "--json", help="Print the plan JSON only"),
    out: Path = typer.Option(None, "--out", help="Output path for intent.plan.json"),
):
    """Evaluate policies against the current PR / diff."""
    state: CliState = ctx.obj
    try:
        outcome = state.controller().run(scope=scope, base=base, head=head, out_path=out)
    except KNOWN_ERRORS as e:
        if json_only:
            typer.echo(json.dumps({"error": str(e)}))
        else:
            state.console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(EXIT_ERROR)

    if json_only:
        typer.echo(outcome.plan.to_json())
    else:
        render_report(
            outcome.plan,
            outcome.violations,
            system_name=outcome.system.system_name,
            console=state.console,
        )
    raise typer.Exit(outcome.exit_code)


# =============================================================================
# CHECK
# =============================================================================


@app.command()
def check(ctx: typer.Context):
    """Parse and validate system.intent and every policy file."""
    state: CliState = ctx.obj
    console = state.console
    try:
        specs = state.controller().load_specs()
    except SpecValidationError as e:
        console.print(f"[red]✖[/] {escape(e.path)}")
        for err in e.errors:
            console.print(f"    {escape(err)}")
        raise typer.Exit(EXIT_ERROR)
    except KNOWN_ERRORS as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(EXIT_ERROR)

    rules = sum(len(spec.rules()) for spec in specs.policies)
    console.print(
        f"[green]✔[/] system {escape(specs.system.system_name)}: "
        f"{len(specs.system.domains)} domains, {rules} rules"
    )
    for spec in specs.policies:
        for warning in unknown_field_warnings(spec):
            console.print(f"  [yellow]⚠[/] {escape(warning)}")


# =============================================================================
# INIT
# =============================================================================


@app.command()
def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite existing files"),
):
    """Scaffold system.intent and policies for this repo."""
    state: CliState = ctx.obj
    console = state.console
    root = state.repo_root
    try:
        result = init_repo(root, force=force, config=load_config(root))
    except KNOWN_ERRORS as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(EXIT_ERROR)

    system_rel = escape(result.system_path.relative_to(root).as_posix())
    policy_rel = escape(result.policy_path.relative_to(root).as_posix())

    if result.wrote_system:
        console.print(
            f"  [green]✔[/] Created [bold]{system_rel}[/] "
            f"({len(result.domains)} domains inferred)"
        )
    else:
        console.print(f"  [yellow]⊘[/] {system_rel} already exists (use --force to overwrite)")

    if result.wrote_policy:
        console.print(f"  [green]✔[/] Created [bold]{policy_rel}[/]")
    else:
        console.print(f"  [yellow]⊘[/] {policy_rel} already exists (use --force to overwrite)")

    if result.wrote_system or result.wrote_policy:
        console.print("\n  [cyan]→[/] Run [bold]intent plan[/] to evaluate your first diff.")


# =============================================================================
# FIX
# =============================================================================


@app.command()
def fix(
    ctx: typer.Context,
    scope: str = typer.Option(None, "--scope", help="Override task domain scope"),
    base: str = typer.Option(None, "--base", help="Diff base ref"),
    head: str = typer.Option(None, "--head", help="Diff head ref"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show fixes without applying"),
):
    """Apply deterministic auto-fixes for violations."""
    state: CliState = ctx.obj
    console = state.console
    try:
        report = fix_unknown_domains(
            state.controller(), scope=scope, base=base, head=head, dry_run=dry_run
        )
    except KNOWN_ERRORS as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(EXIT_ERROR)

    if not report.globs:
        console.print("  [green]✔[/] No auto-fixable violations found.")
        return

    verb = "Would add" if dry_run else "Added"
    for glob in report.globs:
        console.print(f"  [cyan]→[/] {verb} glob [bold]\"{escape(glob)}\"[/] to system.intent")
    if report.applied:
        console.print("\n  [cyan]→[/] Run [bold]intent plan[/] to verify.")


if __name__ == "__main__":
    app()
