"""
INTENT Scaffolding

`intent init` writes a starter system.intent and policies/default.intent.

Domains are inferred from top-level directories: one domain per directory,
named in CamelCase, owning `<dir>/**`. Noise directories (VCS, build
output, dependency caches) are skipped. A repo with nothing usable gets a
single `Core` domain owning everything.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from intentgate.config_loader import IntentConfig

# Directories that never become domains
SKIP_DIRS = {
    "node_modules", ".git", ".github", "dist", "build", "coverage",
    ".vscode", ".idea", ".cursor", "__pycache__", ".next", ".nuxt",
    "vendor", "target", "out", ".venv", "venv", "env", ".tox",
    ".mypy_cache", ".pytest_cache", ".ruff_cache",
    "policies", "contracts",
}

DEFAULT_POLICY = """intent 2.0

policy Default {

  violation CrossDomainTouch confidence high {
    when action.kind == "ModifyFile" && file.domain != null && file.domain != task.domain
    severity error
    message "PR touches {file.domain} but task is scoped to {task.domain}: {file.path}"
    suggest "Split into separate PR, or tag intentional-cross-domain with approval."
    except_when tagged "intentional-cross-domain" requires_approval "tech-lead"
  }

  violation UnknownDomainFile confidence high {
    when action.kind == "ModifyFile" && file.domain == null
    severity error
    message "File {file.path} is not mapped to any domain."
    suggest "Map this file to a domain in system.intent via paths allow."
  }
}
"""


@dataclass
class DomainDraft:
    name: str
    globs: list[str]


@dataclass
class InitResult:
    system_path: Path
    policy_path: Path
    domains: list[DomainDraft]
    wrote_system: bool
    wrote_policy: bool


def camel_case(name: str) -> str:
    return name[:1].upper() + re.sub(r"[-_](\w)", lambda m: m.group(1).upper(), name[1:])


def sanitize_name(name: str) -> str:
    cleaned = camel_case(re.sub(r"[^a-zA-Z0-9_-]", "", name))
    cleaned = re.sub(r"[^a-zA-Z0-9_]", "", cleaned)
    if not cleaned or not (cleaned[0].isalpha() or cleaned[0] == "_"):
        cleaned = f"App{cleaned}"
    return cleaned


def infer_domains(repo_root: Path, skip: set[str] | frozenset[str] = frozenset()) -> list[DomainDraft]:
    """One domain per top-level directory, ignoring SKIP_DIRS and `skip`."""
    ignored = SKIP_DIRS | set(skip)
    domains: list[DomainDraft] = []
    by_name: dict[str, DomainDraft] = {}
    for entry in sorted(repo_root.iterdir(), key=lambda p: p.name):
        if entry.name.startswith(".") or entry.name in ignored or not entry.is_dir():
            continue
        name = sanitize_name(entry.name)
        # `foo-bar` and `foo_bar` both become FooBar: one domain, two globs
        if name in by_name:
            by_name[name].globs.append(f"{entry.name}/**")
            continue
        by_name[name] = DomainDraft(name=name, globs=[f"{entry.name}/**"])
        domains.append(by_name[name])

    if not domains:
        domains.append(DomainDraft(name="Core", globs=["**"]))
    return domains


def render_system(
    system_name: str,
    domains: list[DomainDraft],
    policy_import: str = "policies/default.intent",
) -> str:
    blocks = []
    for d in domains:
        globs = ", ".join(f'"{g}"' for g in d.globs)
        blocks.append(f"domain {d.name} {{\n  paths allow {globs}\n}}")

    return (
        "intent 2.0\n\n"
        f"system {system_name}\n\n"
        f'import "{policy_import}"\n\n'
        + "\n\n".join(blocks)
        + "\n"
    )


def init_repo(
    repo_root: Path, force: bool = False, config: IntentConfig | None = None
) -> InitResult:
    """Write the starter specs where `config.paths` says the controller will look."""
    config = config or IntentConfig()
    repo_root = repo_root.resolve()
    system_path = repo_root / config.paths.system_file
    policy_path = repo_root / config.paths.policy_dir / "default.intent"
    domains = infer_domains(repo_root, skip={Path(config.paths.policy_dir).parts[0]})

    wrote_system = force or not system_path.exists()
    if wrote_system:
        policy_import = policy_path.relative_to(repo_root).as_posix()
        system_path.parent.mkdir(parents=True, exist_ok=True)
        system_path.write_text(
            render_system(sanitize_name(repo_root.name), domains, policy_import),
            encoding="utf-8",
        )
        logger.info(f"[INIT] Wrote {system_path} ({len(domains)} domains)")

    wrote_policy = force or not policy_path.exists()
    if wrote_policy:
        policy_path.parent.mkdir(parents=True, exist_ok=True)
        policy_path.write_text(DEFAULT_POLICY, encoding="utf-8")
        logger.info(f"[INIT] Wrote {policy_path}")

    return InitResult(
        system_path=system_path,
        policy_path=policy_path,
        domains=domains,
        wrote_system=wrote_system,
        wrote_policy=wrote_policy,
    )
