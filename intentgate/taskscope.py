"""
INTENT Task Scope

Works out which domain the current PR is meant to touch.

Sources, first hit wins:
  1. --scope on the command line            -> cli_override
  2. `INTENT-SCOPE: <Domain>` in the PR body -> pr_header
  3. a `domain:<Domain>` label               -> issue_label
  4. `/intent scope <Domain>` in the PR body -> slash_command
  5. majority domain of the changed files    -> inferred
  6. nothing                                 -> unknown

Tags always come from an `INTENT-TAGS: a, b` line in the PR body.
"""

from __future__ import annotations

import json
import os
import re
from collections import Counter
from pathlib import Path
from typing import Sequence

from loguru import logger

from intentgate.governance.models import Action, Task

SCOPE_HEADER_RE = re.compile(r"^INTENT-SCOPE:\s*(\S+)", re.MULTILINE)
TAGS_HEADER_RE = re.compile(r"^INTENT-TAGS:\s*(.+)", re.MULTILINE)
SLASH_COMMAND_RE = re.compile(r"^/intent\s+scope\s+(\S+)", re.MULTILINE)
DOMAIN_LABEL_RE = re.compile(r"^domain:(\S+)$")


def parse_tags(body: str) -> list[str]:
    m = TAGS_HEADER_RE.search(body)
    if not m:
        return []
    return [t.strip() for t in m.group(1).split(",") if t.strip()]


def read_pr_body() -> str:
    """PR body from the GitHub event payload, or the PR_BODY variable."""
    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if event_path and Path(event_path).is_file():
        try:
            event = json.loads(Path(event_path).read_text(encoding="utf-8"))
            # a parsed payload is authoritative, even when the body is null
            return (event.get("pull_request") or {}).get("body") or ""
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"[SCOPE] Could not read event payload {event_path}: {e}")
    return os.environ.get("PR_BODY", "")


def infer_domain(actions: Sequence[Action]) -> str | None:
    """Most common file domain; ties go to the alphabetically first name."""
    counts = Counter(a.file_domain for a in actions if a.file_domain)
    if not counts:
        return None
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[0][0]


def resolve_task_scope(
    scope_override: str | None = None,
    pr_body: str | None = None,
    labels: Sequence[str] | None = None,
    actions: Sequence[Action] | None = None,
    default_tags: Sequence[str] = (),
) -> Task:
    body = pr_body if pr_body is not None else read_pr_body()
    tags = list(dict.fromkeys([*default_tags, *parse_tags(body)]))

    task = _resolve(scope_override, body, labels or [], actions or [], tags)
    logger.info(f"[SCOPE] domain={task.domain} source={task.source} tags={task.tags}")
    return task


def _resolve(
    scope_override: str | None,
    body: str,
    labels: Sequence[str],
    actions: Sequence[Action],
    tags: list[str],
) -> Task:
    if scope_override:
        return Task(domain=scope_override, tags=tags, source="cli_override")

    m = SCOPE_HEADER_RE.search(body)
    if m:
        return Task(domain=m.group(1), tags=tags, source="pr_header")

    for label in labels:
        lm = DOMAIN_LABEL_RE.match(label)
        if lm:
            return Task(domain=lm.group(1), tags=tags, source="issue_label")

    m = SLASH_COMMAND_RE.search(body)
    if m:
        return Task(domain=m.group(1), tags=tags, source="slash_command")

    inferred = infer_domain(actions)
    if inferred:
        return Task(domain=inferred, tags=tags, source="inferred")

    return Task(domain=None, tags=tags, source="unknown")
