"""
INTENT Domain Resolver

Maps a changed file to the domain that owns it.

Globs from `paths allow` compile to anchored regexes:
  - `**/`  zero or more leading path segments
  - `**`   anything, separators included
  - `*`    a run of characters without `/`
  - `?`    exactly one character that is not `/`

Everything else matches literally.

When several domains claim a file, the longest matching glob wins. Equal
lengths fall back to the alphabetically first domain name.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Sequence

from intentgate.dsl.ast import Domain


@lru_cache(maxsize=1024)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.+/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif ch == "*":
            parts.append("[^/]*")
            i += 1
        elif ch == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(ch))
            i += 1
    return re.compile(r"\A" + "".join(parts) + r"\Z")


def glob_matches(pattern: str, path: str) -> bool:
    return glob_to_regex(pattern).match(path) is not None


def resolve_domain(path: str, domains: Sequence[Domain]) -> str | None:
    best: str | None = None
    best_len = -1

    for domain in domains:
        for pattern in domain.allow_globs:
            if not glob_matches(pattern, path):
                continue
            if len(pattern) > best_len:
                best, best_len = domain.name, len(pattern)
            elif len(pattern) == best_len and domain.name < best:
                best = domain.name

    return best
