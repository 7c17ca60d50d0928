"""
INTENT Validator

Semantic checks over parsed specs. Problems are collected, never raised,
so one run reports everything wrong with a spec. Callers treat a
non-empty list as fatal.
"""

from __future__ import annotations

from loguru import logger

from intentgate.dsl.ast import CONTEXT_FIELDS, PolicySpec, SystemSpec, field_paths


def validate_system(spec: SystemSpec) -> list[str]:
    errors: list[str] = []

    if not spec.intent_version:
        errors.append("Missing 'intent' version declaration.")
    if not spec.system_name:
        errors.append("Missing 'system' name declaration.")
    if not spec.domains:
        errors.append("At least one domain must be declared.")

    known = {d.name for d in spec.domains}
    seen: set[str] = set()
    for domain in spec.domains:
        if domain.name in seen:
            errors.append(f"Duplicate domain name: '{domain.name}'.")
        seen.add(domain.name)

        if not domain.allow_globs:
            errors.append(f"Domain '{domain.name}' has no 'paths allow' globs.")
        for dep in domain.depends_on:
            if dep not in known:
                errors.append(
                    f"Domain '{domain.name}' depends on unknown domain '{dep}'."
                )

    if errors:
        logger.debug(f"[VALIDATE] system {spec.system_name}: {len(errors)} errors")
    return errors


def validate_policy(spec: PolicySpec) -> list[str]:
    errors: list[str] = []

    if not spec.intent_version:
        errors.append("Missing 'intent' version declaration.")

    for policy in spec.policies:
        codes: set[str] = set()
        for rule in policy.violations:
            if rule.code in codes:
                errors.append(
                    f"Policy '{policy.name}': duplicate violation code '{rule.code}'."
                )
            codes.add(rule.code)

    if errors:
        logger.debug(f"[VALIDATE] policy spec: {len(errors)} errors")
    return errors


def unknown_field_warnings(spec: PolicySpec) -> list[str]:
    """
    Predicate fields outside the evaluation context. These are not errors
    (the engine resolves them to null) but are almost always typos.
    """
    warnings = []
    for policy in spec.policies:
        for rule in policy.violations:
            for path in field_paths(rule.when):
                if path not in CONTEXT_FIELDS:
                    warnings.append(
                        f"Policy '{policy.name}', violation '{rule.code}': "
                        f"field '{path}' is not a known context field and is always null."
                    )
    return warnings
