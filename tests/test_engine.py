from __future__ import annotations

import pytest

from intentgate.dsl import parse_policy
from intentgate.dsl.ast import And, Compare, FieldRef, Literal, Null
from intentgate.governance import Action, Hunk, Task, evaluate
from intentgate.governance.engine import (
    EvalContext,
    compute_status,
    effective_severity,
    eval_predicate,
    interpolate,
)


def policy(*rules: str):
    return parse_policy("intent 2.0\npolicy P {\n" + "\n".join(rules) + "\n}\n")


def simple_rule(code: str, confidence: str, severity: str, when: str = 'action.kind == "ModifyFile"',
                extra: str = "") -> str:
    return (
        f"  violation {code} confidence {confidence} {{\n"
        f"    when {when}\n"
        f"    severity {severity}\n"
        f'    message "{code} on {{file.path}}"\n'
        f"{extra}"
        "  }"
    )


def action(path: str, domain: str | None, **kw) -> Action:
    return Action(path=path, file_domain=domain, **kw)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def ctx(**kw) -> EvalContext:
    return EvalContext(
        kw.pop("action", action("app/billing/x.ts", "Billing")),
        kw.pop("task", Task(domain="Identity", tags=["a", "b"], source="cli_override")),
    )


def test_compare_and_null():
    c = ctx()
    assert eval_predicate(Compare("==", FieldRef("file.domain"), Literal("Billing")), c)
    assert eval_predicate(Compare("!=", FieldRef("file.domain"), FieldRef("task.domain")), c)
    assert eval_predicate(Compare("!=", FieldRef("file.domain"), Null()), c)
    assert eval_predicate(Compare("==", FieldRef("source.domain"), Null()), c)


def test_no_type_coercion():
    c = ctx()
    assert not eval_predicate(Compare("==", Literal("2"), Literal(2)), c)
    assert eval_predicate(Compare("==", Literal(2), Literal(2.0)), c)


def test_bare_operands_are_truthiness():
    c = ctx()
    assert eval_predicate(FieldRef("file.domain"), c)
    assert not eval_predicate(FieldRef("source.domain"), c)
    assert not eval_predicate(Null(), c)
    assert eval_predicate(Literal("x"), c)
    assert not eval_predicate(Literal(""), c)


def test_and_short_circuits_to_false():
    c = ctx()
    yes = Compare("==", Literal(1), Literal(1))
    no = Compare("==", Literal(1), Literal(2))
    assert eval_predicate(And(yes, yes), c)
    assert not eval_predicate(And(yes, no), c)
    assert not eval_predicate(And(no, yes), c)


def test_unknown_field_is_null_and_recorded():
    c = ctx()
    assert eval_predicate(Compare("==", FieldRef("file.domian"), Null()), c)
    assert c.unresolved == {"file.domian"}


def test_unknown_node_raises():
    with pytest.raises(TypeError):
        eval_predicate(object(), ctx())


def test_both_action_aliases_resolve():
    c = ctx()
    assert c.lookup("action.fileDomain") == c.lookup("file.domain") == "Billing"
    assert c.lookup("action.path") == c.lookup("file.path") == "app/billing/x.ts"


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------

def test_interpolate_values_nulls_and_lists():
    c = ctx(task=Task(domain=None, tags=["x", "y"]))
    out = interpolate("{file.path} in {file.domain} for {task.domain} tags={task.tags}", c)
    assert out == "app/billing/x.ts in Billing for <task.domain> tags=x,y"


def test_interpolate_unknown_placeholder_renders_as_null():
    assert interpolate("see { nope }", ctx()) == "see <nope>"


def test_interpolate_leaves_plain_text():
    assert interpolate("no placeholders here", ctx()) == "no placeholders here"


# ---------------------------------------------------------------------------
# Severity and status
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "severity, confidence, bypassed, expected",
    [
        ("error", "high", False, "error"),
        ("error", "medium", False, "warn"),
        ("error", "low", False, "info"),
        ("warn", "medium", False, "warn"),
        ("warn", "low", False, "info"),
        ("info", "high", False, "info"),
        ("error", "high", True, "warn"),
        ("info", "low", True, "warn"),
    ],
)
def test_effective_severity(severity, confidence, bypassed, expected):
    assert effective_severity(severity, confidence, bypassed) == expected


def test_pass_when_clean_and_scoped():
    assert compute_status([], Task(domain="Billing", source="pr_header")) == "pass"


def test_unknown_scope_with_no_violations_warns():
    assert compute_status([], Task()) == "warn"


# ---------------------------------------------------------------------------
# evaluate()
# ---------------------------------------------------------------------------

def test_high_error_blocks(policy_spec):
    result = evaluate(
        policy_specs=[policy_spec],
        actions=[action("app/billing/x.ts", "Billing")],
        task=Task(domain="Identity", source="pr_header"),
    )
    assert result.status == "blocked"
    [v] = result.violations
    assert v.code == "CrossDomainTouch"
    assert v.severity == "error"
    assert v.message == "PR touches Billing but task is scoped to Identity: app/billing/x.ts"
    assert v.remediation.actions == [v.suggest]
    assert v.bypassed is None


def test_bypass_downgrades_and_records_approval(policy_spec):
    result = evaluate(
        policy_specs=[policy_spec],
        actions=[action("app/billing/x.ts", "Billing")],
        task=Task(domain="Identity", tags=["intentional-cross-domain"], source="pr_header"),
    )
    assert result.status == "warn"
    [v] = result.violations
    assert v.severity == "warn"
    assert v.bypassed.tag == "intentional-cross-domain"
    assert v.bypassed.approval_required == "tech-lead"
    assert v.bypassed.approved is False


def test_bypass_never_blocks_even_among_warnings():
    spec = policy(
        simple_rule("Soft", "high", "warn"),
        simple_rule("Hard", "high", "error", extra='    except_when tagged "ok"\n'),
    )
    result = evaluate(
        policy_specs=[spec],
        actions=[action("a.ts", "A")],
        task=Task(domain="A", tags=["ok"], source="cli_override"),
    )
    assert result.status == "warn"
    assert {v.code for v in result.violations} == {"Soft", "Hard"}


def test_medium_confidence_error_does_not_block():
    spec = policy(simple_rule("Maybe", "medium", "error"))
    result = evaluate(
        policy_specs=[spec],
        actions=[action("a.ts", "A")],
        task=Task(domain="A", source="cli_override"),
    )
    assert result.status == "warn"
    assert result.violations[0].severity == "warn"


def test_low_confidence_becomes_info_and_still_warns():
    spec = policy(simple_rule("Hint", "low", "error"))
    result = evaluate(
        policy_specs=[spec],
        actions=[action("a.ts", "A")],
        task=Task(domain="A", source="cli_override"),
    )
    assert result.violations[0].severity == "info"
    assert result.status == "warn"


def test_blocked_wins_over_bypass_regardless_of_order(policy_spec):
    result = evaluate(
        policy_specs=[policy_spec],
        actions=[action("zzz/unmapped.ts", None), action("app/billing/x.ts", "Billing")],
        task=Task(domain="Identity", tags=["intentional-cross-domain"], source="pr_header"),
    )
    assert result.status == "blocked"


def test_unknown_domain_file(policy_spec):
    result = evaluate(
        policy_specs=[policy_spec],
        actions=[action("scripts/deploy.sh", None, hunks=[Hunk(old_start=3, old_lines=2, new_start=5, new_lines=4)])],
        task=Task(domain="Identity", source="pr_header"),
    )
    [v] = result.violations
    assert v.code == "UnknownDomainFile"
    assert v.evidence.first_hunk_line == 5
    assert v.evidence.file_domain is None
    assert v.evidence.as_dict() == {
        "path": "scripts/deploy.sh",
        "task_domain": "Identity",
        "first_hunk_line": 5,
    }


def test_null_task_domain_counts_as_cross_domain(policy_spec):
    result = evaluate(
        policy_specs=[policy_spec],
        actions=[action("app/billing/x.ts", "Billing")],
        task=Task(),
    )
    [v] = result.violations
    assert v.code == "CrossDomainTouch"
    assert v.message.endswith("scoped to <task.domain>: app/billing/x.ts")


def test_import_rules_ignore_modify_actions(policy_spec):
    result = evaluate(
        policy_specs=[policy_spec],
        actions=[action("app/auth/x.ts", "Identity")],
        task=Task(domain="Identity", source="pr_header"),
    )
    assert result.violations == []
    assert result.status == "pass"


def test_import_cross_domain_action(policy_spec):
    imp = Action(
        kind="ImportCrossDomain",
        path="app/messaging/send.ts",
        file_domain="Messaging",
        source_domain="Messaging",
        source_path="app/messaging/send.ts",
        target_domain="Billing",
        target_import="app/billing/api",
    )
    result = evaluate(
        policy_specs=[policy_spec],
        actions=[imp],
        task=Task(domain="Messaging", source="pr_header"),
    )
    [v] = result.violations
    assert v.code == "CrossDomainImport"
    assert v.severity == "warn"
    assert v.message == "Messaging imports app/billing/api from Billing"
    assert result.status == "warn"


def test_ordering_severity_then_path_then_code():
    spec = policy(
        simple_rule("Bravo", "high", "warn"),
        simple_rule("Alpha", "high", "warn"),
        simple_rule("Info", "low", "warn"),
        simple_rule("Err", "high", "error"),
    )
    result = evaluate(
        policy_specs=[spec],
        actions=[action("b.ts", "A"), action("a.ts", "A")],
        task=Task(domain="A", source="cli_override"),
    )
    order = [(v.severity, v.evidence.path, v.code) for v in result.violations]
    assert order == [
        ("error", "a.ts", "Err"),
        ("error", "b.ts", "Err"),
        ("warn", "a.ts", "Alpha"),
        ("warn", "a.ts", "Bravo"),
        ("warn", "b.ts", "Alpha"),
        ("warn", "b.ts", "Bravo"),
        ("info", "a.ts", "Info"),
        ("info", "b.ts", "Info"),
    ]


def test_rule_can_match_many_actions_and_policies_stack(policy_spec):
    extra = policy(simple_rule("Touched", "high", "info"))
    result = evaluate(
        policy_specs=[policy_spec, extra],
        actions=[action("app/auth/a.ts", "Identity"), action("app/auth/b.ts", "Identity")],
        task=Task(domain="Identity", source="pr_header"),
    )
    assert [v.code for v in result.violations] == ["Touched", "Touched"]
    assert result.status == "warn"


def test_evaluation_is_deterministic(policy_spec):
    kwargs = dict(
        policy_specs=[policy_spec],
        actions=[
            action("zzz.ts", None),
            action("app/billing/x.ts", "Billing"),
            action("app/messaging/y.ts", "Messaging"),
        ],
        task=Task(domain="Identity", source="inferred"),
    )
    first = evaluate(**kwargs).model_dump_json()
    assert all(evaluate(**kwargs).model_dump_json() == first for _ in range(3))


def test_no_actions():
    result = evaluate(policy_specs=[], actions=[], task=Task(domain="A", source="cli_override"))
    assert result.violations == []
    assert result.status == "pass"
