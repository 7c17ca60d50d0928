from __future__ import annotations

import pytest

from intentgate.dsl import ParseError, parse_policy
from intentgate.dsl.ast import And, Compare, FieldRef, Literal, Null, field_paths


def wrap(body: str) -> str:
    return f"intent 2.0\n\npolicy P {{\n{body}\n}}\n"


def rule(body: str, header: str = "violation R confidence high"):
    spec = parse_policy(wrap(f"  {header} {{\n{body}\n  }}"))
    return spec.rules()[0]


def test_fixture_parses(policy_spec):
    assert policy_spec.intent_version == "2.0"
    assert [p.name for p in policy_spec.policies] == ["Default"]
    codes = [r.code for r in policy_spec.rules()]
    assert codes == ["CrossDomainTouch", "UnknownDomainFile", "CrossDomainImport"]


def test_inline_bypass_with_approval(policy_spec):
    touch = policy_spec.rules()[0]
    assert touch.confidence == "high"
    assert touch.severity == "error"
    assert touch.except_when_tagged == "intentional-cross-domain"
    assert touch.requires_approval == "tech-lead"
    assert touch.suggest.startswith("Split into separate PR")


def test_standalone_requires_approval(policy_spec):
    imp = policy_spec.rules()[2]
    assert imp.confidence == "medium"
    assert imp.severity == "warn"
    assert imp.except_when_tagged is None
    assert imp.requires_approval == "staff-engineer"
    assert imp.suggest is None


def test_and_is_left_associative():
    r = rule('    when a == "1" && b == "2" && c == "3"\n    severity error\n    message "m"')
    assert isinstance(r.when, And)
    assert isinstance(r.when.left, And)
    assert r.when.right == Compare("==", FieldRef("c"), Literal("3"))
    assert r.when.left.left == Compare("==", FieldRef("a"), Literal("1"))


def test_operands():
    r = rule(
        '    when file.domain != null && action.kind == "ModifyFile" && 2 == 2.5\n'
        "    severity warn\n"
        '    message "m"'
    )
    first = r.when.left.left
    assert first == Compare("!=", FieldRef("file.domain"), Null())
    assert r.when.right == Compare("==", Literal(2), Literal(2.5))
    assert isinstance(r.when.right.left.value, int)
    assert isinstance(r.when.right.right.value, float)


def test_bare_field_is_a_predicate():
    r = rule('    when task.domain\n    severity info\n    message "m"')
    assert r.when == FieldRef("task.domain")


def test_keywords_allowed_as_field_segments():
    r = rule('    when policy.type == "x"\n    severity error\n    message "m"')
    assert r.when.left == FieldRef("policy.type")


def test_field_paths_in_source_order():
    r = rule('    when task.domain != file.domain && target.import == null\n    severity error\n    message "m"')
    assert field_paths(r.when) == ["task.domain", "file.domain", "target.import"]


def test_clauses_in_any_order():
    r = rule(
        '    message "late {file.path}"\n'
        '    auto_fix "map-domain"\n'
        "    severity info\n"
        '    when file.domain == null'
    )
    assert r.message == "late {file.path}"
    assert r.auto_fix == "map-domain"
    assert r.severity == "info"


def test_multiple_policies_in_one_file():
    spec = parse_policy(
        "intent 2.0\n"
        'policy A {\n violation X confidence low { when a\n severity info\n message "x" }\n}\n'
        'policy B {\n violation Y confidence low { when b\n severity info\n message "y" }\n}\n'
    )
    assert [p.name for p in spec.policies] == ["A", "B"]
    assert [r.code for r in spec.rules()] == ["X", "Y"]


def test_empty_policy_allowed():
    spec = parse_policy("intent 2.0\npolicy Empty {\n}\n")
    assert spec.policies[0].violations == ()


@pytest.mark.parametrize(
    "body, missing",
    [
        ('    severity error\n    message "m"', "missing 'when' clause"),
        ('    when a\n    message "m"', "missing 'severity'"),
        ("    when a\n    severity error", "missing 'message'"),
    ],
)
def test_missing_required_clause(body, missing):
    with pytest.raises(ParseError, match=missing) as exc:
        parse_policy(wrap(f"  violation R confidence high {{\n{body}\n  }}"), "p.intent")
    # reported at the `violation` keyword
    assert (exc.value.line, exc.value.col) == (4, 3)


def test_duplicate_clause_rejected():
    with pytest.raises(ParseError, match="more than one 'severity'"):
        rule("    when a\n    severity error\n    severity warn\n    message \"m\"")


def test_requires_approval_counted_once():
    with pytest.raises(ParseError, match="more than one 'requires_approval'"):
        rule(
            '    when a\n    severity error\n    message "m"\n'
            '    except_when tagged "t" requires_approval "lead"\n'
            '    requires_approval "other"'
        )


def test_invalid_confidence():
    with pytest.raises(ParseError, match="Invalid confidence level for 'R'"):
        rule('    when a\n    severity error\n    message "m"', header="violation R confidence certain")


def test_invalid_severity():
    with pytest.raises(ParseError, match="Invalid severity for 'R'"):
        rule('    when a\n    severity fatal\n    message "m"')


def test_unknown_clause():
    with pytest.raises(ParseError, match="Unexpected token in violation 'R'"):
        rule('    when a\n    severity error\n    message "m"\n    owner "me"')


def test_non_violation_in_policy():
    with pytest.raises(ParseError, match="Expected 'violation' in policy 'P'"):
        parse_policy(wrap("  rule R {}"))


def test_missing_policy():
    with pytest.raises(ParseError, match="Expected 'policy' declaration"):
        parse_policy("intent 2.0\n")


def test_dangling_and():
    with pytest.raises(ParseError, match="Expected identifier in field reference"):
        rule('    when a == "x" &&\n    severity error\n    message "m"')
