"""
INTENT Policy Parser

Recursive-descent parser for policies/*.intent:

    intent 2.0

    policy Default {
      violation CrossDomainTouch confidence high {
        when action.kind == "ModifyFile" && file.domain != task.domain
        severity error
        message "PR touches {file.domain} but task is scoped to {task.domain}"
        suggest "Split into separate PR."
        except_when tagged "intentional-cross-domain" requires_approval "tech-lead"
      }
    }

Predicate grammar, lowest precedence first:

    predicate  := comparison ('&&' comparison)*      left-associative
    comparison := atom [('==' | '!=') atom]
    atom       := STRING | NUMBER | 'null' | field
    field      := name ('.' name)*                   name is IDENT or KEYWORD

A violation block without `when`, `severity` or `message` is rejected
here, not by the validator.
"""

from __future__ import annotations

from loguru import logger

from intentgate.dsl.ast import (
    CONFIDENCE_LEVELS,
    SEVERITY_LEVELS,
    And,
    Compare,
    FieldRef,
    Literal,
    Null,
    Operand,
    Policy,
    PolicySpec,
    Predicate,
    ViolationRule,
)
from intentgate.dsl.lexer import Token, TokenKind, tokenize
from intentgate.dsl.stream import TokenStream


def _number(text: str) -> int | float:
    return float(text) if "." in text else int(text)


class PolicyParser:
    def __init__(self, source: str, filename: str):
        self.ts = TokenStream(tokenize(source, filename), filename)

    def parse(self) -> PolicySpec:
        ts = self.ts
        ts.skip_newlines()

        ts.eat_keyword("intent")
        intent_version = ts.eat(TokenKind.NUMBER).text
        ts.end_statement()

        policies = [self._parse_policy()]
        while not ts.at(TokenKind.EOF):
            policies.append(self._parse_policy())

        return PolicySpec(intent_version=intent_version, policies=tuple(policies))

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _parse_policy(self) -> Policy:
        ts = self.ts
        if not ts.at_keyword("policy"):
            raise ts.error("Expected 'policy' declaration")
        ts.advance()
        name = ts.eat(TokenKind.IDENT).text
        ts.skip_newlines()
        ts.eat(TokenKind.LBRACE)
        ts.skip_newlines()

        violations = []
        while not ts.at(TokenKind.RBRACE):
            if not ts.at_keyword("violation"):
                raise ts.error(f"Expected 'violation' in policy '{name}'")
            violations.append(self._parse_violation())

        ts.eat(TokenKind.RBRACE)
        ts.end_statement()
        return Policy(name=name, violations=tuple(violations))

    def _parse_violation(self) -> ViolationRule:
        ts = self.ts
        start = ts.eat_keyword("violation")
        code = ts.eat(TokenKind.IDENT).text

        ts.eat_keyword("confidence")
        level = ts.current
        if level.kind is not TokenKind.KEYWORD or level.text not in CONFIDENCE_LEVELS:
            raise ts.error(f"Invalid confidence level for '{code}'")
        ts.advance()

        ts.skip_newlines()
        ts.eat(TokenKind.LBRACE)
        ts.skip_newlines()

        clauses: dict[str, object] = {}

        def claim(clause: str, token: Token) -> None:
            if clause in clauses:
                raise ts.error(f"Violation '{code}' has more than one '{clause}'", token)

        while not ts.at(TokenKind.RBRACE):
            kw = ts.current
            if kw.kind is not TokenKind.KEYWORD:
                raise ts.error(f"Unexpected token in violation '{code}'")

            if kw.text == "when":
                claim("when", kw)
                ts.advance()
                clauses["when"] = self._parse_predicate()
            elif kw.text == "severity":
                claim("severity", kw)
                ts.advance()
                sev = ts.current
                if sev.kind is not TokenKind.KEYWORD or sev.text not in SEVERITY_LEVELS:
                    raise ts.error(f"Invalid severity for '{code}'")
                ts.advance()
                clauses["severity"] = sev.text
            elif kw.text in ("message", "suggest", "auto_fix"):
                claim(kw.text, kw)
                ts.advance()
                clauses[kw.text] = ts.eat(TokenKind.STRING).text
            elif kw.text == "except_when":
                claim("except_when", kw)
                ts.advance()
                ts.eat_keyword("tagged")
                clauses["except_when"] = ts.eat(TokenKind.STRING).text
                if ts.at_keyword("requires_approval"):
                    claim("requires_approval", ts.current)
                    ts.advance()
                    clauses["requires_approval"] = ts.eat(TokenKind.STRING).text
            elif kw.text == "requires_approval":
                claim("requires_approval", kw)
                ts.advance()
                clauses["requires_approval"] = ts.eat(TokenKind.STRING).text
            else:
                raise ts.error(f"Unexpected token in violation '{code}'")
            ts.end_statement()

        ts.eat(TokenKind.RBRACE)
        ts.end_statement()

        if "when" not in clauses:
            raise ts.error(f"Violation '{code}' missing 'when' clause", start)
        if "severity" not in clauses:
            raise ts.error(f"Violation '{code}' missing 'severity'", start)
        if "message" not in clauses:
            raise ts.error(f"Violation '{code}' missing 'message'", start)

        return ViolationRule(
            code=code,
            confidence=level.text,
            severity=clauses["severity"],
            when=clauses["when"],
            message=clauses["message"],
            suggest=clauses.get("suggest"),
            except_when_tagged=clauses.get("except_when"),
            requires_approval=clauses.get("requires_approval"),
            auto_fix=clauses.get("auto_fix"),
        )

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def _parse_predicate(self) -> Predicate:
        expr: Predicate = self._parse_comparison()
        while self.ts.try_eat(TokenKind.AND):
            expr = And(expr, self._parse_comparison())
        return expr

    def _parse_comparison(self) -> Predicate:
        left = self._parse_atom()
        if self.ts.try_eat(TokenKind.EQ):
            return Compare("==", left, self._parse_atom())
        if self.ts.try_eat(TokenKind.NEQ):
            return Compare("!=", left, self._parse_atom())
        return left

    def _parse_atom(self) -> Operand:
        ts = self.ts
        if ts.at(TokenKind.STRING):
            return Literal(ts.advance().text)
        if ts.at(TokenKind.NUMBER):
            return Literal(_number(ts.advance().text))
        if ts.at_keyword("null"):
            ts.advance()
            return Null()
        return self._parse_field()

    def _parse_field(self) -> FieldRef:
        ts = self.ts
        if not (ts.at(TokenKind.IDENT) or ts.at(TokenKind.KEYWORD)):
            raise ts.error("Expected identifier in field reference")
        parts = [ts.advance().text]
        while ts.try_eat(TokenKind.DOT):
            if not (ts.at(TokenKind.IDENT) or ts.at(TokenKind.KEYWORD)):
                raise ts.error("Expected identifier after '.'")
            parts.append(ts.advance().text)
        return FieldRef(".".join(parts))


def parse_policy(source: str, filename: str = "policy.intent") -> PolicySpec:
    """
    Parse a policy file into a PolicySpec.

    Raises:
        LexError / ParseError: positioned at the offending token.
    """
    spec = PolicyParser(source, filename).parse()
    logger.debug(
        f"[PARSE] {filename}: {len(spec.policies)} policies, "
        f"{len(spec.rules())} violation rules"
    )
    return spec
