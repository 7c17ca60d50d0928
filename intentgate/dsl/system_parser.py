"""
INTENT System Parser

Recursive-descent parser for system.intent, the topology language:

    intent 2.0
    system Shop

    import "policies/default.intent"

    domain Billing {
      paths allow "app/billing/**", "lib/billing/**"
      depends_on Identity
    }

Purely structural. Duplicate names and dangling `depends_on` targets are
left for the validator.
"""

from __future__ import annotations

from loguru import logger

from intentgate.dsl.ast import Domain, SystemSpec
from intentgate.dsl.lexer import TokenKind, tokenize
from intentgate.dsl.stream import TokenStream


class SystemParser:
    def __init__(self, source: str, filename: str):
        self.ts = TokenStream(tokenize(source, filename), filename)

    def parse(self) -> SystemSpec:
        ts = self.ts
        ts.skip_newlines()

        intent_version = self._parse_version()
        system_name = self._parse_system_name()
        imports = self._parse_imports()

        domains = [self._parse_domain()]
        while not ts.at(TokenKind.EOF):
            domains.append(self._parse_domain())

        return SystemSpec(
            intent_version=intent_version,
            system_name=system_name,
            imports=tuple(imports),
            domains=tuple(domains),
        )

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def _parse_version(self) -> str:
        self.ts.eat_keyword("intent")
        version = self.ts.eat(TokenKind.NUMBER).text
        self.ts.end_statement()
        return version

    def _parse_system_name(self) -> str:
        self.ts.eat_keyword("system")
        name = self.ts.eat_name().text
        self.ts.end_statement()
        return name

    def _parse_imports(self) -> list[str]:
        imports = []
        while self.ts.at_keyword("import"):
            self.ts.advance()
            imports.append(self.ts.eat(TokenKind.STRING).text)
            self.ts.end_statement()
        return imports

    # ------------------------------------------------------------------
    # Domain blocks
    # ------------------------------------------------------------------

    def _parse_domain(self) -> Domain:
        ts = self.ts
        if not ts.at_keyword("domain"):
            raise ts.error("Expected 'domain' declaration")
        ts.advance()
        name = ts.eat(TokenKind.IDENT).text
        ts.skip_newlines()
        ts.eat(TokenKind.LBRACE)
        ts.skip_newlines()

        allow_globs: list[str] = []
        depends_on: list[str] = []

        while not ts.at(TokenKind.RBRACE):
            if ts.at_keyword("paths"):
                ts.advance()
                ts.eat_keyword("allow")
                allow_globs.append(ts.eat(TokenKind.STRING).text)
                while ts.try_eat(TokenKind.COMMA):
                    allow_globs.append(ts.eat(TokenKind.STRING).text)
            elif ts.at_keyword("depends_on"):
                ts.advance()
                depends_on.append(ts.eat(TokenKind.IDENT).text)
            else:
                raise ts.error(f"Unexpected token in domain '{name}'")
            ts.end_statement()

        ts.eat(TokenKind.RBRACE)
        ts.end_statement()

        return Domain(
            name=name,
            allow_globs=tuple(allow_globs),
            depends_on=tuple(depends_on),
        )


def parse_system(source: str, filename: str = "system.intent") -> SystemSpec:
    """
    Parse system.intent source into a SystemSpec.

    Raises:
        LexError / ParseError: positioned at the offending token.
    """
    spec = SystemParser(source, filename).parse()
    logger.debug(
        f"[PARSE] {filename}: system {spec.system_name}, "
        f"{len(spec.domains)} domains, {len(spec.imports)} imports"
    )
    return spec
