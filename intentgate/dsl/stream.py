"""
INTENT Token Stream

One-token-lookahead cursor shared by the system and policy parsers.
"""

from __future__ import annotations

from intentgate.dsl.errors import ParseError
from intentgate.dsl.lexer import Token, TokenKind


class TokenStream:
    def __init__(self, tokens: list[Token], filename: str):
        self.tokens = tokens
        self.filename = filename
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def at(self, kind: TokenKind, text: str | None = None) -> bool:
        tok = self.current
        return tok.kind is kind and (text is None or tok.text == text)

    def at_keyword(self, word: str) -> bool:
        return self.current.is_keyword(word)

    def advance(self) -> Token:
        tok = self.current
        if tok.kind is not TokenKind.EOF:
            self.pos += 1
        return tok

    def error(self, detail: str, token: Token | None = None) -> ParseError:
        tok = token or self.current
        return ParseError(
            f"{detail} (got {tok.describe()})", self.filename, tok.line, tok.col
        )

    def eat(self, kind: TokenKind, text: str | None = None) -> Token:
        if not self.at(kind, text):
            expected = f"{kind.value} '{text}'" if text is not None else kind.value
            raise self.error(f"Expected {expected}")
        return self.advance()

    def eat_keyword(self, word: str) -> Token:
        return self.eat(TokenKind.KEYWORD, word)

    def try_eat(self, kind: TokenKind, text: str | None = None) -> Token | None:
        if self.at(kind, text):
            return self.advance()
        return None

    def eat_name(self) -> Token:
        """A name position that also accepts reserved words."""
        if self.at(TokenKind.IDENT) or self.at(TokenKind.KEYWORD):
            return self.advance()
        raise self.error("Expected identifier")

    def skip_newlines(self) -> None:
        while self.at(TokenKind.NEWLINE):
            self.pos += 1

    def end_statement(self) -> None:
        """
        A statement ends at a newline. A closing brace or end of input may
        also follow directly, so `domain X { paths allow "x/**" }` reads as
        one statement inside the block.
        """
        if self.at(TokenKind.NEWLINE):
            self.skip_newlines()
            return
        if self.at(TokenKind.RBRACE) or self.at(TokenKind.EOF):
            return
        raise self.error("Expected end of statement")
