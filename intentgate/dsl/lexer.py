"""
INTENT Tokenizer

Turns raw .intent source into a flat token stream for the two
recursive-descent parsers.

Rules:
  - `//` starts a comment that runs to the end of the line
  - newlines are significant (statement terminators) but runs of them
    collapse into a single NEWLINE token
  - strings are double-quoted; a backslash escapes whatever follows it
  - numbers are a digit run with an optional `.digits` fraction
  - identifier runs that hit the keyword set become KEYWORD tokens

The stream always ends with exactly one EOF token.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from intentgate.dsl.errors import LexError

KEYWORDS = frozenset({
    "intent", "system", "domain", "import", "paths", "allow", "depends_on",
    "policy", "violation", "confidence", "when", "severity", "message",
    "suggest", "except_when", "tagged", "requires_approval", "auto_fix",
    "type", "contract", "stability", "fields", "operations",
    "null", "high", "medium", "low", "error", "warn", "info",
    "stable", "unstable", "experimental",
})

DIGITS = frozenset("0123456789")
IDENT_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
IDENT_CHARS = IDENT_START | DIGITS
WHITESPACE = frozenset(" \t\r")


class TokenKind(str, Enum):
    KEYWORD = "KEYWORD"
    IDENT = "IDENT"
    STRING = "STRING"
    NUMBER = "NUMBER"
    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COMMA = "COMMA"
    COLON = "COLON"
    DOT = "DOT"
    ARROW = "ARROW"
    QUESTION = "QUESTION"
    EQ = "EQ"
    NEQ = "NEQ"
    AND = "AND"
    NEWLINE = "NEWLINE"
    EOF = "EOF"


SINGLE_CHAR = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    ".": TokenKind.DOT,
    "?": TokenKind.QUESTION,
}

TWO_CHAR = {
    "->": TokenKind.ARROW,
    "==": TokenKind.EQ,
    "!=": TokenKind.NEQ,
    "&&": TokenKind.AND,
}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    col: int

    def is_keyword(self, word: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.text == word

    def describe(self) -> str:
        if self.kind is TokenKind.NEWLINE:
            return "NEWLINE"
        if self.kind is TokenKind.EOF:
            return "end of input"
        return f"{self.kind.value} '{self.text}'"


class _Scanner:
    """Character cursor that tracks line/column as it advances."""

    def __init__(self, source: str, filename: str):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []

    @property
    def done(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else ""

    def advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def emit(self, kind: TokenKind, text: str, line: int, col: int) -> None:
        self.tokens.append(Token(kind, text, line, col))

    def error(self, detail: str, line: int | None = None, col: int | None = None) -> LexError:
        return LexError(
            detail,
            self.filename,
            self.line if line is None else line,
            self.col if col is None else col,
        )

    # ------------------------------------------------------------------
    # Scanners for multi-character tokens
    # ------------------------------------------------------------------

    def scan_string(self) -> None:
        line, col = self.line, self.col
        self.advance()  # opening quote
        chars = []
        while not self.done and self.peek() != '"':
            if self.peek() == "\\":
                self.advance()
                if self.done:
                    break
            chars.append(self.advance())
        if self.done:
            raise self.error("Unterminated string literal", line, col)
        self.advance()  # closing quote
        self.emit(TokenKind.STRING, "".join(chars), line, col)

    def scan_number(self) -> None:
        line, col = self.line, self.col
        chars = []
        while self.peek() in DIGITS:
            chars.append(self.advance())
        if self.peek() == "." and self.peek(1) in DIGITS:
            chars.append(self.advance())
            while self.peek() in DIGITS:
                chars.append(self.advance())
        self.emit(TokenKind.NUMBER, "".join(chars), line, col)

    def scan_word(self) -> None:
        line, col = self.line, self.col
        chars = []
        while self.peek() in IDENT_CHARS:
            chars.append(self.advance())
        word = "".join(chars)
        kind = TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENT
        self.emit(kind, word, line, col)


def tokenize(source: str, filename: str = "<unknown>") -> list[Token]:
    """
    Tokenize .intent source.

    Raises:
        LexError: on an unexpected character or an unterminated string.
    """
    sc = _Scanner(source, filename)

    while not sc.done:
        ch = sc.peek()

        if ch == "/" and sc.peek(1) == "/":
            while not sc.done and sc.peek() != "\n":
                sc.advance()
            continue

        if ch == "\n":
            line, col = sc.line, sc.col
            sc.advance()
            if sc.tokens and sc.tokens[-1].kind is not TokenKind.NEWLINE:
                sc.emit(TokenKind.NEWLINE, "\n", line, col)
            continue

        if ch in WHITESPACE:
            sc.advance()
            continue

        pair = ch + sc.peek(1)
        if pair in TWO_CHAR:
            line, col = sc.line, sc.col
            sc.advance()
            sc.advance()
            sc.emit(TWO_CHAR[pair], pair, line, col)
            continue

        if ch in SINGLE_CHAR:
            line, col = sc.line, sc.col
            sc.advance()
            sc.emit(SINGLE_CHAR[ch], ch, line, col)
            continue

        if ch == '"':
            sc.scan_string()
            continue

        if ch in DIGITS:
            sc.scan_number()
            continue

        if ch in IDENT_START:
            sc.scan_word()
            continue

        raise sc.error(f"Unexpected character: {ch!r}")

    sc.emit(TokenKind.EOF, "", sc.line, sc.col)
    logger.debug(f"[LEX] {filename}: {len(sc.tokens)} tokens")
    return sc.tokens
