"""
INTENT DSL Errors

Lex and parse failures are fatal. Both carry the file, line and column
where the problem was found so CI logs point straight at the offending
character.
"""

from __future__ import annotations


class IntentSyntaxError(Exception):
    """Base class for positioned errors raised while reading .intent files."""

    def __init__(self, detail: str, filename: str, line: int, col: int):
        self.detail = detail
        self.filename = filename
        self.line = line
        self.col = col
        super().__init__(f"{filename}:{line}:{col}: {detail}")


class LexError(IntentSyntaxError):
    """Unexpected character or unterminated string."""
    pass


class ParseError(IntentSyntaxError):
    """Grammar violation or a violation block missing a required clause."""
    pass
