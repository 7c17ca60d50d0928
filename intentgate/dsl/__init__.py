"""
INTENT DSL: tokenizer, parsers, AST and validator for .intent files.
"""

from intentgate.dsl.errors import IntentSyntaxError, LexError, ParseError
from intentgate.dsl.lexer import Token, TokenKind, tokenize
from intentgate.dsl.policy_parser import parse_policy
from intentgate.dsl.system_parser import parse_system
from intentgate.dsl.validate import unknown_field_warnings, validate_policy, validate_system

__all__ = [
    "IntentSyntaxError",
    "LexError",
    "ParseError",
    "Token",
    "TokenKind",
    "tokenize",
    "parse_policy",
    "parse_system",
    "unknown_field_warnings",
    "validate_policy",
    "validate_system",
]
