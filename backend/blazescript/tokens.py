"""Token kinds, keywords and type names shared by the lexer and parser."""

from enum import Enum
from typing import Any, Optional

from .errors import Position


class TokenKind(Enum):
    INT = "Int"
    FLOAT = "Float"
    STRING = "String"
    CHAR = "Char"
    PLUS = "Plus"
    MINUS = "Minus"
    MULTIPLY = "Multiply"
    DIVIDE = "Divide"
    POWER = "Power"
    LEFT_PAREN = "LeftParen"
    RIGHT_PAREN = "RightParen"
    COLON = "Colon"
    COMMA = "Comma"
    ARROW = "Arrow"
    EQUALS = "Equals"
    DOUBLE_EQUALS = "DoubleEquals"
    NOT_EQUALS = "NotEquals"
    LESS_THAN = "LessThan"
    LESS_THAN_EQUALS = "LessThanEquals"
    GREATER_THAN = "GreaterThan"
    GREATER_THAN_EQUALS = "GreaterThanEquals"
    KEYWORD = "Keyword"
    IDENTIFIER = "Identifier"
    NEWLINE = "Newline"
    EOF = "Eof"


KEYWORDS = (
    "val",
    "var",
    "and",
    "or",
    "not",
    "if",
    "then",
    "else",
    "for",
    "to",
    "step",
    "while",
    "fun",
)

DIGITS = "0123456789"
LETTERS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_"
LETTERS_DIGITS = LETTERS + DIGITS

# Static type names
INT_TYPE = "Int"
FLOAT_TYPE = "Float"
STRING_TYPE = "String"
CHAR_TYPE = "Char"
FUNCTION_TYPE = "Function"
# Placeholder for "unknown until runtime" (e.g. a bare variable reference)
IDENTIFIER_TYPE = "Identifier"

VALUE_TYPES = (INT_TYPE, FLOAT_TYPE, STRING_TYPE, CHAR_TYPE)
FUNCTION_PREFIX = FUNCTION_TYPE + ": "


def function_type(return_type: str) -> str:
    return FUNCTION_PREFIX + return_type


def return_type_of(type_name: str) -> Optional[str]:
    """Return the return type of a `Function: X` name, or None for other types."""
    if type_name.startswith(FUNCTION_PREFIX):
        return type_name[len(FUNCTION_PREFIX):]
    return None


def types_agree(left: str, right: str) -> bool:
    """Compare two static type names, treating `Identifier` as a wildcard."""
    if left == IDENTIFIER_TYPE or right == IDENTIFIER_TYPE:
        return True
    left_ret = return_type_of(left)
    right_ret = return_type_of(right)
    if left_ret is not None and right_ret is not None:
        return types_agree(left_ret, right_ret)
    return left == right


class Token:
    """A lexical unit with an optional literal payload and a source span.

    `type_name` is only filled in by the parser for function parameter tokens,
    where it records the declared parameter type.
    """

    def __init__(
        self,
        kind: TokenKind,
        value: Any = None,
        pos_start: Optional[Position] = None,
        pos_end: Optional[Position] = None,
    ):
        self.kind = kind
        self.value = value
        self.type_name: Optional[str] = None
        self.pos_start = pos_start.clone() if pos_start else None
        self.pos_end = pos_end.clone() if pos_end else None
        if pos_start and not pos_end:
            self.pos_end = pos_start.clone().advance()

    def matches(self, kind: TokenKind, value: Any) -> bool:
        return self.kind == kind and self.value == value

    def __repr__(self) -> str:
        if self.value is not None:
            return f"{self.kind.value}:{self.value}"
        return self.kind.value
