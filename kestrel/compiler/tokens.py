"""
Kestrel Token Definitions

Defines the token vocabulary, the Token class and the keyword table.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Hashable, Union


class TokenType(Enum):
    """All token kinds in Kestrel. The value is the stable display name."""

    # Special
    ILLEGAL = "ILLEGAL"
    EOF = "EOF"

    # Literals
    IDENT = "IDENT"
    INT = "INT"
    STRING = "STRING"

    # Operators
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    BANG = "!"
    ASTERISK = "*"
    SLASH = "/"

    # Comparison
    LT = "<"
    GT = ">"
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="
    EQUALS = "=="
    NOT_EQUALS = "!="

    # Logical
    AND = "&&"
    OR = "||"

    # Delimiters
    COMMA = ","
    SEMICOLON = ";"
    COLON = ":"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"

    # Keywords
    FUNCTION = "FUNCTION"
    LET = "LET"
    IF = "IF"
    ELSE = "ELSE"
    RETURN = "RETURN"
    TRUE = "TRUE"
    FALSE = "FALSE"

    @property
    def display_name(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


# Generated scanners accept arbitrary hashable kinds (tests use plain strings)
TokenKind = Union[TokenType, Hashable]


# Keyword mapping
KEYWORDS = {
    'fn': TokenType.FUNCTION,
    'let': TokenType.LET,
    'if': TokenType.IF,
    'else': TokenType.ELSE,
    'return': TokenType.RETURN,
    'true': TokenType.TRUE,
    'false': TokenType.FALSE,
}


def lookup_identifier(identifier: str) -> TokenType:
    """Return the keyword kind for identifier, or IDENT."""
    return KEYWORDS.get(identifier, TokenType.IDENT)


def kind_name(kind: TokenKind) -> str:
    """Display name of a token kind, for TokenType or any custom kind."""
    if isinstance(kind, TokenType):
        return kind.display_name
    return str(kind)


@dataclass(frozen=True)
class Token:
    """A (kind, literal) pair produced by a scanner."""

    type: TokenKind
    literal: str
    position: int = field(default=0, compare=False)

    def __repr__(self) -> str:
        return f"Token({kind_name(self.type)}, {self.literal!r})"

    def is_keyword(self) -> bool:
        """Check if this token is a keyword."""
        return self.type in KEYWORDS.values()


# Operator precedence (higher = binds tighter)
class Precedence:
    LOWEST = 1
    OR = 2
    AND = 3
    EQUALS = 4
    LESSGREATER = 5
    SUM = 6
    PRODUCT = 7
    PREFIX = 8
    CALL = 9
    INDEX = 10


PRECEDENCE = {
    TokenType.OR: Precedence.OR,
    TokenType.AND: Precedence.AND,
    TokenType.EQUALS: Precedence.EQUALS,
    TokenType.NOT_EQUALS: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.LESS_EQUAL: Precedence.LESSGREATER,
    TokenType.GREATER_EQUAL: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.ASTERISK: Precedence.PRODUCT,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
    TokenType.LBRACKET: Precedence.INDEX,
}


def get_precedence(token_type: TokenKind) -> int:
    """Get the precedence of an operator token type."""
    return PRECEDENCE.get(token_type, Precedence.LOWEST)
