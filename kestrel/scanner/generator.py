"""
Kestrel Scanner Generator

Turns a table of token classifications into one minimized DFA that
tells every token class apart.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from ..compiler.tokens import TokenKind, TokenType
from .dfa import Dfa
from .minimizer import DfaMinimizer
from .nfa import union_all
from .regex import RegexToNfaConverter
from .subset import NfaToDfaConverter
from .table_scanner import TableDrivenScanner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClassification:
    """A regular expression, the kind it produces, and its priority."""

    regexp: str
    token_type: TokenKind
    precedence: int = 1


def _operators(precedence: int, *pairs) -> List[TokenClassification]:
    return [TokenClassification(regexp, kind, precedence) for regexp, kind in pairs]


# Lexical grammar of the language. Keywords outrank identifiers.
TOKEN_CLASSIFICATIONS: List[TokenClassification] = (
    _operators(
        1,
        ("=", TokenType.ASSIGN),
        ("+", TokenType.PLUS),
        ("-", TokenType.MINUS),
        (",", TokenType.COMMA),
        (";", TokenType.SEMICOLON),
        (":", TokenType.COLON),
        ("\\(", TokenType.LPAREN),
        ("\\)", TokenType.RPAREN),
        ("{", TokenType.LBRACE),
        ("}", TokenType.RBRACE),
        ("\\[", TokenType.LBRACKET),
        ("\\]", TokenType.RBRACKET),
        (">", TokenType.GT),
        (">=", TokenType.GREATER_EQUAL),
        ("<", TokenType.LT),
        ("<=", TokenType.LESS_EQUAL),
        ("==", TokenType.EQUALS),
        ("!", TokenType.BANG),
        ("!=", TokenType.NOT_EQUALS),
        ("&&", TokenType.AND),
        ("\\|\\|", TokenType.OR),
        ("/", TokenType.SLASH),
        ("\\*", TokenType.ASTERISK),
    )
    + _operators(
        2,
        ("let", TokenType.LET),
        ("return", TokenType.RETURN),
        ("fn", TokenType.FUNCTION),
        ("if", TokenType.IF),
        ("else", TokenType.ELSE),
        ("true", TokenType.TRUE),
        ("false", TokenType.FALSE),
    )
    + _operators(
        1,
        ("[a-z]([a-z]|[A-Z])*", TokenType.IDENT),
        ("[0-9]([0-9])*", TokenType.INT),
        ('"([a-z]|[A-Z]|[0-9]| )*"', TokenType.STRING),
    )
)


class ScannerGenerator:
    """Builds scanners from token classifications."""

    def __init__(self, classifications: Optional[Sequence[TokenClassification]] = None,
                 minimize: bool = True):
        """
        Initialize the generator.

        Args:
            classifications: Token classes, in priority order for ties;
                defaults to the standard table
            minimize: Whether to minimize the DFA after subset construction
        """
        if classifications is None:
            classifications = TOKEN_CLASSIFICATIONS
        if not classifications:
            raise ValueError("at least one token classification is required")
        self.classifications = list(classifications)
        self.minimize = minimize

    def precedences(self) -> Dict[TokenKind, int]:
        return {c.token_type: c.precedence for c in self.classifications}

    def generate(self) -> Dfa:
        """
        Build the DFA recognizing every classification.

        Raises:
            RegexError: If any classification has a malformed pattern
        """
        nfas = [
            RegexToNfaConverter(c.regexp).convert().tag(c.token_type)
            for c in self.classifications
        ]
        nfa = union_all(nfas)
        logger.debug("combined NFA: %d classifications, %d states",
                     len(nfas), nfa.state_count)

        dfa = NfaToDfaConverter(nfa, self.precedences()).convert()
        if self.minimize:
            dfa = DfaMinimizer().minimize(dfa)
        logger.debug("scanner DFA has %d states", len(dfa.states()))
        return dfa

    def scanner(self, source: str) -> TableDrivenScanner:
        return TableDrivenScanner(source, self.generate())


@lru_cache(maxsize=1)
def standard_dfa() -> Dfa:
    """DFA for the standard lexical grammar, built once per process."""
    return ScannerGenerator().generate()


def standard_scanner(source: str) -> TableDrivenScanner:
    """Table-driven scanner for the standard lexical grammar."""
    return TableDrivenScanner(source, standard_dfa())
