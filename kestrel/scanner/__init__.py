"""
Kestrel Scanner Package

Scanner generator (regex -> NFA -> DFA -> minimal DFA) and the scanners
built on it.
"""

from .nfa import Nfa, EPSILON
from .dfa import Dfa
from .regex import RegexToNfaConverter, regex_to_nfa
from .subset import NfaToDfaConverter, nfa_to_dfa
from .minimizer import DfaMinimizer, minimize
from .base import Scanner
from .table_scanner import TableDrivenScanner
from .handcoded import HandcodedScanner
from .generator import (
    TokenClassification,
    TOKEN_CLASSIFICATIONS,
    ScannerGenerator,
    standard_dfa,
    standard_scanner,
)

__all__ = [
    "Nfa",
    "EPSILON",
    "Dfa",
    "RegexToNfaConverter",
    "regex_to_nfa",
    "NfaToDfaConverter",
    "nfa_to_dfa",
    "DfaMinimizer",
    "minimize",
    "Scanner",
    "TableDrivenScanner",
    "HandcodedScanner",
    "TokenClassification",
    "TOKEN_CLASSIFICATIONS",
    "ScannerGenerator",
    "standard_dfa",
    "standard_scanner",
]
