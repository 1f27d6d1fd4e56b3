"""
Kestrel Table-Driven Scanner

Longest-match tokenization over a (minimized) DFA. The DFA is flattened
into a dense numpy table once; scanning then only indexes into it.
"""

from typing import List

import numpy as np

from ..compiler.errors import KestrelError
from ..compiler.tokens import Token, TokenType
from .base import Scanner
from .dfa import ERROR_STATE, Dfa


class TableDrivenScanner(Scanner):
    """
    Maximal-munch scanner driven by a DFA.

    The forward pass runs until the automaton gets stuck or the input
    ends, remembering every state it left. It then backs up one
    character at a time until it stands on an accepting state. If none
    is found, the first character is reported as ILLEGAL and scanning
    resumes right after it.
    """

    def __init__(self, source: str, dfa: Dfa):
        super().__init__(source)
        self.dfa = dfa
        self.table: np.ndarray = dfa.transition_table()
        self.accepting: np.ndarray = dfa.accepting_mask()

    def next_token(self) -> Token:
        self.skip_whitespace()
        if self.is_at_end():
            return self.eof()

        start = self.position
        state = self.dfa.initial_state
        stack: List[int] = []

        while not self.is_at_end() and state != ERROR_STATE:
            stack.append(state)
            state = self.step(state, self.source[self.position])
            self.position += 1

        while stack and not self.is_accepting(state):
            state = stack.pop()
            self.position -= 1

        if self.position == start:
            self.position = start + 1
            return Token(TokenType.ILLEGAL, self.source[start], start)

        kind = self.dfa.kind_of(state)
        if kind is None:
            raise KestrelError("accepting state %d has no token kind" % state, start)
        return Token(kind, self.source[start:self.position], start)

    def step(self, state: int, char: str) -> int:
        column = ord(char)
        if column >= self.table.shape[1]:
            return ERROR_STATE
        return int(self.table[state, column])

    def is_accepting(self, state: int) -> bool:
        return state != ERROR_STATE and bool(self.accepting[state])
