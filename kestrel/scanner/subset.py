"""
Kestrel NFA to DFA Converter

Subset construction with epsilon closures. Accepting DFA states take the
kind of the highest-precedence accepting NFA state they contain.
"""

import logging
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..compiler.tokens import TokenKind
from .dfa import Dfa
from .nfa import EPSILON, Nfa

logger = logging.getLogger(__name__)

StateSet = FrozenSet[int]


class NfaToDfaConverter:
    """Converts an NFA into an equivalent DFA."""

    def __init__(self, nfa: Nfa, precedences: Optional[Dict[TokenKind, int]] = None):
        """
        Initialize the converter.

        Args:
            nfa: Automaton to convert
            precedences: Priority per token kind; higher wins when one DFA
                state contains accepting NFA states of several kinds
        """
        self.nfa = nfa
        self.precedences = precedences or {}

    def convert(self) -> Dfa:
        alphabet = self.nfa.symbols()
        transitions: Dict[str, Dict[int, int]] = {symbol: {} for symbol in alphabet}

        start = self.epsilon_closure([self.nfa.initial_state])
        dfa_states: List[StateSet] = [start]
        index: Dict[StateSet, int] = {start: 0}
        worklist: Deque[StateSet] = deque([start])

        while worklist:
            current = worklist.popleft()
            current_index = index[current]

            for symbol in alphabet:
                target = self.epsilon_closure(self.move(current, symbol))
                if not target:
                    continue

                if target not in index:
                    index[target] = len(dfa_states)
                    dfa_states.append(target)
                    worklist.append(target)

                transitions[symbol][current_index] = index[target]

        accepting_states, type_table = self.resolve_accepting(dfa_states)
        logger.debug("subset construction: %d NFA states -> %d DFA states",
                     self.nfa.state_count, len(dfa_states))

        return Dfa(
            transitions={symbol: edges for symbol, edges in transitions.items() if edges},
            initial_state=0,
            accepting_states=accepting_states,
            type_table=type_table,
        )

    def epsilon_closure(self, states: Iterable[int]) -> StateSet:
        """States reachable from states through zero or more epsilon edges."""
        closure = set(states)
        queue: Deque[int] = deque(closure)
        while queue:
            state = queue.popleft()
            for target in self.nfa.targets(EPSILON, state):
                if target not in closure:
                    closure.add(target)
                    queue.append(target)
        return frozenset(closure)

    def move(self, states: StateSet, symbol: str) -> List[int]:
        """States reachable from states through one edge on symbol."""
        result: List[int] = []
        for state in sorted(states):
            result.extend(self.nfa.targets(symbol, state))
        return result

    def resolve_accepting(self, dfa_states: List[StateSet]) -> Tuple[List[int], Dict[int, TokenKind]]:
        """
        Decide accepting DFA states and their kinds.

        Ties in precedence go to the NFA accepting state listed first,
        which is the classification registered first.
        """
        accepting: List[int] = []
        type_table: Dict[int, TokenKind] = {}

        for dfa_state, nfa_states in enumerate(dfa_states):
            best = -1
            for nfa_state in self.nfa.accepting_states:
                if nfa_state not in nfa_states:
                    continue

                if not accepting or accepting[-1] != dfa_state:
                    accepting.append(dfa_state)

                kind = self.nfa.type_table.get(nfa_state)
                if kind is None:
                    continue
                precedence = self.precedences.get(kind, 0)
                if precedence > best:
                    best = precedence
                    type_table[dfa_state] = kind

        return accepting, type_table


def nfa_to_dfa(nfa: Nfa, precedences: Optional[Dict[TokenKind, int]] = None) -> Dfa:
    """Convenience wrapper around NfaToDfaConverter."""
    return NfaToDfaConverter(nfa, precedences).convert()
