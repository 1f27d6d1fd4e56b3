"""
Kestrel DFA Model

Deterministic automata with integer states. Transitions map a symbol to
a (possibly partial) table from source state to target state.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from ..compiler.tokens import TokenKind

# Marks a missing transition in the dense table
ERROR_STATE = -1

# Dense tables always cover at least the 8-bit range
MIN_TABLE_WIDTH = 256


@dataclass
class Dfa:
    """A deterministic finite automaton."""

    transitions: Dict[str, Dict[int, int]] = field(default_factory=dict)
    initial_state: int = 0
    accepting_states: List[int] = field(default_factory=list)
    type_table: Dict[int, TokenKind] = field(default_factory=dict)

    def alphabet(self) -> List[str]:
        """Symbols with at least one transition, in ascending order."""
        return sorted(symbol for symbol, edges in self.transitions.items() if edges)

    def states(self) -> List[int]:
        """Every state mentioned by the automaton, in ascending order."""
        states = {self.initial_state}
        states.update(self.accepting_states)
        states.update(self.type_table)
        for edges in self.transitions.values():
            for source, target in edges.items():
                states.add(source)
                states.add(target)
        return sorted(states)

    def next_state(self, state: int, symbol: str) -> Optional[int]:
        return self.transitions.get(symbol, {}).get(state)

    def is_accepting(self, state: int) -> bool:
        return state in self.accepting_states or state in self.type_table

    def kind_of(self, state: int) -> Optional[TokenKind]:
        return self.type_table.get(state)

    def run(self, text: str) -> Optional[int]:
        """State reached after consuming all of text, or None."""
        state = self.initial_state
        for symbol in text:
            state = self.next_state(state, symbol)
            if state is None:
                return None
        return state

    def accepts(self, text: str) -> bool:
        state = self.run(text)
        return state is not None and self.is_accepting(state)

    def match(self, text: str) -> Optional[TokenKind]:
        """Kind assigned to text if the whole of it is accepted."""
        state = self.run(text)
        if state is None or not self.is_accepting(state):
            return None
        return self.kind_of(state)

    def transition_table(self) -> np.ndarray:
        """
        Dense transition table indexed by [state, ord(symbol)].

        Missing transitions hold ERROR_STATE.
        """
        state_count = max(self.states()) + 1
        width = MIN_TABLE_WIDTH
        for symbol in self.transitions:
            width = max(width, ord(symbol) + 1)

        table = np.full((state_count, width), ERROR_STATE, dtype=np.int32)
        for symbol, edges in self.transitions.items():
            column = ord(symbol)
            for source, target in edges.items():
                table[source, column] = target
        return table

    def accepting_mask(self) -> np.ndarray:
        """Boolean vector: mask[state] is True for accepting states."""
        mask = np.zeros(max(self.states()) + 1, dtype=bool)
        for state in self.accepting_states:
            mask[state] = True
        for state in self.type_table:
            mask[state] = True
        return mask
