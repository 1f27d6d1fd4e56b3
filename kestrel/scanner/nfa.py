"""
Kestrel NFA Model

Nondeterministic automata over single-character symbols with integer
states, plus the Thompson algebra used to compose them.

States of an NFA are numbered 0..final_state. For a fragment built from
one regular expression, final_state is also its single accepting state.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..compiler.tokens import TokenKind

# Distinguished symbol for empty transitions; longer than any real symbol
EPSILON = "EPSILON"

Transitions = Dict[str, Dict[int, List[int]]]


def _shift(transitions: Transitions, offset: int) -> Transitions:
    """Copy a transition table with every state renumbered by offset."""
    shifted: Transitions = {}
    for symbol, edges in transitions.items():
        shifted[symbol] = {
            source + offset: [target + offset for target in targets]
            for source, targets in edges.items()
        }
    return shifted


def _merge(into: Transitions, other: Transitions) -> None:
    """Merge other into into; state ranges are expected to be disjoint."""
    for symbol, edges in other.items():
        table = into.setdefault(symbol, {})
        for source, targets in edges.items():
            table.setdefault(source, []).extend(targets)


def _copy(transitions: Transitions) -> Transitions:
    return _shift(transitions, 0)


@dataclass
class Nfa:
    """A nondeterministic finite automaton."""

    transitions: Transitions = field(default_factory=dict)
    initial_state: int = 0
    final_state: int = 0
    accepting_states: List[int] = field(default_factory=list)
    type_table: Dict[int, TokenKind] = field(default_factory=dict)

    @classmethod
    def symbol(cls, char: str) -> 'Nfa':
        """Two states joined by a single transition on char."""
        return cls(
            transitions={char: {0: [1]}},
            initial_state=0,
            final_state=1,
            accepting_states=[1],
        )

    @property
    def state_count(self) -> int:
        return self.final_state + 1

    def add_transition(self, symbol: str, source: int, target: int) -> None:
        targets = self.transitions.setdefault(symbol, {}).setdefault(source, [])
        if target not in targets:
            targets.append(target)

    def targets(self, symbol: str, state: int) -> List[int]:
        return self.transitions.get(symbol, {}).get(state, [])

    def symbols(self) -> List[str]:
        """Input alphabet in ascending order, without epsilon."""
        return sorted(s for s in self.transitions if s != EPSILON)

    def tag(self, kind: TokenKind) -> 'Nfa':
        """Mark every accepting state as producing kind."""
        for state in self.accepting_states:
            self.type_table[state] = kind
        return self

    def _accepted_kind(self) -> Optional[TokenKind]:
        for state in self.accepting_states:
            if state in self.type_table:
                return self.type_table[state]
        return None

    # =========================================================================
    # Algebra
    # =========================================================================

    def concatenation(self, other: 'Nfa') -> 'Nfa':
        """Accept a word of self followed by a word of other."""
        offset = self.state_count
        transitions = _copy(self.transitions)
        _merge(transitions, _shift(other.transitions, offset))

        result = Nfa(
            transitions=transitions,
            initial_state=self.initial_state,
            final_state=other.final_state + offset,
            accepting_states=[state + offset for state in other.accepting_states],
            type_table={state + offset: kind for state, kind in other.type_table.items()},
        )
        for state in self.accepting_states:
            result.add_transition(EPSILON, state, other.initial_state + offset)
        return result

    def union(self, other: 'Nfa') -> 'Nfa':
        """Accept a word of self or a word of other."""
        offset = self.state_count
        transitions = _copy(self.transitions)
        _merge(transitions, _shift(other.transitions, offset))

        initial = other.final_state + offset + 1
        final = initial + 1
        result = Nfa(
            transitions=transitions,
            initial_state=initial,
            final_state=final,
            accepting_states=[final],
        )
        result.add_transition(EPSILON, initial, self.initial_state)
        result.add_transition(EPSILON, initial, other.initial_state + offset)
        for state in self.accepting_states:
            result.add_transition(EPSILON, state, final)
        for state in other.accepting_states:
            result.add_transition(EPSILON, state + offset, final)

        kind = self._accepted_kind()
        if kind is None:
            kind = other._accepted_kind()
        if kind is not None:
            result.type_table[final] = kind
        return result

    def kleene(self) -> 'Nfa':
        """Accept zero or more repetitions of self."""
        initial = self.state_count
        final = initial + 1
        result = Nfa(
            transitions=_copy(self.transitions),
            initial_state=initial,
            final_state=final,
            accepting_states=[final],
        )
        result.add_transition(EPSILON, initial, self.initial_state)
        result.add_transition(EPSILON, initial, final)
        for state in self.accepting_states:
            result.add_transition(EPSILON, state, self.initial_state)
            result.add_transition(EPSILON, state, final)

        kind = self._accepted_kind()
        if kind is not None:
            result.type_table[final] = kind
        return result

    def union_distinct(self, *others: 'Nfa') -> 'Nfa':
        """
        Combine automata while keeping their accepting states apart.

        Each participant is renumbered into its own range; a fresh
        initial state reaches every participant's initial state through
        epsilon. Accepting states and their kinds are kept as they are,
        so the combined automaton still tells the token classes apart.
        """
        transitions: Transitions = {}
        accepting: List[int] = []
        type_table: Dict[int, TokenKind] = {}
        initials: List[int] = []

        offset = 0
        for nfa in (self,) + others:
            _merge(transitions, _shift(nfa.transitions, offset))
            initials.append(nfa.initial_state + offset)
            for state in nfa.accepting_states:
                if state + offset not in accepting:
                    accepting.append(state + offset)
            for state, kind in nfa.type_table.items():
                type_table[state + offset] = kind
            offset += nfa.state_count

        initial = offset
        result = Nfa(
            transitions=transitions,
            initial_state=initial,
            final_state=initial,
            accepting_states=accepting,
            type_table=type_table,
        )
        for target in initials:
            result.add_transition(EPSILON, initial, target)
        return result


def union_all(nfas: Iterable[Nfa]) -> Nfa:
    """Disjoint union of a non-empty sequence of automata."""
    nfas = list(nfas)
    if not nfas:
        raise ValueError("union_all needs at least one automaton")
    return nfas[0].union_distinct(*nfas[1:])
