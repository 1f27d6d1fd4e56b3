"""
Kestrel DFA Minimizer

Hopcroft-style partition refinement. States are only merged when they
agree on acceptance and on the token kind they produce.
"""

import logging
from typing import Dict, FrozenSet, List, Set

from .dfa import Dfa

logger = logging.getLogger(__name__)

Block = FrozenSet[int]


class DfaMinimizer:
    """Produces the minimal DFA equivalent to a given one."""

    def minimize(self, dfa: Dfa) -> Dfa:
        alphabet = dfa.alphabet()
        states = dfa.states()

        partition = self.initial_partition(dfa, states)
        worklist = list(partition)

        # inverse[symbol][target] = sources with an edge to target on symbol
        inverse: Dict[str, Dict[int, Set[int]]] = {}
        for symbol in alphabet:
            table: Dict[int, Set[int]] = {}
            for source, target in dfa.transitions[symbol].items():
                table.setdefault(target, set()).add(source)
            inverse[symbol] = table

        while worklist:
            splitter = worklist.pop(0)

            for symbol in alphabet:
                image: Set[int] = set()
                for target in splitter:
                    image |= inverse[symbol].get(target, set())
                if not image:
                    continue

                refined: List[Block] = []
                for block in partition:
                    inside = block & image
                    outside = block - image
                    if not inside or not outside:
                        refined.append(block)
                        continue

                    refined.append(frozenset(inside))
                    refined.append(frozenset(outside))

                    if block in worklist:
                        position = worklist.index(block)
                        worklist[position:position + 1] = [frozenset(inside), frozenset(outside)]
                    elif len(inside) <= len(outside):
                        worklist.append(frozenset(inside))
                    else:
                        worklist.append(frozenset(outside))

                partition = refined

        minimized = self.build(dfa, partition, alphabet)
        logger.debug("minimization: %d states -> %d states", len(states), len(partition))
        return minimized

    def initial_partition(self, dfa: Dfa, states: List[int]) -> List[Block]:
        """One block per accepted kind, in order of first appearance, then non-accepting states."""
        accepting: Dict[object, Set[int]] = {}
        non_accepting: Set[int] = set()

        for state in states:
            if dfa.is_accepting(state):
                accepting.setdefault(dfa.kind_of(state), set()).add(state)
            else:
                non_accepting.add(state)

        partition = [frozenset(block) for block in accepting.values()]
        if non_accepting:
            partition.append(frozenset(non_accepting))
        return partition

    def build(self, dfa: Dfa, partition: List[Block], alphabet: List[str]) -> Dfa:
        """Turn every block into one state, rewriting edges through representatives."""
        block_of: Dict[int, int] = {}
        for index, block in enumerate(partition):
            for state in block:
                block_of[state] = index

        minimized = Dfa(initial_state=block_of[dfa.initial_state])

        for index, block in enumerate(partition):
            members = sorted(block)
            representative = members[0]

            for state in members:
                if dfa.is_accepting(state):
                    minimized.accepting_states.append(index)
                    kind = dfa.kind_of(state)
                    if kind is not None:
                        minimized.type_table[index] = kind
                    break

            for symbol in alphabet:
                target = dfa.next_state(representative, symbol)
                if target is not None:
                    minimized.transitions.setdefault(symbol, {})[index] = block_of[target]

        return minimized


def minimize(dfa: Dfa) -> Dfa:
    """Convenience wrapper around DfaMinimizer."""
    return DfaMinimizer().minimize(dfa)
