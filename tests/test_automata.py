"""
Kestrel Automata Tests

Tests for regex to NFA conversion, subset construction and minimization.
"""

import pytest

from kestrel.compiler.errors import RegexError
from kestrel.scanner import (
    EPSILON, Dfa, DfaMinimizer, Nfa, NfaToDfaConverter,
    minimize, nfa_to_dfa, regex_to_nfa,
)
from kestrel.scanner.dfa import ERROR_STATE
from kestrel.scanner.nfa import union_all


def dfa_for(pattern: str) -> Dfa:
    return nfa_to_dfa(regex_to_nfa(pattern))


# =============================================================================
# Regex -> NFA
# =============================================================================

class TestThompsonConstruction:
    """Shape of the automata built for the basic operators."""

    def test_symbol(self):
        nfa = regex_to_nfa("a")
        assert nfa.transitions == {"a": {0: [1]}}
        assert nfa.initial_state == 0
        assert nfa.final_state == 1
        assert nfa.accepting_states == [1]

    def test_concatenation(self):
        nfa = regex_to_nfa("ab")
        assert nfa.transitions == {
            "a": {0: [1]},
            "b": {2: [3]},
            EPSILON: {1: [2]},
        }
        assert nfa.initial_state == 0
        assert nfa.final_state == 3
        assert nfa.accepting_states == [3]

    def test_alternation(self):
        nfa = regex_to_nfa("a|b")
        assert nfa.transitions == {
            "a": {0: [1]},
            "b": {2: [3]},
            EPSILON: {4: [0, 2], 1: [5], 3: [5]},
        }
        assert nfa.initial_state == 4
        assert nfa.final_state == 5
        assert nfa.accepting_states == [5]

    def test_kleene(self):
        nfa = regex_to_nfa("a*")
        assert nfa.transitions == {
            "a": {0: [1]},
            EPSILON: {2: [0, 3], 1: [0, 3]},
        }
        assert nfa.initial_state == 2
        assert nfa.final_state == 3
        assert nfa.accepting_states == [3]

    def test_range_covers_every_character(self):
        nfa = regex_to_nfa("[1-5]")
        assert nfa.symbols() == ["1", "2", "3", "4", "5"]

    def test_escape_is_literal(self):
        nfa = regex_to_nfa("\\*")
        assert nfa.transitions == {"*": {0: [1]}}

    def test_tag_marks_accepting_states(self):
        nfa = regex_to_nfa("ab").tag("AB")
        assert nfa.type_table == {3: "AB"}

    def test_kind_survives_operators(self):
        tagged = Nfa.symbol("a").tag("A")
        assert tagged.kleene().type_table[tagged.kleene().final_state] == "A"
        union = tagged.union(Nfa.symbol("b"))
        assert union.type_table == {union.final_state: "A"}


class TestUnionDistinct:
    """Combining token classes keeps their accepting states apart."""

    def test_fresh_initial_state(self):
        combined = union_all([regex_to_nfa("a").tag("A"), regex_to_nfa("b").tag("B")])
        assert combined.initial_state == 4
        assert combined.transitions[EPSILON] == {4: [0, 2]}
        assert combined.accepting_states == [1, 3]
        assert combined.type_table == {1: "A", 3: "B"}

    def test_union_all_requires_input(self):
        with pytest.raises(ValueError):
            union_all([])


class TestRegexErrors:
    """Malformed patterns are rejected before any NFA is produced."""

    @pytest.mark.parametrize("pattern,message", [
        ("", "empty regular expression"),
        ("(a", "expected closing ')'"),
        ("a)", "unexpected ')'"),
        ("]", "unexpected ']'"),
        ("a|", "expected right side of |"),
        ("*a", "nothing to repeat"),
        ("a|*", "nothing to repeat"),
        ("()", "empty group"),
        ("[a-]", "malformed character range"),
        ("[ab]", "malformed character range"),
        ("[2-1]", "lower bound greater or equal to upper bound '[2-1]'"),
        ("a\\", "dangling escape"),
        ("\\a", "unsupported escape '\\a'"),
    ])
    def test_error_message(self, pattern, message):
        with pytest.raises(RegexError) as excinfo:
            regex_to_nfa(pattern)
        assert excinfo.value.message == message

    def test_error_carries_position(self):
        with pytest.raises(RegexError) as excinfo:
            regex_to_nfa("a)")
        assert excinfo.value.position == 1
        assert str(excinfo.value) == "position 1: unexpected ')'"


# =============================================================================
# NFA -> DFA
# =============================================================================

class TestSubsetConstruction:
    """State numbering follows the sorted alphabet and discovery order."""

    @pytest.mark.parametrize("pattern,transitions,accepting", [
        ("ab", {"a": {0: 1}, "b": {1: 2}}, [2]),
        ("a|b", {"a": {0: 1}, "b": {0: 2}}, [1, 2]),
        ("a*", {"a": {0: 1, 1: 1}}, [0, 1]),
        ("aa*", {"a": {0: 1, 1: 2, 2: 2}}, [1, 2]),
    ])
    def test_numbering(self, pattern, transitions, accepting):
        dfa = dfa_for(pattern)
        assert dfa.initial_state == 0
        assert dfa.transitions == transitions
        assert dfa.accepting_states == accepting

    @pytest.mark.parametrize("pattern,word,accepted", [
        ("ab", "ab", True),
        ("ab", "a", False),
        ("ab", "abb", False),
        ("a|b", "b", True),
        ("a*", "", True),
        ("a*", "aaaa", True),
        ("(ab)*", "abab", True),
        ("(ab)*", "aba", False),
        ("[0-9]([0-9])*", "123", True),
        ("[0-9]([0-9])*", "", False),
        ("\\(\\)", "()", True),
        ("\\|\\|", "||", True),
        ("a\\+", "a+", True),
        ('"([a-z]| )*"', '"a b"', True),
        ('"([a-z]| )*"', '"a', False),
    ])
    def test_language(self, pattern, word, accepted):
        assert dfa_for(pattern).accepts(word) is accepted

    def test_epsilon_closure(self):
        converter = NfaToDfaConverter(regex_to_nfa("a*"))
        assert converter.epsilon_closure([2]) == frozenset({0, 2, 3})

    def test_higher_precedence_wins(self):
        nfa = union_all([regex_to_nfa("a").tag("FIRST"), regex_to_nfa("aa*").tag("SECOND")])
        dfa = nfa_to_dfa(nfa, {"FIRST": 2, "SECOND": 1})
        assert dfa.match("a") == "FIRST"
        assert dfa.match("aa") == "SECOND"
        assert dfa.match("aaa") == "SECOND"
        assert dfa.match("b") is None

    def test_registration_order_breaks_ties(self):
        nfa = union_all([regex_to_nfa("a").tag("X"), regex_to_nfa("a").tag("Y")])
        assert nfa_to_dfa(nfa, {"X": 1, "Y": 1}).match("a") == "X"


class TestDenseTable:
    """The dense transition table used by the table-driven scanner."""

    def test_table_shape_and_fill(self):
        dfa = dfa_for("ab")
        table = dfa.transition_table()
        assert table.shape == (3, 256)
        assert table.dtype.name == "int32"
        assert table[0, ord("a")] == 1
        assert table[1, ord("b")] == 2
        assert table[0, ord("b")] == ERROR_STATE

    def test_accepting_mask(self):
        assert dfa_for("ab").accepting_mask().tolist() == [False, False, True]


# =============================================================================
# Minimization
# =============================================================================

class TestMinimizer:
    """Partition refinement merges states that agree on kind and future."""

    def test_merges_equivalent_accepting_states(self):
        dfa = Dfa(
            transitions={"a": {0: 1}, "b": {0: 2}},
            initial_state=0,
            accepting_states=[1, 2],
            type_table={1: "test", 2: "test"},
        )
        result = DfaMinimizer().minimize(dfa)

        assert result.states() == [0, 1]
        assert result.initial_state == 1
        assert result.accepting_states == [0]
        assert result.type_table == {0: "test"}
        assert result.transitions == {"a": {1: 0}, "b": {1: 0}}

    def test_keeps_distinct_kinds_apart(self):
        dfa = Dfa(
            transitions={"a": {0: 1}, "b": {0: 2}},
            initial_state=0,
            accepting_states=[1, 2],
            type_table={1: "x", 2: "y"},
        )
        result = minimize(dfa)
        assert len(result.states()) == 3
        assert result.match("a") == "x"
        assert result.match("b") == "y"

    def test_collapses_loop(self):
        result = minimize(dfa_for("aa*"))
        assert len(result.states()) == 2
        assert result.accepts("a")
        assert result.accepts("aaaa")
        assert not result.accepts("")

    @pytest.mark.parametrize("pattern", ["ab|ac", "(a|b)*abb", "a*b|c*b", "(ab)*|(ab)*c"])
    def test_preserves_language(self, pattern):
        original = dfa_for(pattern)
        minimized = minimize(original)
        words = ["", "a", "b", "c", "ab", "ac", "abb", "aabb", "babb", "ababb",
                 "cb", "ccb", "aab", "abab", "ababc", "abc"]
        for word in words:
            assert minimized.accepts(word) == original.accepts(word), word
        assert len(minimized.states()) <= len(original.states())
