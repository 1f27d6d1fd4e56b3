"""
Kestrel Regex to NFA Converter

Recursive descent over a restricted regular expression dialect, building
the automaton with Thompson's construction as it goes.

Dialect:
    literal characters, concatenation, alternation '|', Kleene star '*',
    grouping '(...)', ranges '[x-y]', escapes \\( \\) \\[ \\] \\| \\* \\+
"""

from ..compiler.errors import RegexError
from .nfa import Nfa

ESCAPABLE = "()[]|*+"


class RegexToNfaConverter:
    """Converts a regular expression into an NFA."""

    def __init__(self, pattern: str):
        """
        Initialize the converter.

        Args:
            pattern: Regular expression source
        """
        self.pattern = pattern
        self.position = 0

    def convert(self) -> Nfa:
        """
        Build the NFA for the whole pattern.

        Raises:
            RegexError: If the pattern is malformed or unsupported
        """
        if not self.pattern:
            raise RegexError("empty regular expression", 0)

        self.position = 0
        nfa = self.alternation()

        if not self.is_at_end():
            raise RegexError(f"unexpected '{self.peek()}'", self.position)
        return nfa

    # =========================================================================
    # Grammar
    # =========================================================================

    def alternation(self) -> Nfa:
        """alternation := concatenation ('|' concatenation)*"""
        left = self.concatenation()

        while self.peek() == '|':
            bar = self.position
            self.position += 1
            if self.is_at_end() or self.peek() in '|)':
                raise RegexError("expected right side of |", bar)
            left = left.union(self.concatenation())

        return left

    def concatenation(self) -> Nfa:
        """concatenation := repetition+"""
        left = self.repetition()

        while not self.is_at_end() and self.peek() not in '|)':
            left = left.concatenation(self.repetition())

        return left

    def repetition(self) -> Nfa:
        """repetition := atom '*'*"""
        nfa = self.atom()

        while self.peek() == '*':
            self.position += 1
            nfa = nfa.kleene()

        return nfa

    def atom(self) -> Nfa:
        """atom := '(' alternation ')' | range | escape | literal"""
        c = self.peek()

        if c == '(':
            return self.group()
        if c == '[':
            return self.character_range()
        if c == '\\':
            return self.escape()
        if c == '*':
            raise RegexError("nothing to repeat", self.position)
        if c in ')]|':
            raise RegexError(f"unexpected '{c}'", self.position)

        self.position += 1
        return Nfa.symbol(c)

    def group(self) -> Nfa:
        self.position += 1  # Consume '('
        if self.is_at_end():
            raise RegexError("expected closing ')'", self.position)
        if self.peek() == ')':
            raise RegexError("empty group", self.position)

        nfa = self.alternation()

        if self.peek() != ')':
            raise RegexError("expected closing ')'", self.position)
        self.position += 1
        return nfa

    def character_range(self) -> Nfa:
        """A range [x-y] is the alternation of x..y in ascending order."""
        start = self.position
        text = self.pattern[start:start + 5]

        if len(text) != 5 or text[2] != '-' or text[4] != ']':
            raise RegexError("malformed character range", start)

        lower, upper = text[1], text[3]
        if ord(lower) >= ord(upper):
            raise RegexError(
                f"lower bound greater or equal to upper bound '{text}'", start)

        self.position += 5

        nfa = Nfa.symbol(lower)
        for code in range(ord(lower) + 1, ord(upper) + 1):
            nfa = nfa.union(Nfa.symbol(chr(code)))
        return nfa

    def escape(self) -> Nfa:
        backslash = self.position
        self.position += 1

        if self.is_at_end():
            raise RegexError("dangling escape", backslash)

        c = self.peek()
        if c not in ESCAPABLE:
            raise RegexError(f"unsupported escape '\\{c}'", backslash)

        self.position += 1
        return Nfa.symbol(c)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def peek(self) -> str:
        """Return the current character, or '' at the end."""
        if self.is_at_end():
            return ''
        return self.pattern[self.position]

    def is_at_end(self) -> bool:
        return self.position >= len(self.pattern)


def regex_to_nfa(pattern: str) -> Nfa:
    """Convenience wrapper around RegexToNfaConverter."""
    return RegexToNfaConverter(pattern).convert()
