"""
Kestrel Scanner Interface

Common surface for the handcoded and the table-driven scanners.
"""

from abc import ABC, abstractmethod
from typing import List

from ..compiler.tokens import Token, TokenType

WHITESPACE = " \r\n\t"


class Scanner(ABC):
    """Produces tokens on demand from a source string."""

    def __init__(self, source: str):
        self.source = source
        self.position = 0

    @abstractmethod
    def next_token(self) -> Token:
        """Return the next token; EOF is returned indefinitely at the end."""
        pass

    def tokenize(self) -> List[Token]:
        """Scan the whole source, up to and including the first EOF token."""
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                return tokens

    def skip_whitespace(self) -> None:
        while not self.is_at_end() and self.source[self.position] in WHITESPACE:
            self.position += 1

    def is_at_end(self) -> bool:
        return self.position >= len(self.source)

    def eof(self) -> Token:
        return Token(TokenType.EOF, "", self.position)
