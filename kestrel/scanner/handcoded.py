"""
Kestrel Handcoded Scanner

Character-at-a-time scanner for the standard lexical grammar. It is the
bootstrap counterpart of the generated scanner and produces the same
token stream for the same input.
"""

from ..compiler.tokens import Token, TokenType, lookup_identifier
from .base import Scanner

# Single characters that always form a token on their own
SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.ASTERISK,
    '/': TokenType.SLASH,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
    ':': TokenType.COLON,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
}

# Characters that may be followed by '=' to form a two-character operator
WITH_EQUALS = {
    '=': (TokenType.ASSIGN, TokenType.EQUALS),
    '!': (TokenType.BANG, TokenType.NOT_EQUALS),
    '<': (TokenType.LT, TokenType.LESS_EQUAL),
    '>': (TokenType.GT, TokenType.GREATER_EQUAL),
}

# Operators only valid when doubled
DOUBLED = {
    '&': TokenType.AND,
    '|': TokenType.OR,
}


def is_lower(char: str) -> bool:
    return 'a' <= char <= 'z'


def is_letter(char: str) -> bool:
    return is_lower(char) or 'A' <= char <= 'Z'


def is_digit(char: str) -> bool:
    return '0' <= char <= '9'


class HandcodedScanner(Scanner):
    """Scanner with the lexical grammar written out by hand."""

    def next_token(self) -> Token:
        self.skip_whitespace()
        if self.is_at_end():
            return self.eof()

        start = self.position
        char = self.advance()

        if char in SINGLE_CHAR_TOKENS:
            return Token(SINGLE_CHAR_TOKENS[char], char, start)

        if char in WITH_EQUALS:
            single, double = WITH_EQUALS[char]
            if self.peek() == '=':
                self.advance()
                return Token(double, char + '=', start)
            return Token(single, char, start)

        if char in DOUBLED:
            if self.peek() == char:
                self.advance()
                return Token(DOUBLED[char], char * 2, start)
            return Token(TokenType.ILLEGAL, char, start)

        if is_lower(char):
            return self.identifier(start)

        if is_digit(char):
            return self.number(start)

        if char == '"':
            return self.string(start)

        return Token(TokenType.ILLEGAL, char, start)

    def identifier(self, start: int) -> Token:
        while is_letter(self.peek()):
            self.advance()
        text = self.source[start:self.position]
        return Token(lookup_identifier(text), text, start)

    def number(self, start: int) -> Token:
        while is_digit(self.peek()):
            self.advance()
        return Token(TokenType.INT, self.source[start:self.position], start)

    def string(self, start: int) -> Token:
        """Scan a string literal, keeping its quotes."""
        while True:
            char = self.peek()
            if char == '"':
                self.advance()
                return Token(TokenType.STRING, self.source[start:self.position], start)
            if not (is_letter(char) or is_digit(char) or char == ' '):
                # Unterminated or bad character: only the quote is consumed
                self.position = start + 1
                return Token(TokenType.ILLEGAL, '"', start)
            self.advance()

    # =========================================================================
    # Helpers
    # =========================================================================

    def advance(self) -> str:
        char = self.source[self.position]
        self.position += 1
        return char

    def peek(self) -> str:
        if self.is_at_end():
            return '\0'
        return self.source[self.position]
