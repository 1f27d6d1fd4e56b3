"""
Kestrel Errors

Defines exception classes for every stage of the toolchain.
"""

from typing import List, Optional


class KestrelError(Exception):
    """Base exception for all Kestrel errors."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.message = message
        self.position = position
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location information."""
        if self.position is not None:
            return f"position {self.position}: {self.message}"
        return self.message


class RegexError(KestrelError):
    """Raised for malformed or unsupported regular expressions."""
    pass


class ParseError(KestrelError):
    """Raised when the parser collected one or more errors."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class CompileError(KestrelError):
    """Raised for unknown operators or AST the compiler cannot lower."""
    pass


class VMError(KestrelError):
    """Raised for errors during bytecode execution."""
    pass
