"""
Kestrel

A scanner generator, bytecode compiler and stack virtual machine for a
small expression language.
"""

from .compiler import compile_source, parse_source
from .compiler.errors import KestrelError, RegexError, ParseError, CompileError, VMError
from .api.context import Context, Script

__version__ = "0.1.0"
__all__ = [
    "Context",
    "Script",
    "compile_source",
    "parse_source",
    "KestrelError",
    "RegexError",
    "ParseError",
    "CompileError",
    "VMError",
]
