"""
Kestrel Compiler Package

Parser, bytecode format and code generator for the Kestrel language.
"""

from .tokens import Token, TokenType
from .ast import *
from .parser import Parser
from .bytecode import Bytecode, OpCode, make, read_u16, read_operands, disassemble
from .symbols import Symbol, SymbolTable
from .codegen import Compiler
from .errors import KestrelError, RegexError, ParseError, CompileError, VMError

__all__ = [
    "Token",
    "TokenType",
    "Parser",
    "Bytecode",
    "OpCode",
    "make",
    "read_u16",
    "read_operands",
    "disassemble",
    "Symbol",
    "SymbolTable",
    "Compiler",
    "KestrelError",
    "RegexError",
    "ParseError",
    "CompileError",
    "VMError",
    "parse_source",
    "compile_source",
]


def _scanner_for(source: str, scanner: str):
    # Imported here: the scanner package depends on this one
    from ..scanner import HandcodedScanner, standard_scanner

    if scanner == "table":
        return standard_scanner(source)
    if scanner == "handcoded":
        return HandcodedScanner(source)
    raise ValueError(f"unknown scanner {scanner!r}, expected 'table' or 'handcoded'")


def parse_source(source: str, scanner: str = "table") -> Program:
    """
    Parse Kestrel source code.

    Args:
        source: Kestrel source code string
        scanner: "table" for the generated scanner, "handcoded" for the
            bootstrap one

    Raises:
        ParseError: If the parser reported any error
    """
    parser = Parser(_scanner_for(source, scanner))
    program = parser.parse_program()
    if parser.errors:
        raise ParseError(parser.errors)
    return program


def compile_source(source: str, scanner: str = "table") -> Bytecode:
    """
    Compile Kestrel source code to bytecode.

    Args:
        source: Kestrel source code string
        scanner: Which scanner tokenizes the source

    Returns:
        Bytecode object ready for VM execution

    Raises:
        ParseError: If parsing fails
        CompileError: If compilation fails
    """
    return Compiler().compile(parse_source(source, scanner))
