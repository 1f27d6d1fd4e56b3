"""
Kestrel Context

The main interface for compiling and executing Kestrel code.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..compiler import parse_source
from ..compiler.ast import ExpressionStatement, Program
from ..compiler.bytecode import Bytecode
from ..compiler.codegen import Compiler
from ..compiler.errors import CompileError
from ..compiler.symbols import SymbolTable
from .builtins import BuiltinRegistry, default_builtins
from .interpreter import VM, new_globals
from .types import Value

SCANNERS = ("table", "handcoded")


@dataclass
class Script:
    """
    A compiled Kestrel script.

    Contains bytecode and metadata ready for execution.
    """

    source: str
    bytecode: Bytecode
    filename: Optional[str] = None
    ends_with_expression: bool = False

    def disassemble(self) -> str:
        """Get disassembly of the bytecode."""
        return self.bytecode.disassemble()


def _ends_with_expression(program: Program) -> bool:
    return bool(program.statements) and isinstance(program.statements[-1], ExpressionStatement)


class Context:
    """
    Kestrel execution context.

    Keeps globals, their names and the constant pool between executions,
    so that a later script can use what an earlier one bound with `let`.

    Example:
        ctx = Context()
        ctx.run('let x = 10;')
        ctx.run('x * 2').inspect()   # "20"
    """

    def __init__(self,
                 scanner: str = "table",
                 builtins: Optional[BuiltinRegistry] = None,
                 debug: bool = False):
        """
        Create a new Kestrel context.

        Args:
            scanner: "table" (generated scanner) or "handcoded"
            builtins: Builtin registry handed to every VM
            debug: Enable debug logging for the kestrel package
        """
        if scanner not in SCANNERS:
            raise ValueError(f"unknown scanner {scanner!r}, expected one of {SCANNERS}")

        self.scanner = scanner
        self.builtins = builtins if builtins is not None else default_builtins()
        self.debug = debug

        self.symbol_table = SymbolTable()
        self.constants: List[Any] = []
        self.globals = new_globals()

        if debug:
            logging.getLogger("kestrel").setLevel(logging.DEBUG)

    def compile(self, source: str, filename: Optional[str] = None) -> Script:
        """
        Compile Kestrel source code against this context's globals.

        Raises:
            ParseError: If parsing fails
            CompileError: If compilation fails
        """
        program = parse_source(source, self.scanner)

        # A failed compile must not leave names bound to slots nothing set
        symbols = dict(self.symbol_table.store)
        constant_count = len(self.constants)
        try:
            bytecode = Compiler(self.symbol_table, self.constants).compile(program)
        except CompileError:
            self.symbol_table.store = symbols
            del self.constants[constant_count:]
            raise

        return Script(source=source, bytecode=bytecode, filename=filename,
                      ends_with_expression=_ends_with_expression(program))

    def compile_file(self, path: str) -> Script:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        return self.compile(source, filename=path)

    def execute(self, script: Script) -> Optional[Value]:
        """
        Execute a compiled script.

        Returns:
            The value of the last expression statement, or None if nothing
            was ever popped

        Raises:
            VMError: On any runtime error
        """
        vm = VM(script.bytecode, globals_store=self.globals, builtins=self.builtins)
        return vm.run()

    def run(self, source: str) -> Optional[Value]:
        """Compile and execute source in one step."""
        return self.execute(self.compile(source))

    def get_global(self, name: str) -> Optional[Value]:
        """Value bound to name by an earlier `let`, or None."""
        symbol = self.symbol_table.resolve(name)
        if symbol is None:
            return None
        return self.globals[symbol.index]
