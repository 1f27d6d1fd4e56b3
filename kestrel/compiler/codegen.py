"""
Kestrel Code Generator

Lowers an AST to bytecode. Jumps are emitted with a placeholder target
and backpatched once the target offset is known.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..api.types import Integer, String
from .ast import *
from .bytecode import Bytecode, OpCode, make
from .errors import CompileError
from .symbols import SymbolTable

logger = logging.getLogger(__name__)

# Backpatched before the compiler returns
PLACEHOLDER = 0

INFIX_OPCODES = {
    '+': OpCode.ADD,
    '-': OpCode.SUB,
    '*': OpCode.MUL,
    '/': OpCode.DIV,
    '==': OpCode.EQUAL,
    '!=': OpCode.NOT_EQUAL,
    '>': OpCode.GREATER,
    '>=': OpCode.GREATER_EQUAL,
    '<': OpCode.GREATER,
    '<=': OpCode.GREATER_EQUAL,
}

PREFIX_OPCODES = {
    '!': OpCode.BANG,
    '-': OpCode.MINUS,
}


@dataclass
class EmittedInstruction:
    """Opcode and byte position of an instruction already emitted."""
    opcode: Optional[OpCode] = None
    position: int = 0


def _position(node) -> Optional[int]:
    token = getattr(node, 'token', None)
    return token.position if token is not None else None


class Compiler(ASTVisitor):
    """Generates bytecode from an AST."""

    def __init__(self, symbol_table: Optional[SymbolTable] = None,
                 constants: Optional[List[Any]] = None):
        """
        Initialize the compiler.

        Args:
            symbol_table: Globals known from earlier compilations (REPL)
            constants: Constant pool to append to (REPL)
        """
        self.instructions = bytearray()
        self.constants: List[Any] = constants if constants is not None else []
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()

        self.last_instruction = EmittedInstruction()
        self.previous_instruction = EmittedInstruction()

    def compile(self, node: ASTNode) -> Bytecode:
        """
        Compile a node (normally a Program).

        Raises:
            CompileError: On unknown operators or unsupported nodes
        """
        node.accept(self)
        logger.debug("compiled %d instruction bytes, %d constants",
                     len(self.instructions), len(self.constants))
        return self.bytecode()

    def bytecode(self) -> Bytecode:
        return Bytecode(bytes(self.instructions), self.constants)

    # =========================================================================
    # Emission
    # =========================================================================

    def emit(self, opcode: OpCode, *operands: int) -> int:
        """Append an instruction, returning its byte position."""
        try:
            instruction = make(opcode, *operands)
        except ValueError as e:
            raise CompileError(str(e)) from None

        position = len(self.instructions)
        self.instructions.extend(instruction)

        self.previous_instruction = self.last_instruction
        self.last_instruction = EmittedInstruction(opcode, position)
        return position

    def add_constant(self, value: Any) -> int:
        self.constants.append(value)
        return len(self.constants) - 1

    def last_instruction_is(self, opcode: OpCode) -> bool:
        if not self.instructions:
            return False
        return self.last_instruction.opcode == opcode

    def remove_last_instruction(self) -> None:
        del self.instructions[self.last_instruction.position:]
        self.last_instruction = self.previous_instruction

    def replace_instruction(self, position: int, instruction: bytes) -> None:
        self.instructions[position:position + len(instruction)] = instruction

    def change_operand(self, position: int, operand: int) -> None:
        """Rewrite the operand of the instruction at position."""
        opcode = OpCode(self.instructions[position])
        try:
            instruction = make(opcode, operand)
        except ValueError as e:
            raise CompileError(str(e)) from None
        self.replace_instruction(position, instruction)

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_program(self, node: Program) -> None:
        for statement in node.statements:
            statement.accept(self)

    def visit_block(self, node: BlockStatement) -> None:
        for statement in node.statements:
            statement.accept(self)

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        node.expression.accept(self)
        self.emit(OpCode.POP)

    def visit_let(self, node: LetStatement) -> None:
        node.value.accept(self)
        symbol = self.symbol_table.define(node.name.name)
        self.emit(OpCode.SET_GLOBAL, symbol.index)

    def visit_return(self, node: ReturnStatement) -> None:
        raise CompileError("return needs call frames, which are not supported",
                           _position(node))

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_identifier(self, node: Identifier) -> None:
        symbol = self.symbol_table.resolve(node.name)
        if symbol is None:
            raise CompileError(f"undefined variable {node.name}", _position(node))
        self.emit(OpCode.GET_GLOBAL, symbol.index)

    def visit_integer(self, node: IntegerLiteral) -> None:
        self.emit(OpCode.CONSTANT, self.add_constant(Integer(node.value)))

    def visit_string(self, node: StringLiteral) -> None:
        self.emit(OpCode.CONSTANT, self.add_constant(String(node.value)))

    def visit_boolean(self, node: BooleanLiteral) -> None:
        self.emit(OpCode.TRUE if node.value else OpCode.FALSE)

    def visit_prefix(self, node: PrefixExpression) -> None:
        node.right.accept(self)

        opcode = PREFIX_OPCODES.get(node.operator)
        if opcode is None:
            raise CompileError(f"unknown operator {node.operator}", _position(node))
        self.emit(opcode)

    def visit_infix(self, node: InfixExpression) -> None:
        opcode = INFIX_OPCODES.get(node.operator)
        if opcode is None:
            raise CompileError(f"unknown operator {node.operator}", _position(node))

        # a < b is compiled as b > a
        if node.operator in ('<', '<='):
            node.right.accept(self)
            node.left.accept(self)
        else:
            node.left.accept(self)
            node.right.accept(self)

        self.emit(opcode)

    def visit_if(self, node: IfExpression) -> None:
        node.condition.accept(self)
        jump_not_true = self.emit(OpCode.JUMP_NOT_TRUE, PLACEHOLDER)

        self.compile_branch(node.consequence)

        jump = self.emit(OpCode.JUMP, PLACEHOLDER)
        self.change_operand(jump_not_true, len(self.instructions))

        if node.alternative is None:
            self.emit(OpCode.NULL)
        else:
            self.compile_branch(node.alternative)

        self.change_operand(jump, len(self.instructions))

    def compile_branch(self, block: BlockStatement) -> None:
        """Compile an if arm so that it leaves exactly one value on the stack."""
        block.accept(self)
        if self.last_instruction_is(OpCode.POP):
            self.remove_last_instruction()
        else:
            # Empty arm, or one ending in a let
            self.emit(OpCode.NULL)

    def visit_array(self, node: ArrayLiteral) -> None:
        for element in node.elements:
            element.accept(self)
        self.emit(OpCode.ARRAY, len(node.elements))

    def visit_map(self, node: MapLiteral) -> None:
        for key, value in node.pairs:
            key.accept(self)
            value.accept(self)
        self.emit(OpCode.MAP, len(node.pairs))

    def visit_index(self, node: IndexExpression) -> None:
        node.left.accept(self)
        node.index.accept(self)
        self.emit(OpCode.INDEX)

    def visit_function(self, node: FunctionLiteral) -> None:
        raise CompileError("function literals need call frames, which are not supported",
                           _position(node))

    def visit_call(self, node: CallExpression) -> None:
        raise CompileError("calls need call frames, which are not supported",
                           _position(node))
