"""
Kestrel Bytecode Format

Defines bytecode instructions, their encoding and the compiled bytecode
container. Operands are unsigned and big-endian.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple
import struct


class OpCode(IntEnum):
    """Kestrel VM opcodes."""

    # Stack operations
    CONSTANT = 0x00      # operand: constant index (u16)
    TRUE = 0x01
    FALSE = 0x02
    NULL = 0x03
    POP = 0x04

    # Arithmetic
    ADD = 0x10
    SUB = 0x11
    MUL = 0x12
    DIV = 0x13

    # Comparison
    EQUAL = 0x20
    NOT_EQUAL = 0x21
    GREATER = 0x22
    GREATER_EQUAL = 0x23

    # Unary
    MINUS = 0x30
    BANG = 0x31

    # Control flow
    JUMP = 0x40          # operand: absolute target (u16)
    JUMP_NOT_TRUE = 0x41  # operand: absolute target (u16)

    # Globals
    SET_GLOBAL = 0x50    # operand: slot (u16)
    GET_GLOBAL = 0x51    # operand: slot (u16)

    # Aggregates
    ARRAY = 0x60         # operand: element count (u16)
    MAP = 0x61           # operand: pair count (u16)
    INDEX = 0x62


@dataclass(frozen=True)
class Definition:
    """Display name and operand widths (in bytes) of an opcode."""
    name: str
    operand_widths: Tuple[int, ...] = ()

    @property
    def size(self) -> int:
        return 1 + sum(self.operand_widths)


DEFINITIONS: Dict[OpCode, Definition] = {
    OpCode.CONSTANT: Definition("OpConstant", (2,)),
    OpCode.TRUE: Definition("OpTrue"),
    OpCode.FALSE: Definition("OpFalse"),
    OpCode.NULL: Definition("OpNull"),
    OpCode.POP: Definition("OpPop"),
    OpCode.ADD: Definition("OpAdd"),
    OpCode.SUB: Definition("OpSub"),
    OpCode.MUL: Definition("OpMul"),
    OpCode.DIV: Definition("OpDiv"),
    OpCode.EQUAL: Definition("OpEqual"),
    OpCode.NOT_EQUAL: Definition("OpNotEqual"),
    OpCode.GREATER: Definition("OpGreater"),
    OpCode.GREATER_EQUAL: Definition("OpGreaterEqual"),
    OpCode.MINUS: Definition("OpMinus"),
    OpCode.BANG: Definition("OpBang"),
    OpCode.JUMP: Definition("OpJump", (2,)),
    OpCode.JUMP_NOT_TRUE: Definition("OpJumpNotTrue", (2,)),
    OpCode.SET_GLOBAL: Definition("OpSetGlobal", (2,)),
    OpCode.GET_GLOBAL: Definition("OpGetGlobal", (2,)),
    OpCode.ARRAY: Definition("OpArray", (2,)),
    OpCode.MAP: Definition("OpMap", (2,)),
    OpCode.INDEX: Definition("OpIndex"),
}

# Instruction size information
OPCODE_SIZES = {op: definition.size for op, definition in DEFINITIONS.items()}

_FORMATS = {1: '>B', 2: '>H'}


def lookup(opcode: int) -> Definition:
    """Definition for a raw opcode byte."""
    try:
        return DEFINITIONS[OpCode(opcode)]
    except ValueError:
        raise ValueError(f"opcode {opcode} undefined") from None


def make(opcode: OpCode, *operands: int) -> bytes:
    """
    Encode one instruction.

    Args:
        opcode: Instruction opcode
        operands: One value per declared operand, each written big-endian
            over its declared width

    Raises:
        ValueError: On a wrong operand count or an operand out of range
    """
    definition = DEFINITIONS[opcode]
    if len(operands) != len(definition.operand_widths):
        raise ValueError(f"{definition.name} expects {len(definition.operand_widths)} "
                         f"operand(s), got {len(operands)}")

    instruction = bytearray([opcode])
    for operand, width in zip(operands, definition.operand_widths):
        try:
            instruction.extend(struct.pack(_FORMATS[width], operand))
        except struct.error:
            raise ValueError(f"operand {operand} does not fit in {width} byte(s) "
                             f"for {definition.name}") from None
    return bytes(instruction)


def read_u16(instructions: bytes, offset: int) -> int:
    """Read an unsigned 16-bit big-endian value."""
    return struct.unpack_from('>H', instructions, offset)[0]


def read_operands(definition: Definition, instructions: bytes, offset: int) -> Tuple[List[int], int]:
    """
    Decode the operands of an instruction.

    Args:
        definition: Definition of the instruction's opcode
        instructions: Instruction buffer
        offset: Position of the first operand byte

    Returns:
        (operands, number of bytes read)
    """
    operands = []
    read = 0
    for width in definition.operand_widths:
        operands.append(struct.unpack_from(_FORMATS[width], instructions, offset + read)[0])
        read += width
    return operands, read


def disassemble(instructions: bytes) -> str:
    """Render one line per instruction: offset, name, operands."""
    lines = []
    offset = 0
    while offset < len(instructions):
        try:
            definition = lookup(instructions[offset])
        except ValueError as e:
            lines.append(f"ERROR: {e}")
            offset += 1
            continue

        operands, read = read_operands(definition, instructions, offset + 1)
        text = " ".join([definition.name] + [str(o) for o in operands])
        lines.append(f"{offset:04d} {text}")
        offset += 1 + read

    return "\n".join(lines)


@dataclass
class Bytecode:
    """Compiled instructions plus their constant pool."""

    instructions: bytes = b''
    constants: List[Any] = field(default_factory=list)

    def disassemble(self) -> str:
        """Disassemble bytecode to human-readable format."""
        lines = ["Constants:"]
        for i, const in enumerate(self.constants):
            lines.append(f"  [{i:4d}] {const!r}")
        lines.append("")
        lines.append("Code:")
        code = disassemble(self.instructions)
        if code:
            lines.append(code)
        return "\n".join(lines)
