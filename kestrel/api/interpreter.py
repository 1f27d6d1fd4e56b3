"""
Kestrel Virtual Machine

Stack-based interpreter for Kestrel bytecode. The value stack, the global
slots and the frame array have fixed capacities and are never grown.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import numpy as np

from ..compiler.bytecode import Bytecode, OpCode, read_u16
from ..compiler.errors import VMError
from .builtins import BuiltinRegistry, default_builtins
from .types import (
    FALSE, NULL, TRUE,
    Array, Boolean, CompiledFunction, Integer, Map, String, Value,
    native_bool_to_boolean,
)

logger = logging.getLogger(__name__)

STACK_SIZE = 2048
GLOBALS_SIZE = 6048
MAX_FRAMES = 1024

OPERATOR_SYMBOLS = {
    OpCode.ADD: '+',
    OpCode.SUB: '-',
    OpCode.MUL: '*',
    OpCode.DIV: '/',
    OpCode.GREATER: '>',
    OpCode.GREATER_EQUAL: '>=',
}


class VMState(Enum):
    RUNNING = "running"
    HALTED = "halted"
    FAULTED = "faulted"


@dataclass
class Frame:
    """A compiled function being executed."""
    function: CompiledFunction
    ip: int = -1
    base_pointer: int = 0

    @property
    def instructions(self) -> bytes:
        return self.function.instructions


def new_globals() -> np.ndarray:
    """Empty global slot array; unset slots hold None."""
    return np.empty(GLOBALS_SIZE, dtype=object)


def _divide(left: int, right: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def _wrap(value: int) -> int:
    return (value + 2 ** 63) % 2 ** 64 - 2 ** 63


class VM:
    """
    Executes bytecode in a main frame.

    The popped slot keeps its value, so last_popped() reports the value of
    the most recent expression statement after run().
    """

    def __init__(self, bytecode: Bytecode,
                 globals_store: Optional[np.ndarray] = None,
                 builtins: Optional[BuiltinRegistry] = None):
        """
        Initialize the VM.

        Args:
            bytecode: Compiled program
            globals_store: Global slots shared with earlier runs (REPL)
            builtins: Builtin registry; a default one if omitted. No opcode
                reads it yet; it is held for the call opcode that will look
                builtins up by name
        """
        self.constants = bytecode.constants
        self.builtins = builtins if builtins is not None else default_builtins()

        self.stack = np.empty(STACK_SIZE, dtype=object)
        self.sp = 0  # Next free slot; the top of the stack is stack[sp - 1]

        self.globals = globals_store if globals_store is not None else new_globals()

        self.frames = np.empty(MAX_FRAMES, dtype=object)
        self.frames[0] = Frame(CompiledFunction(bytecode.instructions))
        self.frame_index = 1

        self.state = VMState.RUNNING

        self._dispatch: Dict[OpCode, Callable[[Frame], None]] = {
            OpCode.CONSTANT: self._op_constant,
            OpCode.TRUE: lambda frame: self.push(TRUE),
            OpCode.FALSE: lambda frame: self.push(FALSE),
            OpCode.NULL: lambda frame: self.push(NULL),
            OpCode.POP: lambda frame: self.pop(),
            OpCode.ADD: self._op_binary,
            OpCode.SUB: self._op_binary,
            OpCode.MUL: self._op_binary,
            OpCode.DIV: self._op_binary,
            OpCode.EQUAL: self._op_equality,
            OpCode.NOT_EQUAL: self._op_equality,
            OpCode.GREATER: self._op_comparison,
            OpCode.GREATER_EQUAL: self._op_comparison,
            OpCode.MINUS: self._op_minus,
            OpCode.BANG: self._op_bang,
            OpCode.JUMP: self._op_jump,
            OpCode.JUMP_NOT_TRUE: self._op_jump_not_true,
            OpCode.SET_GLOBAL: self._op_set_global,
            OpCode.GET_GLOBAL: self._op_get_global,
            OpCode.ARRAY: self._op_array,
            OpCode.MAP: self._op_map,
            OpCode.INDEX: self._op_index,
        }
        self._opcode: Optional[OpCode] = None

    # =========================================================================
    # Frames
    # =========================================================================

    def current_frame(self) -> Frame:
        return self.frames[self.frame_index - 1]

    def push_frame(self, frame: Frame) -> None:
        if self.frame_index >= MAX_FRAMES:
            raise VMError("frame overflow")
        self.frames[self.frame_index] = frame
        self.frame_index += 1

    def pop_frame(self) -> Frame:
        if self.frame_index <= 1:
            raise VMError("cannot pop the main frame")
        self.frame_index -= 1
        return self.frames[self.frame_index]

    # =========================================================================
    # Stack
    # =========================================================================

    def push(self, value: Value) -> None:
        if self.sp >= STACK_SIZE:
            raise VMError("stack overflow")
        self.stack[self.sp] = value
        self.sp += 1

    def pop(self) -> Value:
        if self.sp == 0:
            raise VMError("stack underflow")
        self.sp -= 1
        return self.stack[self.sp]

    def stack_top(self) -> Optional[Value]:
        if self.sp == 0:
            return None
        return self.stack[self.sp - 1]

    def last_popped(self) -> Optional[Value]:
        return self.stack[self.sp]

    # =========================================================================
    # Execution
    # =========================================================================

    def run(self) -> Optional[Value]:
        """
        Execute until the main frame runs out of instructions.

        Returns:
            The last popped value

        Raises:
            VMError: On any runtime error; the VM is left FAULTED
        """
        while self.state is VMState.RUNNING:
            self.step()
        return self.last_popped()

    def step(self) -> None:
        """Execute one instruction, or halt at the end of the main frame."""
        if self.state is not VMState.RUNNING:
            return

        frame = self.current_frame()
        if frame.ip >= len(frame.instructions) - 1:
            self.state = VMState.HALTED
            return

        frame.ip += 1
        byte = frame.instructions[frame.ip]
        try:
            self._opcode = OpCode(byte)
        except ValueError:
            self._opcode = None
            self._fault(frame)
            raise VMError(f"unknown opcode {byte}") from None

        try:
            self._dispatch[self._opcode](frame)
        except VMError:
            self._fault(frame)
            raise

    def _fault(self, frame: Frame) -> None:
        self.state = VMState.FAULTED
        logger.debug("VM fault at ip %d executing %s", frame.ip,
                     self._opcode.name if self._opcode is not None else "?")

    # =========================================================================
    # Opcodes
    # =========================================================================

    def _read_operand(self, frame: Frame) -> int:
        operand = read_u16(frame.instructions, frame.ip + 1)
        frame.ip += 2
        return operand

    def _op_constant(self, frame: Frame) -> None:
        self.push(self.constants[self._read_operand(frame)])

    def _op_binary(self, frame: Frame) -> None:
        right = self.pop()
        left = self.pop()

        if isinstance(left, Integer) and isinstance(right, Integer):
            self.push(self._integer_arithmetic(left.value, right.value))
        elif isinstance(left, String) and isinstance(right, String) and self._opcode == OpCode.ADD:
            self.push(String(left.value + right.value))
        else:
            raise self._mismatch(left, right)

    def _integer_arithmetic(self, left: int, right: int) -> Integer:
        if self._opcode == OpCode.DIV:
            if right == 0:
                raise VMError("division by zero")
            return Integer(_wrap(_divide(left, right)))

        a, b = np.int64(left), np.int64(right)
        with np.errstate(over="ignore"):
            if self._opcode == OpCode.ADD:
                result = a + b
            elif self._opcode == OpCode.SUB:
                result = a - b
            else:
                result = a * b
        return Integer(int(result))

    def _op_equality(self, frame: Frame) -> None:
        right = self.pop()
        left = self.pop()

        if isinstance(left, (Integer, String)) and type(left) is type(right):
            equal = left.value == right.value
        else:
            equal = left is right

        if self._opcode == OpCode.NOT_EQUAL:
            equal = not equal
        self.push(native_bool_to_boolean(equal))

    def _op_comparison(self, frame: Frame) -> None:
        right = self.pop()
        left = self.pop()

        if not (isinstance(left, Integer) and isinstance(right, Integer)):
            raise self._mismatch(left, right)

        if self._opcode == OpCode.GREATER:
            self.push(native_bool_to_boolean(left.value > right.value))
        else:
            self.push(native_bool_to_boolean(left.value >= right.value))

    def _op_minus(self, frame: Frame) -> None:
        operand = self.pop()
        if not isinstance(operand, Integer):
            raise VMError(f"unsupported type for negation: {operand.type_name}")
        with np.errstate(over="ignore"):
            self.push(Integer(int(-np.int64(operand.value))))

    def _op_bang(self, frame: Frame) -> None:
        operand = self.pop()
        if not isinstance(operand, Boolean):
            raise VMError(f"unsupported type for !: {operand.type_name}")
        self.push(FALSE if operand is TRUE else TRUE)

    def _op_jump(self, frame: Frame) -> None:
        target = read_u16(frame.instructions, frame.ip + 1)
        frame.ip = target - 1

    def _op_jump_not_true(self, frame: Frame) -> None:
        target = self._read_operand(frame)
        condition = self.pop()
        if not isinstance(condition, Boolean):
            raise VMError(f"condition must be BOOLEAN, got {condition.type_name}")
        if condition is not TRUE:
            frame.ip = target - 1

    def _op_set_global(self, frame: Frame) -> None:
        slot = self._check_global_slot(self._read_operand(frame))
        self.globals[slot] = self.pop()

    def _op_get_global(self, frame: Frame) -> None:
        slot = self._check_global_slot(self._read_operand(frame))
        value = self.globals[slot]
        if value is None:
            raise VMError(f"global slot {slot} is not set")
        self.push(value)

    def _check_global_slot(self, slot: int) -> int:
        if slot >= len(self.globals):
            raise VMError(f"global slot {slot} out of range")
        return slot

    def _op_array(self, frame: Frame) -> None:
        count = self._read_operand(frame)
        if count > self.sp:
            raise VMError("stack underflow")

        elements = list(self.stack[self.sp - count:self.sp])
        self.sp -= count
        self.push(Array(elements))

    def _op_map(self, frame: Frame) -> None:
        count = self._read_operand(frame) * 2
        if count > self.sp:
            raise VMError("stack underflow")

        result = Map()
        for i in range(self.sp - count, self.sp, 2):
            key, value = self.stack[i], self.stack[i + 1]
            if not key.is_hashable():
                raise VMError(f"unusable as map key: {key.type_name}")
            result.set(key, value)

        self.sp -= count
        self.push(result)

    def _op_index(self, frame: Frame) -> None:
        index = self.pop()
        left = self.pop()

        if isinstance(left, Array) and isinstance(index, Integer):
            length = len(left.elements)
            if not 0 <= index.value < length:
                raise VMError(f"index {index.value} out of range for array of length {length}")
            self.push(left.elements[index.value])
        elif isinstance(left, Map):
            if not index.is_hashable():
                raise VMError(f"unusable as map key: {index.type_name}")
            self.push(left.get(index))
        else:
            raise VMError(f"index operator not supported: {left.type_name}[{index.type_name}]")

    def _mismatch(self, left: Value, right: Value) -> VMError:
        symbol = OPERATOR_SYMBOLS[self._opcode]
        return VMError(f"type mismatch: {left.type_name} {symbol} {right.type_name}")
