"""
Kestrel Runtime Values

Values manipulated by the VM. Booleans and null are singletons and are
compared by identity; integers and strings compare by value.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

# Type names, also used in error messages and map hash keys
INTEGER = "INTEGER"
BOOLEAN = "BOOLEAN"
NULL_TYPE = "NULL"
STRING = "STRING"
ARRAY = "ARRAY"
MAP = "MAP"
COMPILED_FUNCTION = "COMPILED_FUNCTION"
BUILTIN = "BUILTIN"

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


class Value:
    """Base class for runtime values."""

    type_name = ""

    def inspect(self) -> str:
        """Display form, as printed by the REPL."""
        raise NotImplementedError

    def is_hashable(self) -> bool:
        return False

    def hash_key(self) -> str:
        """Canonical key under which maps store this value."""
        raise TypeError(f"unusable as map key: {self.type_name}")

    def __str__(self) -> str:
        return self.inspect()


def _nested(value: Value) -> str:
    """Display form inside arrays and maps: strings get their quotes back."""
    if isinstance(value, String):
        return f'"{value.value}"'
    return value.inspect()


@dataclass(frozen=True)
class Integer(Value):
    value: int
    type_name = INTEGER

    def __post_init__(self):
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise OverflowError(f"{self.value} does not fit in 64 bits")

    def inspect(self) -> str:
        return str(self.value)

    def is_hashable(self) -> bool:
        return True

    def hash_key(self) -> str:
        return f"{INTEGER}: {self.value}"


class Boolean(Value):
    """Use TRUE and FALSE rather than creating instances."""

    type_name = BOOLEAN

    def __init__(self, value: bool):
        self.value = value

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def is_hashable(self) -> bool:
        return True

    def hash_key(self) -> str:
        return f"{BOOLEAN}: {self.inspect()}"

    def __repr__(self) -> str:
        return f"Boolean({self.value})"


class Null(Value):
    type_name = NULL_TYPE

    def inspect(self) -> str:
        return "null"

    def __repr__(self) -> str:
        return "Null()"


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool_to_boolean(value: bool) -> Boolean:
    return TRUE if value else FALSE


@dataclass(frozen=True)
class String(Value):
    value: str
    type_name = STRING

    def inspect(self) -> str:
        return self.value

    def is_hashable(self) -> bool:
        return True

    def hash_key(self) -> str:
        return f"{STRING}: {self.value}"


@dataclass(eq=False)
class Array(Value):
    elements: List[Value] = field(default_factory=list)
    type_name = ARRAY

    def inspect(self) -> str:
        return "[" + ", ".join(_nested(e) for e in self.elements) + "]"

    def __len__(self) -> int:
        return len(self.elements)


@dataclass(eq=False)
class Map(Value):
    """Insertion-ordered map; pairs[hash_key] = (key, value)."""

    pairs: Dict[str, Tuple[Value, Value]] = field(default_factory=dict)
    type_name = MAP

    def set(self, key: Value, value: Value) -> None:
        self.pairs[key.hash_key()] = (key, value)

    def get(self, key: Value) -> Value:
        pair = self.pairs.get(key.hash_key())
        return NULL if pair is None else pair[1]

    def inspect(self) -> str:
        items = (f"{_nested(k)}: {_nested(v)}" for k, v in self.pairs.values())
        return "{" + ", ".join(items) + "}"

    def __len__(self) -> int:
        return len(self.pairs)


@dataclass(eq=False)
class CompiledFunction(Value):
    """An instruction buffer the VM can run in a frame."""

    instructions: bytes = b''
    type_name = COMPILED_FUNCTION

    def inspect(self) -> str:
        return f"CompiledFunction[{len(self.instructions)} bytes]"


@dataclass(eq=False)
class Builtin(Value):
    """Named, variadic host function."""

    name: str
    function: Callable[..., Value]
    type_name = BUILTIN

    def inspect(self) -> str:
        return f"builtin function {self.name}"
