"""
Kestrel Builtins

Registry of named host functions. A registry is passed to the VM
explicitly; there is no process-wide table.
"""

from typing import Callable, Dict, List, Optional

from ..compiler.errors import VMError
from .types import (
    Array, Builtin, Integer, Map, String, Value,
    native_bool_to_boolean,
)


class BuiltinRegistry:
    """Named builtins, looked up by name."""

    def __init__(self):
        self._builtins: Dict[str, Builtin] = {}

    def register(self, name: str) -> Callable:
        """
        Decorator to register a Python function as a builtin.

        Example:
            @registry.register("first")
            def first(array):
                return array.elements[0]
        """
        def decorator(func: Callable[..., Value]) -> Callable[..., Value]:
            self.register_function(name, func)
            return func
        return decorator

    def register_function(self, name: str, func: Callable[..., Value]) -> Builtin:
        builtin = Builtin(name, func)
        self._builtins[name] = builtin
        return builtin

    def lookup(self, name: str) -> Optional[Builtin]:
        return self._builtins.get(name)

    def call(self, name: str, *args: Value) -> Value:
        """
        Invoke a builtin by name.

        Raises:
            VMError: If the builtin is unknown or rejects its arguments
        """
        builtin = self.lookup(name)
        if builtin is None:
            raise VMError(f"unknown builtin {name}")
        return builtin.function(*args)

    def names(self) -> List[str]:
        return list(self._builtins)

    def __contains__(self, name: str) -> bool:
        return name in self._builtins

    def __len__(self) -> int:
        return len(self._builtins)


def _expect_args(name: str, args, count: int) -> None:
    if len(args) != count:
        raise VMError(f"wrong number of arguments to `{name}`: got={len(args)}, want={count}")


def _push(*args: Value) -> Value:
    _expect_args("push", args, 2)
    array, element = args
    if not isinstance(array, Array):
        raise VMError(f"argument to `push` must be ARRAY, got {array.type_name}")
    return Array(array.elements + [element])


def _len(*args: Value) -> Value:
    _expect_args("len", args, 1)
    (value,) = args
    if isinstance(value, Array):
        return Integer(len(value.elements))
    if isinstance(value, String):
        return Integer(len(value.value))
    raise VMError(f"argument to `len` not supported, got {value.type_name}")


def _is_empty(*args: Value) -> Value:
    _expect_args("isEmpty", args, 1)
    (value,) = args
    if isinstance(value, Array):
        return native_bool_to_boolean(not value.elements)
    if isinstance(value, String):
        return native_bool_to_boolean(not value.value)
    if isinstance(value, Map):
        return native_bool_to_boolean(not value.pairs)
    raise VMError(f"argument to `isEmpty` not supported, got {value.type_name}")


def default_builtins() -> BuiltinRegistry:
    """A fresh registry holding push, len and isEmpty."""
    registry = BuiltinRegistry()
    registry.register_function("push", _push)
    registry.register_function("len", _len)
    registry.register_function("isEmpty", _is_empty)
    return registry
