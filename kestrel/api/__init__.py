"""
Kestrel Runtime API

Value model, builtins and the virtual machine. Context and Script are
exported from the top-level kestrel package.
"""

from .types import (
    Value, Integer, Boolean, Null, String, Array, Map, CompiledFunction, Builtin,
    TRUE, FALSE, NULL,
)
from .builtins import BuiltinRegistry, default_builtins
from .interpreter import VM, VMState, Frame

__all__ = [
    'Value',
    'Integer',
    'Boolean',
    'Null',
    'String',
    'Array',
    'Map',
    'CompiledFunction',
    'Builtin',
    'TRUE',
    'FALSE',
    'NULL',
    'BuiltinRegistry',
    'default_builtins',
    'VM',
    'VMState',
    'Frame',
]
