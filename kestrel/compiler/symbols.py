"""
Kestrel Symbol Table

Maps names bound by `let` to global slots.
"""

from dataclasses import dataclass
from typing import Dict, Optional

GLOBAL_SCOPE = "GLOBAL"


@dataclass(frozen=True)
class Symbol:
    name: str
    scope: str
    index: int


class SymbolTable:
    """Global symbol table. Rebinding a name keeps its slot."""

    def __init__(self):
        self.store: Dict[str, Symbol] = {}

    def define(self, name: str) -> Symbol:
        symbol = self.store.get(name)
        if symbol is None:
            symbol = Symbol(name, GLOBAL_SCOPE, len(self.store))
            self.store[name] = symbol
        return symbol

    def resolve(self, name: str) -> Optional[Symbol]:
        return self.store.get(name)

    def __len__(self) -> int:
        return len(self.store)
