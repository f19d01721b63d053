"""Name bindings and scope frames.

A Context is a named frame (used for tracebacks) that owns a SymbolTable.
Symbol tables link to their parent for lexical lookup; a function call's
table is a child of the function's defining (closure) context, never of the
caller's.
"""

from typing import TYPE_CHECKING, Dict, Optional

from .errors import Position

if TYPE_CHECKING:
    from .values import BaseType


class Variable:
    def __init__(self, value: "BaseType", declared_type: str, reassignable: bool):
        self.value = value
        self.declared_type = declared_type
        self.reassignable = reassignable

    def __repr__(self) -> str:
        kind = "var" if self.reassignable else "val"
        return f"<{kind} {self.declared_type} = {self.value!r}>"


class SymbolTable:
    def __init__(self, parent: Optional["SymbolTable"] = None):
        self.symbols: Dict[str, Variable] = {}
        self.parent = parent

    def get(self, name: str) -> Optional[Variable]:
        variable = self.symbols.get(name)
        if variable is None and self.parent is not None:
            return self.parent.get(name)
        return variable

    def set(self, name: str, variable: Variable) -> None:
        # always local; never writes through to a parent table
        self.symbols[name] = variable


class Context:
    def __init__(
        self,
        display_name: str,
        parent: Optional["Context"] = None,
        parent_entry_pos: Optional[Position] = None,
        symbol_table: Optional[SymbolTable] = None,
    ):
        self.display_name = display_name
        self.parent = parent
        self.parent_entry_pos = parent_entry_pos
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()

    def __repr__(self) -> str:
        return f"<Context {self.display_name}>"
