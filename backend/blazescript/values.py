"""Runtime values for BlazeScript.

Each value carries its source span and the Context it belongs to, so errors
raised by an operator can point at the right place and produce a traceback.
Operator methods return a `(result, error)` pair; the base implementations
all report an illegal operation and concrete types override what they
support.
"""

import math
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple, Union

from .context import Context, SymbolTable, Variable
from .errors import Position, RTError
from .results import RuntimeResult
from .tokens import (
    CHAR_TYPE,
    FLOAT_TYPE,
    INT_TYPE,
    STRING_TYPE,
    Token,
    function_type,
    types_agree,
)

if TYPE_CHECKING:
    from .interpreter import Interpreter
    from .nodes import Node

# Exponents beyond this magnitude are rejected instead of computed
MAX_EXPONENT = 10_000

# Int results are kept below this many decimal digits
MAX_INT_DIGITS = 4000
MAX_INT_BITS = int(MAX_INT_DIGITS * math.log2(10))

OpResult = Tuple[Optional["BaseType"], Optional[RTError]]


class BaseType:
    def __init__(self):
        self.set_pos()
        self.set_context()

    @property
    def type(self) -> str:
        return "Unknown"

    def set_pos(self, pos_start: Optional[Position] = None, pos_end: Optional[Position] = None) -> "BaseType":
        self.pos_start = pos_start
        self.pos_end = pos_end
        return self

    def set_context(self, context: Optional[Context] = None) -> "BaseType":
        self.context = context
        return self

    def added_to(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("+", other)

    def subbed_by(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("-", other)

    def multed_by(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("*", other)

    def dived_by(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("/", other)

    def powed_by(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("^", other)

    def get_comparison_eq(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("==", other)

    def get_comparison_ne(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("!=", other)

    def get_comparison_lt(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("<", other)

    def get_comparison_gt(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation(">", other)

    def get_comparison_lte(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("<=", other)

    def get_comparison_gte(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation(">=", other)

    def anded_by(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("and", other)

    def ored_by(self, other: "BaseType") -> OpResult:
        return None, self.illegal_operation("or", other)

    def notted(self) -> OpResult:
        return None, self.illegal_operation("not")

    def execute(self, args: List["BaseType"], interpreter: "Interpreter") -> RuntimeResult:
        return RuntimeResult().failure(
            RTError(self.pos_start, self.pos_end, f"{self.type} value is not callable", self.context)
        )

    def is_true(self) -> Optional[bool]:
        """Truthiness for conditions; None when the value has none."""
        return None

    def clone(self) -> "BaseType":
        raise NotImplementedError(f"{type(self).__name__} does not define clone()")

    def represent(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} does not define represent()")

    def illegal_operation(self, op: str, other: Optional["BaseType"] = None) -> RTError:
        if other is None:
            return RTError(self.pos_start, self.pos_end, f"Illegal operation '{op}' on {self.type}", self.context)
        return RTError(
            self.pos_start,
            other.pos_end,
            f"Illegal operation '{op}' between {self.type} and {other.type}",
            self.context,
        )

    def __repr__(self) -> str:
        return self.represent()


def _to_flag(value: bool) -> int:
    return 1 if value else 0


class Number(BaseType):
    """Int or Float, tagged by the Python type of `value` (int or float)."""

    def __init__(self, value: Union[int, float]):
        super().__init__()
        self.value = value

    @property
    def type(self) -> str:
        return INT_TYPE if isinstance(self.value, int) else FLOAT_TYPE

    def _numeric(self, op: str, other: BaseType, fn: Callable) -> OpResult:
        if not isinstance(other, Number):
            return None, self.illegal_operation(op, other)
        try:
            result = fn(self.value, other.value)
        except OverflowError:
            return None, RTError(self.pos_start, other.pos_end, "Numeric overflow", self.context)
        if isinstance(result, int) and result.bit_length() > MAX_INT_BITS:
            return None, RTError(self.pos_start, other.pos_end, "Numeric overflow", self.context)
        return Number(result).set_context(self.context), None

    def added_to(self, other: BaseType) -> OpResult:
        return self._numeric("+", other, lambda a, b: a + b)

    def subbed_by(self, other: BaseType) -> OpResult:
        return self._numeric("-", other, lambda a, b: a - b)

    def multed_by(self, other: BaseType) -> OpResult:
        return self._numeric("*", other, lambda a, b: a * b)

    def dived_by(self, other: BaseType) -> OpResult:
        if isinstance(other, Number) and other.value == 0:
            return None, RTError(other.pos_start, other.pos_end, "Division by zero", self.context)

        def divide(a, b):
            # Int / Int stays Int only when the division is exact
            if isinstance(a, int) and isinstance(b, int) and a % b == 0:
                return a // b
            return a / b

        return self._numeric("/", other, divide)

    def powed_by(self, other: BaseType) -> OpResult:
        if not isinstance(other, Number):
            return None, self.illegal_operation("^", other)
        if abs(other.value) > MAX_EXPONENT:
            return None, RTError(other.pos_start, other.pos_end, f"Exponent too large; max {MAX_EXPONENT}", self.context)
        if self.value == 0 and other.value < 0:
            return None, RTError(self.pos_start, other.pos_end, "Division by zero", self.context)
        if self.value < 0 and isinstance(other.value, float) and not other.value.is_integer():
            return None, RTError(self.pos_start, other.pos_end, "Result is not a real number", self.context)
        if isinstance(self.value, int) and isinstance(other.value, int) and other.value > 0:
            if (abs(self.value).bit_length() - 1) * other.value > MAX_INT_BITS:
                return None, RTError(self.pos_start, other.pos_end, "Numeric overflow", self.context)
        return self._numeric("^", other, lambda a, b: a ** b)

    def get_comparison_eq(self, other: BaseType) -> OpResult:
        return self._numeric("==", other, lambda a, b: _to_flag(a == b))

    def get_comparison_ne(self, other: BaseType) -> OpResult:
        return self._numeric("!=", other, lambda a, b: _to_flag(a != b))

    def get_comparison_lt(self, other: BaseType) -> OpResult:
        return self._numeric("<", other, lambda a, b: _to_flag(a < b))

    def get_comparison_gt(self, other: BaseType) -> OpResult:
        return self._numeric(">", other, lambda a, b: _to_flag(a > b))

    def get_comparison_lte(self, other: BaseType) -> OpResult:
        return self._numeric("<=", other, lambda a, b: _to_flag(a <= b))

    def get_comparison_gte(self, other: BaseType) -> OpResult:
        return self._numeric(">=", other, lambda a, b: _to_flag(a >= b))

    def anded_by(self, other: BaseType) -> OpResult:
        return self._numeric("and", other, lambda a, b: _to_flag(a != 0 and b != 0))

    def ored_by(self, other: BaseType) -> OpResult:
        return self._numeric("or", other, lambda a, b: _to_flag(a != 0 or b != 0))

    def notted(self) -> OpResult:
        return Number(_to_flag(self.value == 0)).set_context(self.context), None

    def is_true(self) -> Optional[bool]:
        return self.value != 0

    def clone(self) -> "Number":
        return Number(self.value).set_pos(self.pos_start, self.pos_end).set_context(self.context)

    def represent(self) -> str:
        return str(self.value)


class String(BaseType):
    def __init__(self, value: str):
        super().__init__()
        self.value = value

    @property
    def type(self) -> str:
        return STRING_TYPE

    def added_to(self, other: BaseType) -> OpResult:
        if isinstance(other, String):
            return String(self.value + other.value).set_context(self.context), None
        return super().added_to(other)

    def get_comparison_eq(self, other: BaseType) -> OpResult:
        if isinstance(other, String):
            return Number(_to_flag(self.value == other.value)).set_context(self.context), None
        return super().get_comparison_eq(other)

    def get_comparison_ne(self, other: BaseType) -> OpResult:
        if isinstance(other, String):
            return Number(_to_flag(self.value != other.value)).set_context(self.context), None
        return super().get_comparison_ne(other)

    def clone(self) -> "String":
        return String(self.value).set_pos(self.pos_start, self.pos_end).set_context(self.context)

    def represent(self) -> str:
        return self.value


class Char(BaseType):
    def __init__(self, value: str):
        super().__init__()
        self.value = value

    @property
    def type(self) -> str:
        return CHAR_TYPE

    def get_comparison_eq(self, other: BaseType) -> OpResult:
        if isinstance(other, Char):
            return Number(_to_flag(self.value == other.value)).set_context(self.context), None
        return super().get_comparison_eq(other)

    def get_comparison_ne(self, other: BaseType) -> OpResult:
        if isinstance(other, Char):
            return Number(_to_flag(self.value != other.value)).set_context(self.context), None
        return super().get_comparison_ne(other)

    def clone(self) -> "Char":
        return Char(self.value).set_pos(self.pos_start, self.pos_end).set_context(self.context)

    def represent(self) -> str:
        return self.value


class Function(BaseType):
    """A user-defined function.

    `closure` is the Context the function was defined in and is what the
    call frame's symbol table links to. `context` only tracks where the
    value currently lives, for tracebacks.
    """

    def __init__(self, name: Optional[str], body_node: "Node", arg_name_tokens: List[Token], closure: Context):
        super().__init__()
        self.name = name or "<anonymous>"
        self.body_node = body_node
        self.arg_name_tokens = arg_name_tokens
        self.closure = closure

    @property
    def type(self) -> str:
        return function_type(self.body_node.static_type)

    def check_args(self, args: List[BaseType]) -> RuntimeResult:
        res = RuntimeResult()
        expected = len(self.arg_name_tokens)
        if len(args) > expected:
            return res.failure(RTError(
                self.pos_start, self.pos_end,
                f"{len(args) - expected} too many args passed into '{self.name}'", self.context,
            ))
        if len(args) < expected:
            return res.failure(RTError(
                self.pos_start, self.pos_end,
                f"{expected - len(args)} too few args passed into '{self.name}'", self.context,
            ))
        for arg_token, value in zip(self.arg_name_tokens, args):
            if not types_agree(arg_token.type_name, value.type):
                return res.failure(RTError(
                    value.pos_start or self.pos_start, value.pos_end or self.pos_end,
                    f"Argument '{arg_token.value}' of '{self.name}' expects {arg_token.type_name}, got {value.type}",
                    self.context,
                ))
        return res.success(None)

    def execute(self, args: List[BaseType], interpreter: "Interpreter") -> RuntimeResult:
        res = RuntimeResult()
        res.register(self.check_args(args))
        if res.should_return():
            return res

        if interpreter.call_depth >= interpreter.max_call_depth:
            return res.failure(RTError(self.pos_start, self.pos_end, "Maximum call depth exceeded", self.context))

        exec_ctx = Context(self.name, self.context, self.pos_start, SymbolTable(self.closure.symbol_table))
        for arg_token, value in zip(self.arg_name_tokens, args):
            bound = value.clone().set_context(exec_ctx)
            exec_ctx.symbol_table.set(arg_token.value, Variable(bound, arg_token.type_name, False))

        interpreter.call_depth += 1
        try:
            value = res.register(interpreter.visit(self.body_node, exec_ctx))
        finally:
            interpreter.call_depth -= 1
        if res.should_return():
            return res
        return res.success(value)

    def clone(self) -> "Function":
        copy = Function(self.name, self.body_node, self.arg_name_tokens, self.closure)
        copy.set_pos(self.pos_start, self.pos_end)
        copy.set_context(self.context)
        return copy

    def represent(self) -> str:
        return f"<function {self.name}>"
