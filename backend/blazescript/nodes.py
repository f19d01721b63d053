"""AST node types produced by the parser.

Nodes are immutable once built. Every node carries `pos_start`/`pos_end`
(derived from its first/last child for composite nodes) and a
`static_type`: one of the value type names, a `Function: X` name, or
`Identifier` when the type is only known at runtime.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .errors import Position
from .tokens import (
    CHAR_TYPE,
    FLOAT_TYPE,
    IDENTIFIER_TYPE,
    INT_TYPE,
    STRING_TYPE,
    Token,
    TokenKind,
    function_type,
    return_type_of,
)

COMPARISON_OPS = (
    TokenKind.DOUBLE_EQUALS,
    TokenKind.NOT_EQUALS,
    TokenKind.LESS_THAN,
    TokenKind.LESS_THAN_EQUALS,
    TokenKind.GREATER_THAN,
    TokenKind.GREATER_THAN_EQUALS,
)


def first_known_type(*types: str) -> str:
    for type_name in types:
        if type_name != IDENTIFIER_TYPE:
            return type_name
    return IDENTIFIER_TYPE


@dataclass(repr=False)
class NumberNode:
    token: Token
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.token.pos_start
        self.pos_end = self.token.pos_end
        self.static_type = INT_TYPE if self.token.kind == TokenKind.INT else FLOAT_TYPE

    def __repr__(self) -> str:
        return repr(self.token)


@dataclass(repr=False)
class StringNode:
    token: Token
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False, default=STRING_TYPE)

    def __post_init__(self):
        self.pos_start = self.token.pos_start
        self.pos_end = self.token.pos_end

    def __repr__(self) -> str:
        return repr(self.token)


@dataclass(repr=False)
class CharNode:
    token: Token
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False, default=CHAR_TYPE)

    def __post_init__(self):
        self.pos_start = self.token.pos_start
        self.pos_end = self.token.pos_end

    def __repr__(self) -> str:
        return repr(self.token)


@dataclass(repr=False)
class UnaryOpNode:
    op_token: Token
    node: "Node"
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.op_token.pos_start
        self.pos_end = self.node.pos_end
        if self.op_token.matches(TokenKind.KEYWORD, "not"):
            self.static_type = INT_TYPE
        else:
            self.static_type = self.node.static_type

    def __repr__(self) -> str:
        return f"({self.op_token!r}, {self.node!r})"


@dataclass(repr=False)
class BinOpNode:
    left_node: "Node"
    op_token: Token
    right_node: "Node"
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.left_node.pos_start
        self.pos_end = self.right_node.pos_end
        if self.op_token.kind in COMPARISON_OPS or self.op_token.kind == TokenKind.KEYWORD:
            self.static_type = INT_TYPE
        else:
            self.static_type = first_known_type(self.left_node.static_type, self.right_node.static_type)

    def __repr__(self) -> str:
        return f"({self.left_node!r}, {self.op_token!r}, {self.right_node!r})"


@dataclass(repr=False)
class VarAccessNode:
    name_token: Token
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False, default=IDENTIFIER_TYPE)

    def __post_init__(self):
        self.pos_start = self.name_token.pos_start
        self.pos_end = self.name_token.pos_end

    def __repr__(self) -> str:
        return f"({self.name_token!r})"


@dataclass(repr=False)
class VarAssignNode:
    """`val`/`var` declaration, or a bare `NAME = expr` re-assignment.

    `declared_type` is the explicit annotation, or None when none was
    written; the binding then takes the runtime type of its first value.
    Re-assignments keep the type of the existing binding.
    """

    name_token: Token
    value_node: "Node"
    declared_type: Optional[str]
    reassignable: bool
    declaration: bool = True
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.name_token.pos_start
        self.pos_end = self.value_node.pos_end
        self.static_type = self.value_node.static_type

    def __repr__(self) -> str:
        keyword = ("var" if self.reassignable else "val") if self.declaration else "set"
        return f"({keyword} {self.name_token.value}: {self.declared_type} = {self.value_node!r})"


@dataclass(repr=False)
class IfNode:
    cases: List[Tuple["Node", "Node"]]
    else_case: Optional["Node"]
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.cases[0][0].pos_start
        last = self.else_case if self.else_case is not None else self.cases[-1][1]
        self.pos_end = last.pos_end
        branch_types = [body.static_type for _, body in self.cases]
        if self.else_case is not None:
            branch_types.append(self.else_case.static_type)
        self.static_type = first_known_type(*branch_types)

    def __repr__(self) -> str:
        cases = ", ELSE IF ".join(f"{cond!r} -> {body!r}" for cond, body in self.cases)
        return f"(IF {cases}, ELSE {self.else_case!r})"


@dataclass(repr=False)
class ForNode:
    var_name_token: Token
    start_value_node: "Node"
    end_value_node: "Node"
    step_value_node: Optional["Node"]
    body_node: "Node"
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.var_name_token.pos_start
        self.pos_end = self.body_node.pos_end
        self.static_type = self.body_node.static_type

    @property
    def loop_type(self) -> str:
        return self.start_value_node.static_type

    def __repr__(self) -> str:
        return (
            f"(FOR {self.var_name_token.value} = {self.start_value_node!r} TO {self.end_value_node!r}"
            f" STEP {self.step_value_node!r} THEN {self.body_node!r})"
        )


@dataclass(repr=False)
class WhileNode:
    condition_node: "Node"
    body_node: "Node"
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.condition_node.pos_start
        self.pos_end = self.body_node.pos_end
        self.static_type = self.body_node.static_type

    def __repr__(self) -> str:
        return f"(WHILE {self.condition_node!r} THEN {self.body_node!r})"


@dataclass(repr=False)
class FuncDefNode:
    """Function definition; each arg token carries its declared `type_name`."""

    name_token: Optional[Token]
    arg_name_tokens: List[Token]
    body_node: "Node"
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        if self.name_token is not None:
            self.pos_start = self.name_token.pos_start
        elif self.arg_name_tokens:
            self.pos_start = self.arg_name_tokens[0].pos_start
        else:
            self.pos_start = self.body_node.pos_start
        self.pos_end = self.body_node.pos_end
        self.static_type = function_type(self.body_node.static_type)

    @property
    def name(self) -> Optional[str]:
        return self.name_token.value if self.name_token is not None else None

    def __repr__(self) -> str:
        args = ", ".join(f"{tok.value}: {tok.type_name}" for tok in self.arg_name_tokens)
        return f"<FUNCTION {self.name or 'anonymous'} [{args}]>"


@dataclass(repr=False)
class CallNode:
    node_to_call: "Node"
    arg_nodes: List["Node"]
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.node_to_call.pos_start
        self.pos_end = self.arg_nodes[-1].pos_end if self.arg_nodes else self.node_to_call.pos_end
        self.static_type = return_type_of(self.node_to_call.static_type) or IDENTIFIER_TYPE

    def __repr__(self) -> str:
        args = ", ".join(repr(arg) for arg in self.arg_nodes)
        return f"<{self.node_to_call!r}: [{args}]>"


@dataclass(repr=False)
class StatementsNode:
    statements: List["Node"]
    pos_start: Position = field(init=False)
    pos_end: Position = field(init=False)
    static_type: str = field(init=False)

    def __post_init__(self):
        self.pos_start = self.statements[0].pos_start
        self.pos_end = self.statements[-1].pos_end
        self.static_type = self.statements[-1].static_type

    def __repr__(self) -> str:
        return "[" + "; ".join(repr(stmt) for stmt in self.statements) + "]"


Node = Union[
    NumberNode,
    StringNode,
    CharNode,
    UnaryOpNode,
    BinOpNode,
    VarAccessNode,
    VarAssignNode,
    IfNode,
    ForNode,
    WhileNode,
    FuncDefNode,
    CallNode,
    StatementsNode,
]
