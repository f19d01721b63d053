"""Recursive-descent parser with inline static type checks.

Precedence, loosest to tightest:

    statements  expr (NEWLINE+ expr)*
    expr        'val'|'var' NAME (':' TYPE)? '=' expr  |  comp_expr (('and'|'or') comp_expr)*
    comp_expr   'not' comp_expr  |  arith_expr (('=='|'!='|'<'|'<='|'>'|'>=') arith_expr)*
    arith_expr  term (('+'|'-') term)*
    term        factor (('*'|'/') factor)*
    factor      ('+'|'-') factor  |  power
    power       call ('^' exponent)*
    exponent    ('+'|'-') exponent  |  call
    call        atom ('(' (expr (',' expr)*)? ')')*
    atom        literal | NAME ('=' expr)? | '(' expr ')' | if | for | while | fun

Type checks look only at the `static_type` recorded on nodes. A side whose
type is `Identifier` (unknown until runtime) is never reported.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .errors import Error, InvalidSyntaxError, InvalidTypeError
from .nodes import (
    COMPARISON_OPS,
    BinOpNode,
    CallNode,
    CharNode,
    ForNode,
    FuncDefNode,
    IfNode,
    Node,
    NumberNode,
    StatementsNode,
    StringNode,
    UnaryOpNode,
    VarAccessNode,
    VarAssignNode,
    WhileNode,
    first_known_type,
)
from .results import ParseResult
from .tokens import FUNCTION_TYPE, VALUE_TYPES, Token, TokenKind, function_type, types_agree

logger = logging.getLogger(__name__)

OpSpec = Union[TokenKind, Tuple[TokenKind, str]]

EXPECTED_EXPRESSION = (
    "Expected 'val', 'var', 'if', 'for', 'while', 'fun', int, float, string, char, "
    "identifier, '+', '-', '(' or 'not'"
)


def _span(node) -> str:
    return f"line {node.pos_start.line + 1}, column {node.pos_start.column + 1}"


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.tok_idx = -1
        self.current_tok: Token = tokens[0]
        # one frame per function body: name -> parameter types of a named
        # function, or None for any other binding that hides outer names
        self.signature_scopes: List[Dict[str, Optional[List[str]]]] = [{}]
        self.advance()

    def advance(self) -> Token:
        self.tok_idx += 1
        if self.tok_idx < len(self.tokens):
            self.current_tok = self.tokens[self.tok_idx]
        return self.current_tok

    def peek_past_newlines(self) -> Token:
        idx = self.tok_idx
        while idx < len(self.tokens) - 1 and self.tokens[idx].kind == TokenKind.NEWLINE:
            idx += 1
        return self.tokens[idx]

    def skip_newlines(self, res: ParseResult) -> int:
        count = 0
        while self.current_tok.kind == TokenKind.NEWLINE:
            res.register_advancement()
            self.advance()
            count += 1
        return count

    def is_keyword(self, value: str) -> bool:
        return self.current_tok.matches(TokenKind.KEYWORD, value)

    def syntax_error(self, details: str) -> InvalidSyntaxError:
        return InvalidSyntaxError(self.current_tok.pos_start, self.current_tok.pos_end, details)

    ###################################

    def parse(self) -> ParseResult:
        res = self.statements()
        if not res.error and self.current_tok.kind != TokenKind.EOF:
            return res.failure(self.syntax_error(f"Unexpected token {self.current_tok!r}"))
        if not res.error:
            logger.debug("parsed %r", res.node)
        return res

    def statements(self) -> ParseResult:
        res = ParseResult()
        statements: List[Node] = []
        self.skip_newlines(res)
        if self.current_tok.kind == TokenKind.EOF:
            return res.success(None)

        statement = res.register(self.expr())
        if res.error:
            return res
        statements.append(statement)

        while True:
            if self.skip_newlines(res) == 0 or self.current_tok.kind == TokenKind.EOF:
                break
            statement = res.register(self.expr())
            if res.error:
                return res
            statements.append(statement)

        if len(statements) == 1:
            return res.success(statements[0])
        return res.success(StatementsNode(statements))

    def expr(self) -> ParseResult:
        res = ParseResult()

        if self.is_keyword("val") or self.is_keyword("var"):
            reassignable = self.current_tok.value == "var"
            res.register_advancement()
            self.advance()

            if self.current_tok.kind != TokenKind.IDENTIFIER:
                return res.failure(self.syntax_error("Expected identifier"))
            var_name = self.current_tok
            res.register_advancement()
            self.advance()

            declared_type: Optional[str] = None
            if self.current_tok.kind == TokenKind.COLON:
                res.register_advancement()
                self.advance()
                declared_type = res.register(self.type_annotation())
                if res.error:
                    return res

            if self.current_tok.kind != TokenKind.EQUALS:
                return res.failure(self.syntax_error("Expected '=' or ':'"))
            res.register_advancement()
            self.advance()
            self.skip_newlines(res)

            value = res.register(self.expr())
            if res.error:
                return res
            if declared_type is not None and not types_agree(declared_type, value.static_type):
                return res.failure(InvalidTypeError(
                    value.pos_start, value.pos_end,
                    f"'{var_name.value}' is declared as {declared_type} but is given {value.static_type}",
                ))
            self.signature_scopes[-1][var_name.value] = None
            return res.success(VarAssignNode(var_name, value, declared_type, reassignable))

        node = res.register(self.bin_op(self.comp_expr, ((TokenKind.KEYWORD, "and"), (TokenKind.KEYWORD, "or"))))
        if res.error:
            return res.failure(self.syntax_error(EXPECTED_EXPRESSION))
        return res.success(node)

    def comp_expr(self) -> ParseResult:
        res = ParseResult()

        if self.is_keyword("not"):
            op_tok = self.current_tok
            res.register_advancement()
            self.advance()
            node = res.register(self.comp_expr())
            if res.error:
                return res
            return res.success(UnaryOpNode(op_tok, node))

        node = res.register(self.bin_op(self.arith_expr, COMPARISON_OPS))
        if res.error:
            return res.failure(self.syntax_error("Expected int, float, string, char, identifier, '+', '-', '(' or 'not'"))
        return res.success(node)

    def arith_expr(self) -> ParseResult:
        return self.bin_op(self.term, (TokenKind.PLUS, TokenKind.MINUS))

    def term(self) -> ParseResult:
        return self.bin_op(self.factor, (TokenKind.MULTIPLY, TokenKind.DIVIDE))

    def factor(self) -> ParseResult:
        res = ParseResult()
        tok = self.current_tok

        if tok.kind in (TokenKind.PLUS, TokenKind.MINUS):
            res.register_advancement()
            self.advance()
            node = res.register(self.factor())
            if res.error:
                return res
            return res.success(UnaryOpNode(tok, node))

        return self.power()

    def power(self) -> ParseResult:
        return self.bin_op(self.call, (TokenKind.POWER,), self.exponent)

    def exponent(self) -> ParseResult:
        # a signed call, so `^` chains stay left-associative
        res = ParseResult()
        tok = self.current_tok

        if tok.kind in (TokenKind.PLUS, TokenKind.MINUS):
            res.register_advancement()
            self.advance()
            node = res.register(self.exponent())
            if res.error:
                return res
            return res.success(UnaryOpNode(tok, node))

        return self.call()

    def call(self) -> ParseResult:
        res = ParseResult()
        node = res.register(self.atom())
        if res.error:
            return res

        while self.current_tok.kind == TokenKind.LEFT_PAREN:
            res.register_advancement()
            self.advance()
            arg_nodes: List[Node] = []

            if self.current_tok.kind == TokenKind.RIGHT_PAREN:
                res.register_advancement()
                self.advance()
            else:
                arg_nodes.append(res.register(self.expr()))
                if res.error:
                    return res.failure(self.syntax_error("Expected ')', " + EXPECTED_EXPRESSION[len("Expected "):]))

                while self.current_tok.kind == TokenKind.COMMA:
                    res.register_advancement()
                    self.advance()
                    arg_nodes.append(res.register(self.expr()))
                    if res.error:
                        return res

                if self.current_tok.kind != TokenKind.RIGHT_PAREN:
                    return res.failure(self.syntax_error("Expected ',' or ')'"))
                res.register_advancement()
                self.advance()

            error = self.check_call_args(node, arg_nodes)
            if error:
                return res.failure(error)
            node = CallNode(node, arg_nodes)

        return res.success(node)

    def atom(self) -> ParseResult:
        res = ParseResult()
        tok = self.current_tok

        if tok.kind in (TokenKind.INT, TokenKind.FLOAT):
            res.register_advancement()
            self.advance()
            return res.success(NumberNode(tok))

        if tok.kind == TokenKind.STRING:
            res.register_advancement()
            self.advance()
            return res.success(StringNode(tok))

        if tok.kind == TokenKind.CHAR:
            res.register_advancement()
            self.advance()
            return res.success(CharNode(tok))

        if tok.kind == TokenKind.IDENTIFIER:
            res.register_advancement()
            self.advance()
            if self.current_tok.kind == TokenKind.EQUALS:
                res.register_advancement()
                self.advance()
                self.skip_newlines(res)
                value = res.register(self.expr())
                if res.error:
                    return res
                return res.success(VarAssignNode(tok, value, None, True, declaration=False))
            return res.success(VarAccessNode(tok))

        if tok.kind == TokenKind.LEFT_PAREN:
            res.register_advancement()
            self.advance()
            node = res.register(self.expr())
            if res.error:
                return res
            if self.current_tok.kind != TokenKind.RIGHT_PAREN:
                return res.failure(self.syntax_error("Expected ')'"))
            res.register_advancement()
            self.advance()
            return res.success(node)

        keyword_rules = {
            "if": self.if_expr,
            "for": self.for_expr,
            "while": self.while_expr,
            "fun": self.func_def,
        }
        if tok.kind == TokenKind.KEYWORD and tok.value in keyword_rules:
            node = res.register(keyword_rules[tok.value]())
            if res.error:
                return res
            return res.success(node)

        return res.failure(InvalidSyntaxError(
            tok.pos_start, tok.pos_end,
            "Expected int, float, string, char, identifier, '+', '-', '(', 'if', 'for', 'while' or 'fun'",
        ))

    ###################################

    def if_expr(self) -> ParseResult:
        res = ParseResult()
        cases: List[Tuple[Node, Node]] = []
        else_case: Optional[Node] = None

        res.register_advancement()
        self.advance()

        case = res.register(self.condition_then_body())
        if res.error:
            return res
        cases.append(case)

        while self.peek_past_newlines().matches(TokenKind.KEYWORD, "else"):
            self.skip_newlines(res)
            res.register_advancement()
            self.advance()

            if self.is_keyword("if"):
                res.register_advancement()
                self.advance()
                case = res.register(self.condition_then_body())
                if res.error:
                    return res
                cases.append(case)
            else:
                self.skip_newlines(res)
                else_case = res.register(self.expr())
                if res.error:
                    return res
                break

        branches = [body for _, body in cases]
        if else_case is not None:
            branches.append(else_case)
        expected_type = first_known_type(*(branch.static_type for branch in branches))
        for branch in branches:
            if not types_agree(expected_type, branch.static_type):
                return res.failure(InvalidTypeError(
                    branch.pos_start, branch.pos_end,
                    f"Branch of type {branch.static_type} does not match the other branches' type {expected_type}",
                ))

        return res.success(IfNode(cases, else_case))

    def condition_then_body(self) -> ParseResult:
        res = ParseResult()
        condition = res.register(self.expr())
        if res.error:
            return res

        if not self.is_keyword("then"):
            return res.failure(self.syntax_error("Expected 'then'"))
        res.register_advancement()
        self.advance()
        self.skip_newlines(res)

        body = res.register(self.expr())
        if res.error:
            return res
        return res.success((condition, body))

    def for_expr(self) -> ParseResult:
        res = ParseResult()
        res.register_advancement()
        self.advance()

        if self.current_tok.kind != TokenKind.IDENTIFIER:
            return res.failure(self.syntax_error("Expected identifier"))
        var_name = self.current_tok
        res.register_advancement()
        self.advance()

        if self.current_tok.kind != TokenKind.EQUALS:
            return res.failure(self.syntax_error("Expected '='"))
        self.signature_scopes[-1][var_name.value] = None
        res.register_advancement()
        self.advance()

        start_value = res.register(self.expr())
        if res.error:
            return res

        if not self.is_keyword("to"):
            return res.failure(self.syntax_error("Expected 'to'"))
        res.register_advancement()
        self.advance()

        end_value = res.register(self.expr())
        if res.error:
            return res
        if not types_agree(start_value.static_type, end_value.static_type):
            return res.failure(InvalidTypeError(
                end_value.pos_start, end_value.pos_end,
                f"Loop end of type {end_value.static_type} does not match start of type {start_value.static_type}",
            ))

        step_value: Optional[Node] = None
        if self.is_keyword("step"):
            res.register_advancement()
            self.advance()
            step_value = res.register(self.expr())
            if res.error:
                return res

        if not self.is_keyword("then"):
            return res.failure(self.syntax_error("Expected 'then'"))
        res.register_advancement()
        self.advance()
        self.skip_newlines(res)

        body = res.register(self.expr())
        if res.error:
            return res
        return res.success(ForNode(var_name, start_value, end_value, step_value, body))

    def while_expr(self) -> ParseResult:
        res = ParseResult()
        res.register_advancement()
        self.advance()

        case = res.register(self.condition_then_body())
        if res.error:
            return res
        condition, body = case
        return res.success(WhileNode(condition, body))

    def func_def(self) -> ParseResult:
        res = ParseResult()
        res.register_advancement()
        self.advance()

        name_tok: Optional[Token] = None
        if self.current_tok.kind == TokenKind.IDENTIFIER:
            name_tok = self.current_tok
            res.register_advancement()
            self.advance()
            if self.current_tok.kind != TokenKind.LEFT_PAREN:
                return res.failure(self.syntax_error("Expected '('"))
        elif self.current_tok.kind != TokenKind.LEFT_PAREN:
            return res.failure(self.syntax_error("Expected identifier or '('"))
        res.register_advancement()
        self.advance()

        arg_tokens: List[Token] = []
        if self.current_tok.kind == TokenKind.IDENTIFIER:
            arg_tokens.append(res.register(self.parameter()))
            if res.error:
                return res
            while self.current_tok.kind == TokenKind.COMMA:
                res.register_advancement()
                self.advance()
                if self.current_tok.kind != TokenKind.IDENTIFIER:
                    return res.failure(self.syntax_error("Expected identifier"))
                arg_tokens.append(res.register(self.parameter()))
                if res.error:
                    return res
            if self.current_tok.kind != TokenKind.RIGHT_PAREN:
                return res.failure(self.syntax_error("Expected ',' or ')'"))
        elif self.current_tok.kind != TokenKind.RIGHT_PAREN:
            return res.failure(self.syntax_error("Expected identifier or ')'"))
        res.register_advancement()
        self.advance()

        if self.current_tok.kind != TokenKind.ARROW:
            return res.failure(self.syntax_error("Expected '=>'"))
        res.register_advancement()
        self.advance()
        self.skip_newlines(res)

        if name_tok is not None:
            self.signature_scopes[-1][name_tok.value] = [tok.type_name for tok in arg_tokens]
        self.signature_scopes.append({tok.value: None for tok in arg_tokens})
        body = res.register(self.expr())
        self.signature_scopes.pop()
        if res.error:
            return res

        return res.success(FuncDefNode(name_tok, arg_tokens, body))

    def parameter(self) -> ParseResult:
        res = ParseResult()
        tok = self.current_tok
        res.register_advancement()
        self.advance()

        if self.current_tok.kind != TokenKind.COLON:
            return res.failure(InvalidTypeError(
                tok.pos_start, tok.pos_end, f"Parameter '{tok.value}' needs a type annotation",
            ))
        res.register_advancement()
        self.advance()

        type_name = res.register(self.type_annotation())
        if res.error:
            return res
        tok.type_name = type_name
        return res.success(tok)

    def type_annotation(self) -> ParseResult:
        res = ParseResult()
        tok = self.current_tok
        if tok.kind != TokenKind.IDENTIFIER:
            return res.failure(self.syntax_error("Expected a type name"))
        res.register_advancement()
        self.advance()

        if tok.value == FUNCTION_TYPE:
            if self.current_tok.kind != TokenKind.COLON:
                return res.failure(self.syntax_error("Expected ':' after 'Function'"))
            res.register_advancement()
            self.advance()
            return_type = res.register(self.type_annotation())
            if res.error:
                return res
            return res.success(function_type(return_type))

        if tok.value not in VALUE_TYPES:
            return res.failure(InvalidTypeError(tok.pos_start, tok.pos_end, f"Unknown type '{tok.value}'"))
        return res.success(tok.value)

    ###################################

    def bin_op(
        self,
        func_a: Callable[[], ParseResult],
        ops: Sequence[OpSpec],
        func_b: Optional[Callable[[], ParseResult]] = None,
    ) -> ParseResult:
        if func_b is None:
            func_b = func_a

        res = ParseResult()
        left = res.register(func_a())
        if res.error:
            return res

        while self.current_tok.kind in ops or (self.current_tok.kind, self.current_tok.value) in ops:
            op_tok = self.current_tok
            res.register_advancement()
            self.advance()
            right = res.register(func_b())
            if res.error:
                return res
            error = self.check_operand_types(left, op_tok, right)
            if error:
                return res.failure(error)
            left = BinOpNode(left, op_tok, right)

        return res.success(left)

    def check_operand_types(self, left: Node, op_tok: Token, right: Node) -> Optional[Error]:
        if types_agree(left.static_type, right.static_type):
            return None
        op = op_tok.value if op_tok.kind == TokenKind.KEYWORD else op_tok.kind.value
        return InvalidTypeError(
            left.pos_start, right.pos_end,
            f"Operands of '{op}' have different types: {left.static_type} ({_span(left)})"
            f" and {right.static_type} ({_span(right)})",
        )

    def lookup_signature(self, name: str) -> Optional[List[str]]:
        for scope in reversed(self.signature_scopes):
            if name in scope:
                return scope[name]
        return None

    def check_call_args(self, callee: Node, arg_nodes: List[Node]) -> Optional[Error]:
        if isinstance(callee, FuncDefNode):
            param_types = [tok.type_name for tok in callee.arg_name_tokens]
        elif isinstance(callee, VarAccessNode):
            param_types = self.lookup_signature(callee.name_token.value)
            if param_types is None:
                return None
        else:
            return None

        for param_type, arg in zip(param_types, arg_nodes):
            if not types_agree(param_type, arg.static_type):
                return InvalidTypeError(
                    arg.pos_start, arg.pos_end,
                    f"Argument of type {arg.static_type} does not match parameter type {param_type}",
                )
        return None


def parse(tokens: List[Token]) -> ParseResult:
    return Parser(tokens).parse()
