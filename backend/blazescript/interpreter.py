"""Tree-walking evaluator for BlazeScript plus the `run` entry point.

The Interpreter visits nodes by class name (`visit_<NodeClass>`), threading a
RuntimeResult through every call so that the first error stops evaluation
and travels unchanged back to `run`.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from .context import Context, Variable
from .errors import InvalidSyntaxError, RTError
from .lexer import tokenize
from .nodes import (
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
)
from .parser import Parser
from .results import RuntimeResult
from .tokens import TokenKind, types_agree
from .values import BaseType, Char, Function, Number, String

logger = logging.getLogger(__name__)

GLOBAL_CONTEXT_NAME = "<Global>"

# Safety limits enforced per run; hosts may lower them through `settings`.
DEFAULT_SETTINGS: Dict[str, int] = {
    "max_call_depth": 64,
    "max_loop": 100_000,
    "max_steps": 1_000_000,
}

BIN_OP_FUNCTIONS = {
    TokenKind.PLUS: "added_to",
    TokenKind.MINUS: "subbed_by",
    TokenKind.MULTIPLY: "multed_by",
    TokenKind.DIVIDE: "dived_by",
    TokenKind.POWER: "powed_by",
    TokenKind.DOUBLE_EQUALS: "get_comparison_eq",
    TokenKind.NOT_EQUALS: "get_comparison_ne",
    TokenKind.LESS_THAN: "get_comparison_lt",
    TokenKind.GREATER_THAN: "get_comparison_gt",
    TokenKind.LESS_THAN_EQUALS: "get_comparison_lte",
    TokenKind.GREATER_THAN_EQUALS: "get_comparison_gte",
}

KEYWORD_OP_FUNCTIONS = {
    "and": "anded_by",
    "or": "ored_by",
}


class Interpreter:
    """Evaluates an AST against a Context.

    Tunable attributes (defaults come from DEFAULT_SETTINGS):
    - max_call_depth: nested user-function calls allowed at once
    - max_loop: iterations allowed for a single `for`/`while`
    - max_steps: node visits allowed for the whole run
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        settings_local = {**DEFAULT_SETTINGS, **(settings or {})}
        self.max_call_depth = int(settings_local["max_call_depth"])
        self.max_loop = int(settings_local["max_loop"])
        self.max_steps = int(settings_local["max_steps"])
        # Counters for the current run
        self.call_depth = 0
        self.steps = 0

    def visit(self, node: Node, context: Context) -> RuntimeResult:
        self.steps += 1
        if self.steps > self.max_steps:
            logger.warning("step limit of %d exceeded", self.max_steps)
            return RuntimeResult().failure(RTError(node.pos_start, node.pos_end, "Step limit exceeded", context))
        method = getattr(self, f"visit_{type(node).__name__}", self.no_visit_method)
        return method(node, context)

    def no_visit_method(self, node: Node, context: Context) -> RuntimeResult:
        raise NotImplementedError(f"No visit_{type(node).__name__} method defined")

    ###################################

    def visit_NumberNode(self, node: NumberNode, context: Context) -> RuntimeResult:
        value = Number(node.token.value).set_context(context).set_pos(node.pos_start, node.pos_end)
        return RuntimeResult().success(value)

    def visit_StringNode(self, node: StringNode, context: Context) -> RuntimeResult:
        value = String(node.token.value).set_context(context).set_pos(node.pos_start, node.pos_end)
        return RuntimeResult().success(value)

    def visit_CharNode(self, node: CharNode, context: Context) -> RuntimeResult:
        value = Char(node.token.value).set_context(context).set_pos(node.pos_start, node.pos_end)
        return RuntimeResult().success(value)

    def visit_VarAccessNode(self, node: VarAccessNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        name = node.name_token.value
        variable = context.symbol_table.get(name)
        if variable is None:
            return res.failure(RTError(node.pos_start, node.pos_end, f"'{name}' is not defined", context))

        value = variable.value.clone().set_pos(node.pos_start, node.pos_end).set_context(context)
        return res.success(value)

    def visit_VarAssignNode(self, node: VarAssignNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        name = node.name_token.value
        value = res.register(self.visit(node.value_node, context))
        if res.should_return():
            return res
        if value is None:
            return res.failure(RTError(
                node.value_node.pos_start, node.value_node.pos_end,
                f"Cannot assign an expression with no value to '{name}'", context,
            ))

        existing = context.symbol_table.get(name)
        if existing is not None and not existing.reassignable:
            return res.failure(RTError(node.pos_start, node.pos_end, f"Cannot reassign constant '{name}'", context))

        if node.declaration:
            declared_type = node.declared_type or value.type
            if not types_agree(declared_type, value.type):
                return res.failure(RTError(
                    node.value_node.pos_start, node.value_node.pos_end,
                    f"'{name}' is declared as {declared_type} but was given {value.type}", context,
                ))
            variable = Variable(value, declared_type, node.reassignable)
        else:
            if existing is None:
                return res.failure(RTError(node.pos_start, node.pos_end, f"'{name}' is not defined", context))
            if not types_agree(existing.declared_type, value.type):
                return res.failure(RTError(
                    node.value_node.pos_start, node.value_node.pos_end,
                    f"Cannot assign {value.type} to '{name}' of type {existing.declared_type}", context,
                ))
            variable = Variable(value, existing.declared_type, True)

        context.symbol_table.set(name, variable)
        return res.success(value)

    def visit_UnaryOpNode(self, node: UnaryOpNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        operand = res.register(self.visit(node.node, context))
        if res.should_return():
            return res
        if operand is None:
            return res.failure(RTError(node.pos_start, node.pos_end, "Operand has no value", context))

        op_tok = node.op_token
        error = None
        if op_tok.matches(TokenKind.KEYWORD, "not"):
            result, error = operand.notted()
        elif not isinstance(operand, Number):
            result, error = None, operand.illegal_operation("-" if op_tok.kind == TokenKind.MINUS else "+")
        elif op_tok.kind == TokenKind.MINUS:
            result = Number(-operand.value).set_context(context)
        else:
            result = operand

        if error:
            return res.failure(error)
        return res.success(result.set_pos(node.pos_start, node.pos_end))

    def visit_BinOpNode(self, node: BinOpNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        left = res.register(self.visit(node.left_node, context))
        if res.should_return():
            return res
        right = res.register(self.visit(node.right_node, context))
        if res.should_return():
            return res
        if left is None or right is None:
            return res.failure(RTError(node.pos_start, node.pos_end, "Operand has no value", context))

        op_tok = node.op_token
        if op_tok.kind == TokenKind.KEYWORD:
            method_name = KEYWORD_OP_FUNCTIONS[op_tok.value]
        else:
            method_name = BIN_OP_FUNCTIONS[op_tok.kind]
        result, error = getattr(left, method_name)(right)
        if error:
            return res.failure(error)
        return res.success(result.set_pos(node.pos_start, node.pos_end))

    def visit_IfNode(self, node: IfNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()

        for condition, expr in node.cases:
            truth = res.register(self.check_condition(condition, context))
            if res.should_return():
                return res
            if truth:
                expr_value = res.register(self.visit(expr, context))
                if res.should_return():
                    return res
                return res.success(expr_value)

        if node.else_case is not None:
            else_value = res.register(self.visit(node.else_case, context))
            if res.should_return():
                return res
            return res.success(else_value)

        return res.success(None)

    def visit_ForNode(self, node: ForNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        name = node.var_name_token.value

        start_value = res.register(self.visit(node.start_value_node, context))
        if res.should_return():
            return res
        end_value = res.register(self.visit(node.end_value_node, context))
        if res.should_return():
            return res
        if node.step_value_node is not None:
            step_value = res.register(self.visit(node.step_value_node, context))
            if res.should_return():
                return res
        else:
            step_value = Number(1)

        for bound in (start_value, end_value, step_value):
            if not isinstance(bound, Number):
                got = bound.type if bound is not None else "no value"
                return res.failure(RTError(node.pos_start, node.pos_end, f"Loop bounds must be numbers, got {got}", context))

        existing = context.symbol_table.get(name)
        if existing is not None and not existing.reassignable:
            return res.failure(RTError(
                node.var_name_token.pos_start, node.var_name_token.pos_end,
                f"Cannot reassign constant '{name}'", context,
            ))

        step = step_value.value
        end = end_value.value
        counter = start_value.value
        iterations = 0
        last_value: Optional[BaseType] = None

        while (counter < end) if step >= 0 else (counter > end):
            iterations += 1
            if iterations > self.max_loop:
                logger.warning("loop over '%s' exceeded %d iterations", name, self.max_loop)
                return res.failure(RTError(node.pos_start, node.pos_end, "Loop iteration limit exceeded", context))

            loop_value = Number(counter).set_context(context).set_pos(node.var_name_token.pos_start, node.var_name_token.pos_end)
            context.symbol_table.set(name, Variable(loop_value, loop_value.type, True))
            counter += step

            last_value = res.register(self.visit(node.body_node, context))
            if res.should_return():
                return res

        return res.success(last_value)

    def visit_WhileNode(self, node: WhileNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        iterations = 0
        last_value: Optional[BaseType] = None

        while True:
            truth = res.register(self.check_condition(node.condition_node, context))
            if res.should_return():
                return res
            if not truth:
                break

            iterations += 1
            if iterations > self.max_loop:
                logger.warning("while loop exceeded %d iterations", self.max_loop)
                return res.failure(RTError(node.pos_start, node.pos_end, "Loop iteration limit exceeded", context))

            last_value = res.register(self.visit(node.body_node, context))
            if res.should_return():
                return res

        return res.success(last_value)

    def visit_FuncDefNode(self, node: FuncDefNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        func = Function(node.name, node.body_node, node.arg_name_tokens, context)
        func.set_context(context).set_pos(node.pos_start, node.pos_end)

        if node.name is not None:
            existing = context.symbol_table.get(node.name)
            if existing is not None and not existing.reassignable:
                return res.failure(RTError(
                    node.pos_start, node.pos_end, f"Cannot reassign constant '{node.name}'", context,
                ))
            context.symbol_table.set(node.name, Variable(func, func.type, False))

        return res.success(func)

    def visit_CallNode(self, node: CallNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        value_to_call = res.register(self.visit(node.node_to_call, context))
        if res.should_return():
            return res
        if value_to_call is None:
            return res.failure(RTError(node.pos_start, node.pos_end, "Expression has no value to call", context))
        value_to_call = value_to_call.clone().set_pos(node.pos_start, node.pos_end).set_context(context)

        args: List[BaseType] = []
        for arg_node in node.arg_nodes:
            arg = res.register(self.visit(arg_node, context))
            if res.should_return():
                return res
            if arg is None:
                return res.failure(RTError(arg_node.pos_start, arg_node.pos_end, "Argument has no value", context))
            args.append(arg)

        return_value = res.register(value_to_call.execute(args, self))
        if res.should_return():
            return res
        if return_value is None:
            return res.success(None)
        return res.success(return_value.clone().set_pos(node.pos_start, node.pos_end).set_context(context))

    def visit_StatementsNode(self, node: StatementsNode, context: Context) -> RuntimeResult:
        res = RuntimeResult()
        last_value: Optional[BaseType] = None
        for statement in node.statements:
            last_value = res.register(self.visit(statement, context))
            if res.should_return():
                return res
        return res.success(last_value)

    ###################################

    def check_condition(self, condition: Node, context: Context) -> RuntimeResult:
        """Evaluate a condition to a Python bool; only numbers have a truth value."""
        res = RuntimeResult()
        value = res.register(self.visit(condition, context))
        if res.should_return():
            return res
        truth = value.is_true() if value is not None else None
        if truth is None:
            got = value.type if value is not None else "no value"
            return res.failure(RTError(
                condition.pos_start, condition.pos_end, f"Condition must be a number, got {got}", context,
            ))
        return res.success(truth)


class Session:
    """A long-lived global Context, for REPL-style persistence between runs."""

    def __init__(self):
        self.context = new_global_context()

    def lookup(self, name: str) -> Optional[BaseType]:
        variable = self.context.symbol_table.get(name)
        return variable.value if variable is not None else None


def new_global_context() -> Context:
    context = Context(GLOBAL_CONTEXT_NAME)
    context.symbol_table.set("true", Variable(Number(1).set_context(context), "Int", False))
    context.symbol_table.set("false", Variable(Number(0).set_context(context), "Int", False))
    return context


def run(
    name: str,
    text: str,
    session: Optional[Session] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Lex, parse and evaluate `text`.

    Returns `{"value", "error", "errors"}`: `errors` is the list of lexical
    errors, `error` a single syntax, type or runtime error, and `value` the
    final runtime value (None for "no value"). At most one is populated.
    Without a `session` every call starts from a fresh global context.
    """
    outcome: Dict[str, Any] = {"value": None, "error": None, "errors": None}
    start = time.perf_counter()

    tokens, lex_errors = tokenize(name, text)
    if lex_errors:
        outcome["errors"] = lex_errors
        return outcome

    try:
        ast = Parser(tokens).parse()
    except RecursionError:
        outcome["error"] = InvalidSyntaxError(tokens[0].pos_start, tokens[-1].pos_end, "Expression is nested too deeply")
        return outcome
    if ast.error:
        outcome["error"] = ast.error
        return outcome
    if ast.node is None:
        return outcome

    context = session.context if session is not None else new_global_context()
    interpreter = Interpreter(settings)
    try:
        result = interpreter.visit(ast.node, context)
    except RecursionError:
        logger.warning("host recursion limit reached while running %s", name)
        result = RuntimeResult().failure(
            RTError(ast.node.pos_start, ast.node.pos_end, "Maximum call depth exceeded", context)
        )

    if result.error:
        outcome["error"] = result.error
    else:
        outcome["value"] = result.value
    logger.debug(
        "ran %s in %.2f ms (%d steps)", name, (time.perf_counter() - start) * 1000, interpreter.steps,
    )
    return outcome


def outcome_to_dict(outcome: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-ready form of a `run` outcome: `{value, type, errors}`.

    `value` is the printed representation of the final value and `errors`
    a list of error dicts, or None when the run succeeded.
    """
    value = outcome.get("value")
    if outcome.get("errors"):
        errors: Optional[List[Dict[str, Any]]] = [err.to_dict() for err in outcome["errors"]]
    elif outcome.get("error") is not None:
        errors = [outcome["error"].to_dict()]
    else:
        errors = None
    return {
        "value": value.represent() if value is not None else None,
        "type": value.type if value is not None else None,
        "errors": errors,
    }
