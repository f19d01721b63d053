"""Propagate-or-fail result carriers used by the parser and the interpreter.

Every parser rule returns a ParseResult and every interpreter visit returns a
RuntimeResult. Callers `register` a sub-result to unwrap its payload and then
check `error` (or `should_return()`) before doing any further work.
"""

from typing import Any, Generic, Optional, TypeVar

from .errors import Error

T = TypeVar("T")


class Result(Generic[T]):
    def __init__(self):
        self.value: Optional[T] = None
        self.error: Optional[Error] = None

    def register(self, res: "Result[T]") -> Optional[T]:
        if res.error:
            self.error = res.error
        return res.value

    def success(self, value: Optional[T]) -> "Result[T]":
        self.value = value
        return self

    def failure(self, error: Error) -> "Result[T]":
        self.error = error
        return self

    def should_return(self) -> bool:
        return self.error is not None


class ParseResult(Result[Any]):
    """Result of a parser rule, counting the tokens it consumed.

    `failure` keeps an earlier error unless the most recent registered
    sub-rule consumed nothing, so a generic "expected expression" message
    does not replace a more specific error found deeper in the tree.
    """

    def __init__(self):
        super().__init__()
        self.advance_count = 0
        self.last_registered_advance_count = 0

    @property
    def node(self) -> Any:
        return self.value

    def register_advancement(self) -> None:
        self.last_registered_advance_count = 1
        self.advance_count += 1

    def register(self, res: "Result[Any]") -> Any:
        if isinstance(res, ParseResult):
            self.last_registered_advance_count = res.advance_count
            self.advance_count += res.advance_count
        return super().register(res)

    def failure(self, error: Error) -> "ParseResult":
        if not self.error or self.last_registered_advance_count == 0:
            self.error = error
        return self


class RuntimeResult(Result[Any]):
    """Result of evaluating one node: a runtime value (possibly None) or an error."""
