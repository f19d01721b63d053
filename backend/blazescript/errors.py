"""Source positions and the diagnostic taxonomy for BlazeScript.

Errors in BlazeScript are plain values: the lexer, parser and interpreter
return them inside their result carriers and never raise them. Each error
knows how to render itself for a terminal (`as_string`) and how to serialize
itself into the structured dict shape the HTTP host returns (`to_dict`).
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import Context


class Position:
    """A cursor into a named source text.

    `index`, `line` and `column` are 0-based internally; rendering adds one.
    The lexer advances a single live Position and hands out `clone()`d
    snapshots, which are never mutated afterwards.
    """

    def __init__(self, index: int, line: int, column: int, file_name: str, file_content: str):
        self.index = index
        self.line = line
        self.column = column
        self.file_name = file_name
        self.file_content = file_content

    def advance(self, current_char: Optional[str] = None) -> "Position":
        self.index += 1
        self.column += 1
        if current_char == "\n":
            self.line += 1
            self.column = 0
        return self

    def clone(self) -> "Position":
        return Position(self.index, self.line, self.column, self.file_name, self.file_content)

    def __repr__(self) -> str:
        return f"Position({self.file_name}:{self.line + 1}:{self.column + 1})"


def string_with_arrows(text: str, pos_start: Position, pos_end: Position) -> str:
    """Return the offending source line with a `^^^` marker under the span."""
    idx_start = text.rfind("\n", 0, max(pos_start.index, 0)) + 1
    idx_end = text.find("\n", idx_start)
    if idx_end < 0:
        idx_end = len(text)
    line = text[idx_start:idx_end]

    col_start = max(pos_start.column, 0)
    col_end = pos_end.column if pos_start.line == pos_end.line else len(line)
    return line + "\n" + " " * col_start + "^" * max(1, col_end - col_start)


class Error:
    """Base diagnostic: a name, a machine code, a span and a description."""

    code = "ERROR"

    def __init__(self, name: str, pos_start: Position, pos_end: Position, details: str):
        self.name = name
        self.pos_start = pos_start
        self.pos_end = pos_end
        self.details = details

    def as_string(self) -> str:
        result = f"{self.name}: {self.details}\n"
        result += f"File {self.pos_start.file_name}, line {self.pos_start.line + 1}"
        result += "\n\n" + string_with_arrows(self.pos_start.file_content, self.pos_start, self.pos_end)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "message": self.details,
            "file": self.pos_start.file_name,
            "line": self.pos_start.line + 1,
            "column": self.pos_start.column + 1,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.details!r})"


class IllegalCharError(Error):
    code = "ILLEGAL_CHARACTER"

    def __init__(self, pos_start: Position, pos_end: Position, details: str):
        super().__init__("Illegal Character", pos_start, pos_end, details)


class ExpectedCharError(Error):
    code = "EXPECTED_CHARACTER"

    def __init__(self, pos_start: Position, pos_end: Position, details: str):
        super().__init__("Expected Character", pos_start, pos_end, details)


class InvalidSyntaxError(Error):
    code = "INVALID_SYNTAX"

    def __init__(self, pos_start: Position, pos_end: Position, details: str = ""):
        super().__init__("Invalid Syntax", pos_start, pos_end, details)


class InvalidTypeError(Error):
    code = "INVALID_TYPE"

    def __init__(self, pos_start: Position, pos_end: Position, details: str):
        super().__init__("Invalid Type", pos_start, pos_end, details)


class RTError(Error):
    """Evaluation-time error carrying the Context it was raised in.

    The context chain is walked to build a traceback, outermost frame first.
    """

    code = "RUNTIME_ERROR"

    def __init__(self, pos_start: Position, pos_end: Position, details: str, context: Optional["Context"]):
        super().__init__("Runtime Error", pos_start, pos_end, details)
        self.context = context

    def frames(self) -> List[Dict[str, Any]]:
        frames: List[Dict[str, Any]] = []
        pos: Optional[Position] = self.pos_start
        ctx = self.context
        while ctx is not None:
            frames.insert(0, {
                "file": pos.file_name if pos else "<unknown>",
                "line": pos.line + 1 if pos else None,
                "frame": ctx.display_name,
            })
            if ctx.parent_entry_pos is not None:
                pos = ctx.parent_entry_pos
            ctx = ctx.parent
        return frames

    def generate_traceback(self) -> str:
        result = "Traceback (most recent call last):\n"
        for frame in self.frames():
            line = frame["line"] if frame["line"] is not None else "?"
            result += f"  File {frame['file']}, line {line}, in {frame['frame']}\n"
        return result

    def as_string(self) -> str:
        result = self.generate_traceback()
        result += f"{self.name}: {self.details}\n"
        result += "\n" + string_with_arrows(self.pos_start.file_content, self.pos_start, self.pos_end)
        return result

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["traceback"] = self.frames()
        return data
