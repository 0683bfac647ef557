"""Per-declaration code generation state.

Lowering any IR node produces two things: statements that prepare the value,
and one Python expression standing for the value afterwards. Expressions
compose into bigger expressions; statements can only be sequenced. So
``f(x, y)`` lowers to::

    <statements of x>
    <statements of y>
    f(<expr of x>, <expr of y>)

:class:`CodeGen` collects the statements in emission order while the lowering
functions return the expressions.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from pylower.errors import CompileError
from pylower.ir import Local, Name
from pylower.names import TagTable

INDENT = "    "


def tuple_expr(items: list[str]) -> str:
    """Python tuple display; one-element tuples keep their trailing comma."""
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


@dataclass
class Emission:
    """Statements in emission order plus the expression they lead up to."""

    statements: list[str]
    expr: str


class CodeGen:
    """Statement accumulator, fresh-name counter and read-only context.

    One instance per declaration; nothing here is shared across declarations
    except the tag table, which is never written to.
    """

    def __init__(
        self, tags: TagTable, function: Name, params: list[Name],
        *, comments: bool = True,
    ) -> None:
        self.tags = tags
        self.function = function
        self.params = list(params)
        self.comments = comments
        self._lines: list[str] = []
        self._indent = 0
        # 0 and below are reserved: fresh() hands out Local(-1), Local(-2), ...
        self._counter = 1

    def emit(self, line: str) -> None:
        self._lines.append(INDENT * self._indent + line)

    def emit_all(self, lines: list[str]) -> None:
        for line in lines:
            self.emit(line)

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._indent += 1
        try:
            yield
        finally:
            self._indent -= 1

    def fresh(self) -> Local:
        var = Local(-self._counter)
        self._counter += 1
        return var

    def tag_of(self, ctor: Name) -> int:
        tag = self.tags.tag_of(ctor)
        if tag is None:
            raise CompileError.single(
                "E203", f"constructor `{ctor}` is not declared", str(self.function),
            )
        return tag

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @contextmanager
    def capture(self) -> Iterator[list[str]]:
        """Divert the lines emitted inside the block into a fresh, unindented list.

        Used for bodies that must not run where they are lowered, e.g. the
        body of a lambda.
        """
        saved = self._lines, self._indent
        block: list[str] = []
        self._lines, self._indent = block, 0
        try:
            yield block
        finally:
            self._lines, self._indent = saved

    def result(self, expr: str) -> Emission:
        return Emission(self.lines, expr)
