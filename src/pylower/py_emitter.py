"""Generate Python source from a checked IR program."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from pylower.codegen import INDENT, CodeGen, Emission, tuple_expr
from pylower.ir import FunDecl, Program
from pylower.lowering import ExprLowerer, Placeholder
from pylower.names import TagTable, display, render_name
from pylower.py_runtime import launcher, preamble
from pylower.tail_calls import has_self_tail_call, mark_tail_calls


class PyEmitter:
    """Emit one Python translation unit for an IR program.

    Constructor declarations only feed the tag table. Function declarations
    are emitted independently, in input order.
    """

    def __init__(
        self,
        program: Program,
        *,
        tags: TagTable | None = None,
        trace: bool = False,
        comments: bool = True,
        jobs: int = 1,
    ) -> None:
        self._program = program
        self._tags = tags if tags is not None else TagTable.from_declarations(
            program.constructors(),
        )
        self._trace = trace
        self._comments = comments
        self._jobs = max(1, jobs)

    @property
    def tags(self) -> TagTable:
        return self._tags

    # ── Public API ─────────────────────────────────────────────

    def emit(self) -> str:
        """Generate the complete program: preamble, definitions, launcher."""
        functions = self._program.functions()
        if self._jobs > 1 and len(functions) > 1:
            # Every declaration gets its own CodeGen; map() keeps input order.
            with ThreadPoolExecutor(max_workers=self._jobs) as pool:
                definitions = list(pool.map(self.emit_function, functions))
        else:
            definitions = [self.emit_function(fd) for fd in functions]

        parts = [preamble(), *definitions, launcher(render_name(self._program.entry))]
        return "\n".join(parts)

    def emit_function(self, fd: FunDecl) -> str:
        """Render one function: a ``def`` whose body is a restartable loop."""
        name = render_name(fd.name)
        params = [render_name(p) for p in fd.params]
        lowered = self.lower_function(fd)

        lines: list[str] = []
        if self._comments:
            lines.append(f"# {display(fd.name)}")
        lines.append(f"def {name}({', '.join(params)}):")
        # The loop is the re-entry point for self tail calls.
        lines.append(f"{INDENT}while True:")
        body_indent = INDENT * 2
        if self._trace:
            lines.append(body_indent + _trace_line(name, params))
        lines.extend(body_indent + s for s in lowered.statements)
        if not isinstance(lowered.expr, Placeholder):
            lines.append(f"{body_indent}return {lowered.expr}")
        return "\n".join(lines) + "\n"

    def lower_function(self, fd: FunDecl) -> Emission:
        """Statements and result expression for the body of *fd*."""
        body = mark_tail_calls(fd.name, fd.body)
        cg = CodeGen(self._tags, fd.name, fd.params, comments=self._comments)
        lowerer = ExprLowerer(
            cg, freeze_captures=has_self_tail_call(fd.name, body),
        )
        expr = lowerer.lower(body)
        return cg.result(expr)


def _trace_line(name: str, params: list[str]) -> str:
    fmt = f"{name}({', '.join('%s' for _ in params)})"
    if not params:
        return f"print({fmt!r}, file=sys.stderr)"
    reprs = tuple_expr([f"repr({p})" for p in params])
    return f"print({fmt!r} % {reprs}, file=sys.stderr)"
