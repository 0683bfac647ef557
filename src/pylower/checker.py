"""Contract checks on the IR before lowering.

Pass 1: Register declarations (constructors into the tag table, function names).
Pass 2: Walk every function body (case shapes, constructor uses, foreign calls).
Whole-program checks run last (entry point, tail call cycles, unused constructors).
"""

from __future__ import annotations

from pylower.errors import CompileError, Diagnostic, Severity, error, warning
from pylower.ir import (
    App,
    Case,
    Con,
    ConAlt,
    ConDecl,
    DefaultAlt,
    Expr,
    Foreign,
    ForeignName,
    FunDecl,
    Lam,
    Name,
    Program,
    children,
)
from pylower.names import TagTable
from pylower.tail_calls import is_self_call, mark_tail_calls, tail_callees, tail_positions


class Checker:
    """Contract checker for one IR program."""

    def __init__(self) -> None:
        self.tags = TagTable({})
        self.diagnostics: list[Diagnostic] = []
        self._functions: dict[Name, FunDecl] = {}
        self._constructors: dict[Name, ConDecl] = {}
        self._used: set[Name] = set()
        self._current: FunDecl | None = None

    # ── Public API ──────────────────────────────────────────────

    def check(self, program: Program) -> TagTable:
        """Run every check. Raises nothing; check self.diagnostics."""
        # Pass 1: register declarations
        try:
            self.tags = TagTable.from_declarations(program.constructors())
        except CompileError as e:
            self.diagnostics.extend(e.diagnostics)
        for cd in program.constructors():
            self._constructors.setdefault(cd.name, cd)
        for fd in program.functions():
            self._register_function(fd)

        # Pass 2: check bodies
        for fd in program.functions():
            self._check_function(fd)

        self._check_entry(program)
        self._check_tail_cycles()
        self._check_unused()
        return self.tags

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    # ── Error helpers ───────────────────────────────────────────

    def _where(self) -> str | None:
        return str(self._current.name) if self._current is not None else None

    def _error(self, code: str, message: str, *notes: str) -> None:
        self.diagnostics.append(error(code, message, self._where(), *notes))

    def _warning(self, code: str, message: str, *notes: str) -> None:
        self.diagnostics.append(warning(code, message, self._where(), *notes))

    # ── Pass 1 ──────────────────────────────────────────────────

    def _register_function(self, fd: FunDecl) -> None:
        if fd.name in self._functions:
            self.diagnostics.append(error(
                "E101", f"function `{fd.name}` is defined more than once", str(fd.name),
            ))
            return
        self._functions[fd.name] = fd

    # ── Pass 2 ──────────────────────────────────────────────────

    def _check_function(self, fd: FunDecl) -> None:
        self._current = fd
        self._check_params(fd.params)
        body = mark_tail_calls(fd.name, fd.body)
        self._check_expr(body)
        for leaf in tail_positions(body):
            if is_self_call(fd.name, leaf) and len(leaf.args) != len(fd.params):  # type: ignore[union-attr]
                self._error(
                    "E206",
                    f"self call passes {len(leaf.args)} argument(s), "  # type: ignore[union-attr]
                    f"function takes {len(fd.params)}",
                )
        self._current = None

    def _check_params(self, params: list[Name]) -> None:
        seen: set[Name] = set()
        for p in params:
            if p in seen:
                self._error("E103", f"parameter `{p}` is bound more than once")
            seen.add(p)

    def _check_expr(self, expr: Expr) -> None:
        match expr:
            case Con(name, args, _):
                self._check_ctor(name, len(args), "constructor application")
            case Case(_, alts):
                self._check_case(alts)
            case Lam(params, _):
                self._check_params(params)
            case Foreign(target, _) if not isinstance(target, ForeignName):
                self._error(
                    "E301", f"unrecognised foreign descriptor {target}",
                    "only named foreign functions can be called",
                )
        for child in children(expr):
            self._check_expr(child)

    def _check_case(self, alts: list) -> None:
        if not alts:
            self._error("E201", "case analysis has no alternatives")
            return
        defaults = [i for i, alt in enumerate(alts) if isinstance(alt, DefaultAlt)]
        if len(defaults) > 1:
            self._error("E202", "case analysis has more than one default alternative")
        elif defaults and defaults[0] != len(alts) - 1:
            self._error(
                "E202", "default alternative must be the last one",
                "alternatives after the default can never be selected",
            )
        for alt in alts:
            if isinstance(alt, ConAlt):
                self._check_ctor(alt.ctor, len(alt.args), "pattern")

    def _check_ctor(self, name: Name, count: int, what: str) -> None:
        decl = self._constructors.get(name)
        if decl is None:
            self._error("E203", f"constructor `{name}` is not declared")
            return
        self._used.add(name)
        if count != decl.arity:
            self._error(
                "E204",
                f"{what} of `{name}` has {count} field(s), declared arity is {decl.arity}",
            )

    # ── Whole program ───────────────────────────────────────────

    def _check_entry(self, program: Program) -> None:
        if self._functions and program.entry not in self._functions:
            self.diagnostics.append(error(
                "E401", f"entry point `{program.entry}` is not defined",
            ))

    def _check_tail_cycles(self) -> None:
        """Warn about functions that reach themselves through other functions' tail calls."""
        edges: dict[Name, set[Name]] = {}
        for name, fd in self._functions.items():
            edges[name] = {
                callee for callee in tail_callees(fd.body)
                if callee != name and callee in self._functions
            }

        for name in self._functions:
            cycle = _find_path(edges, name)
            if cycle is None:
                continue
            self._current = self._functions[name]
            path = " -> ".join(str(n) for n in [name, *cycle])
            self._warning(
                "W310", f"mutual tail recursion is not turned into a loop: {path}",
                "only a function calling itself in tail position reuses its frame",
            )
        self._current = None

    def _check_unused(self) -> None:
        for name in self._constructors:
            if name not in self._used:
                self.diagnostics.append(warning(
                    "W320", f"constructor `{name}` is declared but never used",
                ))


def _find_path(edges: dict[Name, set[Name]], start: Name) -> list[Name] | None:
    """A path of tail calls leading from *start* back to it, or None."""
    stack: list[tuple[Name, list[Name]]] = [
        (callee, [callee]) for callee in sorted(edges[start], key=str)
    ]
    seen: set[Name] = set()
    while stack:
        node, path = stack.pop()
        if node == start:
            return path
        if node in seen:
            continue
        seen.add(node)
        for callee in sorted(edges.get(node, ()), key=str):
            stack.append((callee, [*path, callee]))
    return None
