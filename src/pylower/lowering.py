"""IR expression -> Python statements + expression."""

from __future__ import annotations

from collections.abc import Iterable

from pylower.codegen import CodeGen, tuple_expr
from pylower.errors import CompileError
from pylower.ir import (
    App,
    Case,
    Con,
    Expr,
    Fail,
    Force,
    Foreign,
    ForeignName,
    Global,
    Lam,
    Lazy,
    LazyApp,
    Let,
    Lit,
    Local,
    Name,
    Null,
    Op,
    Proj,
    Var,
    free_vars,
)
from pylower.match_compiler import MatchCompiler
from pylower.names import render_name, render_var
from pylower.primitives import error_call, lower_const, lower_prim
from pylower.tail_calls import is_self_call


class Placeholder(str):
    """An expression that must never be rendered (the value of a tail call)."""


TAIL_CALL = Placeholder(error_call("unreachable due to tail call"))


def call_expr(func: str, args: list[str], *, compound: bool = False) -> str:
    if compound:
        func = f"({func})"
    return f"{func}({', '.join(args)})"


class ExprLowerer:
    """Recursive-descent lowering of one function body.

    Each ``lower`` call emits the statements the expression needs into the
    :class:`CodeGen` and returns the Python expression for its value.

    With *freeze_captures* set, deferred values (lambdas, lazy values) bind
    the locals they capture as keyword defaults. A function that restarts its
    loop rebinds parameters in place, and a closure must keep seeing the
    values of the iteration that created it.
    """

    def __init__(self, cg: CodeGen, *, freeze_captures: bool = False) -> None:
        self.cg = cg
        self._freeze = freeze_captures
        self._bound: set[Name] = set(cg.params)
        self._matcher = MatchCompiler(cg, self)

    # ── Helpers used by the match compiler ─────────────────────

    def assign(self, target: str, value: str) -> None:
        if isinstance(value, Placeholder):
            return
        self.cg.emit(f"{target} = {value}")

    def declare(self, names: Iterable[Name]) -> None:
        self._bound.update(names)

    # ── Dispatch ───────────────────────────────────────────────

    def lower(self, expr: Expr) -> str:
        cg = self.cg
        match expr:
            case Var(var):
                return render_var(var)
            case App(func, args, tail):
                if tail and is_self_call(cg.function, expr):
                    return self._tail_call(args)
                callee = self.lower(func)
                values = [self.lower(a) for a in args]
                return call_expr(callee, values, compound=not isinstance(func, Var))
            case LazyApp(name, args):
                return self._defer([], App(Var(Global(name)), args))
            case Lazy(inner):
                return self._defer([], inner)
            case Force(inner):
                value = self.lower(inner)
                return call_expr(value, [], compound=not isinstance(inner, Var))
            case Lam(params, body):
                return self._defer(params, body)
            case Let(name, value, body):
                self.assign(render_name(name), self.lower(value))
                self._bound.add(name)
                return self.lower(body)
            case Con(name, args, _):
                tag = cg.tag_of(name)
                fields = [self.lower(a) for a in args]
                return tuple_expr([str(tag), *fields])
            case Case(scrutinee, alts):
                # Keep the decision procedure from re-evaluating a compound
                # scrutinee: it is tested once per branch.
                if isinstance(scrutinee, Var):
                    subject = scrutinee.var
                else:
                    subject = cg.fresh()
                    self.assign(render_var(subject), self.lower(scrutinee))
                return self._matcher.compile(subject, alts)
            case Proj(inner, index):
                return f"{self.lower(inner)}[{index + 1}]"
            case Lit(const):
                return lower_const(const)
            case Foreign(target, args):
                if not isinstance(target, ForeignName):
                    raise CompileError.single(
                        "E301", f"unrecognised foreign descriptor {target}",
                        str(cg.function),
                    )
                return call_expr(target.name, [self.lower(a) for a in args])
            case Op(prim, args):
                return lower_prim(prim, [self.lower(a) for a in args])
            case Fail(message):
                return error_call(message)
            case Null():
                return "None"
        raise TypeError(f"unknown IR node: {type(expr).__name__}")

    # ── Tail calls ─────────────────────────────────────────────

    def _tail_call(self, args: list[Expr]) -> str:
        """Rebind the parameters and restart the function's loop."""
        cg = self.cg
        if len(args) != len(cg.params):
            raise CompileError.single(
                "E206",
                f"self call passes {len(args)} argument(s), "
                f"function takes {len(cg.params)}",
                str(cg.function),
            )
        # Evaluate every argument before assigning any parameter, so
        # f(y, x) swaps instead of clobbering.
        values = [self.lower(a) for a in args]
        if values:
            targets = " ".join(f"{render_name(p)}," for p in cg.params)
            sources = " ".join(f"{v}," for v in values)
            cg.emit(f"{targets} = {sources}")
        cg.emit("continue")
        return TAIL_CALL

    # ── Deferred values ────────────────────────────────────────

    def _defer(self, params: list[Name], body: Expr) -> str:
        """A callable over curried *params* that evaluates *body* when applied.

        Bodies that need statements are hoisted into a nested ``def`` so the
        statements run on application, not here.
        """
        cg = self.cg
        captured = self._captures(params, body)
        defaults = [f"{c}={c}" for c in captured]
        names = [render_name(p) for p in params]

        outer_bound = set(self._bound)
        with cg.capture() as block:
            value = self.lower(body)
        self._bound = outer_bound

        if not block:
            return _curried(names, value, defaults)

        fn = render_var(cg.fresh())
        cg.emit(f"def {fn}({', '.join(names + defaults)}):")
        with cg.indented():
            cg.emit_all(block)
            cg.emit(f"return {value}")
        if len(names) <= 1:
            return fn
        call = call_expr(fn, names)
        return _curried(names, call, [f"{fn}={fn}"] if self._freeze else [])

    def _captures(self, params: list[Name], body: Expr) -> list[str]:
        if not self._freeze:
            return []
        captured: list[str] = []
        for var in free_vars(Lam(params, body)):
            if isinstance(var, Local) or var.name in self._bound:
                captured.append(render_var(var))
        return captured


def _curried(names: list[str], body: str, defaults: list[str]) -> str:
    """``(lambda a, <defaults>: (lambda b: (body)))``; defaults go on the outermost."""
    if not names:
        head = f"lambda {', '.join(defaults)}" if defaults else "lambda"
        return f"({head}: {body})"
    for i, name in reversed(list(enumerate(names))):
        head = ", ".join([name, *defaults]) if i == 0 else name
        body = f"(lambda {head}: ({body}))"
    return body
