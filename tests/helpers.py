"""Shared IR builders and runners for the pylower test suite."""

from __future__ import annotations

from pylower.checker import Checker
from pylower.ir import (
    App,
    ConDecl,
    Const,
    ConstKind,
    Expr,
    FunDecl,
    Global,
    Lit,
    NumKind,
    Op,
    Prim,
    PrimOp,
    Program,
    UserName,
    Var,
)
from pylower.names import render_name
from pylower.py_emitter import PyEmitter


def u(text: str) -> UserName:
    return UserName(text)


def var(name: str) -> Var:
    return Var(Global(u(name)))


def lit(value: int | float | str, kind: ConstKind | None = None) -> Lit:
    if kind is None:
        kind = {int: ConstKind.INT, float: ConstKind.FLOAT}.get(type(value), ConstKind.STRING)
    return Lit(Const(kind, value))


def op(prim: PrimOp, *args: Expr, kind: NumKind = NumKind.INT) -> Op:
    return Op(Prim(prim, kind), list(args))


def call(name: str, *args: Expr) -> App:
    return App(var(name), list(args))


def fn(name: str, params: list[str], body: Expr) -> FunDecl:
    return FunDecl(u(name), [u(p) for p in params], body)


def ctor(name: str, arity: int = 0, tag: int | None = None) -> ConDecl:
    return ConDecl(u(name), arity, tag)


def program(*decls, entry: str = "main") -> Program:
    return Program(list(decls), u(entry))


def check(prog: Program) -> list:
    """Check a program, asserting no errors. Returns all diagnostics."""
    checker = Checker()
    checker.check(prog)
    errors = [d for d in checker.diagnostics if d.severity.value == "error"]
    assert not errors, f"Unexpected errors: {[f'{d.code}: {d.message}' for d in errors]}"
    return checker.diagnostics


def check_fails(prog: Program, error_code: str) -> list:
    """Check a program, asserting the given diagnostic code appears."""
    checker = Checker()
    checker.check(prog)
    matching = [d for d in checker.diagnostics if d.code == error_code]
    assert matching, (
        f"Expected {error_code} but got: "
        f"{[f'{d.code}: {d.message}' for d in checker.diagnostics] or 'no diagnostics'}"
    )
    return matching


def emit(prog: Program, **options) -> str:
    return PyEmitter(prog, **options).emit()


def load(prog: Program, **options) -> dict:
    """Emit a program and execute it as a module that is not ``__main__``."""
    namespace: dict = {"__name__": "generated"}
    exec(compile(emit(prog, **options), "<generated>", "exec"), namespace)
    return namespace


def run_function(prog: Program, name: str, *args, **options):
    """Emit *prog* and call its function *name* with Python values."""
    namespace = load(prog, **options)
    return namespace[render_name(u(name))](*args)
