"""Self tail call marking.

Runs once per function body before lowering. Tail positions are the ones
reachable from the body root through ``Let`` bodies and ``Case`` branches
only; everything else is evaluated nested or deferred and cannot restart the
function's loop. The pass is the sole authority on the ``tail`` flag: it is
set on self calls in tail position and cleared on every application that is
not in tail position. Mutual recursion is left alone.
"""

from __future__ import annotations

from dataclasses import replace

from pylower.ir import (
    App,
    Case,
    Con,
    Expr,
    Force,
    Foreign,
    Global,
    Lam,
    Lazy,
    LazyApp,
    Let,
    Name,
    Op,
    Proj,
    Var,
)


def mark_tail_calls(name: Name, body: Expr) -> Expr:
    """Return *body* with self calls to *name* in tail position marked."""
    return _spine(name, body)


def is_self_call(name: Name, expr: Expr) -> bool:
    """Check if an expression applies the function *name* directly."""
    return (
        isinstance(expr, App)
        and isinstance(expr.func, Var)
        and expr.func.var == Global(name)
    )


def tail_positions(body: Expr) -> list[Expr]:
    """The leaf expressions in tail position, left to right."""
    if isinstance(body, Let):
        return tail_positions(body.body)
    if isinstance(body, Case):
        leaves: list[Expr] = []
        for alt in body.alts:
            leaves.extend(tail_positions(alt.body))
        return leaves
    return [body]


def has_self_tail_call(name: Name, body: Expr) -> bool:
    return any(
        is_self_call(name, leaf) and leaf.tail  # type: ignore[union-attr]
        for leaf in tail_positions(body)
    )


def tail_callees(body: Expr) -> list[Name]:
    """Names of the global functions applied in tail position."""
    names: list[Name] = []
    for leaf in tail_positions(body):
        if (isinstance(leaf, App) and isinstance(leaf.func, Var)
                and isinstance(leaf.func.var, Global)):
            names.append(leaf.func.var.name)
    return names


def _spine(name: Name, expr: Expr) -> Expr:
    if isinstance(expr, Let):
        return replace(expr, value=_nested(expr.value), body=_spine(name, expr.body))
    if isinstance(expr, Case):
        return replace(
            expr,
            scrutinee=_nested(expr.scrutinee),
            alts=[replace(alt, body=_spine(name, alt.body)) for alt in expr.alts],
        )
    if isinstance(expr, App):
        rebuilt = replace(
            expr, func=_nested(expr.func), args=[_nested(a) for a in expr.args],
        )
        if is_self_call(name, rebuilt):
            return replace(rebuilt, tail=True)
        return rebuilt
    return _nested(expr)


def _nested(expr: Expr) -> Expr:
    """Rebuild a non-tail expression with every application marked non-tail."""
    if isinstance(expr, App):
        return replace(
            expr, func=_nested(expr.func), args=[_nested(a) for a in expr.args],
            tail=False,
        )
    if isinstance(expr, (LazyApp, Con, Foreign, Op)):
        return replace(expr, args=[_nested(a) for a in expr.args])
    if isinstance(expr, (Lazy, Force, Proj)):
        return replace(expr, expr=_nested(expr.expr))
    if isinstance(expr, Lam):
        return replace(expr, body=_nested(expr.body))
    if isinstance(expr, Let):
        return replace(expr, value=_nested(expr.value), body=_nested(expr.body))
    if isinstance(expr, Case):
        return replace(
            expr,
            scrutinee=_nested(expr.scrutinee),
            alts=[replace(alt, body=_nested(alt.body)) for alt in expr.alts],
        )
    return expr
