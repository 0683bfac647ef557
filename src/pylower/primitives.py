"""Primitive operation and constant -> Python expression translation."""

from __future__ import annotations

import math

from pylower.ir import Const, ConstKind, NumKind, Prim, PrimOp

_BINARY: dict[PrimOp, str] = {
    PrimOp.PLUS: "+",
    PrimOp.MINUS: "-",
    PrimOp.TIMES: "*",
    PrimOp.UREM: "%",
    PrimOp.SREM: "%",
    PrimOp.STR_CONCAT: "+",
    PrimOp.STR_CONS: "+",
}

# Comparisons yield integer-coded booleans, like rts_is_none.
_COMPARISONS: dict[PrimOp, str] = {
    PrimOp.EQ: "==",
    PrimOp.LT: "<",
    PrimOp.LE: "<=",
    PrimOp.GT: ">",
    PrimOp.GE: ">=",
    PrimOp.SLT: "<",
    PrimOp.SLE: "<=",
    PrimOp.SGT: ">",
    PrimOp.SGE: ">=",
    PrimOp.STR_EQ: "==",
    PrimOp.STR_LT: "<",
}

_DIVISION = frozenset({PrimOp.UDIV, PrimOp.SDIV})

# Width changes have no meaning for Python ints.
_IDENTITY = frozenset({PrimOp.SEXT, PrimOp.ZEXT, PrimOp.TRUNC})

_UNARY_FORMATS: dict[PrimOp, str] = {
    PrimOp.INT_STR: "str({})",
    PrimOp.STR_INT: "int({})",
    PrimOp.STR_REV: "{}[::-1]",
    PrimOp.STR_HEAD: "{}[0]",
    PrimOp.STR_TAIL: "{}[1:]",
}

_EXTERNALS: dict[str, str] = {
    "prim__null": "None",
}


def error_call(message: str) -> str:
    """A call that raises ``IRError(message)`` when evaluated."""
    return f"rts_error({message!r})"


def lower_const(const: Const) -> str:
    """Render a constant as a Python literal that evaluates back to it."""
    kind = const.kind
    if kind in (ConstKind.INT, ConstKind.BIG_INT):
        return str(int(const.value))  # type: ignore[arg-type]
    if kind is ConstKind.FLOAT:
        value = float(const.value)  # type: ignore[arg-type]
        if math.isfinite(value):
            return repr(value)
        return f"float('{value}')"
    if kind in (ConstKind.CHAR, ConstKind.STRING):
        return repr(str(const.value))
    return error_call(f"unimplemented constant: {const}")


def lower_prim(prim: Prim, args: list[str]) -> str:
    """Translate a primitive applied to already-lowered arguments.

    Total: operations without a translation become a runtime error call
    naming the operation and its arguments.
    """
    op = prim.op
    if op is PrimOp.EXTERNAL:
        return _EXTERNALS.get(
            prim.name or "", error_call(f"unimplemented external: {prim.name}"),
        )

    if op in _BINARY and len(args) == 2:
        return f"({args[0]} {_BINARY[op]} {args[1]})"
    if op in _COMPARISONS and len(args) == 2:
        return f"int({args[0]} {_COMPARISONS[op]} {args[1]})"
    if op in _DIVISION and len(args) == 2:
        sym = "/" if prim.kind is NumKind.FLOAT else "//"
        return f"({args[0]} {sym} {args[1]})"
    if op in _IDENTITY and len(args) == 1:
        return args[0]
    if op in _UNARY_FORMATS and len(args) == 1:
        return _UNARY_FORMATS[op].format(args[0])

    if op is PrimOp.READ_STR:
        return "sys.stdin.readline()"
    if op is PrimOp.WRITE_STR and args:
        # The string is last; a leading world token carries no value.
        return f"sys.stdout.write({args[-1]})"

    return error_call(f"unimplemented prim: {prim}, args = [{', '.join(args)}]")
