"""IR node definitions consumed by the Python backend.

The IR arrives simplified and defunctionalized from the frontend. Nodes are
frozen; passes build new trees with ``dataclasses.replace()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# ── Names ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UserName:
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class NSName:
    name: Name
    namespace: tuple[str, ...]  # outermost first

    def __str__(self) -> str:
        return ".".join((*self.namespace, str(self.name)))


@dataclass(frozen=True)
class MachineName:
    """A compiler-generated name such as ``e0`` or ``APPLY0``."""

    index: int
    text: str

    def __str__(self) -> str:
        return f"{{{self.text}{self.index}}}"


Name = Union[UserName, NSName, MachineName]


# ── Variables ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Local:
    index: int  # negative indices are compiler temporaries


@dataclass(frozen=True)
class Global:
    name: Name


LVar = Union[Local, Global]


# ── Constants and primitives ─────────────────────────────────────


class ConstKind(Enum):
    INT = "int"
    BIG_INT = "bigint"
    FLOAT = "float"
    CHAR = "char"
    STRING = "string"
    WORLD = "world"
    TYPE = "type"


@dataclass(frozen=True)
class Const:
    kind: ConstKind
    value: int | float | str | None = None

    def __str__(self) -> str:
        if self.value is None:
            return self.kind.value
        return f"{self.kind.value} {self.value!r}"


class NumKind(Enum):
    INT = "int"
    BIG_INT = "bigint"
    FLOAT = "float"
    CHAR = "char"


class PrimOp(Enum):
    PLUS = "plus"
    MINUS = "minus"
    TIMES = "times"
    UDIV = "udiv"
    SDIV = "sdiv"
    UREM = "urem"
    SREM = "srem"
    AND = "and"
    OR = "or"
    XOR = "xor"
    COMPL = "compl"
    SHL = "shl"
    LSHR = "lshr"
    ASHR = "ashr"
    EQ = "eq"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    SLT = "slt"
    SLE = "sle"
    SGT = "sgt"
    SGE = "sge"
    SEXT = "sext"
    ZEXT = "zext"
    TRUNC = "trunc"
    INT_FLOAT = "int_float"
    FLOAT_INT = "float_int"
    INT_STR = "int_str"
    STR_INT = "str_int"
    FLOAT_STR = "float_str"
    STR_FLOAT = "str_float"
    CH_INT = "ch_int"
    INT_CH = "int_ch"
    STR_CONCAT = "str_concat"
    STR_LT = "str_lt"
    STR_EQ = "str_eq"
    STR_LEN = "str_len"
    STR_HEAD = "str_head"
    STR_TAIL = "str_tail"
    STR_CONS = "str_cons"
    STR_INDEX = "str_index"
    STR_REV = "str_rev"
    STR_SUBSTR = "str_substr"
    READ_STR = "read_str"
    WRITE_STR = "write_str"
    SYSTEM_INFO = "system_info"
    EXTERNAL = "external"
    NO_OP = "no_op"


@dataclass(frozen=True)
class Prim:
    op: PrimOp
    kind: NumKind = NumKind.INT
    name: str | None = None  # only for EXTERNAL

    def __str__(self) -> str:
        if self.op is PrimOp.EXTERNAL:
            return f"external {self.name}"
        return f"{self.op.value}:{self.kind.value}"


# ── Foreign call targets ─────────────────────────────────────────


@dataclass(frozen=True)
class ForeignName:
    """A static target: the callee is named directly."""

    name: str


@dataclass(frozen=True)
class ForeignCon:
    name: str


@dataclass(frozen=True)
class ForeignApp:
    name: str
    args: tuple[ForeignTarget, ...] = ()


@dataclass(frozen=True)
class ForeignUnknown:
    pass


ForeignTarget = Union[ForeignName, ForeignCon, ForeignApp, ForeignUnknown]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Var:
    var: LVar


@dataclass(frozen=True)
class App:
    func: Expr
    args: list[Expr]
    tail: bool = False


@dataclass(frozen=True)
class LazyApp:
    name: Name
    args: list[Expr]


@dataclass(frozen=True)
class Lazy:
    expr: Expr


@dataclass(frozen=True)
class Force:
    expr: Expr


@dataclass(frozen=True)
class Lam:
    params: list[Name]
    body: Expr


@dataclass(frozen=True)
class Let:
    name: Name
    value: Expr
    body: Expr


@dataclass(frozen=True)
class Con:
    name: Name
    args: list[Expr]
    tag: int | None = None  # frontend's view; lowering uses the tag table


@dataclass(frozen=True)
class Case:
    scrutinee: Expr
    alts: list[Alt]


@dataclass(frozen=True)
class Proj:
    expr: Expr
    index: int


@dataclass(frozen=True)
class Lit:
    const: Const


@dataclass(frozen=True)
class Foreign:
    target: ForeignTarget
    args: list[Expr]


@dataclass(frozen=True)
class Op:
    prim: Prim
    args: list[Expr]


@dataclass(frozen=True)
class Fail:
    message: str


@dataclass(frozen=True)
class Null:
    pass


Expr = Union[
    Var, App, LazyApp, Lazy, Force, Lam, Let, Con, Case, Proj,
    Lit, Foreign, Op, Fail, Null,
]


# ── Case alternatives ────────────────────────────────────────────


@dataclass(frozen=True)
class ConAlt:
    ctor: Name
    args: list[Name]
    body: Expr


@dataclass(frozen=True)
class ConstAlt:
    const: Const
    body: Expr


@dataclass(frozen=True)
class DefaultAlt:
    body: Expr


Alt = Union[ConAlt, ConstAlt, DefaultAlt]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class FunDecl:
    name: Name
    params: list[Name]
    body: Expr


@dataclass(frozen=True)
class ConDecl:
    name: Name
    arity: int
    tag: int | None = None  # None: assigned by the tag table


Declaration = Union[FunDecl, ConDecl]

RUN_MAIN: Name = MachineName(0, "runMain")


@dataclass
class Program:
    declarations: list[Declaration] = field(default_factory=list)
    entry: Name = RUN_MAIN

    def functions(self) -> list[FunDecl]:
        return [d for d in self.declarations if isinstance(d, FunDecl)]

    def constructors(self) -> list[ConDecl]:
        return [d for d in self.declarations if isinstance(d, ConDecl)]


# ── Traversal helpers ────────────────────────────────────────────


def children(expr: Expr) -> list[Expr]:
    """Direct sub-expressions of *expr*, in evaluation order."""
    match expr:
        case App(func, args, _):
            return [func, *args]
        case LazyApp(_, args) | Con(_, args, _) | Foreign(_, args) | Op(_, args):
            return list(args)
        case Lazy(inner) | Force(inner) | Proj(inner, _):
            return [inner]
        case Lam(_, body):
            return [body]
        case Let(_, value, body):
            return [value, body]
        case Case(scrutinee, alts):
            return [scrutinee, *(alt.body for alt in alts)]
    return []


def free_vars(expr: Expr) -> list[LVar]:
    """Variables referenced by *expr* and not bound inside it, first use first."""
    found: dict[LVar, None] = {}
    _collect_free(expr, frozenset(), found)
    return list(found)


def _collect_free(expr: Expr, bound: frozenset[Name], found: dict[LVar, None]) -> None:
    match expr:
        case Var(Global(name)) if name in bound:
            return
        case Var(var):
            found.setdefault(var, None)
        case LazyApp(name, args):
            if name not in bound:
                found.setdefault(Global(name), None)
            for arg in args:
                _collect_free(arg, bound, found)
        case Lam(params, body):
            _collect_free(body, bound | set(params), found)
        case Let(name, value, body):
            _collect_free(value, bound, found)
            _collect_free(body, bound | {name}, found)
        case Case(scrutinee, alts):
            _collect_free(scrutinee, bound, found)
            for alt in alts:
                inner = bound | set(alt.args) if isinstance(alt, ConAlt) else bound
                _collect_free(alt.body, inner, found)
        case _:
            for child in children(expr):
                _collect_free(child, bound, found)
