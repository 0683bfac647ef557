"""Read the JSON form of the IR handed over by the frontend."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pylower.errors import CompileError
from pylower.ir import (
    RUN_MAIN,
    Alt,
    App,
    Case,
    Con,
    ConAlt,
    ConDecl,
    Const,
    ConstAlt,
    ConstKind,
    Declaration,
    DefaultAlt,
    Expr,
    Fail,
    Force,
    Foreign,
    ForeignApp,
    ForeignCon,
    ForeignName,
    ForeignTarget,
    ForeignUnknown,
    FunDecl,
    Global,
    Lam,
    Lazy,
    LazyApp,
    Let,
    Lit,
    Local,
    MachineName,
    Name,
    NSName,
    Null,
    NumKind,
    Op,
    Prim,
    PrimOp,
    Program,
    Proj,
    UserName,
    Var,
)


def load_program(path: Path) -> Program:
    """Read an IR program from a ``.ir.json`` file."""
    return loads_program(Path(path).read_text(encoding="utf-8"), str(path))


def loads_program(text: str, filename: str = "<string>") -> Program:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CompileError.single(
            "E001", f"invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}",
            filename,
        ) from e
    return IRReader(filename).program(data)


class IRReader:
    """Convert decoded JSON into IR nodes, reporting the first malformed part."""

    def __init__(self, filename: str) -> None:
        self.filename = filename

    # ── Error helpers ───────────────────────────────────────────

    def _fail(self, code: str, message: str) -> CompileError:
        return CompileError.single(code, message, self.filename)

    def _get(self, obj: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
        if key not in obj:
            raise self._fail("E002", f"missing field `{key}` in {_describe(obj)}")
        value = obj[key]
        # bool is an int subclass; never accept it where a number is wanted.
        if not isinstance(value, kind) or (isinstance(value, bool) and kind is not bool):
            raise self._fail(
                "E002", f"field `{key}` of {_describe(obj)} has the wrong type",
            )
        return value

    def _object(self, value: Any, what: str) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise self._fail("E002", f"expected an object for {what}")
        return value

    def _kind(self, obj: dict[str, Any]) -> str:
        return self._get(obj, "kind", str)

    # ── Top level ───────────────────────────────────────────────

    def program(self, data: Any) -> Program:
        doc = self._object(data, "the program")
        decls = [self.declaration(d) for d in self._get(doc, "declarations", list)]
        entry = self.name(doc["entry"]) if "entry" in doc else RUN_MAIN
        return Program(decls, entry)

    def declaration(self, value: Any) -> Declaration:
        obj = self._object(value, "a declaration")
        kind = self._kind(obj)
        if kind == "function":
            return FunDecl(
                self.name(obj.get("name")),
                self.names(self._get(obj, "params", list)),
                self.expr(obj.get("body")),
            )
        if kind == "constructor":
            tag = self._get(obj, "tag", int) if obj.get("tag") is not None else None
            return ConDecl(self.name(obj.get("name")), self._get(obj, "arity", int), tag)
        raise self._fail("E003", f"unknown declaration kind `{kind}`")

    # ── Names ───────────────────────────────────────────────────

    def name(self, value: Any) -> Name:
        if isinstance(value, str):
            # Operator names such as "." or ".." stay whole.
            parts = value.split(".")
            if len(parts) > 1 and all(parts):
                return NSName(UserName(parts[-1]), tuple(parts[:-1]))
            return UserName(value)
        if isinstance(value, dict):
            if "user" in value:
                return UserName(self._get(value, "user", str))
            if "ns" in value:
                namespace = self._get(value, "ns", list)
                if not all(isinstance(part, str) for part in namespace):
                    raise self._fail("E002", "namespace parts must be strings")
                return NSName(self.name(value.get("name")), tuple(namespace))
            if "mn" in value:
                pair = self._get(value, "mn", list)
                if (len(pair) != 2 or not isinstance(pair[0], int)
                        or isinstance(pair[0], bool) or not isinstance(pair[1], str)):
                    raise self._fail("E002", "machine name must be [index, text]")
                return MachineName(pair[0], pair[1])
        raise self._fail("E002", f"expected a name, got {value!r}")

    def names(self, values: list[Any]) -> list[Name]:
        return [self.name(v) for v in values]

    # ── Expressions ─────────────────────────────────────────────

    def exprs(self, values: list[Any]) -> list[Expr]:
        return [self.expr(v) for v in values]

    def expr(self, value: Any) -> Expr:
        obj = self._object(value, "an expression")
        kind = self._kind(obj)
        match kind:
            case "var":
                return Var(Global(self.name(obj.get("name"))))
            case "loc":
                return Var(Local(self._get(obj, "index", int)))
            case "app":
                return App(
                    self.expr(obj.get("func")),
                    self.exprs(self._get(obj, "args", list)),
                    bool(obj.get("tail", False)),
                )
            case "lazyapp":
                return LazyApp(
                    self.name(obj.get("name")), self.exprs(self._get(obj, "args", list)),
                )
            case "lazy":
                return Lazy(self.expr(obj.get("expr")))
            case "force":
                return Force(self.expr(obj.get("expr")))
            case "lam":
                return Lam(
                    self.names(self._get(obj, "params", list)), self.expr(obj.get("body")),
                )
            case "let":
                return Let(
                    self.name(obj.get("name")),
                    self.expr(obj.get("value")),
                    self.expr(obj.get("body")),
                )
            case "con":
                tag = self._get(obj, "tag", int) if obj.get("tag") is not None else None
                return Con(
                    self.name(obj.get("name")), self.exprs(self._get(obj, "args", list)), tag,
                )
            case "case":
                return Case(
                    self.expr(obj.get("scrutinee")),
                    [self.alt(a) for a in self._get(obj, "alts", list)],
                )
            case "proj":
                return Proj(self.expr(obj.get("expr")), self._get(obj, "index", int))
            case "const":
                return Lit(self.const(obj.get("value")))
            case "foreign":
                return Foreign(
                    self.foreign_target(obj.get("target")),
                    self.exprs(self._get(obj, "args", list)),
                )
            case "op":
                return Op(self.prim(obj), self.exprs(self._get(obj, "args", list)))
            case "error":
                return Fail(self._get(obj, "message", str))
            case "null":
                return Null()
        raise self._fail("E003", f"unknown expression kind `{kind}`")

    def alt(self, value: Any) -> Alt:
        obj = self._object(value, "a case alternative")
        kind = self._kind(obj)
        if kind == "con":
            return ConAlt(
                self.name(obj.get("name")),
                self.names(self._get(obj, "args", list)),
                self.expr(obj.get("body")),
            )
        if kind == "const":
            return ConstAlt(self.const(obj.get("value")), self.expr(obj.get("body")))
        if kind == "default":
            return DefaultAlt(self.expr(obj.get("body")))
        raise self._fail("E003", f"unknown alternative kind `{kind}`")

    # ── Leaves ──────────────────────────────────────────────────

    def const(self, value: Any) -> Const:
        obj = self._object(value, "a constant")
        kind = self._enum(ConstKind, self._kind(obj), "constant kind")
        if kind in (ConstKind.WORLD, ConstKind.TYPE):
            return Const(kind)
        if kind in (ConstKind.INT, ConstKind.BIG_INT, ConstKind.CHAR):
            expected: type | tuple[type, ...] = int if kind is not ConstKind.CHAR else str
        elif kind is ConstKind.FLOAT:
            expected = (int, float)
        else:
            expected = str
        raw = self._get(obj, "value", expected)
        if kind is ConstKind.CHAR and len(raw) != 1:
            raise self._fail("E002", f"char constant must be one character, got {raw!r}")
        if kind is ConstKind.FLOAT:
            raw = float(raw)
        return Const(kind, raw)

    def prim(self, obj: dict[str, Any]) -> Prim:
        op = self._enum(PrimOp, self._get(obj, "op", str), "primitive")
        num = self._enum(NumKind, obj.get("ty", NumKind.INT.value), "numeric kind")
        name = self._get(obj, "name", str) if op is PrimOp.EXTERNAL else None
        return Prim(op, num, name)

    def foreign_target(self, value: Any) -> ForeignTarget:
        obj = self._object(value, "a foreign target")
        kind = self._kind(obj)
        if kind == "name":
            return ForeignName(self._get(obj, "name", str))
        if kind == "con":
            return ForeignCon(self._get(obj, "name", str))
        if kind == "app":
            raw = self._get(obj, "args", list) if "args" in obj else []
            args = tuple(self.foreign_target(a) for a in raw)
            return ForeignApp(self._get(obj, "name", str), args)
        if kind == "unknown":
            return ForeignUnknown()
        raise self._fail("E003", f"unknown foreign target kind `{kind}`")

    def _enum(self, enum: type, value: Any, what: str) -> Any:
        try:
            return enum(value)
        except ValueError:
            raise self._fail("E003", f"unknown {what} `{value}`") from None


def _describe(obj: dict[str, Any]) -> str:
    kind = obj.get("kind")
    return f"`{kind}` node" if isinstance(kind, str) else "object"
