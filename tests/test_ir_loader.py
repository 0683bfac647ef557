"""Tests for reading the JSON IR format."""

from __future__ import annotations

import json

import pytest

from pylower.errors import CompileError
from pylower.ir import (
    RUN_MAIN,
    App,
    Case,
    ConAlt,
    ConDecl,
    Const,
    ConstKind,
    DefaultAlt,
    Foreign,
    ForeignApp,
    ForeignName,
    ForeignUnknown,
    FunDecl,
    Global,
    Local,
    MachineName,
    NSName,
    NumKind,
    Op,
    PrimOp,
    UserName,
    Var,
)
from pylower.ir_loader import load_program, loads_program


def _doc(*decls, **extra) -> str:
    return json.dumps({"declarations": list(decls), **extra})


def _fun(body, params=(), name="f") -> dict:
    return {"kind": "function", "name": name, "params": list(params), "body": body}


def _body(text: str):
    """Load a one-function program and return the function body."""
    return loads_program(_doc(_fun(json.loads(text)))).declarations[0].body


def _code(text: str) -> str:
    with pytest.raises(CompileError) as exc:
        loads_program(text, "bad.ir.json")
    return exc.value.diagnostics[0].code


class TestDeclarations:
    def test_function(self):
        prog = loads_program(_doc(_fun({"kind": "null"}, params=["x", "y"])))
        decl = prog.declarations[0]
        assert isinstance(decl, FunDecl)
        assert decl.params == [UserName("x"), UserName("y")]

    def test_constructor(self):
        prog = loads_program(_doc(
            {"kind": "constructor", "name": "Cons", "arity": 2},
            {"kind": "constructor", "name": "Nil", "arity": 0, "tag": 0},
        ))
        assert prog.declarations == [
            ConDecl(UserName("Cons"), 2, None), ConDecl(UserName("Nil"), 0, 0),
        ]

    def test_default_entry(self):
        assert loads_program(_doc()).entry == RUN_MAIN

    def test_explicit_entry(self):
        assert loads_program(_doc(entry="Main.main")).entry == NSName(UserName("main"), ("Main",))

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "p.ir.json"
        path.write_text(_doc(_fun({"kind": "null"})))
        assert len(load_program(path).functions()) == 1


class TestNames:
    def test_plain_string(self):
        assert loads_program(_doc(entry="fact")).entry == UserName("fact")

    def test_operator_string_kept_whole(self):
        assert loads_program(_doc(entry=".")).entry == UserName(".")

    def test_object_forms(self):
        assert loads_program(_doc(entry={"user": "a.b"})).entry == UserName("a.b")
        assert loads_program(_doc(entry={"mn": [2, "e"]})).entry == MachineName(2, "e")
        nested = {"ns": ["Prelude", "List"], "name": {"user": "map"}}
        assert loads_program(_doc(entry=nested)).entry == NSName(
            UserName("map"), ("Prelude", "List"),
        )


class TestExpressions:
    def test_variables(self):
        assert _body('{"kind": "var", "name": "x"}') == Var(Global(UserName("x")))
        assert _body('{"kind": "loc", "index": 3}') == Var(Local(3))

    def test_application(self):
        body = _body('{"kind": "app", "func": {"kind": "var", "name": "g"}, "args": [], "tail": true}')
        assert body == App(Var(Global(UserName("g"))), [], True)

    def test_case(self):
        body = _body("""
            {"kind": "case", "scrutinee": {"kind": "loc", "index": 0}, "alts": [
                {"kind": "con", "name": "Cons", "args": ["h", "t"], "body": {"kind": "null"}},
                {"kind": "default", "body": {"kind": "null"}}
            ]}
        """)
        assert isinstance(body, Case)
        assert isinstance(body.alts[0], ConAlt)
        assert body.alts[0].args == [UserName("h"), UserName("t")]
        assert isinstance(body.alts[1], DefaultAlt)

    def test_constants(self):
        assert _body('{"kind": "const", "value": {"kind": "int", "value": 7}}').const == Const(
            ConstKind.INT, 7,
        )
        assert _body('{"kind": "const", "value": {"kind": "float", "value": 1}}').const == Const(
            ConstKind.FLOAT, 1.0,
        )
        assert _body('{"kind": "const", "value": {"kind": "world"}}').const == Const(
            ConstKind.WORLD,
        )

    def test_op_numeric_kind(self):
        text = json.dumps({"kind": "op", "op": "sdiv", "ty": "float", "args": []})
        body = _body(text)
        assert isinstance(body, Op)
        assert body.prim.kind is NumKind.FLOAT

    def test_op_kinds(self):
        text = json.dumps({"kind": "op", "op": "plus", "args": []})
        body = _body(text)
        assert body.prim.op is PrimOp.PLUS
        assert body.prim.kind is NumKind.INT

    def test_external_op(self):
        text = json.dumps({"kind": "op", "op": "external", "name": "prim__null", "args": []})
        assert _body(text).prim.name == "prim__null"

    def test_foreign_targets(self):
        named = _body('{"kind": "foreign", "target": {"kind": "name", "name": "len"}, "args": []}')
        assert named == Foreign(ForeignName("len"), [])
        app = _body("""
            {"kind": "foreign", "args": [], "target":
                {"kind": "app", "name": "f", "args": [{"kind": "unknown"}]}}
        """)
        assert app.target == ForeignApp("f", (ForeignUnknown(),))


class TestErrors:
    def test_invalid_json(self):
        assert _code("{not json") == "E001"

    def test_missing_field(self):
        assert _code(json.dumps({})) == "E002"
        assert _code(_doc({"kind": "constructor", "name": "A"})) == "E002"

    def test_wrong_type(self):
        assert _code(_doc({"kind": "constructor", "name": "A", "arity": "2"})) == "E002"
        assert _code(_doc({"kind": "constructor", "name": "A", "arity": True})) == "E002"

    def test_unknown_kind(self):
        assert _code(_doc(_fun({"kind": "goto"}))) == "E003"
        assert _code(_doc({"kind": "module"})) == "E003"

    def test_unknown_primitive(self):
        assert _code(_doc(_fun({"kind": "op", "op": "frobnicate", "args": []}))) == "E003"

    def test_bad_char(self):
        bad = {"kind": "const", "value": {"kind": "char", "value": "ab"}}
        assert _code(_doc(_fun(bad))) == "E002"

    def test_where_is_filename(self):
        with pytest.raises(CompileError) as exc:
            loads_program("[", "bad.ir.json")
        assert exc.value.diagnostics[0].where == "bad.ir.json"
