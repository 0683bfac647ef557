"""Tests for the IR contract checker."""

from __future__ import annotations

from pylower.checker import Checker
from pylower.errors import Severity
from pylower.ir import (
    Case,
    Con,
    ConAlt,
    Const,
    ConstAlt,
    ConstKind,
    DefaultAlt,
    Foreign,
    ForeignName,
    ForeignUnknown,
    Lam,
    UserName,
)
from tests.helpers import call, check, check_fails, ctor, fn, lit, program, u, var


def _main(body=None):
    return fn("main", [], body if body is not None else lit(0))


class TestClean:
    def test_minimal_program(self):
        assert check(program(_main())) == []

    def test_returns_tag_table(self):
        prog = program(ctor("Nil"), ctor("Cons", 2), _main(Con(u("Nil"), [])))
        checker = Checker()
        tags = checker.check(prog)
        assert tags.tag_of(UserName("Cons")) == 1

    def test_constructors_used_in_patterns(self):
        body = Case(var("x"), [ConAlt(u("A"), [], lit(1)), DefaultAlt(lit(0))])
        prog = program(ctor("A"), fn("f", ["x"], body), _main())
        assert check(prog) == []


class TestDeclarations:
    def test_duplicate_function(self):
        prog = program(_main(), _main())
        check_fails(prog, "E101")

    def test_duplicate_constructor(self):
        check_fails(program(ctor("A"), ctor("A"), _main(Con(u("A"), []))), "E102")

    def test_shared_tag(self):
        prog = program(ctor("A", tag=0), ctor("B", tag=0), _main())
        check_fails(prog, "E102")

    def test_duplicate_parameter(self):
        check_fails(program(fn("f", ["x", "x"], lit(0)), _main()), "E103")

    def test_duplicate_lambda_parameter(self):
        check_fails(program(_main(Lam([u("y"), u("y")], lit(0)))), "E103")


class TestBodies:
    def test_empty_case(self):
        check_fails(program(_main(Case(lit(0), []))), "E201")

    def test_misplaced_default(self):
        body = Case(lit(0), [DefaultAlt(lit(1)), DefaultAlt(lit(2))])
        check_fails(program(_main(body)), "E202")

    def test_default_before_constant(self):
        body = Case(lit(0), [DefaultAlt(lit(1)), ConstAlt(Const(ConstKind.INT, 0), lit(0))])
        diags = check_fails(program(_main(body)), "E202")
        assert diags[0].notes

    def test_undeclared_constructor(self):
        diags = check_fails(program(_main(Con(u("Ghost"), []))), "E203")
        assert diags[0].where == "main"

    def test_undeclared_in_pattern(self):
        body = Case(lit(0), [ConAlt(u("Ghost"), [], lit(1))])
        check_fails(program(_main(body)), "E203")

    def test_arity_mismatch(self):
        prog = program(ctor("Pair", 2), _main(Con(u("Pair"), [lit(1)])))
        check_fails(prog, "E204")

    def test_pattern_arity_mismatch(self):
        body = Case(lit(0), [ConAlt(u("Pair"), [u("a")], lit(1))])
        check_fails(program(ctor("Pair", 2), _main(body)), "E204")

    def test_tail_call_arity(self):
        check_fails(program(fn("f", ["x"], call("f")), _main()), "E206")

    def test_foreign_descriptor(self):
        check_fails(program(_main(Foreign(ForeignUnknown(), []))), "E301")

    def test_foreign_name_ok(self):
        check(program(_main(Foreign(ForeignName("print"), [lit("hi")]))))

    def test_nested_errors_found(self):
        inner = Lam([u("y")], Con(u("Ghost"), []))
        check_fails(program(_main(call("g", inner))), "E203")


class TestProgram:
    def test_missing_entry(self):
        check_fails(program(fn("f", [], lit(0)), entry="main"), "E401")

    def test_no_functions_no_entry_needed(self):
        checker = Checker()
        checker.check(program(ctor("A")))
        assert not checker.has_errors()

    def test_mutual_tail_recursion_warns(self):
        prog = program(
            fn("even", ["n"], call("odd", var("n"))),
            fn("odd", ["n"], call("even", var("n"))),
            _main(),
        )
        diags = check_fails(prog, "W310")
        assert all(d.severity == Severity.WARNING for d in diags)
        assert "even -> odd -> even" in diags[0].message

    def test_self_recursion_no_warning(self):
        prog = program(fn("f", ["n"], call("f", var("n"))), _main())
        assert not [d for d in check(prog) if d.code == "W310"]

    def test_unused_constructor(self):
        diags = check_fails(program(ctor("Unused"), _main()), "W320")
        assert diags[0].severity == Severity.WARNING

    def test_warnings_do_not_fail(self):
        checker = Checker()
        checker.check(program(ctor("Unused"), _main()))
        assert checker.diagnostics
        assert not checker.has_errors()
