"""Integration tests for the build pipeline."""

from __future__ import annotations

from pylower.builder import build_project, compile_program, run_output
from pylower.config import CodegenConfig, PylowerConfig, load_config
from pylower.ir import Con, FunDecl, NSName, UserName
from pylower.names import render_name
from pylower.project import scaffold
from tests.helpers import ctor, fn, lit, program, u


class TestBuildHello:
    def test_scaffold_builds(self, tmp_path):
        project = scaffold("hello", tmp_path)
        config = load_config(project / "pylower.toml")
        result = build_project(project, config)
        assert result.ok, f"Build failed: {result.error or result.diagnostics}"
        assert result.output == project / "build" / "hello.py"
        assert result.output.exists()

    def test_output_runs_hello(self, tmp_path):
        project = scaffold("hello", tmp_path)
        result = build_project(project, load_config(project / "pylower.toml"))
        assert result.ok

        proc = run_output(result.output, capture=True)
        assert proc.returncode == 0
        assert proc.stdout == "Hello from pylower!\n"

    def test_scaffold_files(self, tmp_path):
        project = scaffold("hello", tmp_path)
        assert (project / ".gitignore").read_text().startswith("build/")
        assert "# hello" in (project / "README.md").read_text()


class TestBuildErrors:
    def test_no_ir_file(self, tmp_path):
        result = build_project(tmp_path, PylowerConfig())
        assert not result.ok
        assert "IR file not found" in result.error

    def test_malformed_ir(self, tmp_path):
        (tmp_path / "program.ir.json").write_text('{"declarations": 3}')
        result = build_project(tmp_path, PylowerConfig())
        assert not result.ok
        assert result.diagnostics[0].code == "E002"

    def test_check_errors_write_nothing(self, tmp_path):
        (tmp_path / "program.ir.json").write_text(
            '{"entry": "f", "declarations": [{"kind": "function", "name": "f",'
            ' "params": [], "body": {"kind": "con", "name": "Ghost", "args": []}}]}'
        )
        result = build_project(tmp_path, PylowerConfig())
        assert not result.ok
        assert not (tmp_path / "build").exists()


class TestCompileProgram:
    def test_ok(self):
        result = compile_program(program(fn("main", [], lit(1))))
        assert result.ok
        assert "def ir_main():" in result.source

    def test_warnings_kept(self):
        result = compile_program(program(ctor("Unused"), fn("main", [], lit(1))))
        assert result.ok
        assert [d.code for d in result.diagnostics] == ["W320"]

    def test_errors_stop_emission(self):
        result = compile_program(program(fn("main", [], Con(u("Ghost"), []))))
        assert not result.ok
        assert result.source is None

    def test_codegen_options(self):
        prog = program(fn("main", [], lit(1)))
        result = compile_program(prog, CodegenConfig(trace=True, comments=False))
        assert "file=sys.stderr" in result.source
        assert "# main" not in result.source

    def test_jobs(self):
        prog = program(*(fn(f"f{i}", [], lit(i)) for i in range(10)), fn("main", [], lit(0)))
        assert compile_program(prog, jobs=3).source == compile_program(prog).source

    def test_same_display_names_both_survive(self):
        dotted = fn("a.b", [], lit(1))
        namespaced = FunDecl(NSName(UserName("b"), ("a",)), [], lit(2))
        result = compile_program(program(dotted, namespaced, fn("main", [], lit(0))))
        assert result.ok
        assert result.diagnostics == []
        namespace: dict = {"__name__": "generated"}
        exec(result.source, namespace)
        assert namespace[render_name(dotted.name)]() == 1
        assert namespace[render_name(namespaced.name)]() == 2
