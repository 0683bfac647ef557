"""Full build pipeline: IR JSON -> Python program."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

from pylower.checker import Checker
from pylower.config import CodegenConfig, PylowerConfig
from pylower.errors import CompileError, Diagnostic
from pylower.ir import Program
from pylower.ir_loader import load_program
from pylower.py_emitter import PyEmitter


@dataclass
class BuildResult:
    """Outcome of a build."""

    ok: bool
    output: Path | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: str | None = None


@dataclass
class CompileResult:
    """Outcome of compiling one in-memory program."""

    ok: bool
    source: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)


def compile_program(
    program: Program,
    codegen: CodegenConfig | None = None,
    *,
    jobs: int = 1,
) -> CompileResult:
    """Check -> emit. No output is produced when any check fails."""
    codegen = codegen or CodegenConfig()

    checker = Checker()
    tags = checker.check(program)
    diagnostics = list(checker.diagnostics)
    if checker.has_errors():
        return CompileResult(ok=False, diagnostics=diagnostics)

    emitter = PyEmitter(
        program, tags=tags, trace=codegen.trace, comments=codegen.comments, jobs=jobs,
    )
    try:
        source = emitter.emit()
    except CompileError as e:
        diagnostics.extend(e.diagnostics)
        return CompileResult(ok=False, diagnostics=diagnostics)
    return CompileResult(ok=True, source=source, diagnostics=diagnostics)


def build_project(project_dir: Path, config: PylowerConfig) -> BuildResult:
    """Run the full pipeline: load -> check -> emit -> write."""
    source_path = project_dir / config.build.source
    if not source_path.is_file():
        return BuildResult(ok=False, error=f"IR file not found: {source_path}")

    try:
        program = load_program(source_path)
    except CompileError as e:
        return BuildResult(ok=False, diagnostics=e.diagnostics)

    result = compile_program(program, config.codegen, jobs=config.build.jobs)
    if not result.ok or result.source is None:
        return BuildResult(ok=False, diagnostics=result.diagnostics)

    output = project_dir / config.build.output
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.source, encoding="utf-8")
    return BuildResult(ok=True, output=output, diagnostics=result.diagnostics)


def run_output(path: Path, *, capture: bool = False) -> subprocess.CompletedProcess[str]:
    """Execute a generated program with the current interpreter."""
    return subprocess.run(
        [sys.executable, str(path)], capture_output=capture, text=True, check=False,
    )
