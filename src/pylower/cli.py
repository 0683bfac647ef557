"""pylower compiler CLI."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import click

from pylower import __version__
from pylower.builder import build_project, compile_program, run_output
from pylower.checker import Checker
from pylower.config import CodegenConfig, find_config, load_config
from pylower.errors import CompileError, Diagnostic, DiagnosticRenderer
from pylower.ir import MachineName, NSName, Program, UserName
from pylower.ir_loader import load_program
from pylower.project import scaffold

_no_color = click.option("--no-color", is_flag=True, help="Disable colored output.")


def _report(diagnostics: list[Diagnostic], *, color: bool = True) -> None:
    renderer = DiagnosticRenderer(color=color)
    for diag in diagnostics:
        click.echo(renderer.render(diag), err=True)


def _load(file: str, *, color: bool = True) -> Program:
    """Read an IR file, reporting diagnostics and exiting on failure."""
    try:
        return load_program(Path(file))
    except CompileError as e:
        _report(e.diagnostics, color=color)
        raise SystemExit(1)


def _compile_file(file: str, codegen: CodegenConfig, *, color: bool = True) -> str:
    result = compile_program(_load(file, color=color), codegen)
    _report(result.diagnostics, color=color)
    if not result.ok or result.source is None:
        raise SystemExit(1)
    return result.source


def _build(path: str, *, color: bool = True) -> Path:
    """Build the project found from *path*. Returns the output file."""
    try:
        config_path = find_config(Path(path))
    except FileNotFoundError:
        click.echo("error: no pylower.toml found", err=True)
        raise SystemExit(1)

    config = load_config(config_path)
    click.echo(f"building {config.package.name}...")
    result = build_project(config_path.parent, config)
    _report(result.diagnostics, color=color)

    if not result.ok or result.output is None:
        if result.error:
            click.echo(f"error: {result.error}", err=True)
        raise SystemExit(1)

    click.echo(f"built {config.package.name} -> {result.output}")
    return result.output


@click.group()
@click.version_option(__version__, prog_name="pylower")
def main() -> None:
    """Lower defunctionalized IR programs to Python."""


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@_no_color
def build(path: str, no_color: bool) -> None:
    """Compile a pylower project."""
    _build(path, color=not no_color)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@_no_color
def check(path: str, no_color: bool) -> None:
    """Check a project's IR without generating code."""
    try:
        config_path = find_config(Path(path))
    except FileNotFoundError:
        click.echo("error: no pylower.toml found", err=True)
        raise SystemExit(1)

    config = load_config(config_path)
    click.echo(f"checking {config.package.name}...")
    source = config_path.parent / config.build.source
    if not source.is_file():
        click.echo(f"error: IR file not found: {source}", err=True)
        raise SystemExit(1)

    program = _load(str(source), color=not no_color)
    checker = Checker()
    checker.check(program)
    _report(checker.diagnostics, color=not no_color)
    if checker.has_errors():
        raise SystemExit(1)
    click.echo(f"checked {config.package.name}: no errors")


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@_no_color
def run(path: str, no_color: bool) -> None:
    """Build a project, then execute the generated program."""
    output = _build(path, color=not no_color)
    completed = run_output(output)
    if completed.returncode != 0:
        raise SystemExit(completed.returncode)


@main.command(name="compile")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
              help="Output file (default: next to the input, with a .py suffix).")
@click.option("--trace", is_flag=True, help="Print every function entry to stderr.")
@click.option("--no-comments", is_flag=True, help="Omit name comments.")
@_no_color
def compile_cmd(
    file: str, output: str | None, trace: bool, no_comments: bool, no_color: bool,
) -> None:
    """Compile one IR file without a project."""
    codegen = CodegenConfig(trace=trace, comments=not no_comments)
    source = _compile_file(file, codegen, color=not no_color)
    target = Path(output) if output else _default_output(Path(file))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(source, encoding="utf-8")
    click.echo(f"compiled {file} -> {target}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--trace", is_flag=True, help="Print every function entry to stderr.")
@_no_color
def show(file: str, trace: bool, no_color: bool) -> None:
    """Print the Python generated for an IR file."""
    source = _compile_file(file, CodegenConfig(trace=trace), color=not no_color)
    if no_color:
        click.echo(source, nl=False)
        return

    from pygments import highlight
    from pygments.formatters import TerminalFormatter
    from pygments.lexers import PythonLexer

    click.echo(highlight(source, PythonLexer(), TerminalFormatter()), nl=False)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def view(file: str) -> None:
    """View the IR tree of a program."""
    program = _load(file)
    _dump_ir(program, 0)


@main.command()
@click.argument("name")
def new(name: str) -> None:
    """Create a new pylower project."""
    try:
        project_dir = scaffold(name)
        click.echo(f"created project '{name}' at {project_dir}")
    except FileExistsError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


def _default_output(file: Path) -> Path:
    name = file.name
    for suffix in (".ir.json", ".json"):
        if name.endswith(suffix):
            return file.with_name(name[: -len(suffix)] + ".py")
    return file.with_name(name + ".py")


def _dump_ir(node: object, depth: int) -> None:
    """Print a readable IR dump."""
    indent = "  " * depth
    name = type(node).__name__

    if isinstance(node, (UserName, NSName, MachineName)):
        click.echo(f"{indent}{name}: {node}")
    elif hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            value = getattr(node, field_name)
            if isinstance(value, (list, tuple)):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ir(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif isinstance(value, (UserName, NSName, MachineName)):
                click.echo(f"{indent}  {field_name}: {value}")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ir(value, depth + 2)
            elif isinstance(value, Enum):
                click.echo(f"{indent}  {field_name}: {value.value}")
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
