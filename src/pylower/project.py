"""Project scaffolding for `pylower new`."""

from __future__ import annotations

from pathlib import Path

_PYLOWER_TOML_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"

[build]
source = "program.ir.json"
output = "build/{name}.py"
jobs = 1

[codegen]
trace = false
comments = true
"""

_PROGRAM_TEMPLATE = """\
{
  "entry": {"mn": [0, "runMain"]},
  "declarations": [
    {
      "kind": "function",
      "name": {"mn": [0, "runMain"]},
      "params": [],
      "body": {
        "kind": "op",
        "op": "write_str",
        "args": [
          {"kind": "const", "value": {"kind": "string", "value": "Hello from pylower!\\n"}}
        ]
      }
    }
  ]
}
"""

_GITIGNORE = """\
build/
__pycache__/
"""

_README_TEMPLATE = """\
# {name}

An IR program compiled to Python with pylower.

## Build

```bash
pylower build
```

## Run

```bash
pylower run
```
"""


def scaffold(name: str, parent: Path | None = None) -> Path:
    """Create a new pylower project directory. Returns the project path."""
    base = parent or Path.cwd()
    project_dir = base / name

    if project_dir.exists():
        raise FileExistsError(f"Directory '{name}' already exists")

    project_dir.mkdir(parents=True)

    (project_dir / "pylower.toml").write_text(_PYLOWER_TOML_TEMPLATE.format(name=name))
    (project_dir / "program.ir.json").write_text(_PROGRAM_TEMPLATE)
    (project_dir / ".gitignore").write_text(_GITIGNORE)
    (project_dir / "README.md").write_text(_README_TEMPLATE.format(name=name))

    return project_dir
