"""TOML config loading for pylower.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE = "pylower.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"


@dataclass
class BuildConfig:
    source: str = "program.ir.json"
    output: str = "build/program.py"
    jobs: int = 1


@dataclass
class CodegenConfig:
    trace: bool = False
    comments: bool = True


@dataclass
class PylowerConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    codegen: CodegenConfig = field(default_factory=CodegenConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find pylower.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_FILE
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_FILE} found in any parent directory")
        path = parent


def load_config(path: Path) -> PylowerConfig:
    """Parse a pylower.toml file into a PylowerConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = PylowerConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
        )

    if "build" in data:
        bld = data["build"]
        config.build = BuildConfig(
            source=bld.get("source", "program.ir.json"),
            output=bld.get("output", "build/program.py"),
            jobs=max(1, int(bld.get("jobs", 1))),
        )

    if "codegen" in data:
        gen = data["codegen"]
        config.codegen = CodegenConfig(
            trace=gen.get("trace", False),
            comments=gen.get("comments", True),
        )

    return config
