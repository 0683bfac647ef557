"""Load the bundled runtime preamble for generated programs."""

from __future__ import annotations

import importlib.resources

_RUNTIME_FILE = "rts.py"


def preamble() -> str:
    """Source text of the runtime helpers, placed at the top of every output."""
    pkg = importlib.resources.files("pylower.runtime")
    return pkg.joinpath(_RUNTIME_FILE).read_text(encoding="utf-8")


def launcher(entry: str) -> str:
    """Call *entry* only when the output runs as a program."""
    return f"if __name__ == '__main__':\n    {entry}()\n"
