"""Compiler diagnostics and their colored terminal rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass
class Diagnostic:
    """A single diagnostic about the IR handed over by the frontend.

    ``where`` names the declaration being processed (or the input file for
    problems found while reading it).
    """

    severity: Severity
    code: str
    message: str
    where: str | None = None
    notes: list[str] = field(default_factory=list)


def error(code: str, message: str, where: str | None = None, *notes: str) -> Diagnostic:
    return Diagnostic(Severity.ERROR, code, message, where, list(notes))


def warning(code: str, message: str, where: str | None = None, *notes: str) -> Diagnostic:
    return Diagnostic(Severity.WARNING, code, message, where, list(notes))


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E203]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        if diag.where:
            lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} in `{diag.where}`")

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class CompileError(Exception):
    """Fatal compilation error carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")

    @classmethod
    def single(cls, code: str, message: str, where: str | None = None) -> CompileError:
        return cls([error(code, message, where)])
