"""IR name -> Python identifier mapping and constructor tags."""

from __future__ import annotations

from collections.abc import Iterable

from pylower.errors import CompileError, Diagnostic, error
from pylower.ir import ConDecl, Local, LVar, MachineName, Name, NSName

# Prefix of every mangled name. Runtime helpers use ``rts_`` instead.
MANGLE_PREFIX = "ir_"

# Structure markers. An escape is always `_<digits>_`, so an underscore
# followed by a letter can only open one of these.
_NAMESPACE = "_n_"
_MACHINE = "_m_"
_SEPARATOR = "_d_"

# Machine names with these texts would read like synthetic slots.
_RESERVED_TEXTS = frozenset({"loc", "aux"})


def mangle(name: Name) -> str:
    """Mangle an IR name into a Python identifier with the ``ir_`` prefix.

    The encoding follows the structure of the name, not its display text:
    ASCII letters and digits pass through, every other character becomes
    ``_<code point>_``, and namespaces and machine names are framed by
    markers the escapes never produce. Decoding is unambiguous, so distinct
    names never mangle to the same identifier.

    e.g. ``Main.fact`` (namespaced) -> ``ir__n_Main_d_fact``,
    ``"a.b"`` (one user name) -> ``ir_a_46_b``
    """
    return MANGLE_PREFIX + _encode(name)


def _escape(text: str) -> str:
    return "".join(
        ch if ch.isascii() and ch.isalnum() else f"_{ord(ch)}_" for ch in text
    )


def _encode(name: Name) -> str:
    if isinstance(name, NSName):
        parts = "".join(_escape(part) + _SEPARATOR for part in name.namespace)
        return _NAMESPACE + parts + _encode(name.name)
    if isinstance(name, MachineName):
        return _MACHINE + _escape(str(name.index)) + _SEPARATOR + _escape(name.text)
    return _escape(name.text)


def render_name(name: Name) -> str:
    # Keep compiler-generated parameters like e0 and e1 readable.
    if (
        isinstance(name, MachineName)
        and name.index >= 0
        and name.text.isascii()
        and name.text.isalpha()
        and name.text not in _RESERVED_TEXTS
    ):
        return f"{name.text}{name.index}"
    return mangle(name)


def render_var(var: LVar) -> str:
    if isinstance(var, Local):
        if var.index >= 0:
            return f"loc{var.index}"
        return f"aux{-var.index}"
    return render_name(var.name)


def display(name: Name) -> str:
    """Printable form of *name*, safe inside a one-line comment."""
    text = str(name)
    return text if text.isprintable() else ascii(text)


class TagTable:
    """Constructor name -> integer tag, fixed for one compilation unit."""

    def __init__(self, tags: dict[Name, int]) -> None:
        self._tags = tags

    @classmethod
    def from_declarations(cls, decls: Iterable[ConDecl]) -> TagTable:
        """Build the table. Raises CompileError on duplicate names or tags.

        Constructors carrying a frontend tag keep it; the rest get the lowest
        unused non-negative tag, in declaration order.
        """
        diagnostics: list[Diagnostic] = []
        constructors: dict[Name, ConDecl] = {}
        tags: dict[Name, int] = {}
        owners: dict[int, Name] = {}

        for decl in decls:
            if decl.name in constructors:
                diagnostics.append(error(
                    "E102", f"constructor `{decl.name}` is declared more than once",
                ))
                continue
            constructors[decl.name] = decl
            if decl.tag is None:
                continue
            if decl.tag < 0:
                diagnostics.append(error(
                    "E102", f"constructor `{decl.name}` has negative tag {decl.tag}",
                ))
            elif decl.tag in owners:
                diagnostics.append(error(
                    "E102",
                    f"constructors `{owners[decl.tag]}` and `{decl.name}` "
                    f"share tag {decl.tag}",
                ))
            else:
                owners[decl.tag] = decl.name
                tags[decl.name] = decl.tag

        if diagnostics:
            raise CompileError(diagnostics)

        next_tag = 0
        for name, decl in constructors.items():
            if decl.tag is not None:
                continue
            while next_tag in owners:
                next_tag += 1
            owners[next_tag] = name
            tags[name] = next_tag

        return cls(tags)

    def tag_of(self, name: Name) -> int | None:
        return self._tags.get(name)
