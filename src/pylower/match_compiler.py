"""Case analysis -> if/elif decision procedures.

Constructed values are tuples ``(tag, field1, field2, ...)``. A case over
constructors tests ``subject[0]``; a case over constants compares the subject
itself. Every branch assigns one shared result variable, so the whole case is
a single expression (that variable) for the code around it.

Wide constructor cases with a default become a balanced binary tree of
``subject[0] < tag`` tests over groups of at most ``GROUP_SIZE`` branches,
bounding the number of tests by the logarithm of the branch count.
"""

from __future__ import annotations

from itertools import chain, repeat
from typing import TYPE_CHECKING

from pylower.codegen import CodeGen
from pylower.errors import CompileError
from pylower.ir import Alt, ConAlt, ConstAlt, DefaultAlt, LVar
from pylower.names import display, render_name, render_var
from pylower.primitives import error_call, lower_const

if TYPE_CHECKING:
    from pylower.lowering import ExprLowerer

# Smallest group size is (GROUP_SIZE + 1) // 2.
GROUP_SIZE = 3

UNREACHABLE_CASE = error_call("unreachable case")


class MatchCompiler:
    """Compile case alternatives over a variable into branching statements."""

    def __init__(self, cg: CodeGen, lowerer: ExprLowerer) -> None:
        self._cg = cg
        self._lowerer = lowerer

    def compile(self, subject: LVar, alts: list[Alt]) -> str:
        """Emit the decision procedure; return the expression for its result."""
        self._check_shape(alts)
        if len(alts) == 1 and isinstance(alts[0], DefaultAlt):
            return self._lowerer.lower(alts[0].body)
        if use_tree(alts):
            return self.tree(subject, alts)
        return self.chain(subject, alts)

    # ── Strategies ─────────────────────────────────────────────

    def chain(self, subject: LVar, alts: list[Alt]) -> str:
        """if/elif/.../else over *alts* in source order."""
        result = self._cg.fresh()
        self._emit_chain(render_var(subject), render_var(result), alts)
        return render_var(result)

    def tree(self, subject: LVar, alts: list[Alt]) -> str:
        """Binary search on constructor tags, then if/elif chains per group.

        *alts* must be constructor alternatives, optionally followed by one
        default. Without a default every group ends in the unreachable-case
        error.
        """
        default: DefaultAlt | None = None
        if alts and isinstance(alts[-1], DefaultAlt):
            default = alts[-1]
            alts = alts[:-1]

        tagged: list[tuple[int, ConAlt]] = []
        seen: set[int] = set()
        for alt in alts:
            if not isinstance(alt, ConAlt):
                raise ValueError("decision trees only dispatch on constructors")
            tag = self._cg.tag_of(alt.ctor)
            # A repeated constructor can never be selected after the first.
            if tag not in seen:
                seen.add(tag)
                tagged.append((tag, alt))
        tagged.sort(key=lambda pair: pair[0])

        result = self._cg.fresh()
        self._emit_tree(render_var(subject), render_var(result), tagged, default)
        return render_var(result)

    # ── Emission ───────────────────────────────────────────────

    def _emit_tree(
        self,
        subject: str,
        result: str,
        tagged: list[tuple[int, ConAlt]],
        default: DefaultAlt | None,
    ) -> None:
        cg = self._cg
        count = len(tagged)
        if count > GROUP_SIZE:
            lo = count // 2
            first_hi = tagged[lo][0]
            cg.emit(f"if {subject}[0] < {first_hi}:")
            with cg.indented():
                self._emit_tree(subject, result, tagged[:lo], default)
            cg.emit("else:")
            with cg.indented():
                self._emit_tree(subject, result, tagged[lo:], default)
            return

        group: list[Alt] = [alt for _, alt in tagged]
        if default is not None:
            group.append(default)
        self._emit_chain(subject, result, group)

    def _emit_chain(self, subject: str, result: str, alts: list[Alt]) -> None:
        cg = self._cg
        for keyword, alt in zip(chain(["if"], repeat("elif")), alts):
            self._emit_alt(keyword, subject, result, alt)
        if not isinstance(alts[-1], DefaultAlt):
            cg.emit("else:")
            with cg.indented():
                cg.emit(UNREACHABLE_CASE)

    def _emit_alt(self, keyword: str, subject: str, result: str, alt: Alt) -> None:
        cg = self._cg
        lowerer = self._lowerer

        if isinstance(alt, ConAlt):
            tag = cg.tag_of(alt.ctor)
            test = f"{keyword} {subject}[0] == {tag}:"
            cg.emit(f"{test}  # {display(alt.ctor)}" if cg.comments else test)
        elif isinstance(alt, ConstAlt):
            cg.emit(f"{keyword} {subject} == {lower_const(alt.const)}:")
        else:
            cg.emit("else:")

        with cg.indented():
            if isinstance(alt, ConAlt) and alt.args:
                targets = " ".join(f"{render_name(n)}," for n in alt.args)
                cg.emit(f"{targets} = {subject}[1:]")
                lowerer.declare(alt.args)
            lowerer.assign(result, lowerer.lower(alt.body))

    def _check_shape(self, alts: list[Alt]) -> None:
        where = str(self._cg.function)
        if not alts:
            raise CompileError.single("E201", "case analysis has no alternatives", where)
        for alt in alts[:-1]:
            if isinstance(alt, DefaultAlt):
                raise CompileError.single(
                    "E202", "default alternative must be the last one", where,
                )


def use_tree(alts: list[Alt]) -> bool:
    """Wide constructor case with a trailing default: at least two full groups."""
    if len(alts) < 2 or not isinstance(alts[-1], DefaultAlt):
        return False
    rest = alts[:-1]
    return len(rest) >= 2 * GROUP_SIZE and all(isinstance(a, ConAlt) for a in rest)
