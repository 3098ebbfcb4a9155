"""
kpc.rewriter
============

Line-oriented source rewriter: turns the original C file into an
instrumented one that logs a branch label whenever execution reaches a
target line.

Every original line is copied verbatim and in order.  Injected code is
placed in front of the line it belongs to:

* after the line that opens a function: one ``DECLARE_BRANCH(i)`` per branch
  origin inside the function, then a blank line;
* after the line that closes a non-entry function: ``DECLARE_FUNC_PTR(f)``;
* after a branch origin line: ``SET_BRANCH(i)`` where ``i`` is the flag's
  position among the branches opened so far in the function;
* in front of a target line: a guarded ``LOG("br_n")`` chain.

Guarded logging
---------------
A line can be a target of several open branches.  The flags say which one
was actually taken:

* one hit at position ``p``: log only if no later branch of the function
  was entered (``!BRANCH_p+1 && … && !BRANCH_last``), else unconditionally
  when ``p`` is the last flag;
* several hits (newest first): ``if (BRANCH_h0) {…} else if (BRANCH_h1)
  {…} … else {…}``.

Both shapes come from :func:`build_log_chain`.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from kpc.dictionary import BranchDictionary
from kpc.errors import IOFailureError
from kpc.functions import FunctionInfo, FunctionTable

__all__ = [
    "TRANSFORM_HEADER",
    "FLAG_PREFIX",
    "flag_name",
    "suppression_guard",
    "guarded_links",
    "build_log_chain",
    "RewriteState",
    "SourceRewriter",
]

_log = logging.getLogger(__name__)

FLAG_PREFIX = "BRANCH_"

TRANSFORM_HEADER = """\
/* ===== KPC BRANCH COVERAGE INSTRUMENTATION ===== */
#include <stdbool.h>
#include <stdio.h>
#define DECLARE_BRANCH(n) bool BRANCH_##n = false;
#define SET_BRANCH(n) BRANCH_##n = true;
#define LOG(label) { fprintf(stderr, "%s\\n", label); fflush(stderr); }
#define DECLARE_FUNC_PTR(name) void *const KPC_FUNC_PTR_##name = (void *)&name;
/* ===== END KPC INSTRUMENTATION ===== */
"""

# (condition or None, label)
Link = Tuple[Optional[str], str]


# ---------------------------------------------------------------------------
# Log-chain synthesis
# ---------------------------------------------------------------------------


def flag_name(position: int) -> str:
    return f"{FLAG_PREFIX}{position}"


def suppression_guard(position: int, flags_declared: int) -> Optional[str]:
    """Conjunction of ``!BRANCH_k`` for every flag after *position*, or
    ``None`` when *position* is the function's last flag."""
    later = range(position + 1, flags_declared)
    if not later:
        return None
    return " && ".join(f"!{flag_name(k)}" for k in later)


def guarded_links(
    hits: Sequence[int], labels: Sequence[str], flags_declared: int
) -> List[Link]:
    """Pair each hit with the condition under which its label is logged.

    *hits* are flag positions, newest branch first; *labels* are the labels
    of those branches for the current line, in the same order.
    """
    if not hits:
        return []
    if len(hits) == 1:
        return [(suppression_guard(hits[0], flags_declared), labels[0])]
    links: List[Link] = [(flag_name(pos), label) for pos, label in zip(hits[:-1], labels[:-1])]
    links.append((None, labels[-1]))
    return links


def build_log_chain(links: Sequence[Link]) -> str:
    """Render *links* as an ``if`` / ``else if`` / ``else`` chain.

    A link without a condition is unconditional: alone it renders as a bare
    ``LOG(...)``, at the end of a chain as the final ``else``.
    """
    parts: List[str] = []
    for index, (condition, label) in enumerate(links):
        log = f'LOG("{label}")'
        if condition is None:
            parts.append(log if index == 0 else f"else {{{log}}}")
        else:
            keyword = "if" if index == 0 else "else if"
            parts.append(f"{keyword} ({condition}) {{{log}}}")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rewriter
# ---------------------------------------------------------------------------


@dataclass
class RewriteState:
    """State threaded through the line-by-line pass."""

    current_function: Optional[FunctionInfo] = None
    open_flags: List[int] = field(default_factory=list)
    flags_declared: int = 0


class SourceRewriter:
    """Instrument one source file from its function table and dictionary.

    Parameters
    ----------
    functions:
        Function table from discovery.
    dictionary:
        Labelled branch dictionary.
    entry_function:
        Name of the program's entry point; it gets no function-pointer
        declaration.
    """

    def __init__(
        self,
        functions: FunctionTable,
        dictionary: BranchDictionary,
        entry_function: str = "main",
    ) -> None:
        self.functions = functions
        self.dictionary = dictionary
        self.entry_function = entry_function
        self.state = RewriteState()

    # ----- per-line steps ------------------------------------------------------

    def _declare_flags(self, function: FunctionInfo) -> str:
        self.state.current_function = function
        self.state.open_flags = []
        self.state.flags_declared = 0
        decls = []
        for _origin in self.dictionary.origins_between(function.start_line, function.end_line):
            decls.append(f"DECLARE_BRANCH({self.state.flags_declared})\n")
            self.state.flags_declared += 1
        _log.debug(
            "Function %s: declared %d branch flag(s)", function.name, self.state.flags_declared
        )
        return "".join(decls) + "\n"

    def _hits(self, line_num: int) -> Tuple[List[int], List[str]]:
        hits: List[int] = []
        labels: List[str] = []
        open_flags = self.state.open_flags
        for position in range(len(open_flags) - 1, -1, -1):
            targets = self.dictionary.targets_of(open_flags[position])
            if line_num in targets:
                hits.append(position)
                labels.append(targets[line_num])
        return hits, labels

    def injected_text(self, line_num: int) -> str:
        """Text to place in front of original line *line_num* (1-based)."""
        prev = line_num - 1
        out: List[str] = []
        state = self.state

        function = self.functions.get(prev)
        if function is not None:
            out.append(self._declare_flags(function))

        current = state.current_function
        if current is not None and prev == current.end_line and current.name != self.entry_function:
            out.append(f"DECLARE_FUNC_PTR({current.name})\n")

        if prev in self.dictionary:
            out.append(f"SET_BRANCH({len(state.open_flags)})")
            state.open_flags.append(prev)

        hits, labels = self._hits(line_num)
        out.append(build_log_chain(guarded_links(hits, labels, state.flags_declared)))
        return "".join(out)

    # ----- drivers -------------------------------------------------------------

    def rewrite_lines(self, lines: Iterable[str]) -> Iterator[str]:
        """Yield the preamble, then one output chunk per input line.

        Input lines may carry their trailing newline; each chunk ends with
        exactly one ``"\\n"``.
        """
        self.state = RewriteState()
        yield TRANSFORM_HEADER
        for line_num, line in enumerate(lines, start=1):
            yield self.injected_text(line_num) + line.rstrip("\n") + "\n"

    def rewrite(self, source: str) -> str:
        """Instrument *source*.  Lines are split the way :meth:`rewrite_file`
        reads them: on newlines only."""
        return "".join(self.rewrite_lines(io.StringIO(source, newline=None)))

    def rewrite_file(self, source: Union[str, Path], destination: Union[str, Path]) -> Path:
        """Stream *source* into *destination*, instrumented."""
        source, destination = Path(source), Path(destination)
        try:
            original = open(source, "r", encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            raise IOFailureError(str(source), "r", cause=exc) from exc
        with original:
            try:
                modified = open(destination, "w", encoding="utf-8", errors="surrogateescape")
            except OSError as exc:
                raise IOFailureError(str(destination), "w", cause=exc) from exc
            with modified:
                for chunk in self.rewrite_lines(original):
                    modified.write(chunk)
        _log.info("Wrote instrumented program: %s", destination)
        return destination
