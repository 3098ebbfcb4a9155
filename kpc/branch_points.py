"""
kpc.branch_points
=================

Branch discovery: a depth-first walk over the cursor tree that finds every
branch point, its target lines, and the function table.

A *branch point* is an ``if``/``for``/``do``/``while``/``switch``/call whose
child is a body block.  Each branch point gets two kinds of targets:

* the line of the first statement inside the body (taken when the branch is
  entered), and
* the line of the first cursor positioned strictly after the body's closing
  brace (the fall-through).

Open branch points live on an explicit stack.  A branch point is pushed
when its body block is reached and popped into the completed list once its
fall-through is seen, so the completed list comes out in pop order
(innermost-first for nested branches).  Every branch point carries the
sequence number of its push; after the walk the completed list is sorted by
that number, which is discovery order: outer before inner, left to right.

Implementation notes
--------------------
* Only the stack top is compared against each visited cursor.  An outer
  branch whose body has ended cannot close while an inner branch is still
  open; it closes on a later cursor, after the inner one has been popped.
* A branch point whose body never closes (truncated input, last statement
  of the file) is dropped when the walk ends.
* ``if (...) {...} else {...}`` yields two branch points with the same
  origin line; :class:`kpc.dictionary.BranchDictionary` merges them.

Typical usage::

    from kpc.clang_frontend import parse_file
    from kpc.branch_points import DiscoverySession

    session = DiscoverySession()
    result = session.run(parse_file("prog.c"))
    for bp in result.branch_points:
        print(bp.origin_line, bp.targets)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kpc.cursor import BRANCH_KINDS, Cursor, CursorKind, SourceLocation
from kpc.functions import FunctionTable, collect_function
from kpc.visitor import VisitResult, first_child, visit_children

__all__ = [
    "BranchPoint",
    "CallSite",
    "DiscoveryResult",
    "DiscoverySession",
    "discover",
]

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class BranchPoint:
    """One branching construct and the lines reachable from it.

    ``body_end_line``/``body_end_column`` stay ``0`` until the body block
    has been seen.  ``seq`` is the push sequence number.
    """

    origin_line: int
    origin_column: int = 0
    body_end_line: int = 0
    body_end_column: int = 0
    targets: List[int] = field(default_factory=list)
    seq: int = -1

    @property
    def body_end(self) -> SourceLocation:
        return SourceLocation(self.body_end_line, self.body_end_column)

    @property
    def body_end_known(self) -> bool:
        return self.body_end_line != 0

    def add_target(self, line: int) -> bool:
        """Append *line* unless already present."""
        if line in self.targets:
            return False
        self.targets.append(line)
        return True


@dataclass(frozen=True)
class CallSite:
    """A call expression whose callee is named directly."""

    callee: str
    line: int


@dataclass
class DiscoveryResult:
    """Everything a finished walk produced."""

    branch_points: List[BranchPoint]
    functions: FunctionTable
    variables: Dict[str, int]
    call_sites: List[CallSite]
    discarded: int = 0


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class DiscoverySession:
    """Mutable state of one discovery walk over one translation unit.

    Attributes
    ----------
    stack : list[BranchPoint]
        Branch points whose body has not been left yet; the last element is
        the current branch.
    completed : list[BranchPoint]
        Branch points in the order they were popped.
    functions : FunctionTable
    variables : dict[str, int]
        First declaration line of every variable name.
    call_sites : list[CallSite]
    """

    def __init__(self) -> None:
        self.stack: List[BranchPoint] = []
        self.completed: List[BranchPoint] = []
        self.functions = FunctionTable()
        self.variables: Dict[str, int] = {}
        self.call_sites: List[CallSite] = []
        self._finished = False
        self._pushed = 0

    # ----- stack discipline ---------------------------------------------------

    @property
    def current_branch(self) -> Optional[BranchPoint]:
        return self.stack[-1] if self.stack else None

    def push_branch(self, origin: SourceLocation) -> BranchPoint:
        bp = BranchPoint(origin_line=origin.line, origin_column=origin.column, seq=self._pushed)
        self._pushed += 1
        self.stack.append(bp)
        return bp

    def complete_branch(self) -> BranchPoint:
        """Move the stack top to the completed list."""
        bp = self.stack.pop()
        self.completed.append(bp)
        return bp

    def check_against_top(self, cursor: Cursor) -> bool:
        """Record *cursor* as the fall-through of the current branch if it
        lies strictly after that branch's body.  Returns ``True`` on a hit.
        """
        bp = self.current_branch
        if bp is None or not bp.body_end_known:
            return False
        if not cursor.location.is_after(bp.body_end):
            return False
        bp.add_target(cursor.line)
        _log.debug(
            "Found target for line branch #: %d at line#: %d",
            bp.origin_line,
            cursor.line,
        )
        return True

    # ----- visitors -----------------------------------------------------------

    def _enter_body(self, body: Cursor, owner: Cursor) -> None:
        bp = self.push_branch(owner.location)
        _log.debug(
            "Found branch point: %s at line#: %d", owner.kind.name, bp.origin_line
        )
        head = first_child(body)
        if head is not None:
            bp.add_target(head.line)
            _log.debug(
                "Found target for line branch #: %d at line#: %d",
                bp.origin_line,
                head.line,
            )
        bp.body_end_line = body.extent.end.line
        bp.body_end_column = body.extent.end.column

    def _record_variable(self, cursor: Cursor) -> None:
        if cursor.spelling and cursor.spelling not in self.variables:
            self.variables[cursor.spelling] = cursor.line
            _log.debug("Found VarDecl: %s at line # %d", cursor.spelling, cursor.line)

    def _record_call(self, cursor: Cursor) -> None:
        if cursor.spelling:
            self.call_sites.append(CallSite(cursor.spelling, cursor.line))
            _log.debug("Found call to %s at line # %d", cursor.spelling, cursor.line)

    def visit(self, current: Cursor, parent: Cursor, _data: Any = None) -> VisitResult:
        """Core visitor; see the module docstring for the rules."""
        if parent.kind in BRANCH_KINDS and current.kind is CursorKind.COMPOUND_STMT:
            self._enter_body(current, parent)

        if self.check_against_top(current):
            self.complete_branch()

        if current.kind is CursorKind.FUNCTION_DECL:
            collect_function(current, self.functions)
        elif current.kind is CursorKind.VAR_DECL:
            self._record_variable(current)
        elif current.kind is CursorKind.CALL_EXPR:
            self._record_call(current)

        return VisitResult.RECURSE

    # ----- driver ---------------------------------------------------------------

    def run(self, root: Cursor) -> DiscoveryResult:
        """Walk the tree under *root* and return the discovery result.

        The session is single-use: a second call raises ``RuntimeError``.
        """
        if self._finished:
            raise RuntimeError("DiscoverySession.run() called twice")
        visit_children(root, self.visit)
        self._finished = True

        discarded = len(self.stack)
        if discarded:
            _log.debug(
                "Discarding %d branch point(s) whose body never closed: %s",
                discarded,
                [bp.origin_line for bp in self.stack],
            )
            self.stack.clear()

        ordered = sorted(self.completed, key=lambda bp: bp.seq)
        _log.info(
            "Discovered %d branch point(s) in %d function(s)",
            len(ordered),
            len(self.functions),
        )
        return DiscoveryResult(
            branch_points=ordered,
            functions=self.functions,
            variables=self.variables,
            call_sites=self.call_sites,
            discarded=discarded,
        )


def discover(root: Cursor) -> DiscoveryResult:
    """Run a fresh :class:`DiscoverySession` over *root*."""
    return DiscoverySession().run(root)
