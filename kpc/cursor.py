"""
kpc.cursor
==========

Front-end-neutral model of a parsed C translation unit.

The discovery engine never talks to libclang directly.  It consumes a tree
of :class:`Cursor` objects, each carrying a kind, a source extent and the
spelling of the entity it names.  :mod:`kpc.clang_frontend` produces such a
tree from a real source file; the test-suite builds small trees by hand.

Public API
----------
    SourceLocation  - (line, column) pair, totally ordered
    SourceExtent    - start/end locations of a node (end is inclusive)
    CursorKind      - the node kinds the instrumenter distinguishes
    Cursor          - one node of the tree
    BRANCH_KINDS    - kinds whose body block introduces a branch point
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, List, Optional

__all__ = [
    "SourceLocation",
    "SourceExtent",
    "CursorKind",
    "Cursor",
    "BRANCH_KINDS",
]


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class SourceLocation:
    """A 1-based ``(line, column)`` position.  Compares line first."""

    line: int = 0
    column: int = 0

    def is_after(self, other: "SourceLocation") -> bool:
        """``True`` if this position lies strictly after *other*."""
        return self.line > other.line or (
            self.line == other.line and self.column > other.column
        )

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceExtent:
    """Source range of a node.

    ``end`` is the position of the node's last character, so for a body
    block it is the position of its closing ``}``.
    """

    start: SourceLocation = SourceLocation()
    end: SourceLocation = SourceLocation()

    @classmethod
    def of(
        cls, start_line: int, start_col: int, end_line: int, end_col: int
    ) -> "SourceExtent":
        return cls(
            SourceLocation(start_line, start_col), SourceLocation(end_line, end_col)
        )

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class CursorKind(enum.Enum):
    """Node kinds relevant to branch discovery.

    Member names match libclang's ``CursorKind`` names so the front end can
    translate by name; everything else maps to ``OTHER``.
    """

    TRANSLATION_UNIT = "translation-unit"
    FUNCTION_DECL = "function-decl"
    VAR_DECL = "var-decl"
    PARM_DECL = "parm-decl"
    COMPOUND_STMT = "compound-stmt"
    IF_STMT = "if-stmt"
    FOR_STMT = "for-stmt"
    DO_STMT = "do-stmt"
    WHILE_STMT = "while-stmt"
    SWITCH_STMT = "switch-stmt"
    CALL_EXPR = "call-expr"
    DECL_REF_EXPR = "decl-ref-expr"
    RETURN_STMT = "return-stmt"
    OTHER = "other"

    @classmethod
    def from_name(cls, name: str) -> "CursorKind":
        """Map a libclang kind name (``"IF_STMT"``) to a member, else ``OTHER``."""
        return cls.__members__.get(name, cls.OTHER)


BRANCH_KINDS = frozenset(
    {
        CursorKind.IF_STMT,
        CursorKind.FOR_STMT,
        CursorKind.DO_STMT,
        CursorKind.WHILE_STMT,
        CursorKind.SWITCH_STMT,
        CursorKind.CALL_EXPR,
    }
)


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------


class Cursor:
    """One node of a parsed translation unit.

    Attributes
    ----------
    kind : CursorKind
    extent : SourceExtent
    spelling : str
        Identifier named by the node (function, variable or callee name), or
        the node's first token when it names nothing.
    result_type : str
        Spelling of the return type for function declarations, else ``""``.
    is_definition : bool
        ``True`` for declarations that also define the entity.
    children : list[Cursor]
    parent : Cursor or None
    """

    __slots__ = (
        "kind",
        "extent",
        "_location",
        "spelling",
        "result_type",
        "is_definition",
        "children",
        "parent",
    )

    def __init__(
        self,
        kind: CursorKind,
        extent: SourceExtent,
        spelling: str = "",
        children: Optional[List["Cursor"]] = None,
        result_type: str = "",
        is_definition: bool = False,
        location: Optional[SourceLocation] = None,
    ) -> None:
        self.kind = kind
        self.extent = extent
        self._location = location
        self.spelling = spelling
        self.result_type = result_type
        self.is_definition = is_definition
        self.parent: Optional[Cursor] = None
        self.children: List[Cursor] = []
        for child in children or ():
            self.add_child(child)

    def add_child(self, child: "Cursor") -> "Cursor":
        child.parent = self
        self.children.append(child)
        return child

    @property
    def location(self) -> SourceLocation:
        """Position of the node; the start of its extent unless the front
        end reported a distinct location (libclang puts a call at its callee
        and a function at its name)."""
        return self._location or self.extent.start

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int:
        return self.location.column

    def walk(self) -> Iterator["Cursor"]:
        """Yield this node and all descendants in depth-first pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        name = f" {self.spelling!r}" if self.spelling else ""
        return f"Cursor({self.kind.name}{name} @ {self.extent})"
