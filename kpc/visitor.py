"""
kpc.visitor
===========

Depth-first cursor visitation with caller-controlled traversal.

:func:`visit_children` follows libclang's ``clang_visitChildren`` contract:
the callback receives ``(current, parent, data)`` for every child of the
starting cursor and answers with a :class:`VisitResult`:

``RECURSE``
    descend into ``current``'s children before moving to its next sibling;
``CONTINUE``
    skip ``current``'s children and move to its next sibling;
``BREAK``
    stop the whole traversal.

The walk keeps its own stack of sibling iterators, so deeply nested sources
do not hit the interpreter's recursion limit.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Iterator, List, Optional, Tuple

from kpc.cursor import Cursor

__all__ = ["VisitResult", "Visitor", "visit_children", "first_child"]


class VisitResult(enum.Enum):
    """Traversal signal returned by a visitor callback."""

    BREAK = "break"
    CONTINUE = "continue"
    RECURSE = "recurse"


Visitor = Callable[[Cursor, Cursor, Any], VisitResult]


def visit_children(cursor: Cursor, visitor: Visitor, data: Any = None) -> bool:
    """Visit the descendants of *cursor* depth-first.

    Parameters
    ----------
    cursor:
        Cursor whose children are visited (the cursor itself is not).
    visitor:
        Callback ``visitor(current, parent, data) -> VisitResult``.
    data:
        Opaque client data handed to every callback.

    Returns
    -------
    bool
        ``True`` if the traversal was stopped by ``BREAK``.
    """
    pending: List[Tuple[Cursor, Iterator[Cursor]]] = [(cursor, iter(cursor.children))]
    while pending:
        parent, siblings = pending[-1]
        current = next(siblings, None)
        if current is None:
            pending.pop()
            continue
        result = visitor(current, parent, data)
        if result is VisitResult.BREAK:
            return True
        if result is VisitResult.RECURSE and current.children:
            pending.append((current, iter(current.children)))
    return False


def first_child(cursor: Cursor) -> Optional[Cursor]:
    """Return the first child of *cursor* via a one-step bounded visit."""
    found: List[Cursor] = []

    def _take(current: Cursor, parent: Cursor, _data: Any) -> VisitResult:
        found.append(current)
        return VisitResult.BREAK

    visit_children(cursor, _take)
    return found[0] if found else None
