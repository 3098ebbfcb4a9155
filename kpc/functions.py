"""
kpc.functions
=============

Function table: name, return type and line span of every function
definition in the translation unit.

The rewriter uses the table to scope branch-flag declarations to one
function body and to skip the function-pointer declaration for the entry
point.  Entries are keyed by the function's start line.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from kpc.cursor import Cursor, CursorKind
from kpc.visitor import VisitResult, visit_children

__all__ = ["FunctionInfo", "FunctionTable", "collect_function"]

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunctionInfo:
    """One function definition."""

    name: str
    return_type: str
    start_line: int
    end_line: int

    def contains(self, line: int) -> bool:
        """``True`` if *line* lies in ``[start_line, end_line)``."""
        return self.start_line <= line < self.end_line


class FunctionTable:
    """Mapping ``start_line -> FunctionInfo``; the first insertion wins."""

    def __init__(self) -> None:
        self._by_line: Dict[int, FunctionInfo] = {}

    def add(self, info: FunctionInfo) -> bool:
        """Insert *info*; return ``False`` if its start line is already taken."""
        if info.start_line in self._by_line:
            return False
        self._by_line[info.start_line] = info
        return True

    def get(self, start_line: int) -> Optional[FunctionInfo]:
        return self._by_line.get(start_line)

    def by_name(self, name: str) -> Optional[FunctionInfo]:
        for info in self._by_line.values():
            if info.name == name:
                return info
        return None

    def __contains__(self, start_line: object) -> bool:
        return start_line in self._by_line

    def __getitem__(self, start_line: int) -> FunctionInfo:
        return self._by_line[start_line]

    def __iter__(self) -> Iterator[FunctionInfo]:
        """Iterate in ascending start-line order."""
        for line in sorted(self._by_line):
            yield self._by_line[line]

    def __len__(self) -> int:
        return len(self._by_line)

    def __repr__(self) -> str:
        return f"FunctionTable({[f.name for f in self]!r})"


def _record_function(current: Cursor, parent: Cursor, table: Any) -> VisitResult:
    # Called on the function's first child; the function itself is *parent*.
    if parent.kind is CursorKind.FUNCTION_DECL:
        info = FunctionInfo(
            name=parent.spelling,
            return_type=parent.result_type,
            start_line=parent.extent.start.line,
            end_line=parent.extent.end.line,
        )
        if table.add(info):
            _log.debug(
                "Found FunctionDecl: %s of return type: %s on line #: %d",
                info.name,
                info.return_type,
                info.start_line,
            )
    return VisitResult.BREAK


def collect_function(cursor: Cursor, table: FunctionTable) -> None:
    """Record *cursor* in *table* if it is a function definition.

    The sub-visit stops at the function's first child, so each function is
    inspected exactly once however many declarations and statements it has.
    """
    if cursor.kind is not CursorKind.FUNCTION_DECL or not cursor.is_definition:
        return
    visit_children(cursor, _record_function, table)
