# tests/conftest.py
"""
Shared helpers: build small cursor trees by hand, shaped like the trees the
libclang front end produces, so discovery can be tested without libclang.

Positions are ``(line, column)``; extents end on the last character.
"""

from __future__ import annotations

import shutil
from typing import Optional, Sequence, Tuple

import pytest

from kpc.cursor import Cursor, CursorKind, SourceExtent

Pos = Tuple[int, int]


def node(
    kind: CursorKind,
    start: Pos,
    end: Optional[Pos] = None,
    children: Sequence[Cursor] = (),
    spelling: str = "",
    **kwargs,
) -> Cursor:
    end = end or (start[0], start[1] + 1)
    return Cursor(
        kind, SourceExtent.of(start[0], start[1], end[0], end[1]),
        spelling=spelling, children=list(children), **kwargs,
    )


def ref(name: str, line: int, col: int) -> Cursor:
    return node(CursorKind.DECL_REF_EXPR, (line, col), (line, col + len(name) - 1), spelling=name)


def call(name: str, line: int, col: int = 3) -> Cursor:
    """``name();`` starting at *col*."""
    return node(
        CursorKind.CALL_EXPR, (line, col), (line, col + len(name) + 1),
        children=[ref(name, line, col)], spelling=name,
    )


def stmt(line: int, col: int = 3, width: int = 5) -> Cursor:
    """A childless statement occupying one line."""
    return node(CursorKind.OTHER, (line, col), (line, col + width))


def ret(line: int, col: int = 3, value: bool = False) -> Cursor:
    """``return 0;``; with *value* the literal is a child cursor, as libclang
    reports it."""
    children = [node(CursorKind.OTHER, (line, col + 7))] if value else []
    return node(CursorKind.RETURN_STMT, (line, col), (line, col + 8), children=children)


def block(start: Pos, end: Pos, *stmts: Cursor) -> Cursor:
    return node(CursorKind.COMPOUND_STMT, start, end, children=stmts)


def if_stmt(start: Pos, body: Cursor, cond: Optional[Cursor] = None, orelse: Optional[Cursor] = None) -> Cursor:
    cond = cond or ref("x", start[0], start[1] + 4)
    children = [cond, body] + ([orelse] if orelse is not None else [])
    end = (orelse or body).extent.end
    return node(CursorKind.IF_STMT, start, (end.line, end.column), children=children)


def loop(kind: CursorKind, start: Pos, body: Cursor, *header: Cursor) -> Cursor:
    end = body.extent.end
    return node(kind, start, (end.line, end.column), children=list(header) + [body])


def var(name: str, line: int, col: int = 7, init: Optional[Cursor] = None) -> Cursor:
    return node(
        CursorKind.VAR_DECL, (line, col - 4), (line, col + 4),
        children=[init] if init is not None else [], spelling=name,
    )


def function(name: str, start: int, end: int, body: Cursor, result_type: str = "int", params: Sequence[Cursor] = ()) -> Cursor:
    return node(
        CursorKind.FUNCTION_DECL, (start, 1), (end, 1),
        children=list(params) + [body], spelling=name,
        result_type=result_type, is_definition=True,
    )


def tu(*decls: Cursor) -> Cursor:
    return node(CursorKind.TRANSLATION_UNIT, (0, 0), (0, 0), children=decls)


# ---------------------------------------------------------------------------
# Canned programs
# ---------------------------------------------------------------------------

SIMPLE_IF_SOURCE = """\
int main(void) {
  int x = 1;
  if (x) {
    x++;
  }
  return 0;
}
"""


def simple_if_tree() -> Cursor:
    """Tree for SIMPLE_IF_SOURCE."""
    body = block((3, 10), (5, 3), stmt(4, 5))
    return tu(
        function("main", 1, 7, block((1, 16), (7, 1),
            var("x", 2),
            if_stmt((3, 3), body),
            ret(6),
        )),
    )


NESTED_SOURCE = """\
int f(int n, int y) {
  for (int i = 0; i < n; i++) {
    if (y) {
      a();
    }
    b();
  }
  c();
  return 0;
}
"""


def nested_tree() -> Cursor:
    """Tree for NESTED_SOURCE: an ``if`` nested in a ``for``."""
    inner = if_stmt((3, 5), block((3, 12), (5, 5), call("a", 4, 7)), cond=ref("y", 3, 9))
    outer_body = block((2, 31), (7, 3), inner, call("b", 6, 5))
    outer = loop(
        CursorKind.FOR_STMT, (2, 3), outer_body,
        var("i", 2, 12), stmt(2, 19, 4), stmt(2, 26, 2),
    )
    return tu(
        function("f", 1, 10, block((1, 21), (10, 1), outer, call("c", 8), ret(9)),
                 params=[node(CursorKind.PARM_DECL, (1, 7), (1, 11), spelling="n"),
                         node(CursorKind.PARM_DECL, (1, 14), (1, 18), spelling="y")]),
    )


@pytest.fixture
def simple_if():
    return simple_if_tree()


@pytest.fixture
def nested():
    return nested_tree()


def has_c_compiler() -> bool:
    return any(shutil.which(cc) for cc in ("clang", "gcc", "cc"))


def has_libclang() -> bool:
    try:
        from clang.cindex import Index
        Index.create()
        return True
    except Exception:
        return False
