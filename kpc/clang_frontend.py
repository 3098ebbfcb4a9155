"""
kpc.clang_frontend
==================

libclang front end: parse one C file and convert its translation unit into
the neutral :class:`kpc.cursor.Cursor` tree.

Only declarations spelled in the main file are kept; everything pulled in
from headers is dropped at the top level so that header line numbers never
mix with the file's own.

libclang reports extents whose end is one past the last character.  The
converter moves that end back by one column so ``SourceExtent.end`` is the
closing brace itself.

The shared library is located by the ``clang`` bindings; set
``LIBCLANG_PATH`` (file or directory) to point them at a specific build.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from clang.cindex import (
    Config,
    Diagnostic,
    Index,
    LibclangError,
    TranslationUnitLoadError,
)

from kpc.cursor import Cursor, CursorKind, SourceExtent, SourceLocation
from kpc.errors import ParseFailureError

__all__ = ["load_libclang", "parse_file", "convert_cursor"]

_log = logging.getLogger(__name__)


def load_libclang(path: Optional[str] = None) -> None:
    """Point the bindings at *path* (or ``$LIBCLANG_PATH``) before first use."""
    path = path or os.getenv("LIBCLANG_PATH")
    if not path or Config.loaded:
        return
    _log.debug("LIBCLANG_PATH=%s", path)
    if os.path.isdir(path):
        Config.set_library_path(path)
    else:
        Config.set_library_file(path)


def _kind_of(node) -> CursorKind:
    try:
        return CursorKind.from_name(node.kind.name)
    except ValueError:
        # Kinds newer than the bindings cannot be decoded.
        return CursorKind.OTHER


def _extent_of(node) -> SourceExtent:
    start, end = node.extent.start, node.extent.end
    end_col = end.column - 1 if end.column > 1 else end.column
    return SourceExtent.of(start.line, start.column, end.line, end_col)


def _make(node) -> Cursor:
    kind = _kind_of(node)
    result_type = ""
    if kind is CursorKind.FUNCTION_DECL:
        result_type = node.result_type.spelling
    loc = node.location
    return Cursor(
        kind,
        _extent_of(node),
        spelling=node.spelling or "",
        result_type=result_type,
        is_definition=bool(node.is_definition()),
        location=SourceLocation(loc.line, loc.column),
    )


def _in_main_file(node, main_file: str) -> bool:
    f = node.location.file
    return f is not None and os.path.abspath(f.name) == main_file


def convert_cursor(tu_cursor, main_file: str) -> Cursor:
    """Convert a libclang translation-unit cursor into a :class:`Cursor` tree."""
    root = Cursor(CursorKind.TRANSLATION_UNIT, SourceExtent(), spelling=main_file)
    pending: List[Tuple[object, Cursor]] = []
    for top in tu_cursor.get_children():
        if _in_main_file(top, main_file):
            pending.append((top, root.add_child(_make(top))))
    while pending:
        node, converted = pending.pop()
        for child in node.get_children():
            pending.append((child, converted.add_child(_make(child))))
    return root


def parse_file(
    filename: Union[str, Path], args: Optional[Sequence[str]] = None
) -> Cursor:
    """Parse *filename* with libclang and return the root :class:`Cursor`.

    Raises
    ------
    ParseFailureError
        libclang could not be loaded or produced no translation unit.
    """
    filename = str(filename)
    try:
        load_libclang()
        index = Index.create()
        tu = index.parse(filename, args=list(args or []))
    except TranslationUnitLoadError as exc:
        raise ParseFailureError(filename, cause=exc) from exc
    except LibclangError as exc:
        raise ParseFailureError(
            filename, str(exc), cause=exc,
            hint="Set LIBCLANG_PATH to the libclang shared library",
        ) from exc

    for diag in tu.diagnostics:
        if diag.severity >= Diagnostic.Error:
            _log.warning("%s:%d: %s", filename, diag.location.line, diag.spelling)

    root = convert_cursor(tu.cursor, os.path.abspath(filename))
    _log.info("Translation unit for file: %s successfully parsed.", filename)
    return root
