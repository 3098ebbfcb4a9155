"""
kpc — Branch-coverage instrumentation for C
===========================================

Given one C source file, kpc finds every branch point (``if``, ``for``,
``do``, ``while``, ``switch``, calls with a body block), labels each
(branch, target line) pair ``br_<n>``, and rewrites the source so that the
instrumented program logs the label of every path it takes.

Core modules
------------
cursor
    Front-end-neutral cursor tree (kinds, extents, spellings).
visitor
    Depth-first visitation with CONTINUE / RECURSE / BREAK signalling.
functions
    Function table (name, return type, line span).
branch_points
    Stack-based branch discovery over the cursor tree.
dictionary
    Label assignment and the branch dictionary file formats.
rewriter
    Line-oriented source rewriter with flag-guarded logging.
toolchain
    Compiler detection and the build step.
collector
    One end-to-end run: parse, discover, write, rewrite, build.
errors / config
    Error taxonomy and run configuration.

Addon modules
-------------
clang_frontend
    libclang adapter; needs the ``libclang`` bindings and shared library.

Quick start
-----------
>>> from kpc import KeyPointsCollector, CollectorConfig
>>> result = KeyPointsCollector("prog.c", CollectorConfig(build=False)).execute_toolchain()
>>> result.dictionary.labels()
['br_1', 'br_2']
"""

from __future__ import annotations

import importlib
import logging
import sys
import warnings
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.2.0"
__license__ = "MIT"
__all__: List[str] = []          # populated incrementally below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
#
#   CORE  : always imported; failure is fatal
#   ADDON : imported eagerly but failure only warns (package still usable)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "KpcError",
        "InputNotFoundError",
        "ParseFailureError",
        "IOFailureError",
        "ToolchainUnavailableError",
        "BuildFailureError",
    ],
    "config": [
        "CollectorConfig",
    ],
    "cursor": [
        "Cursor",
        "CursorKind",
        "SourceLocation",
        "SourceExtent",
        "BRANCH_KINDS",
    ],
    "visitor": [
        "VisitResult",
        "visit_children",
    ],
    "functions": [
        "FunctionInfo",
        "FunctionTable",
    ],
    "branch_points": [
        "BranchPoint",
        "DiscoverySession",
        "DiscoveryResult",
        "discover",
    ],
    "dictionary": [
        "BranchDictionary",
    ],
    "rewriter": [
        "SourceRewriter",
        "TRANSFORM_HEADER",
    ],
    "toolchain": [
        "detect_compiler",
        "compile_modified",
    ],
    "collector": [
        "KeyPointsCollector",
        "ToolchainResult",
    ],
}

_ADDON_MODULES = {
    "clang_frontend": [
        "parse_file",
    ],
}

# ---------------------------------------------------------------------------
# Import helper
# ---------------------------------------------------------------------------

def _import_names(
    module_rel_name: str,
    names: List[str],
    *,
    fatal: bool = True,
) -> None:
    """Import *names* from a submodule and bind them in the package namespace.

    Parameters
    ----------
    module_rel_name:
        Module name relative to this package (e.g. ``"cursor"``).
    names:
        Public symbols to re-export.
    fatal:
        If ``True``, an ``ImportError`` propagates.  If ``False``, a warning
        is issued and the names are skipped (addon tier).
    """
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        if fatal:
            raise ImportError(
                f"kpc: required submodule '{module_rel_name}' "
                f"failed to import: {exc}"
            ) from exc
        warnings.warn(
            f"kpc: optional submodule '{module_rel_name}' "
            f"could not be imported ({exc}); related symbols will be unavailable.",
            ImportWarning,
            stacklevel=2,
        )
        _log.debug("Skipped optional module %s: %s", module_rel_name, exc)
        return

    current_module = sys.modules[__name__]
    for name in names:
        obj = getattr(mod, name, None)
        if obj is None:
            msg = f"kpc.{module_rel_name} does not export '{name}'"
            if fatal:
                raise AttributeError(msg)
            _log.warning(msg)
            continue
        setattr(current_module, name, obj)
        __all__.append(name)

    if module_rel_name not in __all__:
        __all__.append(module_rel_name)

# ---------------------------------------------------------------------------
# Eagerly import everything at package load time
# ---------------------------------------------------------------------------

for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names, fatal=True)

for _mod, _names in _ADDON_MODULES.items():
    _import_names(_mod, _names, fatal=False)

del _mod, _names


def list_submodules() -> List[str]:
    """Return the names of all submodules in the package (core + addon)."""
    return sorted(set(_CORE_MODULES) | set(_ADDON_MODULES))


__all__ += ["list_submodules", "__version__"]

# ---------------------------------------------------------------------------
# TYPE_CHECKING re-exports for static analysis
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .errors import (
        KpcError as KpcError,
        InputNotFoundError as InputNotFoundError,
        ParseFailureError as ParseFailureError,
        IOFailureError as IOFailureError,
        ToolchainUnavailableError as ToolchainUnavailableError,
        BuildFailureError as BuildFailureError,
    )
    from .config import CollectorConfig as CollectorConfig
    from .cursor import (
        Cursor as Cursor,
        CursorKind as CursorKind,
        SourceLocation as SourceLocation,
        SourceExtent as SourceExtent,
        BRANCH_KINDS as BRANCH_KINDS,
    )
    from .visitor import (
        VisitResult as VisitResult,
        visit_children as visit_children,
    )
    from .functions import (
        FunctionInfo as FunctionInfo,
        FunctionTable as FunctionTable,
    )
    from .branch_points import (
        BranchPoint as BranchPoint,
        DiscoverySession as DiscoverySession,
        DiscoveryResult as DiscoveryResult,
        discover as discover,
    )
    from .dictionary import BranchDictionary as BranchDictionary
    from .rewriter import (
        SourceRewriter as SourceRewriter,
        TRANSFORM_HEADER as TRANSFORM_HEADER,
    )
    from .toolchain import (
        detect_compiler as detect_compiler,
        compile_modified as compile_modified,
    )
    from .collector import (
        KeyPointsCollector as KeyPointsCollector,
        ToolchainResult as ToolchainResult,
    )
    from .clang_frontend import parse_file as parse_file
