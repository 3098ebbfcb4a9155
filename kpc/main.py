#!/usr/bin/env python3
"""kpc/main.py — CLI entry-point for the branch-coverage instrumenter.

Usage examples
--------------
    # Instrument and build prog.c; outputs land in ./kpc-out
    kpc prog.c

    # Same, with discovery diagnostics (branch points, targets, functions)
    kpc prog.c debug

    # Rewrite only, into a custom directory, also dumping an S-expression
    kpc prog.c --out-dir build/cov --no-build --sexp

    # Pass include paths / defines through to libclang
    kpc prog.c --clang-arg=-Iinclude --clang-arg=-DNDEBUG

Exit codes
----------
    0   Success.
    1   The instrumented program failed to compile.
    2   Infrastructure failure (missing input, parse failure, I/O error,
        no C compiler).

The module doubles as ``python -m kpc`` via the companion
``kpc/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from kpc import __version__
from kpc.config import CollectorConfig
from kpc.errors import EXIT_INFRA, EXIT_OK, KpcError

_log = logging.getLogger("kpc")

_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``kpc`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("kpc")
    root.setLevel(level)
    root.addHandler(handler)


def _debug_requested(flag: Optional[str]) -> bool:
    return flag is not None and flag.lower() not in _FALSE_WORDS


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kpc",
        description=(
            "Instrument a C source file for branch coverage: discover branch "
            "points, write a branch dictionary, rewrite the source with "
            "labelled logging and build it with the host C compiler."
        ),
    )
    parser.add_argument("filename", help="C source file to instrument")
    parser.add_argument(
        "debug",
        nargs="?",
        default=None,
        help="any value except 0/false/no/off enables discovery diagnostics",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "-o", "--out-dir", default=None,
        help="output directory (default: $KPC_OUT_DIR or ./kpc-out)",
    )
    parser.add_argument(
        "--cc", default=None,
        help="C compiler for the build step (default: $CC, then clang/gcc/cc)",
    )
    parser.add_argument(
        "--entry", default=None,
        help="name of the entry function (default: main)",
    )
    parser.add_argument(
        "--clang-arg", action="append", default=[], metavar="ARG",
        help="extra argument passed to libclang (repeatable)",
    )
    parser.add_argument(
        "--sexp", action="store_true",
        help="also write the branch dictionary as an S-expression",
    )
    parser.add_argument(
        "--no-build", action="store_true",
        help="stop after writing the dictionary and the rewritten source",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return parser


# ===========================================================================
# Entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the kpc CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    from kpc.collector import KeyPointsCollector

    parser = _build_parser()
    args = parser.parse_args(argv)

    debug = _debug_requested(args.debug)
    _configure_logging(2 if debug else args.verbose)

    config = CollectorConfig.from_env(
        out_dir=args.out_dir,
        compiler=args.cc,
        entry_function=args.entry,
        clang_args=list(args.clang_arg),
        debug=debug,
        write_sexp=args.sexp,
        build=not args.no_build,
    )

    try:
        result = KeyPointsCollector(args.filename, config).execute_toolchain()
    except KpcError as exc:
        _log.error("%s", exc.to_gcc_format())
        return exc.exit_code
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA

    print(f"Branch dictionary: {result.dictionary_path}")
    print(f"Instrumented source: {result.modified_path}")
    if result.executable_path is not None:
        print(f"Executable: {result.executable_path}")
    return EXIT_OK


# ---------------------------------------------------------------------------
# Module execution support
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
