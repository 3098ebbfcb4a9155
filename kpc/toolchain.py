"""
kpc.toolchain
=============

Build step: find a host C compiler and compile the instrumented program.

Compiler selection, first match wins:

1. an explicit override (``--cc`` / ``CollectorConfig.compiler``);
2. the ``CC`` environment variable;
3. the first of ``clang``, ``gcc``, ``cc`` found on ``PATH``.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from kpc.errors import BuildFailureError, IOFailureError, ToolchainUnavailableError

__all__ = [
    "COMPILER_CANDIDATES",
    "detect_compiler",
    "compile_modified",
    "invoke_memcheck",
]

_log = logging.getLogger(__name__)

COMPILER_CANDIDATES = ("clang", "gcc", "cc")


def detect_compiler(
    override: Optional[str] = None,
    candidates: Sequence[str] = COMPILER_CANDIDATES,
) -> str:
    """Return the compiler command to use.

    Raises
    ------
    ToolchainUnavailableError
        Nothing was configured and no candidate is on ``PATH``.
    """
    if override:
        return override
    env_cc = os.environ.get("CC")
    if env_cc:
        return env_cc
    for candidate in candidates:
        if shutil.which(candidate):
            return candidate
    raise ToolchainUnavailableError()


def compile_modified(
    source: Union[str, Path],
    output: Union[str, Path],
    compiler: str,
    extra_args: Sequence[str] = (),
) -> Path:
    """Compile *source* into *output* with *compiler*.

    Raises
    ------
    IOFailureError
        *source* does not exist.
    BuildFailureError
        The compiler could not be run or exited non-zero.
    """
    source, output = Path(source), Path(output)
    if not source.is_file():
        raise IOFailureError(str(source), "r").with_hint("Transformed program has not been created yet")

    cmd = [compiler, str(source), "-o", str(output), *extra_args]
    _log.info("C compiler is: %s", compiler)
    _log.debug("Running: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise BuildFailureError(str(source), compiler, stderr=str(exc), cause=exc) from exc

    if proc.returncode != 0:
        _log.error("There was an error with compilation:\n%s", proc.stderr.rstrip())
        raise BuildFailureError(
            str(source), compiler, returncode=proc.returncode, stderr=proc.stderr
        )
    if proc.stderr:
        _log.debug("Compiler output:\n%s", proc.stderr.rstrip())
    _log.info("Compilation Successful")
    return output


def invoke_memcheck(executable: Union[str, Path]) -> None:
    """Memory-checking stage.  Not implemented; always succeeds."""
    _log.info("Memory check of %s skipped: stage not implemented", executable)
