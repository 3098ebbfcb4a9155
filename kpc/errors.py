# kpc/errors.py
"""
KPC Error Types

Every failure of the instrumentation toolchain is fatal for the run that
raised it: there is no retry and no partial-result salvage.  The classes in
this module carry enough structure (error code, source span, hint) for the
CLI to print a GCC-style message and pick a process exit status.

Error Hierarchy:
────────────────
    KpcError (base)
    ├── InputNotFoundError        - the named source file does not exist
    ├── ParseFailureError         - libclang could not produce a tree
    ├── IOFailureError            - an input/output file could not be opened
    ├── ToolchainUnavailableError - no host C compiler could be determined
    └── BuildFailureError         - the host compiler rejected the output

Error Codes:
────────────
Codes follow the pattern KPC-XXXX:
  - 0001-0999: input errors
  - 1000-1999: front-end (parse) errors
  - 2000-2999: file I/O errors
  - 3000-3999: toolchain / build errors
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

__all__ = [
    "EXIT_OK",
    "EXIT_ERROR",
    "EXIT_INFRA",
    "ErrorCode",
    "KpcErrorCodes",
    "SourceSpan",
    "KpcError",
    "InputNotFoundError",
    "ParseFailureError",
    "IOFailureError",
    "ToolchainUnavailableError",
    "BuildFailureError",
]

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ErrorCode:
    """A stable, documented error identifier such as ``KPC-0001``."""

    number: int
    name: str
    description: str = ""

    @property
    def code(self) -> str:
        return f"KPC-{self.number:04d}"

    def __str__(self) -> str:
        return self.code


class KpcErrorCodes:
    """Registry of every error code the toolchain can report."""

    INPUT_NOT_FOUND = ErrorCode(1, "input-not-found", "Source file does not exist")
    PARSE_FAILURE = ErrorCode(1001, "parse-failure", "Translation unit could not be parsed")
    IO_FAILURE = ErrorCode(2001, "io-failure", "File could not be opened")
    TOOLCHAIN_UNAVAILABLE = ErrorCode(3001, "toolchain-unavailable", "No C compiler found")
    BUILD_FAILURE = ErrorCode(3002, "build-failure", "Instrumented program failed to compile")
    INTERNAL_ERROR = ErrorCode(9001, "internal-error", "Internal error")


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """A file position attached to an error, rendered as ``file:line:col``."""

    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class KpcError(Exception):
    """
    Base exception for all toolchain errors.

    Carries structured error information that the CLI turns into a
    one-line diagnostic and an exit status.
    """

    exit_code: int = EXIT_INFRA

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        cause: Optional[BaseException] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or KpcErrorCodes.INTERNAL_ERROR
        self.span = span or SourceSpan()
        self.cause = cause
        self.hint = hint

    def with_hint(self, hint: str) -> "KpcError":
        """Attach a hint to this error."""
        self.hint = hint
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        text = f"{self.span}: error: {self.message} [{self.code}]"
        if self.hint:
            text += f"\n  = help: {self.hint}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.code,
            "message": self.message,
            "file": self.span.file,
            "line": self.span.line,
            "column": self.span.column,
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


class InputNotFoundError(KpcError):
    """The source file named on the command line does not exist."""

    def __init__(self, filename: str, **kwargs: Any) -> None:
        super().__init__(
            message=f"File with name: {filename}, does not exist",
            code=KpcErrorCodes.INPUT_NOT_FOUND,
            span=SourceSpan(file=filename),
            **kwargs,
        )
        self.filename = filename


class ParseFailureError(KpcError):
    """libclang could not produce a translation unit for the input."""

    def __init__(self, filename: str, reason: str = "", **kwargs: Any) -> None:
        message = "There was an error parsing the translation unit"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            code=KpcErrorCodes.PARSE_FAILURE,
            span=SourceSpan(file=filename),
            **kwargs,
        )
        self.filename = filename


class IOFailureError(KpcError):
    """A dictionary, rewritten-source or original file could not be opened."""

    def __init__(self, path: str, mode: str = "r", **kwargs: Any) -> None:
        purpose = "writing" if any(m in mode for m in "wax+") else "reading"
        super().__init__(
            message=f"Error opening {path} for {purpose}",
            code=KpcErrorCodes.IO_FAILURE,
            span=SourceSpan(file=path),
            **kwargs,
        )
        self.path = path
        self.mode = mode


class ToolchainUnavailableError(KpcError):
    """No host C compiler could be determined."""

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("hint", "Install clang or gcc, or set the CC environment variable")
        super().__init__(
            message="No viable C compiler found on system",
            code=KpcErrorCodes.TOOLCHAIN_UNAVAILABLE,
            **kwargs,
        )


class BuildFailureError(KpcError):
    """The host compiler reported failure on the rewritten file."""

    exit_code = EXIT_ERROR

    def __init__(
        self,
        source: str,
        compiler: str,
        returncode: Optional[int] = None,
        stderr: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=f"There was an error compiling {source} with {compiler}",
            code=KpcErrorCodes.BUILD_FAILURE,
            span=SourceSpan(file=source),
            **kwargs,
        )
        self.source = source
        self.compiler = compiler
        self.returncode = returncode
        self.stderr = stderr
