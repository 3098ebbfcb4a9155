"""
kpc.collector
=============

One hermetic run of the instrumentation toolchain over a single C file:

    source ─▶ parse ─▶ discover ─▶ dictionary file ─▶ rewrite ─▶ compile ─▶ memcheck

Every stage failure raises a :class:`kpc.errors.KpcError` and ends the run.
Files already written (dictionary, rewritten source) stay on disk for
inspection.

Typical usage::

    from kpc.collector import KeyPointsCollector
    from kpc.config import CollectorConfig

    result = KeyPointsCollector("prog.c", CollectorConfig(out_dir="out")).execute_toolchain()
    print(result.dictionary_path, result.modified_path, result.executable_path)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

from kpc.branch_points import DiscoveryResult, DiscoverySession
from kpc.config import CollectorConfig
from kpc.cursor import Cursor
from kpc.dictionary import BranchDictionary
from kpc.errors import InputNotFoundError, IOFailureError
from kpc.functions import FunctionTable
from kpc.rewriter import SourceRewriter
from kpc import toolchain

__all__ = ["ToolchainResult", "KeyPointsCollector"]

_log = logging.getLogger(__name__)

Parser = Callable[[Path, Sequence[str]], Cursor]


def _default_parser(filename: Path, args: Sequence[str]) -> Cursor:
    from kpc.clang_frontend import parse_file

    return parse_file(filename, args)


@dataclass
class ToolchainResult:
    """Artefacts of a finished run."""

    source: Path
    dictionary: BranchDictionary
    functions: FunctionTable
    dictionary_path: Path
    modified_path: Path
    executable_path: Optional[Path] = None
    sexp_path: Optional[Path] = None
    compiler: Optional[str] = None


class KeyPointsCollector:
    """Instrument *filename* according to *config*.

    Parameters
    ----------
    filename:
        C source file to instrument.
    config:
        Run configuration; defaults to :meth:`CollectorConfig.from_env`.
    parser:
        ``parser(path, clang_args) -> Cursor``; defaults to the libclang
        front end.

    Raises
    ------
    InputNotFoundError
        *filename* does not exist.  Nothing is written.
    """

    def __init__(
        self,
        filename: Union[str, Path],
        config: Optional[CollectorConfig] = None,
        parser: Optional[Parser] = None,
    ) -> None:
        self.filename = Path(filename)
        self.config = config if config is not None else CollectorConfig.from_env()
        self._parser = parser or _default_parser
        if not self.filename.is_file():
            raise InputNotFoundError(str(filename))
        if self.config.debug:
            logging.getLogger("kpc").setLevel(logging.DEBUG)
        for warning in self.config.validate():
            _log.warning("Configuration: %s", warning)

        self.root: Optional[Cursor] = None
        self.discovery: Optional[DiscoveryResult] = None
        self.dictionary: Optional[BranchDictionary] = None

    # ----- stages ---------------------------------------------------------------

    def collect_cursors(self) -> BranchDictionary:
        """Parse the file, discover branch points and label them."""
        self.root = self._parser(self.filename, self.config.clang_args)
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug("Parsed %d cursor(s) from %s", sum(1 for _ in self.root.walk()), self.filename)
        self.discovery = DiscoverySession().run(self.root)
        self.dictionary = BranchDictionary.from_branch_points(self.discovery.branch_points)
        # The tree is not needed once discovery is done.
        self.root = None
        return self.dictionary

    def _ensure_collected(self) -> BranchDictionary:
        if self.dictionary is None:
            return self.collect_cursors()
        return self.dictionary

    def _ensure_out_dir(self) -> Path:
        out_dir = self.config.out_dir
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailureError(str(out_dir), "w", cause=exc) from exc
        return out_dir

    def create_dictionary_file(self) -> Path:
        dictionary = self._ensure_collected()
        self._ensure_out_dir()
        return dictionary.write(self.config.dictionary_path(self.filename), self.filename.name)

    def create_sexp_file(self) -> Path:
        dictionary = self._ensure_collected()
        self._ensure_out_dir()
        return dictionary.write_sexp(self.config.sexp_path(self.filename), self.filename.name)

    def transform_program(self) -> Path:
        dictionary = self._ensure_collected()
        assert self.discovery is not None
        self._ensure_out_dir()
        if self.discovery.functions.by_name(self.config.entry_function) is None:
            _log.warning(
                "Entry function %s is not defined in %s", self.config.entry_function, self.filename
            )
        rewriter = SourceRewriter(
            self.discovery.functions, dictionary, entry_function=self.config.entry_function
        )
        return rewriter.rewrite_file(self.filename, self.config.modified_path)

    def compile_modified(self) -> Tuple[Path, str]:
        """Compile the rewritten program; returns ``(executable, compiler)``."""
        compiler = toolchain.detect_compiler(self.config.compiler)
        exe = toolchain.compile_modified(
            self.config.modified_path, self.config.executable_path, compiler
        )
        return exe, compiler

    def invoke_memcheck(self, executable: Path) -> None:
        toolchain.invoke_memcheck(executable)

    # ----- driver ---------------------------------------------------------------

    def execute_toolchain(self) -> ToolchainResult:
        """Run every stage in order and return the artefacts."""
        dictionary = self.collect_cursors()
        assert self.discovery is not None
        dict_path = self.create_dictionary_file()
        sexp_path = self.create_sexp_file() if self.config.write_sexp else None
        modified = self.transform_program()

        exe: Optional[Path] = None
        compiler: Optional[str] = None
        if self.config.build:
            exe, compiler = self.compile_modified()
            self.invoke_memcheck(exe)
        else:
            _log.info("Build step disabled; stopping after the rewrite")

        _log.info(
            "Toolchain was successful, the branch dictionary, modified file%s "
            "have been written to the %s directory",
            ", and executable" if exe is not None else "",
            self.config.out_dir,
        )
        return ToolchainResult(
            source=self.filename,
            dictionary=dictionary,
            functions=self.discovery.functions,
            dictionary_path=dict_path,
            modified_path=modified,
            executable_path=exe,
            sexp_path=sexp_path,
            compiler=compiler,
        )
