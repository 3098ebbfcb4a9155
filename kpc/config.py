"""
kpc.config
==========

Configuration for one run of the instrumentation toolchain.

Defaults can be overridden from the environment with
:meth:`CollectorConfig.from_env`:

``KPC_OUT_DIR``
    directory receiving the dictionary, rewritten source and executable;
``CC``
    host C compiler used for the build step.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Mapping, Optional

__all__ = ["CollectorConfig", "DEFAULT_OUT_DIR"]

DEFAULT_OUT_DIR = "kpc-out"


@dataclass
class CollectorConfig:
    """Tuning knobs for :class:`kpc.collector.KeyPointsCollector`."""

    out_dir: Path = Path(DEFAULT_OUT_DIR)
    modified_name: str = "modified.c"
    executable_name: str = "modified.out"
    dictionary_suffix: str = ".branch_dict"
    entry_function: str = "main"
    compiler: Optional[str] = None
    clang_args: List[str] = field(default_factory=list)
    debug: bool = False
    write_sexp: bool = False
    build: bool = True

    def __post_init__(self) -> None:
        self.out_dir = Path(self.out_dir)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "CollectorConfig":
        """Build a config from *environ* (default ``os.environ``) plus
        keyword *overrides*; overrides whose value is ``None`` are ignored."""
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("KPC_OUT_DIR"):
            config.out_dir = Path(env["KPC_OUT_DIR"])
        if env.get("CC"):
            config.compiler = env["CC"]
        given = {k: v for k, v in overrides.items() if v is not None}
        return replace(config, **given) if given else config

    # ----- derived paths --------------------------------------------------------

    def dictionary_path(self, source: Path) -> Path:
        return self.out_dir / (Path(source).name + self.dictionary_suffix)

    def sexp_path(self, source: Path) -> Path:
        return self.out_dir / (Path(source).name + self.dictionary_suffix + ".sexp")

    @property
    def modified_path(self) -> Path:
        return self.out_dir / self.modified_name

    @property
    def executable_path(self) -> Path:
        return self.out_dir / self.executable_name

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if not self.modified_name.endswith(".c"):
            warnings.append("modified_name should end in .c")
        if self.modified_name == self.executable_name:
            warnings.append("modified_name and executable_name must differ")
        if not self.entry_function:
            warnings.append("entry_function must not be empty")
        return warnings
