"""
kpc.dictionary
==============

The branch dictionary: ``origin line -> {target line -> label}``.

Labels have the form ``br_<n>``.  They are assigned in one forward pass
over the completed branch points (textual order), with a single counter
shared by all branches, so the labels of a run are ``br_1 … br_N`` without
gaps.  Two branch points with the same origin line (the ``then`` and
``else`` blocks of one ``if``) share one dictionary entry; a target line
already labelled for that origin keeps its first label.

Two serialised forms are provided:

* the human-readable listing written next to the instrumented program::

      Branch Dictionary for: prog.c
      ------------------------------
      br_1: prog.c, 3, 4
      br_2: prog.c, 3, 8

* an S-expression form (via ``sexpdata``) for other tools::

      (branch-dictionary "prog.c" (branch 3 (4 "br_1") (8 "br_2")))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import sexpdata

from kpc.errors import IOFailureError

__all__ = ["LABEL_PREFIX", "BranchDictionary", "make_label"]

_log = logging.getLogger(__name__)

LABEL_PREFIX = "br_"


def make_label(n: int) -> str:
    return f"{LABEL_PREFIX}{n}"


class BranchDictionary:
    """Origin line → (target line → label) mapping built once per run."""

    def __init__(self, entries: Optional[Mapping[int, Mapping[int, str]]] = None) -> None:
        self._entries: Dict[int, Dict[int, str]] = {
            origin: dict(targets) for origin, targets in (entries or {}).items()
        }

    # ----- construction ---------------------------------------------------------

    @classmethod
    def from_branch_points(cls, branch_points: Iterable) -> "BranchDictionary":
        """Label every (origin, target) pair of *branch_points*.

        *branch_points* must already be in textual order; each element needs
        ``origin_line`` and ``targets`` attributes.
        """
        entries: Dict[int, Dict[int, str]] = {}
        count = 0
        for bp in branch_points:
            targets = entries.setdefault(bp.origin_line, {})
            for target in bp.targets:
                if target in targets:
                    continue
                count += 1
                targets[target] = make_label(count)
        _log.debug("Assigned %d label(s) over %d branch origin(s)", count, len(entries))
        return cls(entries)

    # ----- queries ----------------------------------------------------------------

    def origins(self) -> List[int]:
        """Branch origin lines in ascending order."""
        return sorted(self._entries)

    def origins_between(self, start: int, end: int) -> List[int]:
        """Origins in ``[start, end)``, ascending."""
        return [line for line in self.origins() if start <= line < end]

    def targets_of(self, origin: int) -> Dict[int, str]:
        return self._entries.get(origin, {})

    def label_for(self, origin: int, target: int) -> str:
        return self._entries[origin][target]

    def labels(self) -> List[str]:
        """Every label, in assignment order."""
        found = [label for targets in self._entries.values() for label in targets.values()]
        return sorted(found, key=lambda label: int(label[len(LABEL_PREFIX):]))

    def items(self) -> Iterator[Tuple[int, int, str]]:
        """Yield ``(origin, target, label)`` grouped by origin, targets ascending."""
        for origin in self.origins():
            targets = self._entries[origin]
            for target in sorted(targets):
                yield origin, target, targets[target]

    def as_dict(self) -> Dict[int, Dict[int, str]]:
        return {origin: dict(targets) for origin, targets in self._entries.items()}

    def __contains__(self, origin: object) -> bool:
        return origin in self._entries

    def __getitem__(self, origin: int) -> Dict[int, str]:
        return self._entries[origin]

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BranchDictionary):
            return self._entries == other._entries
        return NotImplemented

    def __repr__(self) -> str:
        return f"BranchDictionary({self._entries!r})"

    # ----- listing file -----------------------------------------------------------

    def format_listing(self, filename: str) -> str:
        header = f"Branch Dictionary for: {filename}"
        lines = [header, "-" * len(header)]
        for origin, target, label in self.items():
            lines.append(f"{label}: {filename}, {origin}, {target}")
        return "\n".join(lines) + "\n"

    def write(self, path: Union[str, Path], filename: str) -> Path:
        """Write the listing for *filename* to *path*."""
        path = Path(path)
        try:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(self.format_listing(filename))
        except OSError as exc:
            raise IOFailureError(str(path), "w", cause=exc) from exc
        _log.info("Wrote branch dictionary: %s", path)
        return path

    # ----- S-expressions ----------------------------------------------------------

    def to_sexp(self, filename: str) -> str:
        form: list = [sexpdata.Symbol("branch-dictionary"), filename]
        for origin in self.origins():
            branch: list = [sexpdata.Symbol("branch"), origin]
            targets = self._entries[origin]
            for target in sorted(targets):
                branch.append([target, targets[target]])
            form.append(branch)
        return sexpdata.dumps(form)

    @classmethod
    def from_sexp(cls, text: str) -> Tuple[str, "BranchDictionary"]:
        """Parse the form written by :meth:`to_sexp`.

        Returns ``(filename, dictionary)``; raises ``ValueError`` on a
        malformed form.
        """
        form = sexpdata.loads(text)
        if not isinstance(form, list) or not form or form[0] != sexpdata.Symbol("branch-dictionary"):
            raise ValueError("not a branch-dictionary form")
        filename = str(form[1]) if len(form) > 1 else ""
        entries: Dict[int, Dict[int, str]] = {}
        for branch in form[2:]:
            if not isinstance(branch, list) or len(branch) < 2 or branch[0] != sexpdata.Symbol("branch"):
                raise ValueError(f"malformed branch entry: {branch!r}")
            targets = entries.setdefault(int(branch[1]), {})
            for pair in branch[2:]:
                target, label = pair
                targets[int(target)] = str(label)
        return filename, cls(entries)

    def write_sexp(self, path: Union[str, Path], filename: str) -> Path:
        path = Path(path)
        try:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(self.to_sexp(filename) + "\n")
        except OSError as exc:
            raise IOFailureError(str(path), "w", cause=exc) from exc
        _log.info("Wrote branch dictionary S-expression: %s", path)
        return path
