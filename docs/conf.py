# =============================================================================
#  docs/conf.py: Sphinx configuration for kpc
#
#  API pages are generated from the docstrings in kpc/ (NumPy style).
#  libclang is mocked so the docs build without the shared library.
# =============================================================================

from __future__ import annotations

import re
import sys
from datetime import datetime
from pathlib import Path

# -- Path setup ---------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# -- Project information ------------------------------------------------------
project = "kpc"
author = "kpc contributors"
copyright = f"2024–{datetime.now().year}, {author}"

_version = "0.0.0"
_match = re.search(
    r'^__version__\s*=\s*"([^"]+)"',
    (PROJECT_ROOT / "kpc" / "__init__.py").read_text(encoding="utf-8"),
    re.MULTILINE,
)
if _match:
    _version = _match.group(1)

version = _version
release = _version

# -- General configuration ----------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx_rtd_theme",
    "myst_parser",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
master_doc = "index"
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

# -- Autodoc ------------------------------------------------------------------
autodoc_default_options = {
    "members": True,
    "undoc-members": True,
    "private-members": False,
    "show-inheritance": True,
    "member-order": "bysource",
}
autodoc_typehints = "both"
autodoc_typehints_format = "short"
autodoc_class_content = "both"
autodoc_mock_imports = [
    "clang",                         # libclang bindings; needs the shared library
]

autosummary_generate = True

# -- Napoleon -----------------------------------------------------------------
napoleon_google_docstring = False
napoleon_numpy_docstring = True
napoleon_include_init_with_doc = True
napoleon_use_ivar = True
napoleon_use_param = True
napoleon_use_rtype = True

# -- Intersphinx --------------------------------------------------------------
intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
}

# -- HTML output --------------------------------------------------------------
html_theme = "sphinx_rtd_theme"
html_theme_options = {
    "collapse_navigation": False,
    "navigation_depth": 3,
}
html_show_sourcelink = True
html_show_sphinx = False

# -- Man page output ----------------------------------------------------------
man_pages = [
    ("index", "kpc", "kpc: branch-coverage instrumentation for C", [author], 1),
]
