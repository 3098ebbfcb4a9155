#!/usr/bin/env python3
"""
kpc/__main__.py
===============

Entry point for ``python -m kpc``.  See :mod:`kpc.main` for the CLI.
"""

from kpc.main import main

if __name__ == "__main__":
    raise SystemExit(main())
