"""Utilities for postprocessing generated listing copy.

This package exposes its submodules for convenient imports like:

    from postprocessing import sanitize_banned

"""

from . import enforce_must_include
from . import salvage_first_json
from . import sanitize_banned

__all__ = [
    "enforce_must_include",
    "salvage_first_json",
    "sanitize_banned",
]
