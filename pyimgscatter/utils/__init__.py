"""Utility helpers for pyimgscatter."""

from __future__ import annotations

from .jsonable import to_jsonable
from .optional_deps import optional_import, require
from .param_check import check_int

__all__ = [
    "check_int",
    "optional_import",
    "require",
    "to_jsonable",
]
