from __future__ import annotations

import dataclasses
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np


def to_jsonable(value: Any) -> Any:
    """Convert run artifacts into JSON-serializable values.

    - `pathlib.Path` → `str`
    - `Enum` members → their `.value`
    - dataclass instances (e.g. `RowRange`) → dicts of their fields
    - `numpy` scalars → builtin Python scalars via `.item()`
    - `numpy.ndarray` → nested Python lists via `.tolist()`
    - Recurses through `dict` / `list` / `tuple`
    """

    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return to_jsonable(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}

    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()

    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
