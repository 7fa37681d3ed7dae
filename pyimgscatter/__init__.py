"""pyimgscatter - row-partitioned scatter/gather image resizing and filtering.

Keep top-level imports lightweight: the MPI backend and the OpenCV codec are
optional. Exports are lazy-loaded on demand so that `import pyimgscatter`
works in minimal environments.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

__all__ = [
    # Modules
    "comm",
    "config",
    "io",
    "pipelines",
    "reporting",
    "utils",
    # Core
    "FilterKind",
    "PartitionPlan",
    "RasterImage",
    "RowRange",
    "Slab",
    "apply_filter",
    "parse_filter",
    "resize_rows",
    "row_range",
    # Rounds
    "LocalProcessGroup",
    "RunConfig",
    "run",
    "run_round",
]


_LAZY_SUBMODULES = {
    "comm",
    "config",
    "io",
    "pipelines",
    "reporting",
    "utils",
}

_LAZY_EXPORTS = {
    "FilterKind": ("filters", "FilterKind"),
    "apply_filter": ("filters", "apply_filter"),
    "parse_filter": ("filters", "parse_filter"),
    "PartitionPlan": ("partition", "PartitionPlan"),
    "RowRange": ("partition", "RowRange"),
    "row_range": ("partition", "row_range"),
    "RasterImage": ("raster", "RasterImage"),
    "Slab": ("raster", "Slab"),
    "resize_rows": ("resize", "resize_rows"),
    "LocalProcessGroup": ("comm.local", "LocalProcessGroup"),
    "RunConfig": ("config.run_config", "RunConfig"),
    "run": ("pipelines.scatter_gather", "run"),
    "run_round": ("pipelines.scatter_gather", "run_round"),
}


def __getattr__(name: str) -> Any:  # pragma: no cover - thin delegation
    if name in _LAZY_SUBMODULES:
        module = import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module

    target = _LAZY_EXPORTS.get(name)
    if target is not None:
        module_name, attr = target
        module = import_module(f"{__name__}.{module_name}")
        value = getattr(module, attr)
        globals()[name] = value
        return value

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover - tooling convenience
    return sorted(set(globals()) | set(__all__))
