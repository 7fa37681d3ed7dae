from __future__ import annotations

from .io import load_config
from .run_config import RunConfig, build_run_config

__all__ = ["RunConfig", "build_run_config", "load_config"]
