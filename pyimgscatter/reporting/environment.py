from __future__ import annotations

import os
import platform
import sys
from importlib import metadata
from typing import Any


def _dist_version(name: str) -> str | None:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


def collect_environment() -> dict[str, Any]:
    """Collect lightweight, JSON-friendly environment metadata for run reports."""

    packages = {
        "pyimgscatter": _dist_version("pyimgscatter"),
        "numpy": _dist_version("numpy"),
        "pillow": _dist_version("Pillow"),
        "opencv_python": _dist_version("opencv-python"),
        "mpi4py": _dist_version("mpi4py"),
    }

    return {
        "python": {
            "version": sys.version,
            "executable": sys.executable,
        },
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "cpu_count": os.cpu_count(),
        "packages": packages,
    }
