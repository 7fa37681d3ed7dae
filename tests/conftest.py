from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def write_png(tmp_path):
    """Write ``pixels`` (H,W,C uint8) to a PNG under ``tmp_path`` and return its path."""

    def _write(pixels: np.ndarray, name: str = "src.png") -> Path:
        arr = np.asarray(pixels, dtype=np.uint8)
        if arr.ndim == 3 and arr.shape[2] == 1:
            arr = arr[:, :, 0]
        path = tmp_path / name
        Image.fromarray(arr).save(path)
        return path

    return _write


@pytest.fixture
def gradient_rgb() -> np.ndarray:
    """10x4 RGB image whose red channel encodes the row index."""

    pixels = np.zeros((10, 4, 3), dtype=np.uint8)
    pixels[:, :, 0] = (np.arange(10, dtype=np.uint8) * 20)[:, np.newaxis]
    pixels[:, :, 1] = np.arange(4, dtype=np.uint8) * 50
    pixels[:, :, 2] = 77
    return pixels
