from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyimgscatter.raster import Slab


def nearest_row_indices(in_rows: int, out_rows: int) -> NDArray:
    """Source row for every output row: ``floor(y * in_rows / out_rows)``.

    Returns an empty index array when either side is zero (no division is
    performed).
    """

    n_in = int(in_rows)
    n_out = int(out_rows)
    if n_in < 0 or n_out < 0:
        raise ValueError(f"row counts must be non-negative, got {(n_in, n_out)}")
    if n_in == 0 or n_out == 0:
        return np.zeros((0,), dtype=np.intp)
    return (np.arange(n_out, dtype=np.int64) * n_in // n_out).astype(np.intp)


def resize_rows(pixels: NDArray, out_rows: int) -> NDArray:
    """Nearest-neighbor resample along the row axis only.

    Whole source rows (W*C bytes) are copied verbatim; the width is passed
    through unchanged. The result is always a new array.
    """

    arr = np.asarray(pixels)
    if arr.ndim != 3:
        raise ValueError(f"Expected pixels with shape (rows,W,C), got {arr.shape}")

    idx = nearest_row_indices(arr.shape[0], out_rows)
    if idx.size == 0:
        return np.empty((0, arr.shape[1], arr.shape[2]), dtype=arr.dtype)
    return np.ascontiguousarray(arr[idx])


def resize_slab(slab: Slab, out_rows: int, *, start_row: int) -> Slab:
    """Resize a slab to `out_rows`; `start_row` is its position in the output image."""

    return Slab(
        rank=slab.rank,
        start_row=int(start_row),
        pixels=resize_rows(slab.pixels, out_rows),
    )
