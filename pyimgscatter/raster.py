from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


def _as_u8_hwc(pixels: NDArray) -> NDArray:
    arr = np.asarray(pixels)
    if arr.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got dtype={arr.dtype}")
    if arr.ndim != 3:
        raise ValueError(f"Expected pixels with shape (H,W,C), got {arr.shape}")
    if arr.shape[2] <= 0:
        raise ValueError(f"Expected at least one channel, got shape {arr.shape}")
    return np.ascontiguousarray(arr)


@dataclass(frozen=True, eq=False)
class RasterImage:
    """A decoded image: row-major, channel-interleaved ``uint8`` pixels of shape (H,W,C)."""

    pixels: NDArray

    def __post_init__(self) -> None:
        object.__setattr__(self, "pixels", _as_u8_hwc(self.pixels))

    @classmethod
    def from_buffer(cls, buffer, *, width: int, height: int, channels: int) -> "RasterImage":
        """Wrap a flat buffer of exactly ``width * height * channels`` bytes (copied)."""

        if isinstance(buffer, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(buffer, dtype=np.uint8)
        else:
            flat = np.asarray(buffer, dtype=np.uint8).reshape(-1)
        expected = int(width) * int(height) * int(channels)
        if flat.size != expected:
            raise ValueError(
                f"Buffer length {flat.size} does not match {width}x{height}x{channels}={expected}"
            )
        return cls(flat.reshape(int(height), int(width), int(channels)).copy())

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def row_bytes(self) -> int:
        return self.width * self.channels

    @property
    def nbytes(self) -> int:
        return int(self.pixels.nbytes)

    @property
    def buffer(self) -> NDArray:
        """Flat read-only view, ``offset(x, y, c) = (y * W + x) * C + c``."""

        flat = self.pixels.reshape(-1)
        flat.flags.writeable = False
        return flat


@dataclass(eq=False)
class Slab:
    """Rows owned by one worker for one round.

    A slab always owns its pixel array; producers hand over freshly allocated
    arrays and consumers copy out, so no two ranks ever alias the same memory.
    """

    rank: int
    start_row: int
    pixels: NDArray

    def __post_init__(self) -> None:
        arr = np.asarray(self.pixels)
        if arr.dtype != np.uint8 or arr.ndim != 3:
            raise ValueError(f"Slab pixels must be uint8 (rows,W,C), got {arr.dtype} {arr.shape}")
        if not arr.flags.c_contiguous or not arr.flags.owndata:
            arr = arr.copy()
        self.pixels = arr

    @classmethod
    def from_buffer(
        cls,
        buffer: NDArray,
        *,
        rank: int,
        start_row: int,
        rows: int,
        width: int,
        channels: int,
    ) -> "Slab":
        flat = np.asarray(buffer, dtype=np.uint8).reshape(-1)
        return cls(
            rank=int(rank),
            start_row=int(start_row),
            pixels=flat.reshape(int(rows), int(width), int(channels)).copy(),
        )

    @property
    def rows(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def nbytes(self) -> int:
        return int(self.pixels.nbytes)

    def flat(self) -> NDArray:
        return self.pixels.reshape(-1)
