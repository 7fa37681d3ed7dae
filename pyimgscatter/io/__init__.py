from __future__ import annotations

from .image import (
    DEFAULT_QUALITY,
    ImageCodec,
    OpenCVCodec,
    PillowCodec,
    get_codec,
    load_image,
    save_image,
)

__all__ = [
    "DEFAULT_QUALITY",
    "ImageCodec",
    "OpenCVCodec",
    "PillowCodec",
    "get_codec",
    "load_image",
    "save_image",
]
