"""Image codecs: decode a file into a `RasterImage` and encode one back.

Two backends are available:

- ``"pillow"`` (default): keeps the file's native channel count
  (L→1, LA→2, RGB→3, RGBA→4); palette and other modes are converted.
- ``"opencv"``: ``cv2.imread`` / ``cv2.imwrite`` with BGR(A)↔RGB(A)
  conversion so pixels are always RGB-ordered in memory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Protocol

import numpy as np
from PIL import Image, UnidentifiedImageError

from pyimgscatter.errors import DecodeError, EncodeError
from pyimgscatter.raster import RasterImage
from pyimgscatter.utils.optional_deps import require

logger = logging.getLogger(__name__)

CodecName = Literal["pillow", "opencv"]

DEFAULT_QUALITY = 100
_JPEG_SUFFIXES = {".jpg", ".jpeg", ".jpe", ".jfif"}
_QUALITY_SUFFIXES = _JPEG_SUFFIXES | {".webp"}

_NATIVE_MODES = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


class ImageCodec(Protocol):
    name: str

    def load(self, path: str | Path) -> RasterImage: ...

    def save(self, path: str | Path, image: RasterImage, *, quality: int = DEFAULT_QUALITY) -> None: ...


def _check_quality(quality: int) -> int:
    q = int(quality)
    if q < 1 or q > 100:
        raise ValueError(f"quality must be in [1,100], got {quality}")
    return q


def _drop_alpha_for_jpeg(pixels: np.ndarray, path: Path) -> np.ndarray:
    # JPEG has no alpha channel; the encoder keeps the colour channels only.
    channels = int(pixels.shape[2])
    if path.suffix.lower() in _JPEG_SUFFIXES and channels in (2, 4):
        logger.debug("dropping alpha channel for JPEG output %s", path)
        return np.ascontiguousarray(pixels[:, :, : channels - 1])
    return pixels


class PillowCodec:
    name = "pillow"

    def load(self, path: str | Path) -> RasterImage:
        path = Path(path)
        try:
            with Image.open(path) as img:
                img.load()
                if img.mode not in _NATIVE_MODES:
                    img = self._convert_mode(img)
                arr = np.asarray(img, dtype=np.uint8)
        except FileNotFoundError as exc:
            raise DecodeError(f"Unable to read image: {path} (file not found)") from exc
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise DecodeError(f"Unable to decode image: {path} ({exc})") from exc

        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        return RasterImage(arr)

    @staticmethod
    def _convert_mode(img: Image.Image) -> Image.Image:
        if img.mode == "P":
            return img.convert("RGBA" if "transparency" in img.info else "RGB")
        if img.mode == "PA":
            return img.convert("RGBA")
        if img.mode in ("1", "I", "I;16", "I;16B", "I;16L", "F"):
            return img.convert("L")
        return img.convert("RGB")

    def save(self, path: str | Path, image: RasterImage, *, quality: int = DEFAULT_QUALITY) -> None:
        path = Path(path)
        q = _check_quality(quality)
        pixels = _drop_alpha_for_jpeg(image.pixels, path)
        if pixels.shape[2] == 1:
            pixels = pixels[:, :, 0]

        params = {"quality": q} if path.suffix.lower() in _QUALITY_SUFFIXES else {}
        try:
            Image.fromarray(pixels).save(path, **params)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise EncodeError(f"Unable to write image: {path} ({exc})") from exc


class OpenCVCodec:
    name = "opencv"

    @staticmethod
    def _cv2():
        return require("cv2", purpose="the OpenCV image codec")

    def load(self, path: str | Path) -> RasterImage:
        cv2 = self._cv2()
        path_str = str(path)
        img = cv2.imread(path_str, cv2.IMREAD_UNCHANGED)
        if img is None:
            raise DecodeError(f"Unable to read image: {path_str}")

        if img.dtype == np.uint16:
            img = (img >> 8).astype(np.uint8)
        elif img.dtype != np.uint8:
            raise DecodeError(f"Unsupported sample type {img.dtype} in {path_str}")

        if img.ndim == 2:
            return RasterImage(img[:, :, np.newaxis])
        if img.shape[2] == 3:
            return RasterImage(cv2.cvtColor(img, cv2.COLOR_BGR2RGB))
        if img.shape[2] == 4:
            return RasterImage(cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA))
        raise DecodeError(f"Unsupported channel count {img.shape[2]} in {path_str}")

    def save(self, path: str | Path, image: RasterImage, *, quality: int = DEFAULT_QUALITY) -> None:
        cv2 = self._cv2()
        path = Path(path)
        q = _check_quality(quality)
        pixels = _drop_alpha_for_jpeg(image.pixels, path)

        channels = int(pixels.shape[2])
        if channels == 1:
            out = pixels[:, :, 0]
        elif channels == 3:
            out = cv2.cvtColor(pixels, cv2.COLOR_RGB2BGR)
        elif channels == 4:
            out = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGRA)
        else:
            raise EncodeError(
                f"OpenCV cannot encode {channels}-channel images ({path}); use the pillow codec"
            )

        params: list[int] = []
        suffix = path.suffix.lower()
        if suffix in _JPEG_SUFFIXES:
            params = [int(cv2.IMWRITE_JPEG_QUALITY), q]
        elif suffix == ".webp":
            params = [int(cv2.IMWRITE_WEBP_QUALITY), q]

        try:
            ok = cv2.imwrite(str(path), out, params)
        except cv2.error as exc:
            raise EncodeError(f"Unable to write image: {path} ({exc})") from exc
        if not ok:
            raise EncodeError(f"Unable to write image: {path}")


_CODECS: dict[str, ImageCodec] = {
    "pillow": PillowCodec(),
    "opencv": OpenCVCodec(),
}


def get_codec(name: str | ImageCodec = "pillow") -> ImageCodec:
    if not isinstance(name, str):
        return name
    key = str(name).strip().lower()
    try:
        return _CODECS[key]
    except KeyError as exc:
        available = ", ".join(sorted(_CODECS))
        raise ValueError(f"Unknown codec: {name!r}. Choose from: {available}") from exc


def load_image(path: str | Path, *, codec: str | ImageCodec = "pillow") -> RasterImage:
    """Decode an image file; raises `DecodeError` on missing or malformed input."""

    return get_codec(codec).load(path)


def save_image(
    path: str | Path,
    image: RasterImage,
    *,
    quality: int = DEFAULT_QUALITY,
    codec: str | ImageCodec = "pillow",
) -> None:
    """Encode an image file (format from the suffix); raises `EncodeError` on failure."""

    get_codec(codec).save(path, image, quality=quality)
