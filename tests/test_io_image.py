from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from pyimgscatter.errors import DecodeError, EncodeError
from pyimgscatter.io.image import get_codec, load_image, save_image
from pyimgscatter.raster import RasterImage


@pytest.mark.parametrize("mode, channels", [("L", 1), ("LA", 2), ("RGB", 3), ("RGBA", 4)])
def test_pillow_keeps_native_channel_count(tmp_path, mode, channels) -> None:
    rng = np.random.default_rng(0)
    shape = (5, 3) if channels == 1 else (5, 3, channels)
    pixels = rng.integers(0, 256, size=shape, dtype=np.uint8)
    path = tmp_path / "x.png"
    Image.fromarray(pixels).save(path)
    with Image.open(path) as img:
        assert img.mode == mode

    image = load_image(path)
    assert (image.height, image.width, image.channels) == (5, 3, channels)
    np.testing.assert_array_equal(image.pixels.reshape(shape), pixels)

    out = tmp_path / "y.png"
    save_image(out, image)
    np.testing.assert_array_equal(load_image(out).pixels, image.pixels)


def test_pillow_converts_palette_images(tmp_path) -> None:
    path = tmp_path / "p.png"
    Image.new("RGB", (4, 2), (10, 20, 30)).quantize().save(path)

    image = load_image(path)
    assert image.channels == 3
    assert image.pixels[0, 0].tolist() == [10, 20, 30]


def test_missing_or_corrupt_files_raise_decode_error(tmp_path) -> None:
    with pytest.raises(DecodeError, match="not found"):
        load_image(tmp_path / "missing.png")

    garbage = tmp_path / "garbage.png"
    garbage.write_bytes(b"not an image at all")
    with pytest.raises(DecodeError):
        load_image(garbage)

    # DecodeError is an OSError.
    with pytest.raises(OSError):
        load_image(garbage)


def test_jpeg_output_drops_alpha(tmp_path) -> None:
    pixels = np.full((4, 4, 4), 200, dtype=np.uint8)
    path = tmp_path / "out.jpg"
    save_image(path, RasterImage(pixels), quality=90)

    with Image.open(path) as img:
        assert img.mode == "RGB"
        assert img.size == (4, 4)


def test_unknown_extension_raises_encode_error(tmp_path) -> None:
    image = RasterImage(np.zeros((2, 2, 3), dtype=np.uint8))
    with pytest.raises(EncodeError):
        save_image(tmp_path / "out.unknownext", image)


def test_quality_is_validated(tmp_path) -> None:
    image = RasterImage(np.zeros((2, 2, 3), dtype=np.uint8))
    with pytest.raises(ValueError, match="quality"):
        save_image(tmp_path / "out.jpg", image, quality=0)


def test_unknown_codec_name() -> None:
    with pytest.raises(ValueError, match="Unknown codec"):
        get_codec("imageio")


def test_opencv_codec_reads_rgb_order(tmp_path) -> None:
    cv2 = pytest.importorskip("cv2")

    bgr = np.zeros((2, 2, 3), dtype=np.uint8)
    bgr[0, 0] = np.asarray([10, 20, 30], dtype=np.uint8)  # B,G,R
    path = tmp_path / "x.png"
    assert cv2.imwrite(str(path), bgr) is True

    image = load_image(path, codec="opencv")
    assert image.pixels[0, 0].tolist() == [30, 20, 10]

    # Both codecs agree on channel order.
    np.testing.assert_array_equal(load_image(path).pixels, image.pixels)

    out = tmp_path / "y.png"
    save_image(out, image, codec="opencv")
    assert cv2.imread(str(out))[0, 0].tolist() == [10, 20, 30]


def test_opencv_codec_missing_file(tmp_path) -> None:
    pytest.importorskip("cv2")
    with pytest.raises(DecodeError):
        load_image(tmp_path / "missing.png", codec="opencv")


def test_decompression_bomb_is_a_decode_error(tmp_path, monkeypatch) -> None:
    path = tmp_path / "big.png"
    Image.fromarray(np.zeros((8, 8, 3), dtype=np.uint8)).save(path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 4)

    with pytest.raises(DecodeError):
        load_image(path)
