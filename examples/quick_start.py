"""
Quick start for pyimgscatter.

Writes a small gradient image, then resizes it to half height and inverts it
across four local worker processes.
"""

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from pyimgscatter import RunConfig, run


def main():
    """Run the quick start example."""
    logging.basicConfig(level=logging.INFO, format="%(processName)s %(levelname)s: %(message)s")

    workdir = Path("quick_start_out")
    workdir.mkdir(exist_ok=True)

    src = workdir / "gradient.png"
    pixels = np.zeros((240, 320, 3), dtype=np.uint8)
    pixels[:, :, 0] = np.linspace(0, 255, 240, dtype=np.uint8)[:, np.newaxis]
    pixels[:, :, 2] = np.linspace(255, 0, 320, dtype=np.uint8)[np.newaxis, :]
    Image.fromarray(pixels).save(src)

    config = RunConfig(
        input_path=str(src),
        output_path=str(workdir / "gradient_small_inverted.png"),
        filter="invert",
        target_height=120,
        workers=4,
    )
    result = run(config)

    print(f"Output: {result.output_path} ({result.image.width}x{result.image.height})")
    for row in result.plan.describe():
        print(
            f"  rank {row['rank']}: source rows {row['source_start']}+{row['source_rows']}"
            f" -> output rows {row['dest_start']}+{row['dest_rows']}"
        )


if __name__ == "__main__":
    main()
