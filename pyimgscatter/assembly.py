from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from pyimgscatter.partition import PartitionPlan
from pyimgscatter.raster import RasterImage

logger = logging.getLogger(__name__)


def assemble_output(
    gathered: NDArray,
    plan: PartitionPlan,
    *,
    width: int,
    channels: int,
) -> RasterImage:
    """Build the output image from the root's gathered buffer.

    The result always holds ``width * plan.target_rows * channels`` bytes.
    Gathered rows fill the image from the top in rank order; rows that no rank
    produced (only possible with the proportional destination policy) are
    left black.
    """

    row_bytes = int(width) * int(channels)
    flat = np.asarray(gathered, dtype=np.uint8).reshape(-1)
    if flat.size != plan.dest_rows * row_bytes:
        raise ValueError(
            f"gathered {flat.size} bytes, expected {plan.dest_rows} rows of {row_bytes} bytes"
        )

    out = np.zeros(plan.target_rows * row_bytes, dtype=np.uint8)
    out[: flat.size] = flat
    if plan.shortfall_rows > 0:
        logger.warning(
            "%d of %d output rows were not produced by any rank (policy=%s); filled with zeros",
            plan.shortfall_rows,
            plan.target_rows,
            plan.policy.value,
        )

    return RasterImage.from_buffer(
        out, width=int(width), height=plan.target_rows, channels=int(channels)
    )
