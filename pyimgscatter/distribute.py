"""The two collective steps of a round: scatter source slabs, gather result slabs.

Both functions must be called by every rank of the group, the manager
included. Byte counts and displacements are derived from the shared
`PartitionPlan`, so the root's tables always match what each rank expects.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from pyimgscatter.comm.base import Communicator
from pyimgscatter.partition import PartitionPlan
from pyimgscatter.raster import RasterImage, Slab

logger = logging.getLogger(__name__)


def scatter_slabs(
    comm: Communicator,
    image: Optional[RasterImage],
    plan: PartitionPlan,
    *,
    width: int,
    channels: int,
    root: int = 0,
) -> Slab:
    """Deliver each rank its source rows; returns the caller's own `Slab`."""

    row_bytes = int(width) * int(channels)
    own = plan.source[comm.rank]
    recvbuf = np.empty(own.count * row_bytes, dtype=np.uint8)

    sendbuf: Optional[NDArray] = None
    counts, displs = plan.source_bytes(row_bytes)
    if comm.rank == root:
        if image is None:
            raise ValueError("the root rank must provide the source image")
        if image.height != plan.total_rows or image.row_bytes != row_bytes:
            raise ValueError(
                f"image {image.width}x{image.height}x{image.channels} does not match the "
                f"plan ({plan.total_rows} rows of {row_bytes} bytes)"
            )
        sendbuf = np.ascontiguousarray(image.buffer)

    comm.scatterv(sendbuf, counts, displs, recvbuf, root=root)
    logger.debug("rank %d received %d source rows", comm.rank, own.count)
    return Slab.from_buffer(
        recvbuf,
        rank=comm.rank,
        start_row=own.start,
        rows=own.count,
        width=width,
        channels=channels,
    )


def gather_slabs(
    comm: Communicator,
    slab: Slab,
    plan: PartitionPlan,
    *,
    width: int,
    channels: int,
    root: int = 0,
) -> Optional[NDArray]:
    """Collect every rank's result slab on the root, in ascending rank order.

    Returns the root's flat buffer of ``W * sum(dest rows) * C`` bytes, or
    ``None`` on other ranks.
    """

    row_bytes = int(width) * int(channels)
    expected = plan.dest[comm.rank]
    if slab.rows != expected.count or slab.nbytes != expected.count * row_bytes:
        raise ValueError(
            f"rank {comm.rank} produced {slab.rows} rows, the plan expects {expected.count}"
        )

    counts, displs = plan.dest_bytes(row_bytes)
    recvbuf: Optional[NDArray] = None
    if comm.rank == root:
        recvbuf = np.zeros(plan.dest_rows * row_bytes, dtype=np.uint8)

    comm.gatherv(np.ascontiguousarray(slab.flat()), recvbuf, counts, displs, root=root)
    return recvbuf
