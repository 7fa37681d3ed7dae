from __future__ import annotations

import numpy as np
import pytest

from pyimgscatter.comm.local import LocalProcessGroup
from pyimgscatter.distribute import gather_slabs, scatter_slabs
from pyimgscatter.errors import GroupAborted, ProtocolError
from pyimgscatter.partition import PartitionPlan
from pyimgscatter.raster import RasterImage, Slab

# Targets live at module level so every multiprocessing start method can pickle them.


def _bcast_then_scatter_gather(comm, total: int):
    counts = [total // comm.size + (1 if r < total % comm.size else 0) for r in range(comm.size)]
    displs = [sum(counts[:r]) for r in range(comm.size)]

    token = comm.bcast("hello" if comm.rank == 0 else None)
    assert token == "hello"

    sendbuf = np.arange(total, dtype=np.uint8) if comm.rank == 0 else None
    recvbuf = np.empty(counts[comm.rank], dtype=np.uint8)
    comm.scatterv(sendbuf, counts, displs, recvbuf)

    recvbuf += np.uint8(100)
    gathered = np.zeros(total, dtype=np.uint8) if comm.rank == 0 else None
    comm.gatherv(recvbuf, gathered, counts, displs)
    return gathered


def _scatter_gather_slabs(comm, pixels):
    image = RasterImage(pixels) if comm.rank == 0 else None
    height, width, channels = pixels.shape
    plan = PartitionPlan.build(height, height, comm.size)
    slab = scatter_slabs(comm, image, plan, width=width, channels=channels)
    assert slab.start_row == plan.source[comm.rank].start
    assert slab.rows == plan.source[comm.rank].count
    return gather_slabs(comm, slab, plan, width=width, channels=channels)


def _abort_on_root(comm):
    if comm.rank == 0:
        comm.abort(3, reason=ValueError("boom"))
    comm.bcast(None)


def _fail_on_rank_one(comm):
    if comm.rank == 1:
        raise RuntimeError("worker crashed")
    out = np.zeros(comm.size, dtype=np.uint8) if comm.rank == 0 else None
    comm.gatherv(np.ones(1, dtype=np.uint8), out, [1] * comm.size, list(range(comm.size)))
    return out


def _mismatched_counts(comm):
    sendbuf = np.zeros(8, dtype=np.uint8) if comm.rank == 0 else None
    # Root believes rank 1 gets 5 bytes; rank 1 only expects 3.
    recvbuf = np.empty(3, dtype=np.uint8)
    comm.scatterv(sendbuf, [3, 5], [0, 3], recvbuf)
    comm.gatherv(recvbuf, np.zeros(6, dtype=np.uint8) if comm.rank == 0 else None, [3, 3], [0, 3])


@pytest.mark.parametrize("size", [1, 2, 3, 5])
def test_collectives_move_bytes_in_rank_order(size: int) -> None:
    gathered = LocalProcessGroup(size).run(_bcast_then_scatter_gather, 11)
    assert gathered.tolist() == [100 + i for i in range(11)]


@pytest.mark.parametrize("size", [1, 3, 4])
def test_slab_scatter_gather_reconstructs_image(size: int) -> None:
    pixels = np.arange(3 * 2 * 3, dtype=np.uint8).reshape(3, 2, 3)
    gathered = LocalProcessGroup(size).run(_scatter_gather_slabs, pixels)
    np.testing.assert_array_equal(gathered, pixels.reshape(-1))


def test_root_abort_tears_down_the_group() -> None:
    with pytest.raises(GroupAborted) as exc:
        LocalProcessGroup(3).run(_abort_on_root)
    assert exc.value.errorcode == 3
    assert isinstance(exc.value.__cause__, ValueError)


def test_worker_failure_unblocks_the_root() -> None:
    with pytest.raises(GroupAborted):
        LocalProcessGroup(3).run(_fail_on_rank_one)


def test_byte_count_mismatch_is_detected() -> None:
    with pytest.raises(GroupAborted):
        LocalProcessGroup(2).run(_mismatched_counts)


def test_scatter_rejects_tables_outside_the_buffer() -> None:
    with pytest.raises(ProtocolError):
        LocalProcessGroup(1).run(
            lambda comm: comm.scatterv(
                np.zeros(2, dtype=np.uint8), [4], [0], np.empty(4, dtype=np.uint8)
            )
        )


def test_group_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        LocalProcessGroup(0)


def test_gather_rejects_slab_that_does_not_match_plan() -> None:
    plan = PartitionPlan.build(2, 2, 1)
    slab = Slab(rank=0, start_row=0, pixels=np.zeros((1, 2, 3), dtype=np.uint8))
    with pytest.raises(ValueError, match="plan expects"):
        LocalProcessGroup(1).run(
            lambda comm: gather_slabs(comm, slab, plan, width=2, channels=3)
        )
