"""One distribute → compute → collect round for a single image.

`run_round` is executed by every rank of the group. Rank 0 (the manager)
does all file I/O; every other rank only ever sees its own slab.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pyimgscatter.assembly import assemble_output
from pyimgscatter.comm.base import Communicator
from pyimgscatter.comm.local import LocalProcessGroup
from pyimgscatter.config.run_config import RunConfig
from pyimgscatter.distribute import gather_slabs, scatter_slabs
from pyimgscatter.errors import ConfigError
from pyimgscatter.filters import FilterKind, apply_filter, parse_filter
from pyimgscatter.io.image import ImageCodec, load_image, save_image
from pyimgscatter.partition import DestinationPolicy, PartitionPlan
from pyimgscatter.raster import RasterImage
from pyimgscatter.resize import resize_slab

logger = logging.getLogger(__name__)

MANAGER_RANK = 0


@dataclass(frozen=True)
class RoundParams:
    """Global parameters broadcast by the manager before the scatter."""

    width: int
    height: int
    channels: int
    target_width: int
    target_height: int
    filter: FilterKind
    dest_policy: DestinationPolicy


@dataclass(frozen=True, eq=False)
class RoundResult:
    image: RasterImage
    params: RoundParams
    plan: PartitionPlan
    worker_count: int
    elapsed_seconds: float
    output_path: Optional[str] = None


def resolve_target_size(
    width: int,
    height: int,
    target_width: int,
    target_height: int,
) -> tuple[int, int]:
    """Replace 0 with the source dimension and reject width resampling.

    Only rows are resampled, so a target width must be 0 or the source width.
    """

    if target_width < 0 or target_height < 0:
        raise ConfigError(f"target size must be non-negative, got {(target_width, target_height)}")

    tw = int(width) if int(target_width) == 0 else int(target_width)
    th = int(height) if int(target_height) == 0 else int(target_height)
    if tw != int(width):
        raise ConfigError(
            f"target_width={target_width} is not supported: only the height is resampled, "
            f"so target_width must be 0 or the source width ({width})"
        )
    return tw, th


def _prepare_on_manager(
    config: RunConfig,
    codec: str | ImageCodec,
) -> tuple[RasterImage, RoundParams]:
    source = Path(config.input_path)
    if not source.is_file():
        raise ConfigError(f"Source image not found: {str(source)!r}")

    kind = parse_filter(config.filter, on_unknown=config.on_unknown_filter)  # type: ignore[arg-type]
    image = load_image(source, codec=codec)
    target_width, target_height = resolve_target_size(
        image.width, image.height, config.target_width, config.target_height
    )
    params = RoundParams(
        width=image.width,
        height=image.height,
        channels=image.channels,
        target_width=target_width,
        target_height=target_height,
        filter=kind,
        dest_policy=config.dest_policy,
    )
    return image, params


def run_round(
    comm: Communicator,
    config: RunConfig,
    *,
    codec: str | ImageCodec | None = None,
) -> Optional[RoundResult]:
    """Run one round on this rank; returns the result on the manager, ``None`` elsewhere.

    Any failure while the manager prepares the round (missing source,
    undecodable image, unknown filter, unsupported target size, missing codec
    dependency) is logged and aborts the whole group before any other rank
    enters a collective it could never leave.
    """

    started = time.perf_counter()
    image: Optional[RasterImage] = None
    params: Optional[RoundParams] = None

    if comm.rank == MANAGER_RANK:
        try:
            image, params = _prepare_on_manager(config, codec if codec is not None else config.codec)
        except Exception as exc:  # noqa: BLE001 - abort boundary
            logger.error("error: %s", exc)
            comm.abort(1, reason=exc)
        logger.info(
            "Original size: %dx%d (%.2f MB), %d channel(s)",
            image.width,
            image.height,
            image.nbytes / 1024.0 / 1024.0,
            image.channels,
        )

    params = comm.bcast(params, root=MANAGER_RANK)
    plan = PartitionPlan.build(
        params.height,
        params.target_height,
        comm.size,
        policy=params.dest_policy,
    )
    if comm.rank == MANAGER_RANK:
        for row in plan.describe():
            logger.debug("partition %s", row)

    slab = scatter_slabs(
        comm, image, plan, width=params.width, channels=params.channels, root=MANAGER_RANK
    )
    dest = plan.dest[comm.rank]
    resized = resize_slab(slab, dest.count, start_row=dest.start)
    apply_filter(resized.pixels, params.filter)
    logger.debug(
        "rank %d: %d rows -> %d rows, filter=%s",
        comm.rank,
        slab.rows,
        resized.rows,
        params.filter.value,
    )

    gathered = gather_slabs(
        comm, resized, plan, width=params.width, channels=params.channels, root=MANAGER_RANK
    )
    if comm.rank != MANAGER_RANK:
        return None

    output = assemble_output(gathered, plan, width=params.target_width, channels=params.channels)
    if config.output_path is not None:
        save_image(
            config.output_path,
            output,
            quality=config.quality,
            codec=codec if codec is not None else config.codec,
        )
        logger.info("Saved resized image to %s", config.output_path)

    elapsed = time.perf_counter() - started
    logger.info("Total processing time: %.0f ms", elapsed * 1000.0)
    logger.info("Total processes used: %d", comm.size)

    return RoundResult(
        image=output,
        params=params,
        plan=plan,
        worker_count=comm.size,
        elapsed_seconds=float(elapsed),
        output_path=config.output_path,
    )


def run(config: RunConfig, *, codec: str | ImageCodec | None = None) -> Optional[RoundResult]:
    """Run one round on the backend named by ``config.backend``."""

    if config.backend == "mpi":
        from pyimgscatter.comm.mpi import MPICommunicator

        comm = MPICommunicator()
        if config.workers not in (1, comm.size) and comm.rank == MANAGER_RANK:
            logger.warning(
                "ignoring workers=%d: the MPI group size (%d) is set by the launcher",
                config.workers,
                comm.size,
            )
        return run_round(comm, config, codec=codec)

    return LocalProcessGroup(config.workers).run(run_round, config, codec=codec)
