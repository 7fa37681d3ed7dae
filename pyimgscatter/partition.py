"""Row partitioning for the scatter/gather round.

Every rank derives its own source and destination rows from
``(rank, total_rows, worker_count)`` alone. The manager builds its
count/displacement tables from the very same functions, so the two views
cannot disagree.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from pyimgscatter.utils.param_check import check_int


class DestinationPolicy(str, Enum):
    """How output rows are shared out between ranks."""

    # Boundaries at target * source_start // H; counts always sum to target.
    EXACT = "exact"
    # target * source_count // H per rank; may lose rows to integer division.
    PROPORTIONAL = "proportional"


def parse_destination_policy(raw: str | DestinationPolicy) -> DestinationPolicy:
    if isinstance(raw, DestinationPolicy):
        return raw
    try:
        return DestinationPolicy(str(raw).strip().lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in DestinationPolicy)
        raise ValueError(f"Unknown destination policy: {raw!r}. Choose from: {choices}") from exc


@dataclass(frozen=True)
class RowRange:
    """A contiguous block of rows ``[start, start + count)``."""

    start: int
    count: int

    @property
    def stop(self) -> int:
        return int(self.start + self.count)

    @property
    def is_empty(self) -> bool:
        return self.count == 0


def _check_topology(rank: int, total_rows: int, worker_count: int) -> tuple[int, int, int]:
    n = check_int(worker_count, 1, param_name="worker_count")
    h = check_int(total_rows, 0, param_name="total_rows")
    r = check_int(rank, 0, n - 1, param_name="rank")
    return r, h, n


def row_range(rank: int, total_rows: int, worker_count: int) -> RowRange:
    """Source rows owned by `rank`.

    Each rank gets ``H // N`` rows; the first ``H % N`` ranks get one more.
    When ``N > H`` the trailing ranks get an empty range.
    """

    r, h, n = _check_topology(rank, total_rows, worker_count)
    base, remainder = divmod(h, n)
    count = base + (1 if r < remainder else 0)
    start = r * base + min(r, remainder)
    return RowRange(start=start, count=count)


def plan_rows(total_rows: int, worker_count: int) -> tuple[RowRange, ...]:
    """Source row table for every rank, in rank order."""

    n = check_int(worker_count, 1, param_name="worker_count")
    return tuple(row_range(r, total_rows, n) for r in range(n))


def proportional_out_rows(target_rows: int, in_rows: int, total_rows: int) -> int:
    """Output rows for a slab of `in_rows`, scaled by ``target / total`` with floor division."""

    if total_rows <= 0:
        return 0
    return (int(target_rows) * int(in_rows)) // int(total_rows)


def dest_row_range(
    rank: int,
    total_rows: int,
    target_rows: int,
    worker_count: int,
    *,
    policy: str | DestinationPolicy = DestinationPolicy.EXACT,
) -> RowRange:
    """Destination (output) rows written by `rank`."""

    r, h, n = _check_topology(rank, total_rows, worker_count)
    t = check_int(target_rows, 0, param_name="target_rows")
    mode = parse_destination_policy(policy)

    if h == 0:
        return RowRange(start=0, count=0)

    if mode is DestinationPolicy.EXACT:
        src = row_range(r, h, n)
        start = (t * src.start) // h
        stop = (t * src.stop) // h
        return RowRange(start=start, count=stop - start)

    start = sum(proportional_out_rows(t, row_range(i, h, n).count, h) for i in range(r))
    count = proportional_out_rows(t, row_range(r, h, n).count, h)
    return RowRange(start=start, count=count)


def byte_tables(ranges: Sequence[RowRange], row_bytes: int) -> tuple[list[int], list[int]]:
    """Per-rank byte counts and displacements for a flat row-major buffer."""

    stride = check_int(row_bytes, 0, param_name="row_bytes")
    counts = [int(rr.count) * stride for rr in ranges]
    displs = [int(rr.start) * stride for rr in ranges]
    return counts, displs


@dataclass(frozen=True)
class PartitionPlan:
    """Source and destination row tables for one round."""

    total_rows: int
    target_rows: int
    worker_count: int
    policy: DestinationPolicy
    source: tuple[RowRange, ...]
    dest: tuple[RowRange, ...]

    @classmethod
    def build(
        cls,
        total_rows: int,
        target_rows: int,
        worker_count: int,
        *,
        policy: str | DestinationPolicy = DestinationPolicy.EXACT,
    ) -> "PartitionPlan":
        mode = parse_destination_policy(policy)
        n = check_int(worker_count, 1, param_name="worker_count")
        source = plan_rows(total_rows, n)
        dest = tuple(
            dest_row_range(r, total_rows, target_rows, n, policy=mode) for r in range(n)
        )
        return cls(
            total_rows=int(total_rows),
            target_rows=int(target_rows),
            worker_count=n,
            policy=mode,
            source=source,
            dest=dest,
        )

    @property
    def dest_rows(self) -> int:
        return int(sum(rr.count for rr in self.dest))

    @property
    def shortfall_rows(self) -> int:
        """Target rows that no rank produces (non-zero only for the proportional policy)."""

        return int(self.target_rows - self.dest_rows)

    def source_bytes(self, row_bytes: int) -> tuple[list[int], list[int]]:
        return byte_tables(self.source, row_bytes)

    def dest_bytes(self, row_bytes: int) -> tuple[list[int], list[int]]:
        return byte_tables(self.dest, row_bytes)

    def describe(self) -> list[dict[str, int]]:
        """One JSON-friendly row per rank, used by logs and run reports."""

        return [
            {
                "rank": r,
                "source_start": src.start,
                "source_rows": src.count,
                "dest_start": dst.start,
                "dest_rows": dst.count,
            }
            for r, (src, dst) in enumerate(zip(self.source, self.dest))
        ]
