from __future__ import annotations

import pytest

from pyimgscatter.partition import (
    DestinationPolicy,
    PartitionPlan,
    RowRange,
    byte_tables,
    dest_row_range,
    plan_rows,
    proportional_out_rows,
    row_range,
)


def test_row_range_spreads_remainder_over_leading_ranks() -> None:
    assert [row_range(r, 10, 3) for r in range(3)] == [
        RowRange(start=0, count=4),
        RowRange(start=4, count=3),
        RowRange(start=7, count=3),
    ]


@pytest.mark.parametrize("total_rows", list(range(0, 41)))
@pytest.mark.parametrize("workers", list(range(1, 13)))
def test_row_ranges_cover_every_row_exactly_once(total_rows: int, workers: int) -> None:
    table = plan_rows(total_rows, workers)
    assert len(table) == workers
    assert sum(rr.count for rr in table) == total_rows

    cursor = 0
    for rank, rr in enumerate(table):
        assert rr.start == cursor
        assert rr == row_range(rank, total_rows, workers)
        cursor = rr.stop
    assert cursor == total_rows


def test_more_workers_than_rows_gives_empty_trailing_ranges() -> None:
    table = plan_rows(2, 3)
    assert [rr.count for rr in table] == [1, 1, 0]
    assert table[2].is_empty
    assert table[2].start == 2


def test_row_range_rejects_bad_topology() -> None:
    with pytest.raises(ValueError, match="worker_count"):
        row_range(0, 10, 0)
    with pytest.raises(ValueError, match="rank"):
        row_range(3, 10, 3)
    with pytest.raises(ValueError, match="total_rows"):
        row_range(0, -1, 2)
    with pytest.raises(TypeError):
        row_range(0, 10.0, 2)  # type: ignore[arg-type]


def test_proportional_out_rows_loses_remainder_rows() -> None:
    # H=10 split 4/3/3 scaled to 7: 28//10 + 21//10 + 21//10 = 2 + 2 + 2 = 6
    counts = [proportional_out_rows(7, rr.count, 10) for rr in plan_rows(10, 3)]
    assert counts == [2, 2, 2]
    assert sum(counts) == 6

    plan = PartitionPlan.build(10, 7, 3, policy="proportional")
    assert plan.dest_rows == 6
    assert plan.shortfall_rows == 1


def test_proportional_sum_matches_target_only_sometimes() -> None:
    mismatches = []
    for h in range(1, 13):
        for n in range(1, 6):
            for target in range(0, 15):
                plan = PartitionPlan.build(h, target, n, policy=DestinationPolicy.PROPORTIONAL)
                if plan.dest_rows != target:
                    mismatches.append((h, n, target))
                assert plan.dest_rows <= target
    assert (10, 3, 7) in mismatches
    # A single worker never loses rows.
    assert all(n > 1 for _h, n, _t in mismatches)


@pytest.mark.parametrize("total_rows", [1, 2, 5, 10, 17])
@pytest.mark.parametrize("workers", [1, 2, 3, 7, 20])
@pytest.mark.parametrize("target_rows", [0, 1, 3, 7, 10, 31])
def test_exact_destination_ranges_tile_the_target(
    total_rows: int, workers: int, target_rows: int
) -> None:
    plan = PartitionPlan.build(total_rows, target_rows, workers)
    assert plan.policy is DestinationPolicy.EXACT
    assert plan.dest_rows == target_rows
    assert plan.shortfall_rows == 0

    cursor = 0
    for rank, (src, dst) in enumerate(zip(plan.source, plan.dest)):
        assert dst.start == cursor
        assert dst == dest_row_range(rank, total_rows, target_rows, workers)
        if src.count == 0:
            assert dst.count == 0
        cursor = dst.stop
    assert cursor == target_rows


def test_identity_target_keeps_source_ranges() -> None:
    plan = PartitionPlan.build(10, 10, 3)
    assert plan.dest == plan.source


def test_byte_tables_scale_rows_by_row_bytes() -> None:
    counts, displs = byte_tables(plan_rows(5, 2), row_bytes=6)
    assert counts == [18, 12]
    assert displs == [0, 18]

    plan = PartitionPlan.build(2, 2, 3)
    assert plan.source_bytes(6) == ([6, 6, 0], [0, 6, 12])


def test_describe_lists_every_rank() -> None:
    rows = PartitionPlan.build(2, 4, 3).describe()
    assert [r["rank"] for r in rows] == [0, 1, 2]
    assert [r["dest_rows"] for r in rows] == [2, 2, 0]


def test_unknown_policy_raises() -> None:
    with pytest.raises(ValueError, match="destination policy"):
        PartitionPlan.build(4, 4, 2, policy="balanced")
