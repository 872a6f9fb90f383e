"""
Window Helpers

Sorted-sequence equivalents of the SQL window functions the reports rely on
(NTILE, LAG, cumulative SUM OVER). Callers sort the frame with a full
tie-break first; these helpers only number or accumulate rows in order.
"""

from typing import List, Sequence, Union

import polars as pl

# Half-up rounding of reported figures, as SQL ROUND does
ROUNDING = "half_away_from_zero"


def ntile(n_rows: int, buckets: int) -> List[int]:
    """
    Bucket numbers for n_rows ordered rows, as SQL NTILE(buckets).

    The first n_rows % buckets buckets receive one extra row, so bucket
    sizes differ by at most one and bucket 1 is never smaller than the rest.
    """
    if buckets < 1:
        raise ValueError("buckets must be positive")

    size, extra = divmod(n_rows, buckets)
    result = []
    for bucket in range(1, buckets + 1):
        count = size + 1 if bucket <= extra else size
        result.extend([bucket] * count)
    return result


def with_ntile(df: pl.DataFrame, buckets: int, name: str = "ntile") -> pl.DataFrame:
    """Attach NTILE bucket numbers to an already ordered frame"""
    return df.with_columns(
        pl.Series(name, ntile(df.height, buckets), dtype=pl.Int64)
    )


def ranked(
    df: pl.DataFrame,
    by: Union[str, Sequence[str]],
    descending: Union[bool, Sequence[bool]],
    tie_break: str,
) -> pl.DataFrame:
    """Sort by the given keys with a final ascending tie-break column"""
    by = [by] if isinstance(by, str) else list(by)
    if isinstance(descending, bool):
        descending = [descending] * len(by)
    return df.sort(
        by + [tie_break],
        descending=list(descending) + [False],
        nulls_last=True,
    )
