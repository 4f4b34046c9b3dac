"""
Ranking — Tie-aware (standard competition) ranking utilities.

Equivalent to SQL ``RANK() OVER (PARTITION BY ... ORDER BY ... DESC)``:
equal values share a rank and the next rank skips by the tie-group size
(90, 90, 80 → 1, 1, 3). Rows with a missing ordering value get <NA>.
"""

from __future__ import annotations

import pandas as pd


def competition_rank(
    df: pd.DataFrame,
    value_column: str,
    rank_column: str,
    partition_by: str | list[str] | None = None,
    ascending: bool = False,
) -> pd.DataFrame:
    """
    Add *rank_column* ranking rows by *value_column*, optionally per partition.

    Args:
        df:           Input DataFrame (not mutated).
        value_column: Column to order by.
        rank_column:  Name of the rank column to add.
        partition_by: Column(s) defining independent ranking groups.
        ascending:    Rank smallest values first. Defaults to largest first.

    Returns:
        A new DataFrame with the rank column (nullable Int64) added.
    """
    out = df.copy()
    if out.empty:
        out[rank_column] = pd.Series(dtype="Int64")
        return out

    # Nullable Int64 / object columns rank as float; <NA> becomes NaN
    keyed = out.assign(_rank_value=pd.to_numeric(out[value_column], errors="coerce").astype("float64"))
    if partition_by is None:
        ranks = keyed["_rank_value"].rank(method="min", ascending=ascending, na_option="keep")
    else:
        ranks = keyed.groupby(partition_by, dropna=True, sort=False)["_rank_value"].rank(
            method="min", ascending=ascending, na_option="keep",
        )

    out[rank_column] = ranks.astype("Int64")
    return out


def top_n(df: pd.DataFrame, column: str, n: int, ascending: bool = False) -> pd.DataFrame:
    """
    First *n* rows ordered by *column* (ORDER BY ... LIMIT n).

    The sort is stable, so rows tied on *column* keep their input order.
    Rows with a missing *column* value sort last.
    """
    if n <= 0:
        return df.iloc[0:0].copy()
    ordered = df.sort_values(column, ascending=ascending, kind="mergesort", na_position="last")
    return ordered.head(n).reset_index(drop=True)
