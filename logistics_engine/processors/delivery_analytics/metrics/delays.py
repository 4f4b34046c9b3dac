"""
Delivery Delay Metrics — Per-order delay, worst routes, per-warehouse ranking.

Delay is measured in calendar days between the expected and the actual
delivery date. The per-order figure is floored at zero (early deliveries are
not "negative delay"); route averages only consider late orders and use the
signed delta.
"""

from __future__ import annotations

import pandas as pd

from ..core import columns as c
from ..core.cleaning import day_delta
from ..core.ranking import competition_rank, top_n
from ..dataset import LogisticsDataset


DELAY_DAYS = "Delivery_Delay_Days"
AVG_DELAY_DAYS = "Avg_Delay_Days"
DELAY_RANK = "Delay_Rank_In_Warehouse"


def late_orders(orders: pd.DataFrame) -> pd.DataFrame:
    """
    Orders delivered after their expected date, with the signed delta in '_delta'.

    Orders missing either date are excluded.
    """
    delta = day_delta(orders[c.ACTUAL_DATE], orders[c.EXPECTED_DATE])
    late = orders[delta > 0].copy()
    late["_delta"] = delta[delta > 0]
    return late


def calculate_delivery_delays(data: LogisticsDataset) -> pd.DataFrame:
    """
    Delivery delay in days for every order: max(0, actual − expected).

    Returns:
        DataFrame with columns
        Order_ID, Route_ID, Warehouse_ID, Expected_Delivery_Date,
        Actual_Delivery_Date, Delivery_Delay_Days (nullable Int64; <NA>
        when a date is missing).
    """
    orders = data.orders
    out = orders[[
        c.ORDER_ID, c.ROUTE_ID, c.WAREHOUSE_ID, c.EXPECTED_DATE, c.ACTUAL_DATE,
    ]].copy()
    delta = day_delta(orders[c.ACTUAL_DATE], orders[c.EXPECTED_DATE])
    out[DELAY_DAYS] = delta.clip(lower=0).astype("Int64")
    return out.reset_index(drop=True)


def calculate_top_delayed_routes(data: LogisticsDataset, n: int = 10) -> pd.DataFrame:
    """
    Routes with the highest average delay, late orders only.

    Returns:
        DataFrame [Route_ID, Avg_Delay_Days] — top *n*, descending.
    """
    late = late_orders(data.orders)
    if late.empty:
        return pd.DataFrame(columns=[c.ROUTE_ID, AVG_DELAY_DAYS])

    grouped = (
        late.groupby(c.ROUTE_ID)["_delta"]
        .mean()
        .round(2)
        .rename(AVG_DELAY_DAYS)
        .reset_index()
    )
    return top_n(grouped, AVG_DELAY_DAYS, n)


def calculate_warehouse_delay_ranking(data: LogisticsDataset) -> pd.DataFrame:
    """
    Rank orders by delivery delay within each warehouse (ties share a rank).

    Returns:
        DataFrame [Order_ID, Warehouse_ID, Route_ID, Delivery_Delay_Days,
        Delay_Rank_In_Warehouse], ordered by warehouse then rank.
    """
    delays = calculate_delivery_delays(data)
    delays = delays[[c.ORDER_ID, c.WAREHOUSE_ID, c.ROUTE_ID, DELAY_DAYS]]
    delays = delays[delays[c.WAREHOUSE_ID].notna()]

    ranked = competition_rank(delays, DELAY_DAYS, DELAY_RANK, partition_by=c.WAREHOUSE_ID)
    return ranked.sort_values(
        [c.WAREHOUSE_ID, DELAY_RANK], kind="mergesort", na_position="last",
    ).reset_index(drop=True)
