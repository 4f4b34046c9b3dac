"""
Warehouse Performance Metrics — Bottlenecks, shipment volume, on-time ranking.

Processing-time bottlenecks are read from the warehouses table alone;
volume and reliability come from the orders that reference each warehouse.
A warehouse with no orders has no volume or on-time figure and is skipped.
"""

from __future__ import annotations

import pandas as pd

from ..core import columns as c
from ..core.cleaning import is_status
from ..core.enums import DeliveryStatus
from ..core.ranking import competition_rank, top_n
from ..dataset import LogisticsDataset


TOTAL_ORDERS = "Total_Orders"
DELAYED_ORDERS = "Delayed_Orders"
ON_TIME_PCT = "On_Time_Delivery_Percentage"
WAREHOUSE_RANK = "Warehouse_Rank"

_BASE_COLUMNS = [c.WAREHOUSE_ID, c.LOCATION, c.PROCESSING_TIME_MIN]


def _processing_times(warehouses: pd.DataFrame) -> pd.DataFrame:
    out = warehouses[_BASE_COLUMNS].copy()
    out[c.PROCESSING_TIME_MIN] = pd.to_numeric(out[c.PROCESSING_TIME_MIN], errors="coerce")
    return out.dropna(subset=[c.PROCESSING_TIME_MIN])


def calculate_slowest_warehouses(data: LogisticsDataset, n: int = 3) -> pd.DataFrame:
    """
    The *n* warehouses with the highest processing time.

    Returns:
        DataFrame [Warehouse_ID, Location, Processing_Time_Min], descending.
    """
    return top_n(_processing_times(data.warehouses), c.PROCESSING_TIME_MIN, n)


def calculate_warehouse_volume(data: LogisticsDataset) -> pd.DataFrame:
    """
    Total vs delayed shipments per warehouse.

    Returns:
        DataFrame [Warehouse_ID, Total_Orders, Delayed_Orders]
    """
    orders = data.orders[[c.WAREHOUSE_ID, c.DELIVERY_STATUS]]
    orders = orders[orders[c.WAREHOUSE_ID].notna()]
    if orders.empty:
        return pd.DataFrame(columns=[c.WAREHOUSE_ID, TOTAL_ORDERS, DELAYED_ORDERS])

    flagged = orders.assign(
        _delayed=is_status(orders[c.DELIVERY_STATUS], DeliveryStatus.DELAYED).astype(int)
    )
    return flagged.groupby(c.WAREHOUSE_ID).agg(
        **{TOTAL_ORDERS: ("_delayed", "size"), DELAYED_ORDERS: ("_delayed", "sum")}
    ).reset_index()


def calculate_bottleneck_warehouses(data: LogisticsDataset) -> dict:
    """
    Warehouses whose processing time is strictly above the global average.

    Returns:
        {
          "global_avg_time": 42.5,            # None when no warehouse has a time
          "warehouses": DataFrame [Warehouse_ID, Location, Processing_Time_Min]
        }
    """
    times = _processing_times(data.warehouses)
    if times.empty:
        return {"global_avg_time": None, "warehouses": times.reset_index(drop=True)}

    global_avg = float(times[c.PROCESSING_TIME_MIN].mean())
    above = times[times[c.PROCESSING_TIME_MIN] > global_avg]
    return {
        "global_avg_time": round(global_avg, 2),
        "warehouses": above.reset_index(drop=True),
    }


def calculate_warehouse_on_time_ranking(data: LogisticsDataset) -> pd.DataFrame:
    """
    On-time delivery percentage per warehouse, ranked best first (ties share a rank).

    Returns:
        DataFrame [Warehouse_ID, On_Time_Delivery_Percentage, Warehouse_Rank]
    """
    orders = data.orders[[c.WAREHOUSE_ID, c.DELIVERY_STATUS]]
    orders = orders[orders[c.WAREHOUSE_ID].notna()]
    if orders.empty:
        return pd.DataFrame(columns=[c.WAREHOUSE_ID, ON_TIME_PCT, WAREHOUSE_RANK])

    flagged = orders.assign(
        _on_time=is_status(orders[c.DELIVERY_STATUS], DeliveryStatus.ON_TIME).astype(int)
    )
    grouped = flagged.groupby(c.WAREHOUSE_ID)["_on_time"].agg(["sum", "size"]).reset_index()
    # Rank on the unrounded ratio, report the rounded one
    grouped["_ratio"] = grouped["sum"] * 100.0 / grouped["size"]
    grouped[ON_TIME_PCT] = grouped["_ratio"].round(2)

    ranked = competition_rank(grouped, "_ratio", WAREHOUSE_RANK)
    ranked = ranked.sort_values([WAREHOUSE_RANK, c.WAREHOUSE_ID], kind="mergesort")
    return ranked[[c.WAREHOUSE_ID, ON_TIME_PCT, WAREHOUSE_RANK]].reset_index(drop=True)
