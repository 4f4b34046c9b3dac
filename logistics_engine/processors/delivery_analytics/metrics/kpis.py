"""
Advanced KPI Reporting — Regional delay, overall on-time %, traffic delay per route.
"""

from __future__ import annotations

import pandas as pd

from ..core import columns as c
from ..core.cleaning import is_status
from ..core.enums import DeliveryStatus
from ..dataset import LogisticsDataset
from .delays import late_orders


AVG_REGIONAL_DELAY = "Avg_Delivery_Delay_Days"
AVG_TRAFFIC_DELAY = "Avg_Traffic_Delay_Min"


def calculate_regional_delay(data: LogisticsDataset) -> pd.DataFrame:
    """
    Average delay of late orders grouped by the route's start location.

    Orders whose route is not in the routes table are excluded.

    Returns:
        DataFrame [Start_Location, Avg_Delivery_Delay_Days]
    """
    late = late_orders(data.orders)
    joined = late.merge(
        data.routes[[c.ROUTE_ID, c.START_LOCATION]].drop_duplicates(c.ROUTE_ID),
        on=c.ROUTE_ID,
        how="inner",
    )
    joined = joined[joined[c.START_LOCATION].notna()]
    if joined.empty:
        return pd.DataFrame(columns=[c.START_LOCATION, AVG_REGIONAL_DELAY])

    return (
        joined.groupby(c.START_LOCATION)["_delta"]
        .mean()
        .round(2)
        .rename(AVG_REGIONAL_DELAY)
        .reset_index()
    )


def calculate_on_time_percentage(data: LogisticsDataset) -> float | None:
    """
    Overall on-time delivery percentage (2 dp). None when there are no orders.
    """
    statuses = data.orders[c.DELIVERY_STATUS]
    if len(statuses) == 0:
        return None
    on_time = int(is_status(statuses, DeliveryStatus.ON_TIME).sum())
    return round(on_time * 100.0 / len(statuses), 2)


def calculate_route_traffic_delay(data: LogisticsDataset) -> pd.DataFrame:
    """
    Average Traffic_Delay_Min per route.

    With one row per route this equals the stored value; repeated route rows
    (multiple measurements) are averaged. Missing measurements are ignored and
    routes with none at all are skipped.

    Returns:
        DataFrame [Route_ID, Avg_Traffic_Delay_Min]
    """
    routes = data.routes[[c.ROUTE_ID, c.TRAFFIC_DELAY_MIN]].copy()
    routes[c.TRAFFIC_DELAY_MIN] = pd.to_numeric(routes[c.TRAFFIC_DELAY_MIN], errors="coerce")
    routes = routes.dropna(subset=[c.ROUTE_ID, c.TRAFFIC_DELAY_MIN])
    if routes.empty:
        return pd.DataFrame(columns=[c.ROUTE_ID, AVG_TRAFFIC_DELAY])

    return (
        routes.groupby(c.ROUTE_ID)[c.TRAFFIC_DELAY_MIN]
        .mean()
        .round(2)
        .rename(AVG_TRAFFIC_DELAY)
        .reset_index()
    )
