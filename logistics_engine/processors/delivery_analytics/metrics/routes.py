"""
Route Optimization Metrics — Delivery time, efficiency ratio, delayed share.

Efficiency ratio = Distance_KM / Average_Travel_Time_Min (km per minute).
Higher is better; a low ratio means a route takes long per kilometre
travelled (congestion, poor infrastructure or planning issues).

Routes whose travel time is zero or missing have no defined ratio and are
left out of the efficiency outputs.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..core import columns as c
from ..core.cleaning import day_delta, is_status
from ..core.enums import DeliveryStatus
from ..core.ranking import top_n
from ..dataset import LogisticsDataset


AVG_DELIVERY_TIME = "Avg_Delivery_Time_Days"
AVG_TRAFFIC_DELAY = "Avg_Traffic_Delay_Min"
EFFICIENCY = "Distance_Time_Efficiency"
TOTAL_ORDERS = "Total_Orders"
DELAYED_ORDERS = "Delayed_Orders"
DELAY_PCT = "Delay_Percentage"


def efficiency_ratio(routes: pd.DataFrame) -> pd.Series:
    """Distance_KM / Average_Travel_Time_Min rounded to 4 places; NaN where time is 0 or missing."""
    distance = pd.to_numeric(routes[c.DISTANCE_KM], errors="coerce")
    travel = pd.to_numeric(routes[c.TRAVEL_TIME_MIN], errors="coerce")
    ratio = distance / travel.replace(0, np.nan)
    return ratio.round(4)


def _route_attributes(routes: pd.DataFrame) -> pd.DataFrame:
    """One row per route; repeated route rows have their traffic delay and efficiency averaged."""
    routes = routes[routes[c.ROUTE_ID].notna()].copy()
    routes[EFFICIENCY] = efficiency_ratio(routes)
    routes[c.TRAFFIC_DELAY_MIN] = pd.to_numeric(routes[c.TRAFFIC_DELAY_MIN], errors="coerce")
    per_route = routes.groupby(c.ROUTE_ID, sort=True).agg(**{
        c.START_LOCATION: (c.START_LOCATION, "first"),
        c.END_LOCATION: (c.END_LOCATION, "first"),
        AVG_TRAFFIC_DELAY: (c.TRAFFIC_DELAY_MIN, "mean"),
        EFFICIENCY: (EFFICIENCY, "mean"),
    }).reset_index()
    per_route[AVG_TRAFFIC_DELAY] = per_route[AVG_TRAFFIC_DELAY].round(2)
    per_route[EFFICIENCY] = per_route[EFFICIENCY].round(4)
    return per_route


def calculate_route_performance(data: LogisticsDataset) -> pd.DataFrame:
    """
    Per-route delivery time, traffic delay and efficiency ratio.

    Only routes with at least one order (inner join) and a defined
    average delivery time / efficiency are reported. A route stored on
    several rows is reported once, with its measurements averaged.

    Returns:
        DataFrame [Route_ID, Start_Location, End_Location,
        Avg_Delivery_Time_Days, Avg_Traffic_Delay_Min, Distance_Time_Efficiency]
    """
    out_columns = [
        c.ROUTE_ID, c.START_LOCATION, c.END_LOCATION,
        AVG_DELIVERY_TIME, AVG_TRAFFIC_DELAY, EFFICIENCY,
    ]

    orders = data.orders[[c.ROUTE_ID, c.ORDER_DATE, c.ACTUAL_DATE]].copy()
    orders["_delivery_days"] = day_delta(orders[c.ACTUAL_DATE], orders[c.ORDER_DATE])
    delivery_days = (
        orders.groupby(c.ROUTE_ID)["_delivery_days"]
        .mean()
        .round(2)
        .rename(AVG_DELIVERY_TIME)
        .reset_index()
    )

    joined = _route_attributes(data.routes).merge(delivery_days, on=c.ROUTE_ID, how="inner")
    joined = joined.dropna(subset=[AVG_DELIVERY_TIME, EFFICIENCY])
    if joined.empty:
        return pd.DataFrame(columns=out_columns)
    return joined[out_columns].reset_index(drop=True)


def calculate_least_efficient_routes(data: LogisticsDataset, n: int = 3) -> pd.DataFrame:
    """
    The *n* routes with the lowest distance-to-time efficiency.

    Returns:
        DataFrame [Route_ID, Start_Location, End_Location, Distance_Time_Efficiency]
    """
    routes = data.routes[[c.ROUTE_ID, c.START_LOCATION, c.END_LOCATION]].copy()
    routes[EFFICIENCY] = efficiency_ratio(data.routes)
    routes = routes.dropna(subset=[EFFICIENCY])
    return top_n(routes, EFFICIENCY, n, ascending=True)


def calculate_route_delay_share(data: LogisticsDataset) -> pd.DataFrame:
    """
    Total / delayed order counts and delayed percentage for every route.

    Returns:
        DataFrame [Route_ID, Total_Orders, Delayed_Orders, Delay_Percentage]
    """
    orders = data.orders[[c.ROUTE_ID, c.DELIVERY_STATUS]].copy()
    orders = orders[orders[c.ROUTE_ID].notna()]
    if orders.empty:
        return pd.DataFrame(columns=[c.ROUTE_ID, TOTAL_ORDERS, DELAYED_ORDERS, DELAY_PCT])

    orders["_delayed"] = is_status(orders[c.DELIVERY_STATUS], DeliveryStatus.DELAYED).astype(int)
    grouped = orders.groupby(c.ROUTE_ID).agg(
        **{TOTAL_ORDERS: ("_delayed", "size"), DELAYED_ORDERS: ("_delayed", "sum")}
    ).reset_index()
    grouped[DELAY_PCT] = (grouped[DELAYED_ORDERS] * 100.0 / grouped[TOTAL_ORDERS]).round(2)
    return grouped


def calculate_high_delay_routes(data: LogisticsDataset, threshold: float = 20.0) -> pd.DataFrame:
    """
    Routes whose delayed share (computed percentage) exceeds *threshold* percent.

    Returns:
        DataFrame [Route_ID, Total_Orders, Delayed_Orders, Delay_Percentage]
    """
    share = calculate_route_delay_share(data)
    return share[share[DELAY_PCT] > threshold].reset_index(drop=True)
