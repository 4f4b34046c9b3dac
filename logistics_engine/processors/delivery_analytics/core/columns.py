"""
Column Resolver — Canonical schema and flexible header detection.

The ups_logistics tables use Title_Snake_Case headers (Order_ID, Route_ID, ...).
CSV exports from other tools change spelling and casing ("Order ID",
"order_id", "OrderID"). This module centralises all column-name resolution
so metric modules only ever see the canonical names.
"""

from __future__ import annotations

import re

import pandas as pd


class SchemaError(ValueError):
    """A required column could not be resolved in an input table."""


# ----- canonical column names -----

ORDER_ID = "Order_ID"
ROUTE_ID = "Route_ID"
WAREHOUSE_ID = "Warehouse_ID"
AGENT_ID = "Agent_ID"
TRACKING_ID = "Tracking_ID"

ORDER_DATE = "Order_Date"
EXPECTED_DATE = "Expected_Delivery_Date"
ACTUAL_DATE = "Actual_Delivery_Date"
DELIVERY_STATUS = "Delivery_Status"

START_LOCATION = "Start_Location"
END_LOCATION = "End_Location"
DISTANCE_KM = "Distance_KM"
TRAVEL_TIME_MIN = "Average_Travel_Time_Min"
TRAFFIC_DELAY_MIN = "Traffic_Delay_Min"

LOCATION = "Location"
PROCESSING_TIME_MIN = "Processing_Time_Min"

ON_TIME_PCT = "On_Time_Percentage"
AVG_SPEED = "Avg_Speed_KM_HR"

CHECKPOINT = "Checkpoint"
CHECKPOINT_TIME = "Checkpoint_Time"
DELAY_REASON = "Delay_Reason"


# Required columns per table, in output order
TABLE_SCHEMAS: dict[str, list[str]] = {
    "orders": [
        ORDER_ID, ROUTE_ID, WAREHOUSE_ID, ORDER_DATE,
        EXPECTED_DATE, ACTUAL_DATE, DELIVERY_STATUS,
    ],
    "routes": [
        ROUTE_ID, START_LOCATION, END_LOCATION,
        DISTANCE_KM, TRAVEL_TIME_MIN, TRAFFIC_DELAY_MIN,
    ],
    "warehouses": [WAREHOUSE_ID, LOCATION, PROCESSING_TIME_MIN],
    "delivery_agents": [AGENT_ID, ROUTE_ID, ON_TIME_PCT, AVG_SPEED],
    "shipment_tracking": [ORDER_ID, CHECKPOINT, CHECKPOINT_TIME, DELAY_REASON],
}

# Columns picked up when present but never required
OPTIONAL_COLUMNS: dict[str, list[str]] = {
    "shipment_tracking": [TRACKING_ID],
}


class ColumnResolver:
    """
    Finds canonical columns in a DataFrame regardless of spelling or casing.

    Resolution order (first match wins):
        1. Exact name match
        2. Normalized match — lowercase, separators removed ("Order ID" == "order_id")
        3. Alias match      — normalized match against a known alternative header
    """

    ALIASES: dict[str, list[str]] = {
        EXPECTED_DATE: ["Expected_Date", "Expected Delivery", "ETA"],
        ACTUAL_DATE: ["Actual_Date", "Delivered_On", "Delivery_Date"],
        DELIVERY_STATUS: ["Status", "Order_Status"],
        TRAVEL_TIME_MIN: ["Avg_Travel_Time_Min", "Travel_Time_Min", "Average_Travel_Time"],
        DISTANCE_KM: ["Distance", "Distance_Km"],
        TRAFFIC_DELAY_MIN: ["Traffic_Delay", "Traffic_Delay_Minutes"],
        PROCESSING_TIME_MIN: ["Processing_Time", "Avg_Processing_Time_Min"],
        ON_TIME_PCT: ["On_Time_Pct", "On_Time_Rate", "On_Time_Delivery_Percentage"],
        AVG_SPEED: ["Avg_Speed", "Average_Speed_KM_HR", "Avg_Speed_KMH"],
        CHECKPOINT_TIME: ["Checkpoint_Timestamp", "Timestamp"],
        DELAY_REASON: ["Reason", "Delay_Cause"],
        LOCATION: ["Warehouse_Location", "City"],
        TRACKING_ID: ["Shipment_ID", "Checkpoint_ID", "Checkpoint_Seq"],
    }

    # ----------------------------------------------------------------
    # Public API
    # ----------------------------------------------------------------

    @classmethod
    def resolve(cls, df: pd.DataFrame, canonical: str) -> str | None:
        """
        Find the column in *df* that holds *canonical*.

        Returns:
            The matched column name, or None if nothing matches.
        """
        columns = list(df.columns)

        # Tier 1: exact match
        if canonical in columns:
            return canonical

        # Tier 2: normalized match
        by_key = {_normalize(c): c for c in columns}
        key = _normalize(canonical)
        if key in by_key:
            return by_key[key]

        # Tier 3: alias match
        for alias in cls.ALIASES.get(canonical, []):
            alias_key = _normalize(alias)
            if alias_key in by_key:
                return by_key[alias_key]

        return None

    @classmethod
    def standardize(cls, df: pd.DataFrame, table: str) -> pd.DataFrame:
        """
        Rename the columns of *df* to the canonical schema of *table*.

        Required columns that cannot be resolved raise SchemaError.
        Optional columns are renamed when found. Extra columns are kept as-is.

        Returns:
            A new DataFrame with canonical headers.
        """
        if table not in TABLE_SCHEMAS:
            raise ValueError(f"Unknown table '{table}'. Expected one of {list(TABLE_SCHEMAS)}")

        renames: dict[str, str] = {}
        missing: list[str] = []

        for canonical in TABLE_SCHEMAS[table]:
            found = cls.resolve(df, canonical)
            if found is None:
                missing.append(canonical)
            elif found != canonical:
                renames[found] = canonical

        if missing:
            raise SchemaError(f"{table}: missing required column(s): {missing}")

        for canonical in OPTIONAL_COLUMNS.get(table, []):
            found = cls.resolve(df, canonical)
            if found is not None and found != canonical:
                renames[found] = canonical

        return df.rename(columns=renames)


def _normalize(name) -> str:
    """'Order ID' / 'order_id' / 'OrderID' → 'orderid'."""
    return re.sub(r"[^a-z0-9]", "", str(name).lower())
