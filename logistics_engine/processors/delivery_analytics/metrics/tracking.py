"""
Shipment Tracking Analytics — Last checkpoint, delay reasons, severe delays.

A checkpoint "records a delay" when its Delay_Reason is anything other than
'None' (missing reasons count as 'None').

Last-checkpoint tie-break: when two checkpoints of an order share the latest
Checkpoint_Time, the one with the highest Tracking_ID wins if that column is
present; otherwise the one that appears last in the input.
"""

from __future__ import annotations

import pandas as pd

from ..core import columns as c
from ..core.cleaning import has_delay_reason, parse_datetime
from ..dataset import LogisticsDataset


LAST_CHECKPOINT = "Last_Checkpoint"
LAST_CHECKPOINT_TIME = "Last_Checkpoint_Time"
OCCURRENCES = "Occurrence_Count"
DELAYED_CHECKPOINTS = "Delayed_Checkpoint_Count"


def _tracking_sort_key(ids: pd.Series) -> pd.Series:
    """Numeric order when every Tracking_ID is a number (9 < 10), text order otherwise."""
    numeric = pd.to_numeric(ids, errors="coerce")
    if numeric[ids.notna()].notna().all():
        return numeric
    return ids.astype(str)


def calculate_last_checkpoints(data: LogisticsDataset) -> pd.DataFrame:
    """
    Most recent checkpoint reached by each order.

    Checkpoints without a timestamp are ignored.

    Returns:
        DataFrame [Order_ID, Last_Checkpoint, Last_Checkpoint_Time], one row per order.
    """
    tracking = data.shipment_tracking.copy()
    tracking["_position"] = range(len(tracking))
    tracking[c.CHECKPOINT_TIME] = parse_datetime(tracking[c.CHECKPOINT_TIME])
    tracking = tracking.dropna(subset=[c.ORDER_ID, c.CHECKPOINT_TIME])

    sort_keys = [c.ORDER_ID, c.CHECKPOINT_TIME]
    if c.TRACKING_ID in tracking.columns:
        tracking["_tracking_key"] = _tracking_sort_key(tracking[c.TRACKING_ID])
        sort_keys.append("_tracking_key")
    sort_keys.append("_position")

    latest = (
        tracking.sort_values(sort_keys, kind="mergesort", na_position="first")
        .groupby(c.ORDER_ID, sort=True)
        .tail(1)
        .sort_values(c.ORDER_ID, kind="mergesort")
    )
    out = latest[[c.ORDER_ID, c.CHECKPOINT, c.CHECKPOINT_TIME]].rename(columns={
        c.CHECKPOINT: LAST_CHECKPOINT,
        c.CHECKPOINT_TIME: LAST_CHECKPOINT_TIME,
    })
    return out.reset_index(drop=True)


def calculate_delay_reasons(data: LogisticsDataset) -> pd.DataFrame:
    """
    Frequency of each delay reason, excluding 'None', most common first.

    Returns:
        DataFrame [Delay_Reason, Occurrence_Count]
    """
    tracking = data.shipment_tracking
    delayed = tracking[has_delay_reason(tracking[c.DELAY_REASON])]
    if delayed.empty:
        return pd.DataFrame(columns=[c.DELAY_REASON, OCCURRENCES])

    counts = (
        delayed.groupby(c.DELAY_REASON)
        .size()
        .rename(OCCURRENCES)
        .reset_index()
    )
    # Alphabetical within equal counts for a stable report
    return counts.sort_values(
        [OCCURRENCES, c.DELAY_REASON], ascending=[False, True], kind="mergesort",
    ).reset_index(drop=True)


def calculate_severely_delayed_orders(
    data: LogisticsDataset,
    min_checkpoints: int = 2,
) -> pd.DataFrame:
    """
    Orders with more than *min_checkpoints* checkpoints that record a delay.

    Returns:
        DataFrame [Order_ID, Delayed_Checkpoint_Count]
    """
    tracking = data.shipment_tracking
    delayed = tracking[has_delay_reason(tracking[c.DELAY_REASON]) & tracking[c.ORDER_ID].notna()]
    if delayed.empty:
        return pd.DataFrame(columns=[c.ORDER_ID, DELAYED_CHECKPOINTS])

    counts = delayed.groupby(c.ORDER_ID).size().rename(DELAYED_CHECKPOINTS).reset_index()
    return counts[counts[DELAYED_CHECKPOINTS] > min_checkpoints].reset_index(drop=True)
