"""
Enums — Closed vocabularies for delivery status and delay reason.

The raw tables store these as free text ('On Time', 'Delayed', 'None').
Parsing is case- and whitespace-insensitive; anything unrecognised maps to
an explicit fallback member instead of silently failing a comparison.
"""

from __future__ import annotations

from enum import Enum

import pandas as pd


def _key(value) -> str:
    return " ".join(str(value).replace("_", " ").replace("-", " ").split()).lower()


class DeliveryStatus(str, Enum):
    ON_TIME = "On Time"
    DELAYED = "Delayed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value) -> "DeliveryStatus":
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return cls.UNKNOWN
        return _STATUS_LOOKUP.get(_key(value), cls.UNKNOWN)


class DelayReason(str, Enum):
    NONE = "None"
    TRAFFIC = "Traffic"
    WEATHER = "Weather"
    SORTING = "Sorting"
    OTHER = "Other"

    @classmethod
    def parse(cls, value) -> "DelayReason":
        """Missing values count as NONE (no delay recorded at the checkpoint)."""
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return cls.NONE
        return _REASON_LOOKUP.get(_key(value), cls.OTHER)


_STATUS_LOOKUP = {
    "on time": DeliveryStatus.ON_TIME,
    "ontime": DeliveryStatus.ON_TIME,
    "delayed": DeliveryStatus.DELAYED,
    "late": DeliveryStatus.DELAYED,
}

_REASON_LOOKUP = {
    "none": DelayReason.NONE,
    "": DelayReason.NONE,
    "traffic": DelayReason.TRAFFIC,
    "weather": DelayReason.WEATHER,
    "sorting": DelayReason.SORTING,
    "sorting delay": DelayReason.SORTING,
}


def parse_status(series: pd.Series) -> pd.Series:
    """Map a raw status column to DeliveryStatus members."""
    return series.map(DeliveryStatus.parse)


def parse_reason(series: pd.Series) -> pd.Series:
    """Map a raw delay-reason column to DelayReason members."""
    return series.map(DelayReason.parse)
