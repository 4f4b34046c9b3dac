"""
Cleaning — Date, numeric and label normalisation for the logistics tables.

Every date column is coerced to datetime64, numeric columns lose their
thousands separators and unit suffixes, and status / reason labels are mapped
to their canonical spelling. Unparsable values become NaT / NaN, never exceptions.
"""

import numbers

import pandas as pd

from .enums import DelayReason, DeliveryStatus, parse_reason, parse_status


def parse_datetime(values) -> pd.Series:
    """Coerce a Series to datetime64; each value may use its own format."""
    if pd.api.types.is_datetime64_any_dtype(values):
        return values
    return pd.to_datetime(values, errors="coerce", format="mixed")


def clean_dates(
    df: pd.DataFrame,
    columns: list[str],
    keep_time: bool = False,
) -> pd.DataFrame:
    """
    Parse date columns to datetime64, coercing errors to NaT.

    Args:
        df:        Input DataFrame (not mutated).
        columns:   Column names to parse. Missing columns are ignored.
        keep_time: Keep the time-of-day component. Order dates are truncated
                   to the day; checkpoint timestamps keep their time so that
                   checkpoints on the same day can still be ordered.

    Returns:
        A new DataFrame with parsed date columns.
    """
    out = df.copy()
    for col in columns:
        if col not in out.columns:
            continue
        parsed = parse_datetime(out[col])
        out[col] = parsed if keep_time else parsed.dt.normalize()
    return out


def clean_numeric(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """
    Strip ',', '%' and unit suffixes from columns, convert to numeric, coerce errors to NaN.
    """
    out = df.copy()
    for col in columns:
        if col in out.columns:
            out[col] = pd.to_numeric(
                out[col].astype(str).str.replace(r"[,%]|\s*(km|min|km/h)$", "", regex=True).str.strip(),
                errors="coerce",
            )
    return out


def clean_labels(df: pd.DataFrame, column: str, kind: str) -> pd.DataFrame:
    """
    Map a free-text label column to its canonical spelling.

    kind='status' → 'On Time' / 'Delayed' / 'Unknown'
    kind='reason' → 'None' / 'Traffic' / 'Weather' / 'Sorting'; unrecognised
                    reasons are kept verbatim (stripped) so they still count.
    """
    if column not in df.columns:
        return df.copy()

    out = df.copy()
    if kind == "status":
        out[column] = out[column].map(lambda v: DeliveryStatus.parse(v).value)
    elif kind == "reason":
        out[column] = out[column].map(_canonical_reason)
    else:
        raise ValueError(f"kind must be 'status' or 'reason', got '{kind}'")
    return out


def _canonical_reason(value) -> str:
    reason = DelayReason.parse(value)
    if reason is DelayReason.OTHER:
        return str(value).strip()
    return reason.value


def is_status(series: pd.Series, status: DeliveryStatus) -> pd.Series:
    """Boolean mask of rows whose status parses to *status*."""
    return parse_status(series) == status


def has_delay_reason(series: pd.Series) -> pd.Series:
    """Boolean mask of checkpoints that record an actual delay (reason is not 'None')."""
    return parse_reason(series) != DelayReason.NONE


def day_delta(later: pd.Series, earlier: pd.Series) -> pd.Series:
    """
    Signed difference in calendar days (DATEDIFF semantics).

    Time-of-day is ignored. NaT on either side yields NaN.
    """
    later = parse_datetime(later).dt.normalize()
    earlier = parse_datetime(earlier).dt.normalize()
    return (later - earlier).dt.days


def format_metric(value, metric_name: str) -> str:
    """
    Format a metric value for display based on the metric name.

    Rules:
        Efficiency ratio            → X.XXXX
        Counts / ranks              → integer
        Everything else             → X.XX
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, pd.Timestamp):
        if value == value.normalize():
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")

    name_lower = metric_name.lower()

    if "efficiency" in name_lower:
        return f"{value:.4f}"

    if any(kw in name_lower for kw in ("count", "rank", "orders", "_id")):
        return f"{value:.0f}" if isinstance(value, numbers.Number) else str(value)

    if isinstance(value, numbers.Real) and not isinstance(value, numbers.Integral):
        return f"{value:.2f}"

    return str(value)
