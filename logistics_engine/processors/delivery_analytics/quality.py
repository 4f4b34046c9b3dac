"""
Data Quality Checks — Pre-conditions verified before the report is computed.

- Order_ID uniqueness (total rows vs distinct orders)
- Traffic_Delay_Min completeness on routes
- Dates that could not be parsed during standardisation
- Orders delivered before they were placed (flagged, never discarded)
- References to routes / warehouses / orders that do not exist
- Status and delay-reason labels outside the known vocabulary

Nothing here raises or removes rows: findings are collected into a
QualityReport so the metrics still run on the full snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

import pandas as pd

from .core import columns as c
from .core.cleaning import parse_datetime
from .core.enums import DelayReason, DeliveryStatus, parse_reason, parse_status
from .dataset import LogisticsDataset

logger = logging.getLogger(__name__)

VALID_RECORD = "VALID_RECORD"
INVALID_RECORD = "INVALID_RECORD"
RECORD_STATUS = "Record_Status"

# Date columns per table, checked for unparsable values
DATE_COLUMNS: dict[str, list[str]] = {
    "orders": [c.ORDER_DATE, c.EXPECTED_DATE, c.ACTUAL_DATE],
    "shipment_tracking": [c.CHECKPOINT_TIME],
}

PRIMARY_KEYS: dict[str, str] = {
    "orders": c.ORDER_ID,
    "routes": c.ROUTE_ID,
    "warehouses": c.WAREHOUSE_ID,
    "delivery_agents": c.AGENT_ID,
}


@dataclass
class QualityReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    info: list[str] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def log_info(self, message: str) -> None:
        logger.info(message)
        self.info.append(message)

    def log_warning(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def log_error(self, message: str) -> None:
        logger.error(message)
        self.errors.append(message)

    def to_dict(self) -> dict:
        return asdict(self)


# ------------------------------------------------------------------
# Invalid delivery date flagging
# ------------------------------------------------------------------

def flag_invalid_delivery_dates(orders: pd.DataFrame) -> pd.DataFrame:
    """
    Label every order VALID_RECORD / INVALID_RECORD (delivered before ordered).

    Orders with a missing date cannot be compared and stay VALID_RECORD.

    Returns:
        DataFrame [Order_ID, Order_Date, Actual_Delivery_Date, Record_Status]
    """
    out = orders[[c.ORDER_ID, c.ORDER_DATE, c.ACTUAL_DATE]].copy()
    actual = parse_datetime(out[c.ACTUAL_DATE])
    ordered = parse_datetime(out[c.ORDER_DATE])
    out[RECORD_STATUS] = VALID_RECORD
    out.loc[actual < ordered, RECORD_STATUS] = INVALID_RECORD
    return out.reset_index(drop=True)


# ------------------------------------------------------------------
# Individual checks
# ------------------------------------------------------------------

def _check_primary_keys(data: LogisticsDataset, report: QualityReport) -> None:
    for table, key in PRIMARY_KEYS.items():
        df = getattr(data, table)
        if df.empty:
            report.log_warning(f"{table}: dataset is empty")
            continue

        null_count = int(df[key].isna().sum())
        if null_count > 0:
            report.log_error(f"{table}: {null_count} row(s) with null {key}")

        total = len(df)
        unique = int(df[key].nunique(dropna=True))
        if table == "orders":
            report.counts["total_rows"] = total
            report.counts["unique_orders"] = unique

        duplicates = int(df.duplicated(subset=[key]).sum())
        if duplicates > 0:
            report.log_warning(f"{table}: {duplicates} duplicated {key} value(s)")

    if report.counts.get("total_rows") == report.counts.get("unique_orders"):
        report.log_info("orders: no duplicate Order_ID records found")


def _check_traffic_delay(data: LogisticsDataset, report: QualityReport) -> None:
    routes = data.routes
    non_null = int(pd.to_numeric(routes[c.TRAFFIC_DELAY_MIN], errors="coerce").notna().sum())
    report.counts["total_routes"] = len(routes)
    report.counts["non_null_delay"] = non_null

    missing = len(routes) - non_null
    if missing > 0:
        report.log_warning(f"routes: {missing} route(s) with missing Traffic_Delay_Min")
    elif len(routes) > 0:
        report.log_info("routes: no missing Traffic_Delay_Min values")


def _check_unparsable_dates(
    data: LogisticsDataset,
    raw: LogisticsDataset | None,
    report: QualityReport,
) -> None:
    if raw is None:
        return
    for table, date_columns in DATE_COLUMNS.items():
        raw_df = getattr(raw, table)
        clean_df = getattr(data, table)
        for col in date_columns:
            if col not in raw_df.columns or col not in clean_df.columns:
                continue
            unparsable = int((raw_df[col].notna().values & clean_df[col].isna().values).sum())
            if unparsable > 0:
                report.log_warning(f"{table}: {unparsable} unparsable date value(s) in `{col}`")


def _check_delivery_dates(data: LogisticsDataset, report: QualityReport) -> None:
    flagged = flag_invalid_delivery_dates(data.orders)
    invalid = int((flagged[RECORD_STATUS] == INVALID_RECORD).sum())
    report.counts["invalid_delivery_dates"] = invalid
    if invalid > 0:
        report.log_warning(f"orders: {invalid} record(s) where delivery precedes order date")
    elif len(flagged) > 0:
        report.log_info("orders: no invalid delivery dates found")


def _check_references(data: LogisticsDataset, report: QualityReport) -> None:
    checks = [
        ("orders", c.ROUTE_ID, data.routes, c.ROUTE_ID, "orphan_order_routes"),
        ("orders", c.WAREHOUSE_ID, data.warehouses, c.WAREHOUSE_ID, "orphan_order_warehouses"),
        ("delivery_agents", c.ROUTE_ID, data.routes, c.ROUTE_ID, "orphan_agent_routes"),
        ("shipment_tracking", c.ORDER_ID, data.orders, c.ORDER_ID, "orphan_checkpoint_orders"),
    ]
    for table, col, ref_df, ref_col, count_key in checks:
        df = getattr(data, table)
        refs = df[col].dropna()
        orphans = int((~refs.isin(ref_df[ref_col].dropna())).sum())
        report.counts[count_key] = orphans
        if orphans > 0:
            report.log_warning(
                f"{table}: {orphans} row(s) reference a {ref_col} missing from the reference table"
            )


def _check_vocabularies(data: LogisticsDataset, report: QualityReport) -> None:
    statuses = parse_status(data.orders[c.DELIVERY_STATUS])
    unknown_status = int((statuses == DeliveryStatus.UNKNOWN).sum())
    report.counts["unknown_statuses"] = unknown_status
    if unknown_status > 0:
        report.log_warning(f"orders: {unknown_status} row(s) with unrecognised Delivery_Status")

    reasons = parse_reason(data.shipment_tracking[c.DELAY_REASON])
    other_reasons = int((reasons == DelayReason.OTHER).sum())
    report.counts["other_delay_reasons"] = other_reasons
    if other_reasons > 0:
        report.log_info(f"shipment_tracking: {other_reasons} checkpoint(s) with an uncategorised Delay_Reason")


# ------------------------------------------------------------------
# Main entry point
# ------------------------------------------------------------------

def run_quality_checks(
    data: LogisticsDataset,
    raw: LogisticsDataset | None = None,
) -> QualityReport:
    """
    Run every pre-condition check against a standardised dataset.

    Args:
        data: Standardised dataset (dates parsed, canonical headers).
        raw:  Optional pre-parsing copy, row-aligned with *data*, used to
              count dates that failed to parse.

    Returns:
        QualityReport with messages and the raw counts.
    """
    report = QualityReport()
    _check_primary_keys(data, report)
    _check_traffic_delay(data, report)
    _check_unparsable_dates(data, raw, report)
    _check_delivery_dates(data, report)
    _check_references(data, report)
    _check_vocabularies(data, report)
    return report
