"""
Converters — Turn a Report Snapshot into Markdown / JSON-safe structures.

The analyzer returns DataFrames and numpy scalars; nothing here touches the
filesystem. KnowledgeManager decides where the output lands.
"""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from logistics_engine.processors.delivery_analytics.core.cleaning import format_metric


# (section key, heading, [(metric key, sub-heading), ...])
REPORT_LAYOUT = [
    ("delays", "Delivery Delay Analysis", [
        ("top_delayed_routes", "Top Delayed Routes (average delay, late orders only)"),
        ("warehouse_delay_ranking", "Warehouse-wise Delay Ranking"),
        ("delivery_delays", "Delivery Delay per Order"),
    ]),
    ("routes", "Route Optimization Insights", [
        ("route_performance", "Route-Level Performance Metrics"),
        ("least_efficient_routes", "Routes with Worst Efficiency Ratio"),
        ("high_delay_routes", "Routes with High Delayed Share"),
    ]),
    ("warehouses", "Warehouse Performance", [
        ("slowest_warehouses", "Warehouses by Highest Processing Time"),
        ("warehouse_volume", "Total vs Delayed Shipments per Warehouse"),
        ("bottleneck_warehouses", "Bottleneck Warehouses (above global average)"),
        ("warehouse_on_time_ranking", "Warehouses Ranked by On-Time Delivery"),
    ]),
    ("agents", "Delivery Agent Performance", [
        ("agent_ranking", "Agent Ranking per Route"),
        ("underperforming_agents", "Agents Below SLA"),
        ("speed_comparison", "Top vs Bottom Agents — Average Speed"),
    ]),
    ("tracking", "Shipment Tracking Analytics", [
        ("last_checkpoints", "Last Checkpoint per Order"),
        ("delay_reasons", "Most Common Delay Reasons"),
        ("severely_delayed_orders", "Severely Delayed Orders"),
    ]),
    ("kpis", "Advanced KPI Reporting", [
        ("regional_delay", "Average Delivery Delay per Region"),
        ("route_traffic_delay", "Average Traffic Delay per Route"),
    ]),
]


def dataframe_to_markdown(df: pd.DataFrame, max_rows: int | None = None) -> str:
    """Render a DataFrame as a GitHub-flavoured Markdown table."""
    if df is None or df.empty:
        return "_No rows._"

    shown = df if max_rows is None else df.head(max_rows)
    header = "| " + " | ".join(str(col) for col in shown.columns) + " |"
    divider = "| " + " | ".join("---" for _ in shown.columns) + " |"
    lines = [header, divider]
    for row in shown.itertuples(index=False):
        cells = [format_metric(value, str(col)) for value, col in zip(row, shown.columns)]
        lines.append("| " + " | ".join(cells) + " |")

    if max_rows is not None and len(df) > max_rows:
        lines.append("")
        lines.append(f"_Showing {max_rows} of {len(df)} rows._")
    return "\n".join(lines)


def snapshot_to_markdown(title: str, snapshot: dict, max_rows: int | None = 50) -> str:
    """
    Render the full report: KPI summary, data quality, then one table per metric.
    """
    meta = snapshot.get("meta", {})
    kpis = snapshot.get("kpis", {})
    quality = snapshot.get("quality", {})
    thresholds = meta.get("thresholds", {})

    lines: list[str] = [f"# {title}", ""]
    if meta.get("generated_at"):
        lines += [f"_Generated {meta['generated_at']}_", ""]

    # --- Summary ---
    lines += ["## Summary", ""]
    on_time = kpis.get("on_time_percentage")
    lines.append(f"- **Overall on-time delivery:** {format_metric(on_time, 'pct') or 'n/a'}%")
    global_avg = snapshot.get("warehouses", {}).get("global_avg_processing_time")
    lines.append(f"- **Global average warehouse processing time:** {format_metric(global_avg, 'min') or 'n/a'} min")
    if thresholds:
        lines.append(f"- **Agent SLA:** {thresholds.get('agent_sla_percentage')}% on-time")
        lines.append(f"- **Delayed-share threshold:** {thresholds.get('delayed_share_threshold')}%")
    for table, rows in meta.get("row_counts", {}).items():
        lines.append(f"- `{table}`: {rows} rows")
    lines.append("")

    # --- Data quality ---
    lines += ["## Data Quality", ""]
    for level, label in (("errors", "ERROR"), ("warnings", "WARNING"), ("info", "INFO")):
        for message in quality.get(level, []):
            lines.append(f"- **[{label}]** {message}")
    if not any(quality.get(level) for level in ("errors", "warnings", "info")):
        lines.append("- No findings.")
    lines.append("")

    # --- Metric sections ---
    for section_key, heading, metrics in REPORT_LAYOUT:
        section = snapshot.get(section_key, {})
        lines += [f"## {heading}", ""]
        for metric_key, sub_heading in metrics:
            lines += [f"### {sub_heading}", ""]
            lines.append(dataframe_to_markdown(section.get(metric_key), max_rows=max_rows))
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def iter_tables(snapshot: dict):
    """Yield (section, metric, DataFrame) for every table in the snapshot."""
    for section_key, section in snapshot.items():
        if not isinstance(section, dict):
            continue
        for metric_key, value in section.items():
            if isinstance(value, pd.DataFrame):
                yield section_key, metric_key, value


def sanitize(obj):
    """
    Walk a snapshot and make it JSON-serialisable.

    DataFrames → list of records, numpy scalars → Python, NaN/inf/NaT → None,
    timestamps → ISO strings.
    """
    if isinstance(obj, dict):
        return {k: sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize(v) for v in obj]
    if isinstance(obj, pd.DataFrame):
        return [sanitize(rec) for rec in obj.to_dict(orient="records")]
    if isinstance(obj, pd.Timestamp):
        return None if pd.isna(obj) else obj.isoformat()
    if obj is None or obj is pd.NA or obj is pd.NaT:
        return None
    if isinstance(obj, np.generic):
        obj = obj.item()
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    return obj
