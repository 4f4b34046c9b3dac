"""
Logistics Analyzer — The single entry point for delivery route analytics.

Orchestrates all metric modules and returns a consolidated
"Report Snapshot" dictionary that any downstream consumer
(API, CLI, Markdown converter) can use directly.
"""

from __future__ import annotations

import logging
from datetime import datetime

from logistics_engine.config import Settings, settings as default_settings

from .dataset import LogisticsDataset
from .metrics.agents import (
    calculate_agent_ranking,
    calculate_speed_comparison,
    calculate_underperforming_agents,
)
from .metrics.delays import (
    calculate_delivery_delays,
    calculate_top_delayed_routes,
    calculate_warehouse_delay_ranking,
)
from .metrics.kpis import (
    calculate_on_time_percentage,
    calculate_regional_delay,
    calculate_route_traffic_delay,
)
from .metrics.routes import (
    calculate_high_delay_routes,
    calculate_least_efficient_routes,
    calculate_route_performance,
)
from .metrics.tracking import (
    calculate_delay_reasons,
    calculate_last_checkpoints,
    calculate_severely_delayed_orders,
)
from .metrics.warehouses import (
    calculate_bottleneck_warehouses,
    calculate_slowest_warehouses,
    calculate_warehouse_on_time_ranking,
    calculate_warehouse_volume,
)
from .quality import QualityReport, flag_invalid_delivery_dates, run_quality_checks

logger = logging.getLogger(__name__)


class LogisticsAnalyzer:
    """
    Takes a standardised LogisticsDataset and produces the full delivery report.

    Usage:
        analyzer = LogisticsAnalyzer()
        snapshot = analyzer.analyze(dataset)
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or default_settings

    def analyze(
        self,
        data: LogisticsDataset,
        quality: QualityReport | None = None,
    ) -> dict:
        """
        Run every metric calculation and return a Report Snapshot.

        Args:
            data:    Standardised dataset (output of LogisticsIngestor).
            quality: Quality report from ingestion. Recomputed when omitted.

        Returns:
            {
              "meta":       { "row_counts": {...}, "generated_at": "...", "thresholds": {...} },
              "quality":    { "errors": [...], "warnings": [...], "info": [...], "counts": {...},
                              "invalid_delivery_dates": DataFrame },
              "delays":     { "delivery_delays", "top_delayed_routes", "warehouse_delay_ranking" },
              "routes":     { "route_performance", "least_efficient_routes", "high_delay_routes" },
              "warehouses": { "slowest_warehouses", "warehouse_volume",
                              "bottleneck_warehouses", "global_avg_processing_time",
                              "warehouse_on_time_ranking" },
              "agents":     { "agent_ranking", "underperforming_agents", "speed_comparison" },
              "tracking":   { "last_checkpoints", "delay_reasons", "severely_delayed_orders" },
              "kpis":       { "regional_delay", "on_time_percentage", "route_traffic_delay" },
            }
        """
        cfg = self.config
        if quality is None:
            quality = run_quality_checks(data)

        bottlenecks = calculate_bottleneck_warehouses(data)

        snapshot: dict = {
            "meta": {
                "row_counts": data.row_counts(),
                "generated_at": datetime.now().isoformat(timespec="seconds"),
                "thresholds": {
                    "top_delayed_routes": cfg.TOP_DELAYED_ROUTES,
                    "least_efficient_routes": cfg.LEAST_EFFICIENT_ROUTES,
                    "delayed_share_threshold": cfg.DELAYED_SHARE_THRESHOLD,
                    "top_bottleneck_warehouses": cfg.TOP_BOTTLENECK_WAREHOUSES,
                    "agent_sla_percentage": cfg.AGENT_SLA_PERCENTAGE,
                    "agent_group_size": cfg.AGENT_GROUP_SIZE,
                    "severe_delay_checkpoints": cfg.SEVERE_DELAY_CHECKPOINTS,
                },
            },
            "quality": {
                **quality.to_dict(),
                "invalid_delivery_dates": flag_invalid_delivery_dates(data.orders),
            },
            "delays": {
                "delivery_delays": calculate_delivery_delays(data),
                "top_delayed_routes": calculate_top_delayed_routes(data, cfg.TOP_DELAYED_ROUTES),
                "warehouse_delay_ranking": calculate_warehouse_delay_ranking(data),
            },
            "routes": {
                "route_performance": calculate_route_performance(data),
                "least_efficient_routes": calculate_least_efficient_routes(data, cfg.LEAST_EFFICIENT_ROUTES),
                "high_delay_routes": calculate_high_delay_routes(data, cfg.DELAYED_SHARE_THRESHOLD),
            },
            "warehouses": {
                "slowest_warehouses": calculate_slowest_warehouses(data, cfg.TOP_BOTTLENECK_WAREHOUSES),
                "warehouse_volume": calculate_warehouse_volume(data),
                "bottleneck_warehouses": bottlenecks["warehouses"],
                "global_avg_processing_time": bottlenecks["global_avg_time"],
                "warehouse_on_time_ranking": calculate_warehouse_on_time_ranking(data),
            },
            "agents": {
                "agent_ranking": calculate_agent_ranking(data),
                "underperforming_agents": calculate_underperforming_agents(data, cfg.AGENT_SLA_PERCENTAGE),
                "speed_comparison": calculate_speed_comparison(data, cfg.AGENT_GROUP_SIZE),
            },
            "tracking": {
                "last_checkpoints": calculate_last_checkpoints(data),
                "delay_reasons": calculate_delay_reasons(data),
                "severely_delayed_orders": calculate_severely_delayed_orders(data, cfg.SEVERE_DELAY_CHECKPOINTS),
            },
            "kpis": {
                "regional_delay": calculate_regional_delay(data),
                "on_time_percentage": calculate_on_time_percentage(data),
                "route_traffic_delay": calculate_route_traffic_delay(data),
            },
        }

        logger.info("Report snapshot built for %d orders", len(data.orders))
        return snapshot
