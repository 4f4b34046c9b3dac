"""
Delivery Analytics — Reporting over the ups_logistics schema.

Pipeline:
    LogisticsIngestor  -> LogisticsDataset (+ QualityReport)
    LogisticsAnalyzer  -> Report Snapshot dict
"""

from .analyzer import LogisticsAnalyzer
from .core.columns import SchemaError
from .dataset import LogisticsDataset
from .ingestor import LogisticsIngestor

__all__ = ["LogisticsAnalyzer", "LogisticsDataset", "LogisticsIngestor", "SchemaError"]
