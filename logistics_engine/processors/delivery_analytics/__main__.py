"""
Report Runner — Builds the delivery report from a folder of CSVs or a database.

Usage:
    python -m logistics_engine.processors.delivery_analytics data/
    python -m logistics_engine.processors.delivery_analytics --sql sqlite:///ups_logistics.db
"""

from __future__ import annotations

import argparse
import logging
import sys

from logistics_engine.config import REPORT_CATEGORY, settings
from logistics_engine.knowledge_base.manager import KnowledgeManager

from .analyzer import LogisticsAnalyzer
from .ingestor import LogisticsIngestor

logger = logging.getLogger("delivery_analytics")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delivery route analytics report")
    parser.add_argument("input_dir", nargs="?", default=settings.DATA_DIR,
                        help="Directory holding the five CSV tables")
    parser.add_argument("--sql", default=None, help="SQLAlchemy URL to read the tables from instead")
    parser.add_argument("--title", default="UPS Logistics Report")
    parser.add_argument("--category", default=REPORT_CATEGORY)
    parser.add_argument("--storage-dir", default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL)

    ingestor = LogisticsIngestor()
    try:
        if args.sql:
            dataset = ingestor.ingest_sql(args.sql)
        else:
            dataset = ingestor.ingest(args.input_dir)
    except ValueError as exc:
        logger.error("Ingestion failed: %s", exc)
        return 1

    snapshot = LogisticsAnalyzer().analyze(dataset, quality=ingestor.quality)

    kb = KnowledgeManager(args.storage_dir)
    filename = kb.save_report(args.title, snapshot, category=args.category)
    print(f"Report written to {kb.category_dir(args.category)}/{filename}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
