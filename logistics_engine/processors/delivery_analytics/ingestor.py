"""
Logistics Ingestor — Loads the five ups_logistics tables into a LogisticsDataset.

Sources:
    - A directory holding orders.csv, routes.csv, warehouses.csv,
      delivery_agents.csv and shipment_tracking.csv
    - An explicit {table: path or file-like} mapping (e.g. FastAPI UploadFile)
    - Any SQLAlchemy database holding the five tables

Every source goes through the same pipeline:
    standardize headers -> normalise IDs -> parse dates -> coerce numbers
    -> canonical labels -> quality checks
"""

from __future__ import annotations

import logging
import os
from typing import BinaryIO, Union

import pandas as pd
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from logistics_engine.config import TABLE_FILES

from .core import columns as c
from .core.cleaning import clean_dates, clean_labels, clean_numeric
from .core.columns import ColumnResolver
from .dataset import LogisticsDataset
from .quality import QualityReport, run_quality_checks

logger = logging.getLogger(__name__)

Source = Union[str, BinaryIO]

ID_COLUMNS = [c.ORDER_ID, c.ROUTE_ID, c.WAREHOUSE_ID, c.AGENT_ID, c.TRACKING_ID]

NUMERIC_COLUMNS: dict[str, list[str]] = {
    "routes": [c.DISTANCE_KM, c.TRAVEL_TIME_MIN, c.TRAFFIC_DELAY_MIN],
    "warehouses": [c.PROCESSING_TIME_MIN],
    "delivery_agents": [c.ON_TIME_PCT, c.AVG_SPEED],
}


class LogisticsIngestor:
    """
    Reads, standardises and quality-checks the five logistics tables.

    Usage:
        ingestor = LogisticsIngestor()
        dataset = ingestor.ingest("data/")
        print(ingestor.quality.warnings)
    """

    def __init__(self):
        self._dataset: LogisticsDataset | None = None
        self._raw: LogisticsDataset | None = None
        self._quality: QualityReport | None = None
        self._file_info: list[dict] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest(self, sources: Union[str, dict[str, Source]]) -> LogisticsDataset:
        """
        Full pipeline from CSV sources.

        Args:
            sources: A directory path containing the five CSV files, or a
                     mapping of table name -> file path / file-like object.

        Returns:
            The standardised LogisticsDataset.
        """
        resolved = self._resolve_sources(sources)

        frames: dict[str, pd.DataFrame] = {}
        file_info: list[dict] = []
        for table, src in resolved.items():
            fname = os.path.basename(src) if isinstance(src, str) else getattr(src, "name", f"{table}.csv")
            try:
                df = pd.read_csv(src)
            except Exception as exc:
                raise ValueError(f"Could not read {table} from {fname}: {exc}") from exc

            frames[table] = df
            file_info.append({"table": table, "filename": fname, "rows": len(df), "columns": len(df.columns)})
            logger.info("Loaded %s: %d rows from %s", table, len(df), fname)

        self._file_info = file_info
        return self.from_frames(frames)

    def ingest_sql(self, source: Union[str, Engine]) -> LogisticsDataset:
        """
        Full pipeline from a relational database.

        Args:
            source: SQLAlchemy URL (e.g. "mysql+pymysql://.../ups_logistics")
                    or an existing Engine.
        """
        engine = create_engine(source) if isinstance(source, str) else source

        frames: dict[str, pd.DataFrame] = {}
        file_info: list[dict] = []
        try:
            with engine.connect() as conn:
                for table in TABLE_FILES:
                    try:
                        df = pd.read_sql_table(table, conn)
                    except ValueError as exc:
                        raise ValueError(f"Table '{table}' not found in {engine.url.database}") from exc
                    frames[table] = df
                    file_info.append({"table": table, "filename": f"sql:{table}", "rows": len(df), "columns": len(df.columns)})
                    logger.info("Loaded %s: %d rows from database", table, len(df))
        finally:
            if isinstance(source, str):
                engine.dispose()

        self._file_info = file_info
        return self.from_frames(frames)

    def from_frames(self, frames: dict[str, pd.DataFrame]) -> LogisticsDataset:
        """
        Standardise already-loaded DataFrames (one per table).

        Raises:
            ValueError: a table is missing.
            SchemaError: a required column cannot be resolved.
        """
        missing = [t for t in LogisticsDataset.table_names() if t not in frames]
        if missing:
            raise ValueError(f"Missing table(s): {missing}")

        raw: dict[str, pd.DataFrame] = {}
        clean: dict[str, pd.DataFrame] = {}
        for table in LogisticsDataset.table_names():
            standardized = ColumnResolver.standardize(frames[table], table).reset_index(drop=True)
            standardized = self._normalize_ids(standardized)
            raw[table] = standardized
            clean[table] = self._clean_table(standardized, table)

        self._raw = LogisticsDataset(**raw)
        self._dataset = LogisticsDataset(**clean)
        self._quality = run_quality_checks(self._dataset, raw=self._raw)
        logger.info(
            "Quality checks: %d error(s), %d warning(s)",
            len(self._quality.errors),
            len(self._quality.warnings),
        )
        return self._dataset

    @property
    def dataset(self) -> LogisticsDataset | None:
        return self._dataset

    @property
    def raw(self) -> LogisticsDataset | None:
        return self._raw

    @property
    def quality(self) -> QualityReport | None:
        return self._quality

    @property
    def file_info(self) -> list[dict]:
        return self._file_info

    # ------------------------------------------------------------------
    # Internal: Sources
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_sources(sources: Union[str, dict[str, Source]]) -> dict[str, Source]:
        if isinstance(sources, (str, os.PathLike)):
            directory = os.fspath(sources)
            if not os.path.isdir(directory):
                raise ValueError(f"Input directory not found: {directory}")
            resolved: dict[str, Source] = {}
            for table, fname in TABLE_FILES.items():
                path = os.path.join(directory, fname)
                if not os.path.exists(path):
                    raise ValueError(f"Missing input file for {table}: {path}")
                resolved[table] = path
            return resolved

        missing = [t for t in TABLE_FILES if t not in sources]
        if missing:
            raise ValueError(f"No source provided for table(s): {missing}")
        return {t: sources[t] for t in TABLE_FILES}

    # ------------------------------------------------------------------
    # Internal: Cleaning
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_ids(df: pd.DataFrame) -> pd.DataFrame:
        """Identifiers become stripped strings so joins match across sources (1, 1.0, ' 1')."""
        out = df.copy()
        for col in ID_COLUMNS:
            if col not in out.columns:
                continue
            series = out[col]
            if pd.api.types.is_float_dtype(series):
                non_null = series.dropna()
                if (non_null == non_null.round()).all():
                    series = series.astype("Int64")
            out[col] = series.map(lambda v: str(v).strip() if pd.notna(v) else None).astype(object)
        return out

    @staticmethod
    def _clean_table(df: pd.DataFrame, table: str) -> pd.DataFrame:
        if table == "orders":
            df = clean_dates(df, [c.ORDER_DATE, c.EXPECTED_DATE, c.ACTUAL_DATE])
            return clean_labels(df, c.DELIVERY_STATUS, kind="status")
        if table == "shipment_tracking":
            df = clean_dates(df, [c.CHECKPOINT_TIME], keep_time=True)
            return clean_labels(df, c.DELAY_REASON, kind="reason")
        return clean_numeric(df, NUMERIC_COLUMNS.get(table, []))
