"""
LogisticsDataset — The five ups_logistics tables passed around as one value.

Metric functions receive the tables explicitly instead of reading a global
schema, so any snapshot (CSV folder, SQL database, test fixture) can be
analysed side by side.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields

import pandas as pd

from .core.columns import TABLE_SCHEMAS


def _empty(table: str) -> pd.DataFrame:
    return pd.DataFrame(columns=TABLE_SCHEMAS[table])


@dataclass(frozen=True)
class LogisticsDataset:
    """Read-only snapshot of orders, routes, warehouses, agents and checkpoints."""

    orders: pd.DataFrame = field(default_factory=lambda: _empty("orders"))
    routes: pd.DataFrame = field(default_factory=lambda: _empty("routes"))
    warehouses: pd.DataFrame = field(default_factory=lambda: _empty("warehouses"))
    delivery_agents: pd.DataFrame = field(default_factory=lambda: _empty("delivery_agents"))
    shipment_tracking: pd.DataFrame = field(default_factory=lambda: _empty("shipment_tracking"))

    @classmethod
    def table_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def tables(self) -> dict[str, pd.DataFrame]:
        return {name: getattr(self, name) for name in self.table_names()}

    def row_counts(self) -> dict[str, int]:
        return {name: len(df) for name, df in self.tables().items()}
