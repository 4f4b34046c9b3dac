import io

import pandas as pd
import pytest
from sqlalchemy import create_engine

from logistics_engine.processors.delivery_analytics.core.columns import SchemaError
from logistics_engine.processors.delivery_analytics.ingestor import LogisticsIngestor
from logistics_engine.processors.delivery_analytics.quality import (
    INVALID_RECORD,
    VALID_RECORD,
    flag_invalid_delivery_dates,
    run_quality_checks,
)


# ------------------------------------------------------------------
# Sources
# ------------------------------------------------------------------

def test_ingest_csv_directory(csv_dir):
    ingestor = LogisticsIngestor()
    data = ingestor.ingest(str(csv_dir))

    assert data.row_counts() == {
        "orders": 8,
        "routes": 5,
        "warehouses": 4,
        "delivery_agents": 8,
        "shipment_tracking": 8,
    }
    assert pd.api.types.is_datetime64_any_dtype(data.orders["Order_Date"])
    assert pd.api.types.is_datetime64_any_dtype(data.shipment_tracking["Checkpoint_Time"])
    assert [info["table"] for info in ingestor.file_info] == list(data.table_names())
    assert ingestor.quality.ok


def test_ingest_mapping_of_file_objects(raw_frames):
    sources = {}
    for table, df in raw_frames.items():
        buf = io.StringIO(df.to_csv(index=False))
        sources[table] = buf
    data = LogisticsIngestor().ingest(sources)
    assert len(data.orders) == 8
    # "None" in the CSV comes back as the canonical label, not NaN
    assert data.shipment_tracking["Delay_Reason"].iloc[1] == "None"


def test_ingest_missing_file_raises(csv_dir):
    (csv_dir / "routes.csv").unlink()
    with pytest.raises(ValueError, match="routes"):
        LogisticsIngestor().ingest(str(csv_dir))


def test_ingest_missing_directory_raises(tmp_path):
    with pytest.raises(ValueError):
        LogisticsIngestor().ingest(str(tmp_path / "nowhere"))


def test_from_frames_missing_table_raises(raw_frames):
    del raw_frames["warehouses"]
    with pytest.raises(ValueError, match="warehouses"):
        LogisticsIngestor().from_frames(raw_frames)


def test_missing_column_raises_schema_error(raw_frames):
    raw_frames["routes"] = raw_frames["routes"].drop(columns=["Distance_KM"])
    with pytest.raises(SchemaError, match="Distance_KM"):
        LogisticsIngestor().from_frames(raw_frames)


def test_ingest_sql(tmp_path, raw_frames):
    db_path = tmp_path / "ups_logistics.db"
    engine = create_engine(f"sqlite:///{db_path}")
    for table, df in raw_frames.items():
        df.to_sql(table, engine, index=False)
    engine.dispose()

    ingestor = LogisticsIngestor()
    data = ingestor.ingest_sql(f"sqlite:///{db_path}")
    assert data.row_counts()["orders"] == 8
    assert data.orders["Order_ID"].tolist()[:2] == ["O1", "O2"]
    assert ingestor.file_info[0]["filename"] == "sql:orders"


def test_ingest_sql_missing_table(tmp_path, raw_frames):
    engine = create_engine(f"sqlite:///{tmp_path / 'partial.db'}")
    raw_frames["orders"].to_sql("orders", engine, index=False)
    with pytest.raises(ValueError, match="routes"):
        LogisticsIngestor().ingest_sql(engine)
    engine.dispose()


# ------------------------------------------------------------------
# Standardisation
# ------------------------------------------------------------------

def test_numeric_ids_join_with_string_ids(raw_frames):
    raw_frames["routes"]["Route_ID"] = [1.0, 2.0, 3.0, 4.0, 5.0]
    raw_frames["orders"]["Route_ID"] = ["1", "1", "2", "2", "3", "3", "3", "4"]
    raw_frames["delivery_agents"]["Route_ID"] = [1, 1, 1, 2, 2, 3, 4, 4]

    ingestor = LogisticsIngestor()
    data = ingestor.from_frames(raw_frames)

    assert data.routes["Route_ID"].tolist() == ["1", "2", "3", "4", "5"]
    assert data.delivery_agents["Route_ID"].iloc[0] == "1"
    assert ingestor.quality.counts["orphan_order_routes"] == 0


def test_header_variants_and_labels_are_normalised(raw_frames):
    raw_frames["orders"] = raw_frames["orders"].rename(columns={"Delivery_Status": "status"})
    raw_frames["orders"]["status"] = [" delayed", "on_time", "DELAYED", "On Time",
                                      "Late", "ontime", "On Time", "Delayed"]
    data = LogisticsIngestor().from_frames(raw_frames)
    assert data.orders["Delivery_Status"].tolist() == [
        "Delayed", "On Time", "Delayed", "On Time",
        "Delayed", "On Time", "On Time", "Delayed",
    ]


# ------------------------------------------------------------------
# Quality checks
# ------------------------------------------------------------------

def test_clean_dataset_has_no_findings_beyond_info(ingestor):
    quality = ingestor.quality
    assert quality.errors == []
    assert quality.warnings == []
    assert quality.counts["total_rows"] == quality.counts["unique_orders"] == 8
    assert quality.counts["total_routes"] == quality.counts["non_null_delay"] == 5
    assert quality.counts["invalid_delivery_dates"] == 0


def test_duplicate_order_ids_are_reported(raw_frames):
    orders = raw_frames["orders"]
    raw_frames["orders"] = pd.concat([orders, orders.iloc[[0]]], ignore_index=True)
    ingestor = LogisticsIngestor()
    ingestor.from_frames(raw_frames)
    assert ingestor.quality.counts["total_rows"] == 9
    assert ingestor.quality.counts["unique_orders"] == 8
    assert any("duplicated Order_ID" in w for w in ingestor.quality.warnings)


def test_missing_traffic_delay_is_reported(raw_frames):
    raw_frames["routes"].loc[4, "Traffic_Delay_Min"] = None
    ingestor = LogisticsIngestor()
    ingestor.from_frames(raw_frames)
    assert ingestor.quality.counts["non_null_delay"] == 4


def test_unparsable_dates_are_reported(raw_frames):
    raw_frames["orders"].loc[3, "Order_Date"] = "someday"
    ingestor = LogisticsIngestor()
    data = ingestor.from_frames(raw_frames)
    assert pd.isna(data.orders["Order_Date"].iloc[3])
    assert any("unparsable" in w and "Order_Date" in w for w in ingestor.quality.warnings)


def test_orphan_references_are_counted(raw_frames):
    raw_frames["orders"].loc[7, "Warehouse_ID"] = "W9"
    raw_frames["shipment_tracking"].loc[7, "Order_ID"] = "O99"
    ingestor = LogisticsIngestor()
    ingestor.from_frames(raw_frames)
    counts = ingestor.quality.counts
    assert counts["orphan_order_warehouses"] == 1
    assert counts["orphan_checkpoint_orders"] == 1
    assert counts["orphan_order_routes"] == 0


def test_null_primary_key_is_an_error(raw_frames):
    raw_frames["warehouses"].loc[0, "Warehouse_ID"] = None
    ingestor = LogisticsIngestor()
    ingestor.from_frames(raw_frames)
    assert not ingestor.quality.ok
    assert any("Warehouse_ID" in e for e in ingestor.quality.errors)


def test_flag_invalid_delivery_dates(dataset):
    orders = dataset.orders.copy()
    orders.loc[1, "Actual_Delivery_Date"] = pd.Timestamp("2023-12-31")
    flagged = flag_invalid_delivery_dates(orders)
    assert flagged["Record_Status"].tolist() == [
        VALID_RECORD, INVALID_RECORD, VALID_RECORD, VALID_RECORD,
        VALID_RECORD, VALID_RECORD, VALID_RECORD, VALID_RECORD,
    ]
    # flagged, never discarded
    assert len(flagged) == len(orders)

    report = run_quality_checks(dataset.__class__(**{**dataset.tables(), "orders": orders}))
    assert report.counts["invalid_delivery_dates"] == 1
