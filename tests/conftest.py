import pandas as pd
import pytest

from logistics_engine.config import TABLE_FILES
from logistics_engine.processors.delivery_analytics.ingestor import LogisticsIngestor


def _orders() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("O1", "R1", "W1", "2024-01-01", "2024-01-10", "2024-01-12", "Delayed"),
            ("O2", "R1", "W1", "2024-01-02", "2024-01-10", "2024-01-09", "On Time"),
            ("O3", "R2", "W1", "2024-01-03", "2024-01-08", "2024-01-12", "Delayed"),
            ("O4", "R2", "W2", "2024-01-03", "2024-01-08", "2024-01-08", "On Time"),
            ("O5", "R3", "W2", "2024-01-05", "2024-01-09", "2024-01-12", "Delayed"),
            ("O6", "R3", "W2", "2024-01-05", "2024-01-09", "2024-01-08", "On Time"),
            ("O7", "R3", "W3", "2024-01-06", "2024-01-10", "2024-01-10", "On Time"),
            ("O8", "R4", "W3", "2024-01-06", "2024-01-12", "2024-01-14", "Delayed"),
        ],
        columns=[
            "Order_ID", "Route_ID", "Warehouse_ID", "Order_Date",
            "Expected_Delivery_Date", "Actual_Delivery_Date", "Delivery_Status",
        ],
    )


def _routes() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("R1", "Mumbai", "Pune", 150, 200, 30),
            ("R2", "Delhi", "Agra", 200, 250, 45),
            ("R3", "Mumbai", "Nashik", 170, 180, 20),
            ("R4", "Chennai", "Bangalore", 350, 300, 60),
            ("R5", "Kolkata", "Patna", 600, 500, 10),
        ],
        columns=[
            "Route_ID", "Start_Location", "End_Location",
            "Distance_KM", "Average_Travel_Time_Min", "Traffic_Delay_Min",
        ],
    )


def _warehouses() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("W1", "Mumbai", 50),
            ("W2", "Delhi", 30),
            ("W3", "Chennai", 70),
            ("W4", "Kolkata", 20),
        ],
        columns=["Warehouse_ID", "Location", "Processing_Time_Min"],
    )


def _agents() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("A1", "R1", 90, 40),
            ("A2", "R1", 90, 38),
            ("A3", "R1", 80, 35),
            ("A4", "R2", 75, 30),
            ("A5", "R2", 95, 45),
            ("A6", "R3", 70, 28),
            ("A7", "R4", 85, 42),
            ("A8", "R4", 60, 25),
        ],
        columns=["Agent_ID", "Route_ID", "On_Time_Percentage", "Avg_Speed_KM_HR"],
    )


def _tracking() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("T1", "O1", "Picked Up", "2024-01-02 08:00:00", "Traffic"),
            ("T2", "O1", "Sorting Hub", "2024-01-01 09:00:00", "None"),
            ("T3", "O1", "Out for Delivery", "2024-01-03 10:00:00", "Weather"),
            ("T4", "O3", "Picked Up", "2024-01-04 08:00:00", "Traffic"),
            ("T5", "O3", "Sorting Hub", "2024-01-05 08:00:00", "Traffic"),
            ("T6", "O3", "Regional Hub", "2024-01-06 08:00:00", "Sorting"),
            ("T7", "O3", "Out for Delivery", "2024-01-06 08:00:00", "None"),
            ("T8", "O5", "Picked Up", "2024-01-07 12:00:00", "Weather"),
        ],
        columns=["Tracking_ID", "Order_ID", "Checkpoint", "Checkpoint_Time", "Delay_Reason"],
    )


@pytest.fixture
def raw_frames() -> dict[str, pd.DataFrame]:
    """The five tables as they arrive from CSV (dates as strings)."""
    return {
        "orders": _orders(),
        "routes": _routes(),
        "warehouses": _warehouses(),
        "delivery_agents": _agents(),
        "shipment_tracking": _tracking(),
    }


@pytest.fixture
def ingestor(raw_frames) -> LogisticsIngestor:
    ingestor = LogisticsIngestor()
    ingestor.from_frames(raw_frames)
    return ingestor


@pytest.fixture
def dataset(ingestor):
    return ingestor.dataset


@pytest.fixture
def csv_dir(tmp_path, raw_frames):
    """A directory holding the five CSV files under their expected names."""
    for table, fname in TABLE_FILES.items():
        raw_frames[table].to_csv(tmp_path / fname, index=False)
    return tmp_path
