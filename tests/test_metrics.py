import pandas as pd
import pytest

from logistics_engine.processors.delivery_analytics.dataset import LogisticsDataset
from logistics_engine.processors.delivery_analytics.ingestor import LogisticsIngestor
from logistics_engine.processors.delivery_analytics.metrics.agents import (
    calculate_agent_ranking,
    calculate_speed_comparison,
    calculate_underperforming_agents,
)
from logistics_engine.processors.delivery_analytics.metrics.delays import (
    calculate_delivery_delays,
    calculate_top_delayed_routes,
    calculate_warehouse_delay_ranking,
)
from logistics_engine.processors.delivery_analytics.metrics.kpis import (
    calculate_on_time_percentage,
    calculate_regional_delay,
    calculate_route_traffic_delay,
)
from logistics_engine.processors.delivery_analytics.metrics.routes import (
    calculate_high_delay_routes,
    calculate_least_efficient_routes,
    calculate_route_delay_share,
    calculate_route_performance,
    efficiency_ratio,
)
from logistics_engine.processors.delivery_analytics.metrics.tracking import (
    calculate_delay_reasons,
    calculate_last_checkpoints,
    calculate_severely_delayed_orders,
)
from logistics_engine.processors.delivery_analytics.metrics.warehouses import (
    calculate_bottleneck_warehouses,
    calculate_slowest_warehouses,
    calculate_warehouse_on_time_ranking,
    calculate_warehouse_volume,
)


def _records(df: pd.DataFrame, *cols) -> list[tuple]:
    return list(df[list(cols)].itertuples(index=False, name=None))


# ------------------------------------------------------------------
# delays
# ------------------------------------------------------------------

def test_delivery_delays_are_floored_at_zero(dataset):
    delays = calculate_delivery_delays(dataset)
    assert delays["Order_ID"].tolist() == ["O1", "O2", "O3", "O4", "O5", "O6", "O7", "O8"]
    assert delays["Delivery_Delay_Days"].tolist() == [2, 0, 4, 0, 3, 0, 0, 2]
    assert (delays["Delivery_Delay_Days"] >= 0).all()


def test_delivery_delay_missing_date_is_na(raw_frames):
    raw_frames["orders"].loc[0, "Actual_Delivery_Date"] = None
    data = LogisticsIngestor().from_frames(raw_frames)
    delays = calculate_delivery_delays(data)
    assert pd.isna(delays["Delivery_Delay_Days"].iloc[0])
    assert delays["Delivery_Delay_Days"].iloc[2] == 4


def test_top_delayed_routes(dataset):
    top = calculate_top_delayed_routes(dataset, n=10)
    assert _records(top, "Route_ID", "Avg_Delay_Days") == [
        ("R2", 4.0), ("R3", 3.0), ("R1", 2.0), ("R4", 2.0),
    ]
    assert len(calculate_top_delayed_routes(dataset, n=2)) == 2


def test_warehouse_delay_ranking_shares_ranks_on_ties(dataset):
    ranking = calculate_warehouse_delay_ranking(dataset)
    assert _records(ranking, "Warehouse_ID", "Order_ID", "Delay_Rank_In_Warehouse") == [
        ("W1", "O3", 1), ("W1", "O1", 2), ("W1", "O2", 3),
        ("W2", "O5", 1), ("W2", "O4", 2), ("W2", "O6", 2),
        ("W3", "O8", 1), ("W3", "O7", 2),
    ]


# ------------------------------------------------------------------
# routes
# ------------------------------------------------------------------

def test_route_performance_only_routes_with_orders(dataset):
    perf = calculate_route_performance(dataset)
    assert perf["Route_ID"].tolist() == ["R1", "R2", "R3", "R4"]
    assert perf["Avg_Delivery_Time_Days"].tolist() == [9.0, 7.0, 4.67, 8.0]
    assert perf["Distance_Time_Efficiency"].tolist() == [0.75, 0.8, 0.9444, 1.1667]
    assert perf["Avg_Traffic_Delay_Min"].tolist() == [30, 45, 20, 60]


def test_efficiency_ratio_is_scale_invariant(dataset):
    routes = dataset.routes.copy()
    scaled = routes.assign(
        Distance_KM=routes["Distance_KM"] * 3,
        Average_Travel_Time_Min=routes["Average_Travel_Time_Min"] * 3,
    )
    assert efficiency_ratio(routes).tolist() == efficiency_ratio(scaled).tolist()


def test_efficiency_ratio_example():
    routes = pd.DataFrame({
        "Route_ID": ["R1", "R2"],
        "Distance_KM": [100, 80],
        "Average_Travel_Time_Min": [50, 40],
    })
    assert efficiency_ratio(routes).tolist() == [2.0, 2.0]


def test_zero_travel_time_has_no_efficiency(raw_frames):
    raw_frames["routes"].loc[0, "Average_Travel_Time_Min"] = 0
    data = LogisticsIngestor().from_frames(raw_frames)

    assert pd.isna(efficiency_ratio(data.routes).iloc[0])
    assert "R1" not in calculate_route_performance(data)["Route_ID"].tolist()
    assert calculate_least_efficient_routes(data, n=3)["Route_ID"].tolist() == ["R2", "R3", "R4"]


def test_repeated_route_rows_are_averaged_in_route_performance(raw_frames):
    routes = raw_frames["routes"]
    extra = routes.iloc[[0]].assign(Traffic_Delay_Min=40)
    raw_frames["routes"] = pd.concat([routes, extra], ignore_index=True)
    data = LogisticsIngestor().from_frames(raw_frames)

    perf = calculate_route_performance(data)
    assert perf["Route_ID"].tolist() == ["R1", "R2", "R3", "R4"]
    r1 = perf[perf["Route_ID"] == "R1"].iloc[0]
    assert r1["Avg_Traffic_Delay_Min"] == 35.0
    assert r1["Avg_Delivery_Time_Days"] == 9.0
    assert r1["Distance_Time_Efficiency"] == 0.75

    traffic = calculate_route_traffic_delay(data)
    assert traffic.loc[traffic["Route_ID"] == "R1", "Avg_Traffic_Delay_Min"].tolist() == [35.0]


def test_least_efficient_routes(dataset):
    worst = calculate_least_efficient_routes(dataset, n=3)
    assert worst["Route_ID"].tolist() == ["R1", "R2", "R3"]
    assert list(worst.columns) == [
        "Route_ID", "Start_Location", "End_Location", "Distance_Time_Efficiency",
    ]


def test_route_delay_share(dataset):
    share = calculate_route_delay_share(dataset)
    assert _records(share, "Route_ID", "Total_Orders", "Delayed_Orders", "Delay_Percentage") == [
        ("R1", 2, 1, 50.0), ("R2", 2, 1, 50.0), ("R3", 3, 1, 33.33), ("R4", 1, 1, 100.0),
    ]


def test_high_delay_routes_threshold_is_strict(dataset):
    assert calculate_high_delay_routes(dataset, threshold=40.0)["Route_ID"].tolist() == ["R1", "R2", "R4"]
    assert calculate_high_delay_routes(dataset, threshold=50.0)["Route_ID"].tolist() == ["R4"]
    assert calculate_high_delay_routes(dataset, threshold=20.0)["Route_ID"].tolist() == ["R1", "R2", "R3", "R4"]


# ------------------------------------------------------------------
# warehouses
# ------------------------------------------------------------------

def test_slowest_warehouses(dataset):
    slowest = calculate_slowest_warehouses(dataset, n=3)
    assert slowest["Warehouse_ID"].tolist() == ["W3", "W1", "W2"]


def test_warehouse_volume_sums_to_order_count(dataset):
    volume = calculate_warehouse_volume(dataset)
    assert _records(volume, "Warehouse_ID", "Total_Orders", "Delayed_Orders") == [
        ("W1", 3, 2), ("W2", 3, 1), ("W3", 2, 1),
    ]
    assert volume["Total_Orders"].sum() == len(dataset.orders)
    assert (volume["Delayed_Orders"] <= volume["Total_Orders"]).all()


def test_bottleneck_warehouses_above_global_average(dataset):
    result = calculate_bottleneck_warehouses(dataset)
    assert result["global_avg_time"] == 42.5
    assert result["warehouses"]["Warehouse_ID"].tolist() == ["W1", "W3"]


def test_bottleneck_with_no_warehouses():
    result = calculate_bottleneck_warehouses(LogisticsDataset())
    assert result["global_avg_time"] is None
    assert result["warehouses"].empty


def test_warehouse_on_time_ranking(dataset):
    ranking = calculate_warehouse_on_time_ranking(dataset)
    assert _records(ranking, "Warehouse_ID", "On_Time_Delivery_Percentage", "Warehouse_Rank") == [
        ("W2", 66.67, 1), ("W3", 50.0, 2), ("W1", 33.33, 3),
    ]


# ------------------------------------------------------------------
# agents
# ------------------------------------------------------------------

def test_agent_ranking_per_route(dataset):
    ranking = calculate_agent_ranking(dataset)
    assert _records(ranking, "Route_ID", "Agent_ID", "Agent_Rank_On_Route") == [
        ("R1", "A1", 1), ("R1", "A2", 1), ("R1", "A3", 3),
        ("R2", "A5", 1), ("R2", "A4", 2),
        ("R3", "A6", 1),
        ("R4", "A7", 1), ("R4", "A8", 2),
    ]


def test_underperforming_agents_worst_first(dataset):
    below = calculate_underperforming_agents(dataset, sla=80.0)
    assert _records(below, "Agent_ID", "On_Time_Percentage") == [
        ("A8", 60), ("A6", 70), ("A4", 75),
    ]
    # exactly at the SLA is not a miss
    assert "A3" not in below["Agent_ID"].tolist()


def test_speed_comparison(dataset):
    speeds = calculate_speed_comparison(dataset, group_size=5)
    assert _records(speeds, "Agent_Group", "Avg_Speed") == [
        ("Top 5 Agents", 40.0), ("Bottom 5 Agents", 32.0),
    ]


def test_speed_comparison_without_agents():
    assert calculate_speed_comparison(LogisticsDataset()).empty


# ------------------------------------------------------------------
# tracking
# ------------------------------------------------------------------

def test_last_checkpoint_per_order(dataset):
    last = calculate_last_checkpoints(dataset)
    assert _records(last, "Order_ID", "Last_Checkpoint") == [
        ("O1", "Out for Delivery"), ("O3", "Out for Delivery"), ("O5", "Picked Up"),
    ]
    assert last["Last_Checkpoint_Time"].iloc[0] == pd.Timestamp("2024-01-03 10:00:00")


def test_last_checkpoint_tie_prefers_highest_tracking_id(raw_frames):
    raw_frames["shipment_tracking"] = pd.DataFrame(
        [
            ("T9", "O1", "Sorting Hub", "2024-01-02 08:00:00", "None"),
            ("T8", "O1", "Regional Hub", "2024-01-02 08:00:00", "None"),
        ],
        columns=["Tracking_ID", "Order_ID", "Checkpoint", "Checkpoint_Time", "Delay_Reason"],
    )
    data = LogisticsIngestor().from_frames(raw_frames)
    assert calculate_last_checkpoints(data)["Last_Checkpoint"].tolist() == ["Sorting Hub"]


def test_last_checkpoint_tie_compares_numeric_tracking_ids_as_numbers(raw_frames):
    raw_frames["shipment_tracking"] = pd.DataFrame(
        [
            (10, "O1", "Delivered", "2024-01-02 08:00:00", "None"),
            (9, "O1", "Regional Hub", "2024-01-02 08:00:00", "None"),
            (2, "O3", "Picked Up", "2024-01-04 08:00:00", "None"),
            (11, "O3", "Sorting Hub", "2024-01-04 08:00:00", "None"),
        ],
        columns=["Tracking_ID", "Order_ID", "Checkpoint", "Checkpoint_Time", "Delay_Reason"],
    )
    data = LogisticsIngestor().from_frames(raw_frames)
    assert calculate_last_checkpoints(data)["Last_Checkpoint"].tolist() == ["Delivered", "Sorting Hub"]


def test_last_checkpoint_tie_without_tracking_id_takes_last_row(raw_frames):
    raw_frames["shipment_tracking"] = pd.DataFrame(
        [
            ("O1", "Sorting Hub", "2024-01-02 08:00:00", "None"),
            ("O1", "Regional Hub", "2024-01-02 08:00:00", "None"),
        ],
        columns=["Order_ID", "Checkpoint", "Checkpoint_Time", "Delay_Reason"],
    )
    data = LogisticsIngestor().from_frames(raw_frames)
    assert calculate_last_checkpoints(data)["Last_Checkpoint"].tolist() == ["Regional Hub"]


def test_delay_reasons_exclude_none(dataset):
    reasons = calculate_delay_reasons(dataset)
    assert _records(reasons, "Delay_Reason", "Occurrence_Count") == [
        ("Traffic", 3), ("Weather", 2), ("Sorting", 1),
    ]


def test_severely_delayed_orders(dataset):
    severe = calculate_severely_delayed_orders(dataset, min_checkpoints=2)
    assert _records(severe, "Order_ID", "Delayed_Checkpoint_Count") == [("O3", 3)]
    assert calculate_severely_delayed_orders(dataset, min_checkpoints=1)["Order_ID"].tolist() == ["O1", "O3"]


# ------------------------------------------------------------------
# kpis
# ------------------------------------------------------------------

def test_regional_delay(dataset):
    regional = calculate_regional_delay(dataset)
    assert _records(regional, "Start_Location", "Avg_Delivery_Delay_Days") == [
        ("Chennai", 2.0), ("Delhi", 4.0), ("Mumbai", 2.5),
    ]


def test_on_time_percentage(dataset):
    assert calculate_on_time_percentage(dataset) == 50.0
    assert calculate_on_time_percentage(LogisticsDataset()) is None


def test_route_traffic_delay_includes_routes_without_orders(dataset):
    traffic = calculate_route_traffic_delay(dataset)
    assert _records(traffic, "Route_ID", "Avg_Traffic_Delay_Min") == [
        ("R1", 30), ("R2", 45), ("R3", 20), ("R4", 60), ("R5", 10),
    ]


# ------------------------------------------------------------------
# unresolved references and missing dates
# ------------------------------------------------------------------

def test_order_on_unknown_route_only_leaves_joined_metrics(raw_frames):
    raw_frames["orders"].loc[7, "Route_ID"] = "R9"
    data = LogisticsIngestor().from_frames(raw_frames)

    # joined with routes: O8 drops out
    assert calculate_route_performance(data)["Route_ID"].tolist() == ["R1", "R2", "R3"]
    assert _records(calculate_regional_delay(data), "Start_Location", "Avg_Delivery_Delay_Days") == [
        ("Delhi", 4.0), ("Mumbai", 2.5),
    ]

    # orders only: O8 still counts
    share = calculate_route_delay_share(data)
    assert _records(share[share["Route_ID"] == "R9"], "Total_Orders", "Delayed_Orders", "Delay_Percentage") == [
        (1, 1, 100.0),
    ]
    assert "R9" in calculate_top_delayed_routes(data)["Route_ID"].tolist()
    assert calculate_warehouse_volume(data)["Total_Orders"].sum() == 8
    assert calculate_warehouse_on_time_ranking(data)["Warehouse_ID"].tolist() == ["W2", "W3", "W1"]
    assert calculate_on_time_percentage(data) == 50.0


def test_order_on_unknown_warehouse_keeps_route_metrics(raw_frames):
    raw_frames["orders"].loc[7, "Warehouse_ID"] = "W9"
    data = LogisticsIngestor().from_frames(raw_frames)

    volume = calculate_warehouse_volume(data)
    assert _records(volume[volume["Warehouse_ID"] == "W9"], "Total_Orders", "Delayed_Orders") == [(1, 1)]
    assert volume["Total_Orders"].sum() == 8
    assert calculate_route_performance(data)["Route_ID"].tolist() == ["R1", "R2", "R3", "R4"]
    assert calculate_on_time_percentage(data) == 50.0


def test_missing_actual_date_is_left_out_of_delay_averages(raw_frames):
    raw_frames["orders"].loc[2, "Actual_Delivery_Date"] = None
    data = LogisticsIngestor().from_frames(raw_frames)

    # O3 was R2's only late order
    assert _records(calculate_top_delayed_routes(data), "Route_ID", "Avg_Delay_Days") == [
        ("R3", 3.0), ("R1", 2.0), ("R4", 2.0),
    ]
    perf = calculate_route_performance(data)
    assert perf.loc[perf["Route_ID"] == "R2", "Avg_Delivery_Time_Days"].tolist() == [5.0]
    assert _records(calculate_regional_delay(data), "Start_Location", "Avg_Delivery_Delay_Days") == [
        ("Chennai", 2.0), ("Mumbai", 2.5),
    ]

    # the status column is untouched, so status-based metrics still count O3
    share = calculate_route_delay_share(data)
    assert share.loc[share["Route_ID"] == "R2", "Delayed_Orders"].tolist() == [1]
    assert calculate_on_time_percentage(data) == 50.0


# ------------------------------------------------------------------
# general properties
# ------------------------------------------------------------------

ALL_TABLE_METRICS = [
    calculate_delivery_delays,
    calculate_top_delayed_routes,
    calculate_warehouse_delay_ranking,
    calculate_route_performance,
    calculate_least_efficient_routes,
    calculate_route_delay_share,
    calculate_high_delay_routes,
    calculate_slowest_warehouses,
    calculate_warehouse_volume,
    calculate_warehouse_on_time_ranking,
    calculate_agent_ranking,
    calculate_underperforming_agents,
    calculate_speed_comparison,
    calculate_last_checkpoints,
    calculate_delay_reasons,
    calculate_severely_delayed_orders,
    calculate_regional_delay,
    calculate_route_traffic_delay,
]


@pytest.mark.parametrize("metric", ALL_TABLE_METRICS, ids=lambda f: f.__name__)
def test_metrics_are_idempotent_and_do_not_mutate(dataset, metric):
    before = {name: df.copy() for name, df in dataset.tables().items()}
    first = metric(dataset)
    second = metric(dataset)
    pd.testing.assert_frame_equal(first, second)
    for name, df in dataset.tables().items():
        pd.testing.assert_frame_equal(df, before[name])


@pytest.mark.parametrize("metric", ALL_TABLE_METRICS, ids=lambda f: f.__name__)
def test_metrics_on_empty_dataset(metric):
    assert metric(LogisticsDataset()).empty
