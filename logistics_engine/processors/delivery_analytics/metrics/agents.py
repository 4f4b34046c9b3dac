"""
Delivery Agent Metrics — Per-route ranking, SLA misses, speed comparison.

All figures come from the delivery_agents table (On_Time_Percentage and
Avg_Speed_KM_HR are stored per agent, not derived from orders).
"""

from __future__ import annotations

import pandas as pd

from ..core import columns as c
from ..core.ranking import competition_rank, top_n
from ..dataset import LogisticsDataset


AGENT_RANK = "Agent_Rank_On_Route"
AGENT_GROUP = "Agent_Group"
AVG_SPEED = "Avg_Speed"


def _agents(data: LogisticsDataset) -> pd.DataFrame:
    out = data.delivery_agents[[c.AGENT_ID, c.ROUTE_ID, c.ON_TIME_PCT, c.AVG_SPEED]].copy()
    for col in (c.ON_TIME_PCT, c.AVG_SPEED):
        out[col] = pd.to_numeric(out[col], errors="coerce")
    return out


def calculate_agent_ranking(data: LogisticsDataset) -> pd.DataFrame:
    """
    Rank agents within each route by on-time percentage (best = 1, ties share a rank).

    Returns:
        DataFrame [Agent_ID, Route_ID, On_Time_Percentage, Agent_Rank_On_Route],
        ordered by route then rank.
    """
    agents = _agents(data)
    agents = agents[agents[c.ROUTE_ID].notna()][[c.AGENT_ID, c.ROUTE_ID, c.ON_TIME_PCT]]

    ranked = competition_rank(agents, c.ON_TIME_PCT, AGENT_RANK, partition_by=c.ROUTE_ID)
    return ranked.sort_values(
        [c.ROUTE_ID, AGENT_RANK], kind="mergesort", na_position="last",
    ).reset_index(drop=True)


def calculate_underperforming_agents(data: LogisticsDataset, sla: float = 80.0) -> pd.DataFrame:
    """
    Agents whose on-time percentage is below the *sla* threshold, worst first.

    Returns:
        DataFrame [Agent_ID, Route_ID, On_Time_Percentage]
    """
    agents = _agents(data)[[c.AGENT_ID, c.ROUTE_ID, c.ON_TIME_PCT]]
    below = agents[agents[c.ON_TIME_PCT] < sla]
    return below.sort_values(c.ON_TIME_PCT, kind="mergesort").reset_index(drop=True)


def calculate_speed_comparison(data: LogisticsDataset, group_size: int = 5) -> pd.DataFrame:
    """
    Average speed of the top vs bottom *group_size* agents by on-time percentage.

    Agents without an on-time figure are not eligible for either group. With
    fewer than 2 × group_size agents the groups overlap. A group with no measurable speed is omitted.

    Returns:
        DataFrame [Agent_Group, Avg_Speed] with rows
        "Top 5 Agents" and "Bottom 5 Agents".
    """
    agents = _agents(data).dropna(subset=[c.ON_TIME_PCT])

    rows: list[dict] = []
    for label, ascending in ((f"Top {group_size} Agents", False), (f"Bottom {group_size} Agents", True)):
        group = top_n(agents, c.ON_TIME_PCT, group_size, ascending=ascending)
        speeds = group[c.AVG_SPEED].dropna()
        if speeds.empty:
            continue
        rows.append({AGENT_GROUP: label, AVG_SPEED: round(float(speeds.mean()), 2)})

    return pd.DataFrame(rows, columns=[AGENT_GROUP, AVG_SPEED])
