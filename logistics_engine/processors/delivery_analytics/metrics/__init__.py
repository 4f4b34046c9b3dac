"""
Metrics — Pure-function reporting modules for the delivery analytics pipeline.

Each function takes a LogisticsDataset (or the tables it needs) and returns
a DataFrame or a scalar. No I/O, no side effects, inputs never mutated.

Modules:
    delays      — Per-order delay, top delayed routes, per-warehouse delay rank
    routes      — Route performance, efficiency, delayed share
    warehouses  — Processing-time bottlenecks, volume, on-time ranking
    agents      — Agent ranking per route, SLA misses, speed comparison
    tracking    — Last checkpoint, delay reasons, severely delayed orders
    kpis        — Regional delay, overall on-time %, traffic delay per route
"""
