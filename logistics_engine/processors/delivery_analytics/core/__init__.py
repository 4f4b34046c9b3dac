"""
Core utilities for the delivery analytics pipeline.

Modules:
    cleaning  — Date / numeric / label normalisation, DATEDIFF helper
    columns   — Canonical schema and flexible header resolution
    enums     — DeliveryStatus / DelayReason vocabularies
    ranking   — Tie-aware competition ranking and ORDER BY ... LIMIT helpers
"""
