"""
logistics_engine — Delivery route analytics for the five-table logistics schema.

Submodules:
    - config: Filesystem paths and tunable report thresholds
    - processors: Source-specific data pipelines (ingest → metrics → snapshot)
    - knowledge_base: Markdown / CSV / JSON report storage
"""

__version__ = "1.0.0"
