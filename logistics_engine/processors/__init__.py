"""
Processors — Source-specific data pipelines.

Each source folder owns its ingestor, its pure metric modules and an
analyzer that bundles every metric into a single snapshot dict.
"""
