"""
Knowledge Base — Report rendering (converters) and storage (manager).
"""
