"""
Logging, metrics and lineage.
"""
