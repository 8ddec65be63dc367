"""
Schema-driven file format adapters for batch pipelines.

Pluggable read/write codecs with file provenance tracking, deferred output
directory resolution and field-level lineage recording.
"""

__version__ = "0.1.0"
