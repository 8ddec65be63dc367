"""
Spark host binding for the format adapters.
"""

from .pipeline import BatchFormatPipeline, WriterEmitter, process_partition, read_split_rows

__all__ = [
    "BatchFormatPipeline",
    "WriterEmitter",
    "process_partition",
    "read_split_rows",
]
