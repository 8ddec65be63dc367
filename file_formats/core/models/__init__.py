"""
Core data models for the file format adapter layer.

Configuration and metadata models use Pydantic for runtime validation.
"""

from .field_schema import Field, FieldType, Schema
from .file_split import CombinedFileSplit, FileSplit
from .lineage_record import LineageRecord
from .output import InvalidEntry, Output, OutputFormatProvider
from .record import RecordBuilder, StructuredRecord
from .sink_config import FileSinkConfig

__all__ = [
    "Field",
    "FieldType",
    "Schema",
    "FileSplit",
    "CombinedFileSplit",
    "LineageRecord",
    "Output",
    "OutputFormatProvider",
    "InvalidEntry",
    "RecordBuilder",
    "StructuredRecord",
    "FileSinkConfig",
]
