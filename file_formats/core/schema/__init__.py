"""
Schema conversion and registry.
"""

from .conversion import from_struct_type, schema_from_dict, schema_to_dict, to_struct_type
from .registry import SchemaRegistry

__all__ = [
    "SchemaRegistry",
    "schema_from_dict",
    "schema_to_dict",
    "to_struct_type",
    "from_struct_type",
]
