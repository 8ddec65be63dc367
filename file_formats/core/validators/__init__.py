"""
Value validation against schema fields.
"""

# models (and its record module, which uses type_validator) must load first
from file_formats.core import models  # noqa: F401

from .type_validator import check_mapping, check_primitive, check_value

__all__ = [
    "check_mapping",
    "check_primitive",
    "check_value",
]
