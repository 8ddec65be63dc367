"""
Type checks for field values against a declared schema field.
"""

from collections.abc import Mapping
from typing import Any

from file_formats.core.errors import SchemaMismatchError
from file_formats.core.models.field_schema import Field, FieldType

INT_MIN, INT_MAX = -(2**31), 2**31 - 1
LONG_MIN, LONG_MAX = -(2**63), 2**63 - 1


def _is_integer(value: Any) -> bool:
    # bool is an int subclass but never a valid integer value
    return isinstance(value, int) and not isinstance(value, bool)


def check_primitive(field_type: FieldType, value: Any, field_name: str) -> None:
    """
    Validate a non-None value against a primitive field type.

    Raises:
        SchemaMismatchError: If the value is incompatible with the type
    """
    if field_type == FieldType.BOOLEAN:
        ok = isinstance(value, bool)
    elif field_type == FieldType.INT:
        ok = _is_integer(value) and INT_MIN <= value <= INT_MAX
    elif field_type == FieldType.LONG:
        ok = _is_integer(value) and LONG_MIN <= value <= LONG_MAX
    elif field_type in (FieldType.FLOAT, FieldType.DOUBLE):
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif field_type == FieldType.STRING:
        ok = isinstance(value, str)
    elif field_type == FieldType.BYTES:
        ok = isinstance(value, (bytes, bytearray))
    else:
        raise SchemaMismatchError(f"{field_type.value} is not a primitive type", field_name)

    if not ok:
        raise SchemaMismatchError(
            f"Value of type {type(value).__name__} is incompatible with {field_type.value}",
            field_name,
        )


def check_value(field: Field, value: Any) -> None:
    """
    Validate a value (possibly None) against a schema field.

    Nested records may be given as StructuredRecord instances or plain
    mappings; both are checked recursively.

    Raises:
        SchemaMismatchError: If the value does not conform to the field
    """
    if value is None:
        if not field.nullable:
            raise SchemaMismatchError("Field is not nullable", field.name)
        return

    if field.type == FieldType.RECORD:
        if not isinstance(value, Mapping):
            raise SchemaMismatchError(
                f"Expected a record, got {type(value).__name__}", field.name
            )
        check_mapping(field.record_schema, value, prefix=f"{field.name}.")
        return

    if field.type == FieldType.ARRAY:
        if not isinstance(value, (list, tuple)):
            raise SchemaMismatchError(
                f"Expected an array, got {type(value).__name__}", field.name
            )
        for item in value:
            if item is None:
                raise SchemaMismatchError("Array items may not be null", field.name)
            check_primitive(field.item_type, item, field.name)
        return

    check_primitive(field.type, value, field.name)


def check_mapping(schema, values: Mapping[str, Any], prefix: str = "") -> None:
    """
    Validate every schema field of a mapping.

    Missing keys are treated as None, so a missing non-nullable field fails.
    """
    for field in schema.fields:
        if field.name not in values and not field.nullable:
            raise SchemaMismatchError("Missing required field", f"{prefix}{field.name}")
        try:
            check_value(field, values.get(field.name))
        except SchemaMismatchError as e:
            if not prefix:
                raise
            raise SchemaMismatchError(e.message, f"{prefix}{e.field_name}") from e
