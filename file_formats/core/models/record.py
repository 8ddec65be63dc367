"""
Record representations: a mutable builder and an immutable finalized record.
"""

from collections.abc import Iterator, Mapping
from typing import Any

from file_formats.core.errors import SchemaMismatchError
from file_formats.core.models.field_schema import FieldType, Schema
from file_formats.core.validators.type_validator import check_value


class StructuredRecord(Mapping):
    """
    Immutable, fully populated record conforming to exactly one schema.

    Iteration follows schema field order. Unset nullable fields read as None.
    Instances are only created through RecordBuilder.build().
    """

    def __init__(self, schema: Schema, values: dict[str, Any]):
        self._schema = schema
        self._values = values

    @property
    def schema(self) -> Schema:
        return self._schema

    @classmethod
    def builder(cls, schema: Schema) -> "RecordBuilder":
        return RecordBuilder(schema)

    def __getitem__(self, name: str) -> Any:
        if not self._schema.has_field(name):
            raise KeyError(name)
        return self._values.get(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._schema.field_names())

    def __len__(self) -> int:
        return len(self._schema.fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructuredRecord):
            return NotImplemented
        return self._schema == other._schema and dict(self.items()) == dict(other.items())

    __hash__ = None

    def __repr__(self) -> str:
        return f"StructuredRecord({self._schema.name}, {dict(self.items())!r})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict, recursing into nested records."""
        result: dict[str, Any] = {}
        for name, value in self.items():
            if isinstance(value, StructuredRecord):
                value = value.to_dict()
            elif isinstance(value, tuple):
                value = list(value)
            result[name] = value
        return result


class RecordBuilder:
    """
    Mutable, partially populated record.

    Every value is type-checked on set(); build() enforces that all
    non-nullable fields are present.
    """

    def __init__(self, schema: Schema):
        self._schema = schema
        self._values: dict[str, Any] = {}

    @property
    def schema(self) -> Schema:
        return self._schema

    def set(self, name: str, value: Any) -> "RecordBuilder":
        """
        Set a field value.

        Raises:
            SchemaMismatchError: If the field is unknown or the value is incompatible
        """
        field = self._schema.get_field(name)
        if field is None:
            raise SchemaMismatchError(
                f"Field is not part of schema '{self._schema.name}'", name
            )
        check_value(field, value)
        self._values[name] = _freeze(field.type, field.record_schema, value)
        return self

    def set_all(self, values: Mapping[str, Any]) -> "RecordBuilder":
        for name, value in values.items():
            self.set(name, value)
        return self

    def is_set(self, name: str) -> bool:
        return name in self._values

    def build(self) -> StructuredRecord:
        """
        Finalize the record.

        Raises:
            SchemaMismatchError: If a non-nullable field was never set
        """
        for field in self._schema.fields:
            if not field.nullable and self._values.get(field.name) is None:
                raise SchemaMismatchError("Missing required field", field.name)
        return StructuredRecord(self._schema, dict(self._values))


def _freeze(field_type: FieldType, record_schema: Schema | None, value: Any) -> Any:
    """Normalize a checked value into its immutable stored form."""
    if value is None:
        return None
    if field_type == FieldType.RECORD:
        if isinstance(value, StructuredRecord) and value.schema == record_schema:
            return value
        nested = {name: value[name] for name in record_schema.field_names() if name in value}
        return RecordBuilder(record_schema).set_all(nested).build()
    if field_type == FieldType.ARRAY:
        return tuple(bytes(v) if isinstance(v, bytearray) else v for v in value)
    if field_type == FieldType.BYTES:
        return bytes(value)
    if field_type in (FieldType.FLOAT, FieldType.DOUBLE):
        return float(value)
    return value
