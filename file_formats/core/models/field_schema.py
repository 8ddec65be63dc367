"""
Schema descriptor: an ordered, immutable sequence of typed fields.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator, model_validator


class FieldType(str, Enum):
    """Value types a schema field can declare."""

    BOOLEAN = "boolean"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BYTES = "bytes"
    RECORD = "record"
    ARRAY = "array"

    @property
    def is_primitive(self) -> bool:
        return self not in (FieldType.RECORD, FieldType.ARRAY)


class Field(BaseModel):
    """
    A named, typed schema field.

    Attributes:
        name: Field name, unique within its schema
        type: Declared value type
        nullable: Whether the field may be absent/None
        record_schema: Nested schema when type is RECORD
        item_type: Primitive element type when type is ARRAY
    """

    model_config = ConfigDict(frozen=True)

    name: str = PydanticField(..., min_length=1)
    type: FieldType
    nullable: bool = False
    record_schema: "Schema | None" = None
    item_type: FieldType | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "Field":
        if self.type == FieldType.RECORD:
            if self.record_schema is None:
                raise ValueError(f"Record field '{self.name}' requires a nested schema")
        elif self.record_schema is not None:
            raise ValueError(f"Only record fields may declare a nested schema ('{self.name}')")

        if self.type == FieldType.ARRAY:
            if self.item_type is None or not self.item_type.is_primitive:
                raise ValueError(f"Array field '{self.name}' requires a primitive item_type")
        elif self.item_type is not None:
            raise ValueError(f"Only array fields may declare an item_type ('{self.name}')")
        return self


class Schema(BaseModel):
    """
    Ordered sequence of fields describing one record shape.

    Schemas are created at configuration time and never mutated; they are
    shared read-only by codecs, readers and formatters.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "event",
                "fields": [
                    {"name": "id", "type": "long", "nullable": False},
                    {"name": "body", "type": "string", "nullable": True},
                    {"name": "tags", "type": "array", "item_type": "string", "nullable": True},
                ],
            }
        },
    )

    name: str = "record"
    fields: tuple[Field, ...] = ()

    @field_validator("fields")
    @classmethod
    def _unique_names(cls, fields: tuple[Field, ...]) -> tuple[Field, ...]:
        seen: set[str] = set()
        for field in fields:
            if field.name in seen:
                raise ValueError(f"Duplicate field name '{field.name}'")
            seen.add(field.name)
        return fields

    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]

    def get_field(self, name: str) -> Field | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def has_field(self, name: str) -> bool:
        return self.get_field(name) is not None

    def without(self, name: str) -> "Schema":
        """Return a copy of this schema with the named field removed."""
        return Schema(name=self.name, fields=tuple(f for f in self.fields if f.name != name))


Field.model_rebuild()
