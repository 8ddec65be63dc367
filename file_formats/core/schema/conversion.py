"""
Schema conversion between dict/YAML layouts and Spark StructType.

Two dict layouts are accepted:

    {"fields": [{"name": "id", "type": "long", "nullable": false}]}

and the record layout used by pipeline plugin configs:

    {"type": "record", "name": "event",
     "fields": [{"name": "id", "type": "long"},
                {"name": "body", "type": ["string", "null"]}]}
"""

from typing import Any

from pydantic import ValidationError
from pyspark.sql.types import (
    ArrayType,
    BinaryType,
    BooleanType,
    DataType,
    DoubleType,
    FloatType,
    IntegerType,
    LongType,
    StringType,
    StructField,
    StructType,
)

from file_formats.core.errors import ConfigError
from file_formats.core.models.field_schema import Field, FieldType, Schema

# Spark repr names, as produced by str(DataType) in schema dumps
TYPE_ALIASES = {
    "bool": FieldType.BOOLEAN,
    "integer": FieldType.INT,
    "str": FieldType.STRING,
    "binary": FieldType.BYTES,
    "BooleanType()": FieldType.BOOLEAN,
    "IntegerType()": FieldType.INT,
    "LongType()": FieldType.LONG,
    "FloatType()": FieldType.FLOAT,
    "DoubleType()": FieldType.DOUBLE,
    "StringType()": FieldType.STRING,
    "BinaryType()": FieldType.BYTES,
}

SPARK_TYPES = {
    FieldType.BOOLEAN: BooleanType,
    FieldType.INT: IntegerType,
    FieldType.LONG: LongType,
    FieldType.FLOAT: FloatType,
    FieldType.DOUBLE: DoubleType,
    FieldType.STRING: StringType,
    FieldType.BYTES: BinaryType,
}


def _parse_type_name(name: Any, field_name: str) -> FieldType:
    if not isinstance(name, str):
        raise ConfigError(f"Unsupported type declaration {name!r}", field_name)
    if name in TYPE_ALIASES:
        return TYPE_ALIASES[name]
    try:
        return FieldType(name.lower())
    except ValueError:
        raise ConfigError(f"Unknown field type '{name}'", field_name) from None


def _parse_field(field_def: dict[str, Any]) -> Field:
    if not isinstance(field_def, dict) or "name" not in field_def:
        raise ConfigError(f"Field definition must be a mapping with a 'name': {field_def!r}")

    name = field_def["name"]
    type_spec = field_def.get("type")
    nullable = bool(field_def.get("nullable", False))

    # ["string", "null"] style unions mark the field nullable
    if isinstance(type_spec, list):
        members = [m for m in type_spec if m != "null"]
        if len(members) != 1:
            raise ConfigError("Only unions of a single type with null are supported", name)
        nullable = nullable or "null" in type_spec
        type_spec = members[0]

    nested_def: dict[str, Any] | None = None
    item_spec: Any = field_def.get("item_type", field_def.get("items"))

    if isinstance(type_spec, dict):
        nested_def = type_spec
        type_spec = type_spec.get("type")
        item_spec = nested_def.get("items", item_spec)

    field_type = _parse_type_name(type_spec, name)

    record_schema = None
    item_type = None
    if field_type == FieldType.RECORD:
        source = nested_def if nested_def is not None else field_def.get("record_schema", field_def)
        record_schema = schema_from_dict({"name": source.get("name", name), "fields": source.get("fields")})
    elif field_type == FieldType.ARRAY:
        if item_spec is None:
            raise ConfigError("Array field requires 'items' or 'item_type'", name)
        item_type = _parse_type_name(item_spec, name)

    try:
        return Field(
            name=name,
            type=field_type,
            nullable=nullable,
            record_schema=record_schema,
            item_type=item_type,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid field definition: {e}", name) from e


def schema_from_dict(schema_dict: dict[str, Any]) -> Schema:
    """
    Build a Schema from either supported dict layout.

    Raises:
        ConfigError: If the definition is invalid
    """
    if isinstance(schema_dict, Schema):
        return schema_dict
    if not isinstance(schema_dict, dict):
        raise ConfigError(f"Schema definition must be a mapping, got {type(schema_dict).__name__}")

    field_defs = schema_dict.get("fields")
    if not isinstance(field_defs, list):
        raise ConfigError("Schema definition must contain a 'fields' list")

    fields = tuple(_parse_field(field_def) for field_def in field_defs)
    try:
        return Schema(name=schema_dict.get("name") or "record", fields=fields)
    except ValidationError as e:
        raise ConfigError(f"Invalid schema: {e}") from e


def schema_to_dict(schema: Schema) -> dict[str, Any]:
    """Convert a Schema to the plain dict layout."""
    fields = []
    for field in schema.fields:
        entry: dict[str, Any] = {
            "name": field.name,
            "type": field.type.value,
            "nullable": field.nullable,
        }
        if field.record_schema is not None:
            entry["record_schema"] = schema_to_dict(field.record_schema)
        if field.item_type is not None:
            entry["item_type"] = field.item_type.value
        fields.append(entry)
    return {"name": schema.name, "fields": fields}


def to_struct_type(schema: Schema) -> StructType:
    """Convert a Schema to a Spark StructType."""
    return StructType([
        StructField(field.name, _to_spark_type(field), field.nullable)
        for field in schema.fields
    ])


def _to_spark_type(field: Field) -> DataType:
    if field.type == FieldType.RECORD:
        return to_struct_type(field.record_schema)
    if field.type == FieldType.ARRAY:
        return ArrayType(SPARK_TYPES[field.item_type](), containsNull=False)
    return SPARK_TYPES[field.type]()


def from_struct_type(struct: StructType, name: str = "record") -> Schema:
    """
    Convert a Spark StructType to a Schema.

    Raises:
        ConfigError: If a Spark type has no schema equivalent
    """
    fields = []
    for spark_field in struct.fields:
        data_type = spark_field.dataType
        kwargs: dict[str, Any] = {}
        if isinstance(data_type, StructType):
            field_type = FieldType.RECORD
            kwargs["record_schema"] = from_struct_type(data_type, spark_field.name)
        elif isinstance(data_type, ArrayType):
            field_type = FieldType.ARRAY
            kwargs["item_type"] = _from_spark_primitive(data_type.elementType, spark_field.name)
        else:
            field_type = _from_spark_primitive(data_type, spark_field.name)
        fields.append(Field(name=spark_field.name, type=field_type, nullable=spark_field.nullable, **kwargs))
    return Schema(name=name, fields=tuple(fields))


def _from_spark_primitive(data_type: DataType, field_name: str) -> FieldType:
    for field_type, spark_type in SPARK_TYPES.items():
        if isinstance(data_type, spark_type):
            return field_type
    raise ConfigError(f"Unsupported Spark type {data_type}", field_name)
