"""
JSON lines codec: one JSON object per line.

Bytes values are carried as base64 strings, nested records as objects.
"""

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any, ClassVar

from file_formats.core.errors import MalformedInputError, SchemaMismatchError
from file_formats.core.models import Field, FieldType, Schema
from file_formats.core.validators import check_primitive

from .base_codec import FormatCodec


class JsonCodec(FormatCodec):
    """
    Reads and writes newline-delimited JSON objects.

    Keys not declared in the schema are ignored on decode.
    """

    name: ClassVar[str] = "json"
    extension: ClassVar[str] = ".json"

    def decode_value(self, raw: str) -> dict[str, Any]:
        schema = self.require_schema()
        try:
            obj = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Invalid JSON: {e.msg}", self.name) from e

        if not isinstance(obj, dict):
            raise MalformedInputError(
                f"Expected a JSON object, got {type(obj).__name__}", self.name
            )
        return self._from_json(schema, obj)

    def _from_json(self, schema: Schema, obj: dict[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field in schema.fields:
            raw_value = obj.get(field.name)
            if raw_value is None:
                if not field.nullable:
                    raise MalformedInputError(f"Missing required field '{field.name}'", self.name)
                values[field.name] = None
                continue
            values[field.name] = self._convert(field, raw_value)
        return values

    def _convert(self, field: Field, value: Any) -> Any:
        if field.type == FieldType.RECORD:
            if not isinstance(value, dict):
                raise MalformedInputError(f"Field '{field.name}' must be a JSON object", self.name)
            return self._from_json(field.record_schema, value)

        if field.type == FieldType.ARRAY:
            if not isinstance(value, list):
                raise MalformedInputError(f"Field '{field.name}' must be a JSON array", self.name)
            return [self._convert_primitive(field.item_type, field.name, item) for item in value]

        return self._convert_primitive(field.type, field.name, value)

    def _convert_primitive(self, field_type: FieldType, field_name: str, value: Any) -> Any:
        if field_type == FieldType.BYTES:
            if not isinstance(value, str):
                raise MalformedInputError(f"Field '{field_name}' must be a base64 string", self.name)
            try:
                return base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise MalformedInputError(f"Field '{field_name}' is not valid base64", self.name) from e

        if field_type in (FieldType.FLOAT, FieldType.DOUBLE) and isinstance(value, int) \
                and not isinstance(value, bool):
            value = float(value)

        try:
            check_primitive(field_type, value, field_name)
        except SchemaMismatchError as e:
            raise MalformedInputError(str(e), self.name) from e
        return value

    def encode_value(self, record: Mapping[str, Any], schema: Schema) -> str:
        return json.dumps(self._to_json(schema, record), ensure_ascii=False, separators=(",", ":"))

    def _to_json(self, schema: Schema, record: Mapping[str, Any]) -> dict[str, Any]:
        obj: dict[str, Any] = {}
        for field in schema.fields:
            value = record.get(field.name)
            if value is None:
                obj[field.name] = None
            elif field.type == FieldType.RECORD:
                obj[field.name] = self._to_json(field.record_schema, value)
            elif field.type == FieldType.ARRAY:
                obj[field.name] = [_json_primitive(item) for item in value]
            else:
                obj[field.name] = _json_primitive(value)
        return obj


def _json_primitive(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value
