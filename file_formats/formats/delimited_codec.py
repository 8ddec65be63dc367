"""
Delimited text codecs (CSV, TSV).

One record per line, fields in schema order. Only primitive fields are
supported; bytes are carried as base64 text.
"""

import base64
import binascii
import csv
import io
from collections.abc import Mapping
from typing import Any, ClassVar

from file_formats.core.errors import ConfigError, MalformedInputError, SchemaMismatchError
from file_formats.core.models import FieldType, Schema
from file_formats.core.validators import check_primitive

from .base_codec import FormatCodec

DELIMITER_PROPERTY = "delimiter"
SKIP_HEADER_PROPERTY = "skip_header"

TRUE_VALUES = ("true", "1", "yes")
FALSE_VALUES = ("false", "0", "no")


class DelimitedCodec(FormatCodec):
    """
    Reads and writes delimiter-separated lines.

    An empty column decodes to None for nullable fields and to "" for
    non-nullable string fields, so nullable strings do not round-trip "".
    """

    name: ClassVar[str] = "delimited"
    extension: ClassVar[str] = ".txt"
    full_fidelity: ClassVar[bool] = False
    supported_types: ClassVar[frozenset[FieldType]] = frozenset(
        t for t in FieldType if t.is_primitive
    )
    default_delimiter: ClassVar[str] = ","

    def _configure(self, properties: dict[str, str]) -> None:
        self.delimiter = properties.get(DELIMITER_PROPERTY, self.default_delimiter)
        if self.delimiter == "\\t":
            self.delimiter = "\t"
        if len(self.delimiter) != 1:
            raise ConfigError("Delimiter must be a single character", DELIMITER_PROPERTY)

        skip_header = properties.get(SKIP_HEADER_PROPERTY, "false").strip().lower()
        if skip_header not in TRUE_VALUES + FALSE_VALUES:
            raise ConfigError(f"Invalid boolean '{skip_header}'", SKIP_HEADER_PROPERTY)
        self._skip_header = skip_header in TRUE_VALUES

    @property
    def skip_header(self) -> bool:
        return self._skip_header

    def decode_value(self, raw: str) -> dict[str, Any]:
        schema = self.require_schema()
        try:
            row = next(csv.reader([raw], delimiter=self.delimiter), [])
        except csv.Error as e:
            raise MalformedInputError(f"Invalid delimited line: {e}", self.name) from e

        if len(row) != len(schema.fields):
            raise MalformedInputError(
                f"Expected {len(schema.fields)} columns, found {len(row)}", self.name
            )

        values: dict[str, Any] = {}
        for field, text in zip(schema.fields, row):
            if text == "":
                if field.nullable:
                    values[field.name] = None
                    continue
                if field.type == FieldType.STRING:
                    values[field.name] = ""
                    continue
                raise MalformedInputError(f"Missing required field '{field.name}'", self.name)
            values[field.name] = self._parse(field.type, field.name, text)
        return values

    def _parse(self, field_type: FieldType, field_name: str, text: str) -> Any:
        try:
            if field_type == FieldType.BOOLEAN:
                lowered = text.strip().lower()
                if lowered in TRUE_VALUES:
                    return True
                if lowered in FALSE_VALUES:
                    return False
                raise ValueError(f"invalid boolean {text!r}")
            if field_type in (FieldType.INT, FieldType.LONG):
                value = int(text)
                check_primitive(field_type, value, field_name)
                return value
            if field_type in (FieldType.FLOAT, FieldType.DOUBLE):
                return float(text)
            if field_type == FieldType.BYTES:
                return base64.b64decode(text, validate=True)
            return text
        except (ValueError, binascii.Error, SchemaMismatchError) as e:
            raise MalformedInputError(
                f"Cannot parse '{field_name}' as {field_type.value}: {e}", self.name
            ) from e

    def encode_value(self, record: Mapping[str, Any], schema: Schema) -> str:
        # one record per line, the line reader cannot rejoin quoted line breaks
        for field in schema.fields:
            value = record.get(field.name)
            if isinstance(value, str) and ("\n" in value or "\r" in value):
                raise SchemaMismatchError("Delimited values cannot contain line breaks", field.name)

        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=self.delimiter, lineterminator="")
        writer.writerow([_format(record.get(field.name)) for field in schema.fields])
        return buffer.getvalue()

    def _extra_format_config(self) -> dict[str, str]:
        return {"file_formats.delimited.delimiter": self.delimiter}


class CsvCodec(DelimitedCodec):
    name: ClassVar[str] = "csv"
    extension: ClassVar[str] = ".csv"
    default_delimiter: ClassVar[str] = ","


class TsvCodec(DelimitedCodec):
    name: ClassVar[str] = "tsv"
    extension: ClassVar[str] = ".tsv"
    default_delimiter: ClassVar[str] = "\t"


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)
