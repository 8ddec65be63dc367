"""
Format codec interface.

A codec decodes raw line values into field-value maps against a schema and
encodes records into (key, value) pairs understood by the matching output
writer. Codecs hold no mutable state beyond their immutable schema and
properties, so they can be instantiated concurrently per split or per
execution unit.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, ClassVar

from file_formats.core.errors import ConfigError, SchemaMismatchError
from file_formats.core.models import FieldType, Schema, StructuredRecord
from file_formats.core.validators import check_mapping

# Output format property keys shared with the output writers
OUTPUT_EXTENSION_KEY = "file_formats.output.extension"
OUTPUT_COMPRESSION_KEY = "file_formats.output.compression"
OUTPUT_FORMAT_KEY = "file_formats.output.format"

COMPRESSION_PROPERTY = "compression"
COMPRESSION_CODECS = ("none", "gzip")

TEXT_OUTPUT_WRITER = "file_formats.output.writers.TextOutputWriter"


class FormatCodec(ABC):
    """
    Abstract base class for all format codecs.

    Subclasses declare a canonical name, the output writer class the host
    must instantiate, and implement decode_value()/encode_value().
    """

    name: ClassVar[str]
    extension: ClassVar[str] = ""
    format_class_name: ClassVar[str] = TEXT_OUTPUT_WRITER
    writable: ClassVar[bool] = True
    # decode(encode(record)) == record for every record valid against the schema
    full_fidelity: ClassVar[bool] = True
    supported_types: ClassVar[frozenset[FieldType]] = frozenset(FieldType)

    def __init__(self, schema: Schema | None = None, properties: Mapping[str, str] | None = None):
        """
        Initialize codec.

        Args:
            schema: Declared schema, None when it is only known per record
            properties: Format-specific properties

        Raises:
            ConfigError: If the schema or properties are unusable for this format
        """
        self.schema = schema
        self.properties = dict(properties or {})

        self.compression = self.properties.get(COMPRESSION_PROPERTY, "none").lower()
        if self.compression not in COMPRESSION_CODECS:
            raise ConfigError(
                f"Unsupported compression '{self.compression}'. Supported: {list(COMPRESSION_CODECS)}",
                COMPRESSION_PROPERTY,
            )

        if schema is not None:
            self.check_schema(schema)
        self._configure(self.properties)

    def _configure(self, properties: dict[str, str]) -> None:
        """Parse format-specific properties. Override in subclasses."""

    @property
    def skip_header(self) -> bool:
        """Whether each file starts with a one-time preamble line to skip."""
        return False

    def check_schema(self, schema: Schema) -> None:
        """
        Verify every field type is representable in this format.

        Raises:
            ConfigError: If a field uses an unsupported type
        """
        for field in schema.fields:
            if field.type not in self.supported_types:
                raise ConfigError(
                    f"Type {field.type.value} is not supported by the {self.name} format",
                    field.name,
                )
            if field.item_type is not None and field.item_type not in self.supported_types:
                raise ConfigError(
                    f"Array item type {field.item_type.value} is not supported by the {self.name} format",
                    field.name,
                )
            if field.record_schema is not None:
                self.check_schema(field.record_schema)

    def with_schema(self, schema: Schema) -> "FormatCodec":
        """Return a codec of the same format and properties bound to another schema."""
        return type(self)(schema, self.properties)

    def require_schema(self) -> Schema:
        if self.schema is None:
            raise ConfigError(f"The {self.name} format requires a schema to decode input", "schema")
        return self.schema

    # =======================
    # DECODE
    # =======================

    def decode(self, raw_values: Iterable[str]) -> Iterator[dict[str, Any]]:
        """Lazily decode raw values into field-value maps."""
        for raw in raw_values:
            yield self.decode_value(raw)

    @abstractmethod
    def decode_value(self, raw: str) -> dict[str, Any]:
        """
        Decode one raw value.

        Raises:
            MalformedInputError: If the value does not parse against the schema
        """

    # =======================
    # ENCODE
    # =======================

    def encode(self, record: Mapping[str, Any]) -> tuple[None, str]:
        """
        Encode a record into a (key, value) pair.

        The key is always None; line-oriented writers only consume values.

        Raises:
            SchemaMismatchError: If the record is missing a required field or
                has a value incompatible with the schema
        """
        schema = self._schema_for(record)
        check_mapping(schema, record)
        return None, self.encode_value(record, schema)

    @abstractmethod
    def encode_value(self, record: Mapping[str, Any], schema: Schema) -> str:
        """Serialize a record that has already been checked against the schema."""

    def _schema_for(self, record: Mapping[str, Any]) -> Schema:
        if self.schema is not None:
            return self.schema
        if isinstance(record, StructuredRecord):
            self.check_schema(record.schema)
            return record.schema
        raise SchemaMismatchError(
            f"No schema configured for the {self.name} format and the record carries none"
        )

    # =======================
    # CONFIGURATION
    # =======================

    def format_config(self) -> dict[str, str]:
        """Properties handed to the output writer."""
        extension = self.extension + (".gz" if self.compression == "gzip" else "")
        config = {
            OUTPUT_FORMAT_KEY: self.name,
            OUTPUT_EXTENSION_KEY: extension,
            OUTPUT_COMPRESSION_KEY: self.compression,
        }
        config.update(self._extra_format_config())
        return config

    def _extra_format_config(self) -> dict[str, str]:
        return {}

    def __repr__(self) -> str:
        schema_name = self.schema.name if self.schema is not None else None
        return f"{self.__class__.__name__}(schema={schema_name}, properties={self.properties})"
