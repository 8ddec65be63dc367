"""
Thrift codec: one base64-encoded Thrift struct per line.

The struct layout is derived from the schema: field ids are schema positions
starting at 1. Field ids not in the schema are skipped on decode, so readers
tolerate writers that appended fields.
"""

import base64
import binascii
import struct
from collections.abc import Mapping
from typing import Any, ClassVar

from thrift.protocol import TBinaryProtocol, TCompactProtocol
from thrift.protocol.TProtocol import TProtocolException
from thrift.Thrift import TType
from thrift.transport import TTransport
from thrift.transport.TTransport import TTransportException

from file_formats.core.errors import ConfigError, MalformedInputError, SchemaMismatchError
from file_formats.core.models import Field, FieldType, Schema
from file_formats.core.validators import check_primitive

from .base_codec import FormatCodec

PROTOCOL_PROPERTY = "thrift.protocol"

PROTOCOL_FACTORIES = {
    "binary": TBinaryProtocol.TBinaryProtocol,
    "compact": TCompactProtocol.TCompactProtocol,
}

# FLOAT has no Thrift counterpart and is carried as a double
TTYPES = {
    FieldType.BOOLEAN: TType.BOOL,
    FieldType.INT: TType.I32,
    FieldType.LONG: TType.I64,
    FieldType.FLOAT: TType.DOUBLE,
    FieldType.DOUBLE: TType.DOUBLE,
    FieldType.STRING: TType.STRING,
    FieldType.BYTES: TType.STRING,
    FieldType.RECORD: TType.STRUCT,
    FieldType.ARRAY: TType.LIST,
}

# KeyError/AssertionError: the compact protocol signals unknown type nibbles
# and out-of-order state this way
DECODE_ERRORS = (
    EOFError,
    TTransportException,
    TProtocolException,
    UnicodeDecodeError,
    struct.error,
    KeyError,
    AssertionError,
    OverflowError,
)


class ThriftCodec(FormatCodec):
    """
    Reads and writes base64 lines holding Thrift-serialized structs.

    Properties:
        thrift.protocol: "binary" (default) or "compact"
    """

    name: ClassVar[str] = "thrift"
    extension: ClassVar[str] = ".thrift"

    def _configure(self, properties: dict[str, str]) -> None:
        self.protocol = properties.get(PROTOCOL_PROPERTY, "binary").lower()
        if self.protocol not in PROTOCOL_FACTORIES:
            raise ConfigError(
                f"Unsupported Thrift protocol '{self.protocol}'. Supported: {sorted(PROTOCOL_FACTORIES)}",
                PROTOCOL_PROPERTY,
            )
        self._protocol_factory = PROTOCOL_FACTORIES[self.protocol]

    def _extra_format_config(self) -> dict[str, str]:
        return {PROTOCOL_PROPERTY: self.protocol}

    # =======================
    # DECODE
    # =======================

    def decode_value(self, raw: str) -> dict[str, Any]:
        schema = self.require_schema()
        try:
            payload = base64.b64decode(raw.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedInputError(f"Line is not valid base64: {e}", self.name) from e

        protocol = self._protocol_factory(TTransport.TMemoryBuffer(payload))
        try:
            return self._read_struct(protocol, schema)
        except DECODE_ERRORS as e:
            raise MalformedInputError(
                f"Cannot decode Thrift struct '{schema.name}': {e or type(e).__name__}", self.name
            ) from e

    def _read_struct(self, protocol, schema: Schema) -> dict[str, Any]:
        fields_by_id = {index + 1: field for index, field in enumerate(schema.fields)}
        values: dict[str, Any] = {}

        protocol.readStructBegin()
        while True:
            _, ttype, field_id = protocol.readFieldBegin()
            if ttype == TType.STOP:
                break

            field = fields_by_id.get(field_id)
            if field is None:
                protocol.skip(ttype)
            elif ttype != TTYPES[field.type]:
                raise MalformedInputError(
                    f"Field '{field.name}' (id {field_id}) has Thrift type {ttype}, "
                    f"expected {TTYPES[field.type]}",
                    self.name,
                )
            else:
                values[field.name] = self._read_value(protocol, field)
            protocol.readFieldEnd()
        protocol.readStructEnd()

        for field in schema.fields:
            if field.name not in values:
                if not field.nullable:
                    raise MalformedInputError(f"Missing required field '{field.name}'", self.name)
                values[field.name] = None
        return values

    def _read_value(self, protocol, field: Field) -> Any:
        if field.type == FieldType.RECORD:
            return self._read_struct(protocol, field.record_schema)

        if field.type == FieldType.ARRAY:
            element_type, size = protocol.readListBegin()
            if size and element_type != TTYPES[field.item_type]:
                raise MalformedInputError(
                    f"Array '{field.name}' holds Thrift type {element_type}, "
                    f"expected {TTYPES[field.item_type]}",
                    self.name,
                )
            items = [self._read_primitive(protocol, field.item_type, field.name) for _ in range(size)]
            protocol.readListEnd()
            return items

        return self._read_primitive(protocol, field.type, field.name)

    def _read_primitive(self, protocol, field_type: FieldType, field_name: str) -> Any:
        if field_type == FieldType.BOOLEAN:
            return protocol.readBool()
        if field_type == FieldType.INT:
            return protocol.readI32()
        if field_type == FieldType.LONG:
            return protocol.readI64()
        if field_type in (FieldType.FLOAT, FieldType.DOUBLE):
            return protocol.readDouble()
        if field_type == FieldType.STRING:
            return protocol.readString()
        if field_type == FieldType.BYTES:
            return protocol.readBinary()
        raise MalformedInputError(f"Unsupported type for '{field_name}'", self.name)

    # =======================
    # ENCODE
    # =======================

    def encode_value(self, record: Mapping[str, Any], schema: Schema) -> str:
        transport = TTransport.TMemoryBuffer()
        protocol = self._protocol_factory(transport)
        self._write_struct(protocol, schema, record)
        return base64.b64encode(transport.getvalue()).decode("ascii")

    def _write_struct(self, protocol, schema: Schema, record: Mapping[str, Any]) -> None:
        protocol.writeStructBegin(schema.name)
        for index, field in enumerate(schema.fields):
            value = record.get(field.name)
            # absent optional fields are simply not written
            if value is None:
                continue
            protocol.writeFieldBegin(field.name, TTYPES[field.type], index + 1)
            self._write_value(protocol, field, value)
            protocol.writeFieldEnd()
        protocol.writeFieldStop()
        protocol.writeStructEnd()

    def _write_value(self, protocol, field: Field, value: Any) -> None:
        if field.type == FieldType.RECORD:
            self._write_struct(protocol, field.record_schema, value)
        elif field.type == FieldType.ARRAY:
            protocol.writeListBegin(TTYPES[field.item_type], len(value))
            for item in value:
                self._write_primitive(protocol, field.item_type, field.name, item)
            protocol.writeListEnd()
        else:
            self._write_primitive(protocol, field.type, field.name, value)

    @staticmethod
    def _write_primitive(protocol, field_type: FieldType, field_name: str, value: Any) -> None:
        check_primitive(field_type, value, field_name)
        if field_type == FieldType.BOOLEAN:
            protocol.writeBool(value)
        elif field_type == FieldType.INT:
            protocol.writeI32(value)
        elif field_type == FieldType.LONG:
            protocol.writeI64(value)
        elif field_type in (FieldType.FLOAT, FieldType.DOUBLE):
            protocol.writeDouble(float(value))
        elif field_type == FieldType.STRING:
            protocol.writeString(value)
        elif field_type == FieldType.BYTES:
            protocol.writeBinary(bytes(value))
        else:
            raise SchemaMismatchError(f"Unsupported type {field_type.value}", field_name)
