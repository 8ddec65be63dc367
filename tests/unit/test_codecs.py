"""
Unit tests for the format codecs.

Includes property-based round-trip testing with hypothesis for the
full-fidelity formats.
"""

import base64
import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from file_formats.core.errors import ConfigError, MalformedInputError, SchemaMismatchError
from file_formats.core.models import Field, FieldType, RecordBuilder, Schema
from file_formats.formats import CsvCodec, JsonCodec, ThriftCodec, TsvCodec
from file_formats.formats.base_codec import (
    OUTPUT_COMPRESSION_KEY,
    OUTPUT_EXTENSION_KEY,
    OUTPUT_FORMAT_KEY,
    TEXT_OUTPUT_WRITER,
)

EVENT = {"id": 1, "name": "alpha", "score": 0.5, "active": True}


# =======================
# HYPOTHESIS STRATEGIES
# =======================

LOCATION_SCHEMA = Schema(
    name="location",
    fields=(
        Field(name="lat", type=FieldType.DOUBLE),
        Field(name="lon", type=FieldType.DOUBLE),
        Field(name="label", type=FieldType.STRING, nullable=True),
    ),
)

READING_SCHEMA = Schema(
    name="reading",
    fields=(
        Field(name="sensor_id", type=FieldType.INT),
        Field(name="total", type=FieldType.LONG),
        Field(name="payload", type=FieldType.BYTES),
        Field(name="ok", type=FieldType.BOOLEAN),
        Field(name="tags", type=FieldType.ARRAY, item_type=FieldType.STRING, nullable=True),
        Field(name="counts", type=FieldType.ARRAY, item_type=FieldType.LONG),
        Field(name="location", type=FieldType.RECORD, record_schema=LOCATION_SCHEMA, nullable=True),
        Field(name="ratio", type=FieldType.FLOAT, nullable=True),
    ),
)

finite_floats = st.floats(allow_nan=False, allow_infinity=False)

locations = st.fixed_dictionaries({
    "lat": finite_floats,
    "lon": finite_floats,
    "label": st.none() | st.text(),
})

readings = st.fixed_dictionaries({
    "sensor_id": st.integers(min_value=-(2**31), max_value=2**31 - 1),
    "total": st.integers(min_value=-(2**63), max_value=2**63 - 1),
    "payload": st.binary(),
    "ok": st.booleans(),
    "tags": st.none() | st.lists(st.text(), max_size=5),
    "counts": st.lists(st.integers(min_value=-(2**63), max_value=2**63 - 1), max_size=5),
    "location": st.none() | locations,
    "ratio": st.none() | finite_floats,
})


def build(schema, values):
    return RecordBuilder(schema).set_all(values).build()


@pytest.mark.unit
class TestRoundTrip:
    """decode(encode(record)) == record for full-fidelity formats"""

    @settings(max_examples=75)
    @given(readings)
    def test_property_json_round_trip(self, values):
        codec = JsonCodec(READING_SCHEMA)
        record = build(READING_SCHEMA, values)
        _, encoded = codec.encode(record)
        assert build(READING_SCHEMA, codec.decode_value(encoded)) == record

    @settings(max_examples=75)
    @given(readings, st.sampled_from(["binary", "compact"]))
    def test_property_thrift_round_trip(self, values, protocol):
        codec = ThriftCodec(READING_SCHEMA, {"thrift.protocol": protocol})
        record = build(READING_SCHEMA, values)
        _, encoded = codec.encode(record)
        assert build(READING_SCHEMA, codec.decode_value(encoded)) == record

    def test_full_fidelity_flags(self):
        assert JsonCodec.full_fidelity
        assert ThriftCodec.full_fidelity
        assert not CsvCodec.full_fidelity
        assert not TsvCodec.full_fidelity


@pytest.mark.unit
class TestJsonCodec:
    """Tests for JsonCodec"""

    def test_encode_key_is_none(self, flat_schema):
        key, value = JsonCodec(flat_schema).encode(EVENT)
        assert key is None
        assert json.loads(value) == EVENT

    def test_bytes_encoded_as_base64(self, nested_schema):
        record = build(nested_schema, {"sensor_id": 1, "payload": b"\xff\x00"})
        _, value = JsonCodec(nested_schema).encode(record)
        assert json.loads(value)["payload"] == base64.b64encode(b"\xff\x00").decode()

    def test_decode_ignores_unknown_keys(self, flat_schema):
        values = JsonCodec(flat_schema).decode_value(json.dumps({**EVENT, "extra": 1}))
        assert values == EVENT

    def test_decode_int_into_double(self, flat_schema):
        values = JsonCodec(flat_schema).decode_value(json.dumps({**EVENT, "score": 3}))
        assert values["score"] == 3.0
        assert isinstance(values["score"], float)

    @pytest.mark.parametrize("raw", [
        "{not json",
        "[1, 2]",
        json.dumps({"id": 1, "name": "a"}),
        json.dumps({**EVENT, "id": "1"}),
        json.dumps({**EVENT, "active": "yes"}),
    ])
    def test_malformed_input(self, flat_schema, raw):
        with pytest.raises(MalformedInputError) as exc_info:
            JsonCodec(flat_schema).decode_value(raw)
        assert exc_info.value.format_name == "json"

    def test_invalid_base64_is_malformed(self, nested_schema):
        with pytest.raises(MalformedInputError):
            JsonCodec(nested_schema).decode_value(json.dumps({"sensor_id": 1, "payload": "%%%"}))

    def test_decode_is_lazy(self, flat_schema):
        decoded = JsonCodec(flat_schema).decode([json.dumps(EVENT), "{broken"])
        assert next(decoded) == EVENT
        with pytest.raises(MalformedInputError):
            next(decoded)

    def test_encode_missing_required_field(self, flat_schema):
        with pytest.raises(SchemaMismatchError) as exc_info:
            JsonCodec(flat_schema).encode({"id": 1, "active": True})
        assert exc_info.value.field_name == "name"

    def test_encode_without_any_schema(self):
        with pytest.raises(SchemaMismatchError):
            JsonCodec().encode({"id": 1})

    def test_encode_uses_record_schema_when_unconfigured(self, flat_schema):
        _, value = JsonCodec().encode(build(flat_schema, EVENT))
        assert json.loads(value) == EVENT

    def test_decode_requires_schema(self):
        with pytest.raises(ConfigError):
            JsonCodec().decode_value("{}")


@pytest.mark.unit
class TestDelimitedCodec:
    """Tests for CsvCodec and TsvCodec"""

    def test_csv_round_trip_with_quotes(self, flat_schema):
        codec = CsvCodec(flat_schema)
        values = {**EVENT, "name": 'say "hi", ok'}
        _, line = codec.encode(values)
        assert codec.decode_value(line) == values

    @pytest.mark.parametrize("name", ["line1\nline2", "line1\r\nline2", "trailing\r"])
    def test_line_breaks_rejected(self, flat_schema, name):
        for codec in (CsvCodec(flat_schema), TsvCodec(flat_schema)):
            with pytest.raises(SchemaMismatchError) as exc_info:
                codec.encode({**EVENT, "name": name})
            assert exc_info.value.field_name == "name"

    def test_tsv_uses_tabs(self, flat_schema):
        _, line = TsvCodec(flat_schema).encode(EVENT)
        assert line == "1\talpha\t0.5\ttrue"

    def test_escaped_tab_delimiter(self, flat_schema):
        codec = CsvCodec(flat_schema, {"delimiter": "\\t"})
        assert codec.delimiter == "\t"

    def test_empty_column_handling(self, flat_schema):
        values = CsvCodec(flat_schema).decode_value("1,,,false")
        assert values == {"id": 1, "name": "", "score": None, "active": False}

    @pytest.mark.parametrize("line", [
        "1,alpha,0.5",
        "x,alpha,0.5,true",
        "1,alpha,high,true",
        "1,alpha,0.5,maybe",
        ",alpha,0.5,true",
    ])
    def test_malformed_lines(self, flat_schema, line):
        with pytest.raises(MalformedInputError):
            CsvCodec(flat_schema).decode_value(line)

    def test_int_overflow_is_malformed(self):
        schema = Schema(fields=(Field(name="n", type=FieldType.INT),))
        with pytest.raises(MalformedInputError):
            CsvCodec(schema).decode_value(str(2**31))

    def test_nested_types_rejected(self, nested_schema):
        with pytest.raises(ConfigError):
            CsvCodec(nested_schema)

    def test_skip_header_property(self, flat_schema):
        assert CsvCodec(flat_schema, {"skip_header": "true"}).skip_header
        assert not CsvCodec(flat_schema).skip_header
        with pytest.raises(ConfigError):
            CsvCodec(flat_schema, {"skip_header": "sometimes"})

    def test_multi_character_delimiter_rejected(self, flat_schema):
        with pytest.raises(ConfigError):
            CsvCodec(flat_schema, {"delimiter": "||"})


@pytest.mark.unit
class TestThriftCodec:
    """Tests for ThriftCodec"""

    def test_value_is_single_base64_line(self, flat_schema):
        _, value = ThriftCodec(flat_schema).encode(EVENT)
        assert "\n" not in value
        base64.b64decode(value, validate=True)

    def test_unknown_protocol(self, flat_schema):
        with pytest.raises(ConfigError) as exc_info:
            ThriftCodec(flat_schema, {"thrift.protocol": "json"})
        assert exc_info.value.field_name == "thrift.protocol"

    def test_unknown_field_ids_are_skipped(self, flat_schema):
        """A reader with fewer fields tolerates structs written with more"""
        _, value = ThriftCodec(flat_schema).encode(EVENT)
        narrow = Schema(name="event", fields=flat_schema.fields[:2])
        assert ThriftCodec(narrow).decode_value(value) == {"id": 1, "name": "alpha"}

    def test_missing_optional_field_decodes_to_none(self, flat_schema):
        _, value = ThriftCodec(flat_schema).encode({**EVENT, "score": None})
        assert ThriftCodec(flat_schema).decode_value(value)["score"] is None

    def test_type_mismatch_is_malformed(self, flat_schema):
        _, value = ThriftCodec(flat_schema).encode(EVENT)
        reader_schema = Schema(fields=(Field(name="id", type=FieldType.STRING),))
        with pytest.raises(MalformedInputError):
            ThriftCodec(reader_schema).decode_value(value)

    def test_missing_required_field_is_malformed(self, flat_schema):
        _, value = ThriftCodec(flat_schema).encode({**EVENT, "score": None})
        reader_schema = Schema(fields=flat_schema.fields[:2] + (Field(name="score", type=FieldType.DOUBLE),))
        with pytest.raises(MalformedInputError) as exc_info:
            ThriftCodec(reader_schema).decode_value(value)
        assert "score" in str(exc_info.value)

    @pytest.mark.parametrize("protocol", ["binary", "compact"])
    def test_truncated_payload_is_malformed(self, flat_schema, protocol):
        codec = ThriftCodec(flat_schema, {"thrift.protocol": protocol})
        _, value = codec.encode(EVENT)
        truncated = base64.b64encode(base64.b64decode(value)[:5]).decode()
        with pytest.raises(MalformedInputError):
            codec.decode_value(truncated)

    def test_invalid_base64_is_malformed(self, flat_schema):
        with pytest.raises(MalformedInputError):
            ThriftCodec(flat_schema).decode_value("not base64!")

    def test_encode_incompatible_value(self, flat_schema):
        with pytest.raises(SchemaMismatchError):
            ThriftCodec(flat_schema).encode({**EVENT, "id": "1"})


@pytest.mark.unit
class TestFormatConfig:
    """Tests for the writer configuration exposed by codecs"""

    def test_default_config(self, flat_schema):
        codec = JsonCodec(flat_schema)
        assert codec.format_class_name == TEXT_OUTPUT_WRITER
        assert codec.format_config() == {
            OUTPUT_FORMAT_KEY: "json",
            OUTPUT_EXTENSION_KEY: ".json",
            OUTPUT_COMPRESSION_KEY: "none",
        }

    def test_gzip_extension(self, flat_schema):
        config = CsvCodec(flat_schema, {"compression": "gzip"}).format_config()
        assert config[OUTPUT_EXTENSION_KEY] == ".csv.gz"
        assert config["file_formats.delimited.delimiter"] == ","

    def test_thrift_protocol_exposed(self, flat_schema):
        config = ThriftCodec(flat_schema, {"thrift.protocol": "compact"}).format_config()
        assert config["thrift.protocol"] == "compact"

    def test_unsupported_compression(self, flat_schema):
        with pytest.raises(ConfigError):
            JsonCodec(flat_schema, {"compression": "lz4"})
