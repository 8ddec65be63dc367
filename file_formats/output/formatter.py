"""
Output formatter: translates records into format-specific key/value pairs.

The formatter performs no I/O. It exposes the configuration and writer
class name the host needs to instantiate the matching writer itself.
"""

from collections.abc import Mapping
from typing import Any

from file_formats.core.models import Schema
from file_formats.formats.base_codec import FormatCodec


class FileOutputFormatter:
    """
    Bound to one codec (format, schema, properties) for the duration of a run.

    Usage:
        formatter = get_file_output_formatter("thrift", {}, schema)
        key, value = formatter.transform(record)
        provider = OutputFormatProvider(
            format_class_name=formatter.format_class_name(),
            properties=formatter.format_config(),
        )
    """

    def __init__(self, codec: FormatCodec):
        self._codec = codec

    @property
    def format_name(self) -> str:
        return self._codec.name

    @property
    def schema(self) -> Schema | None:
        return self._codec.schema

    def transform(self, record: Mapping[str, Any]) -> tuple[Any, Any]:
        """
        Translate a record into the (key, value) pair the output writer consumes.

        Raises:
            SchemaMismatchError: If the record does not conform to the schema
        """
        return self._codec.encode(record)

    def format_config(self) -> dict[str, str]:
        return self._codec.format_config()

    def format_class_name(self) -> str:
        return self._codec.format_class_name
