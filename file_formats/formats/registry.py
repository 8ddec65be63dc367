"""Format registry.

Built-in formats are selected through the FileFormat enum. New codecs can be
registered at runtime with register_format() without changing sink or
reader code.
"""

from collections.abc import Mapping
from enum import Enum

from file_formats.core.errors import FormatUnsupportedError
from file_formats.core.models import Schema

from .base_codec import FormatCodec
from .delimited_codec import CsvCodec, TsvCodec
from .json_codec import JsonCodec
from .thrift_codec import ThriftCodec


class FileFormat(str, Enum):
    """Built-in file formats."""

    THRIFT = "thrift"
    JSON = "json"
    CSV = "csv"
    TSV = "tsv"


_STATIC_REGISTRY: dict[str, type[FormatCodec]] = {
    FileFormat.THRIFT.value: ThriftCodec,
    FileFormat.JSON.value: JsonCodec,
    FileFormat.CSV.value: CsvCodec,
    FileFormat.TSV.value: TsvCodec,
}

_DYNAMIC_REGISTRY: dict[str, type[FormatCodec]] = {}


def _normalize(name: str | FileFormat) -> str:
    if isinstance(name, FileFormat):
        return name.value
    return str(name).strip().lower()


def register_format(name: str, codec_cls: type[FormatCodec]) -> None:
    """Register a new format dynamically.

    Example:
        class ParquetishCodec(FormatCodec):
            name = "parquetish"
            ...

        register_format("parquetish", ParquetishCodec)
    """
    name = _normalize(name)
    if name in _STATIC_REGISTRY:
        raise ValueError(f"Format '{name}' is already registered statically. Use a different name.")
    if not issubclass(codec_cls, FormatCodec):
        raise TypeError(f"{codec_cls!r} is not a FormatCodec")
    _DYNAMIC_REGISTRY[name] = codec_cls


def unregister_format(name: str) -> None:
    """Unregister a dynamically registered format."""
    _DYNAMIC_REGISTRY.pop(_normalize(name), None)


def list_formats() -> dict[str, str]:
    """List all registered formats (static + dynamic)."""
    formats = {name: "static" for name in _STATIC_REGISTRY}
    formats.update({name: "dynamic" for name in _DYNAMIC_REGISTRY})
    return formats


def get_codec_class(name: str | FileFormat) -> type[FormatCodec]:
    """
    Look up the codec class of a format.

    Raises:
        FormatUnsupportedError: If no codec is registered under the name
    """
    key = _normalize(name)
    if key in _STATIC_REGISTRY:
        return _STATIC_REGISTRY[key]
    if key in _DYNAMIC_REGISTRY:
        return _DYNAMIC_REGISTRY[key]

    available = sorted(list(_STATIC_REGISTRY) + list(_DYNAMIC_REGISTRY))
    raise FormatUnsupportedError(
        key,
        f"Unknown format: {key}. Available: {available}. Register with register_format()",
    )


def create_codec(
    name: str | FileFormat,
    schema: Schema | None = None,
    properties: Mapping[str, str] | None = None,
) -> FormatCodec:
    """
    Instantiate the codec of a format.

    Raises:
        FormatUnsupportedError: If the format is unknown
        ConfigError: If the schema or properties are invalid for the format
    """
    return get_codec_class(name)(schema, properties)


def get_file_output_formatter(
    name: str | FileFormat,
    properties: Mapping[str, str] | None,
    schema: Schema | None,
):
    """
    Build the output formatter of a format.

    Returns:
        FileOutputFormatter, or None if the format cannot be written
    """
    from file_formats.output.formatter import FileOutputFormatter

    codec = create_codec(name, schema, properties)
    if not codec.writable:
        return None
    return FileOutputFormatter(codec)
