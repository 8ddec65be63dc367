"""
Format codecs and their registry.
"""

from .base_codec import FormatCodec
from .delimited_codec import CsvCodec, DelimitedCodec, TsvCodec
from .json_codec import JsonCodec
from .registry import (
    FileFormat,
    create_codec,
    get_codec_class,
    get_file_output_formatter,
    list_formats,
    register_format,
    unregister_format,
)
from .thrift_codec import ThriftCodec

__all__ = [
    "FormatCodec",
    "DelimitedCodec",
    "CsvCodec",
    "TsvCodec",
    "JsonCodec",
    "ThriftCodec",
    "FileFormat",
    "create_codec",
    "get_codec_class",
    "get_file_output_formatter",
    "list_formats",
    "register_format",
    "unregister_format",
]
