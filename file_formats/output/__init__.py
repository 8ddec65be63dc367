"""
Output side: directory resolution, record formatting and host-side writers.
"""

from .formatter import FileOutputFormatter
from .output_dir import OUTPUT_DIR_KEY, format_time_suffix, parse_suffix_pattern, resolve_output_dir
from .writers import TextOutputWriter, load_output_writer

__all__ = [
    "FileOutputFormatter",
    "OUTPUT_DIR_KEY",
    "format_time_suffix",
    "parse_suffix_pattern",
    "resolve_output_dir",
    "TextOutputWriter",
    "load_output_writer",
]
