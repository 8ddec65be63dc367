"""
Output writers instantiated by the host from an OutputFormatProvider.

The sink never writes files itself: it publishes a writer class name and a
property map, and each execution unit of the host creates its own writer
from them and feeds it the (key, value) pairs produced by the formatter.
"""

import gzip
import importlib
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO

from file_formats.core.errors import ConfigError, FormatUnsupportedError
from file_formats.formats.base_codec import OUTPUT_COMPRESSION_KEY, OUTPUT_EXTENSION_KEY
from file_formats.observability.logger import get_logger
from file_formats.output.output_dir import OUTPUT_DIR_KEY

logger = get_logger(__name__)

LOCAL_SCHEME = "file://"


class TextOutputWriter:
    """
    Writes one value per line into part-<unit> files under the output directory.

    Keys are ignored. Values are written as text followed by a newline, gzip
    compressed when the format config asks for it.
    """

    def __init__(self, properties: Mapping[str, str], unit: int = 0):
        """
        Initialize writer.

        Args:
            properties: Output format properties, must hold the output directory
            unit: Index of the execution unit, used to name the part file

        Raises:
            ConfigError: If the output directory is missing or not local
        """
        output_dir = properties.get(OUTPUT_DIR_KEY)
        if not output_dir:
            raise ConfigError(f"Output directory property '{OUTPUT_DIR_KEY}' is not set", OUTPUT_DIR_KEY)
        if output_dir.startswith(LOCAL_SCHEME):
            output_dir = output_dir[len(LOCAL_SCHEME):]
        elif "://" in output_dir:
            raise ConfigError(
                f"TextOutputWriter only writes to local paths, got '{output_dir}'", OUTPUT_DIR_KEY
            )

        self.output_dir = Path(output_dir)
        self.unit = unit
        self.extension = properties.get(OUTPUT_EXTENSION_KEY, "")
        self.compression = properties.get(OUTPUT_COMPRESSION_KEY, "none")
        self.records_written = 0
        self._stream: Optional[TextIO] = None

    @property
    def part_path(self) -> Path:
        return self.output_dir / f"part-{self.unit:05d}{self.extension}"

    def open(self) -> "TextOutputWriter":
        self.output_dir.mkdir(parents=True, exist_ok=True)
        if self.compression == "gzip":
            self._stream = gzip.open(self.part_path, "wt", encoding="utf-8", newline="\n")
        else:
            self._stream = open(self.part_path, "w", encoding="utf-8", newline="\n")
        logger.debug(f"Opened output file {self.part_path}")
        return self

    def write(self, key: Any, value: Any) -> None:
        if self._stream is None:
            self.open()
        self._stream.write(f"{value}\n")
        self.records_written += 1

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
            logger.info(f"Wrote {self.records_written} records to {self.part_path}")

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def load_output_writer(class_name: str) -> type:
    """
    Resolve a writer class from its dotted name.

    Raises:
        ConfigError: If the name is not a dotted path
        FormatUnsupportedError: If the module or class cannot be found
    """
    module_name, _, attribute = class_name.rpartition(".")
    if not module_name:
        raise ConfigError(f"Writer class name '{class_name}' is not a dotted path", "format_class_name")

    try:
        module = importlib.import_module(module_name)
        return getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise FormatUnsupportedError(class_name, f"Cannot load output writer '{class_name}': {e}") from e
