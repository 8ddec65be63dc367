"""
Raw line reader scoped to one file split.

Follows the Hadoop LineRecordReader contract so that splits of one file can
be read independently without losing or duplicating lines:

- a split that does not start at byte 0 discards its first (partial) line,
  which belongs to the previous split;
- a line that starts at or before the split end is read to completion, even
  if it runs past the end.
"""

import gzip
from typing import BinaryIO, Iterator, Optional, Tuple

from file_formats.core.errors import MalformedInputError
from file_formats.core.models import FileSplit
from file_formats.observability.logger import get_logger

logger = get_logger(__name__)

GZIP_SUFFIX = ".gz"


class LineRecordReader:
    """
    Reads (offset, line) pairs from a byte range of one file.

    Offsets are byte positions of the line start in the uncompressed file.
    Gzip files are not splittable and must be read as a whole split.
    """

    def __init__(
        self,
        split: FileSplit,
        skip_header: bool = False,
        skip_blank_lines: bool = True,
        encoding: str = "utf-8",
    ):
        """
        Initialize reader.

        Args:
            split: Byte range to read
            skip_header: Discard the first line of the file. Only honoured
                when the split starts the file
            skip_blank_lines: Do not return empty or whitespace-only lines
            encoding: Text encoding of the file
        """
        self.split = split
        self.skip_header = skip_header and split.starts_file
        self.skip_blank_lines = skip_blank_lines
        self.encoding = encoding

        self._stream: Optional[BinaryIO] = None
        self._closed = False
        self._pos = split.start
        self._end = split.end

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def position(self) -> int:
        return self._pos

    def open(self) -> "LineRecordReader":
        if self._closed:
            raise ValueError(f"Reader for {self.split.path} is closed")

        compressed = self.split.path.endswith(GZIP_SUFFIX)
        if compressed and not self.split.starts_file:
            raise ValueError(f"Gzip file {self.split.path} cannot be read from offset {self.split.start}")

        if compressed:
            self._stream = gzip.open(self.split.path, "rb")
            # the split length counts compressed bytes, read the whole stream
            self._end = None
        else:
            self._stream = open(self.split.path, "rb")
            self._stream.seek(self.split.start)

        if not self.split.starts_file:
            self._pos += len(self._stream.readline())
        if self.skip_header:
            header = self._stream.readline()
            self._pos += len(header)
            logger.debug(f"Skipped header line of {self.split.path}")
        return self

    def next_line(self) -> Optional[Tuple[int, str]]:
        """
        Read the next line of the split.

        Returns:
            (offset, line) without the line terminator, or None at end of
            split. A closed reader stays at end of split.

        Raises:
            MalformedInputError: If the line is not valid in the encoding
        """
        if self._closed:
            return None
        if self._stream is None:
            self.open()

        while self._end is None or self._pos <= self._end:
            raw = self._stream.readline()
            if not raw:
                return None

            offset = self._pos
            self._pos += len(raw)
            try:
                line = raw.decode(self.encoding).rstrip("\r\n")
            except UnicodeDecodeError as e:
                raise MalformedInputError(
                    f"Line is not valid {self.encoding}: {e.reason}", None, self.split.path, offset
                ) from e
            if self.skip_blank_lines and not line.strip():
                continue
            return offset, line

        return None

    def close(self) -> None:
        self._closed = True
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        while True:
            pair = self.next_line()
            if pair is None:
                return
            yield pair

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
