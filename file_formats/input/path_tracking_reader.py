"""
Record readers that attach source-file provenance to decoded records.

The path value is never part of the encoded bytes: it comes from the split
the reader is bound to, so every record read from a split carries that
split's path.
"""

from typing import Iterator, Optional, Tuple

from file_formats.core.errors import MalformedInputError, SchemaMismatchError
from file_formats.core.models import CombinedFileSplit, FileSplit, RecordBuilder, Schema
from file_formats.formats.base_codec import FormatCodec
from file_formats.input.line_reader import LineRecordReader
from file_formats.observability import metrics
from file_formats.observability.logger import get_logger

logger = get_logger(__name__)


class PathTrackingRecordReader:
    """
    Reads one split and yields (None, RecordBuilder) pairs.

    The codec decodes against the schema without the path field; the builder
    is created for the full schema so the path field can be injected.

    Usage:
        with PathTrackingRecordReader(split, codec, schema, path_field="file") as reader:
            for _, builder in reader:
                record = builder.build()
    """

    def __init__(
        self,
        split: FileSplit,
        codec: FormatCodec,
        schema: Schema,
        path_field: Optional[str] = None,
    ):
        """
        Initialize reader.

        Args:
            split: Split to read
            codec: Codec bound to the schema of the encoded values
            schema: Schema of the produced records, including the path field
            path_field: Field receiving the split path, None for no provenance
        """
        self.split = split
        self.codec = codec
        self.schema = schema
        self.path_field = path_field
        # header skipping is decided per delegate from its own split
        self.delegate = LineRecordReader(
            split,
            skip_header=codec.skip_header and split.starts_file,
        )
        self.records_read = 0

    def initialize(self) -> "PathTrackingRecordReader":
        self.delegate.open()
        metrics.record_split_opened(self.codec.name)
        logger.debug(
            f"Opened split {self.split.path} [{self.split.start}, {self.split.end}) "
            f"as {self.codec.name}"
        )
        return self

    def next_record(self) -> Optional[Tuple[None, RecordBuilder]]:
        """
        Decode the next value of the split.

        Returns:
            (None, RecordBuilder), or None when the split is exhausted

        Raises:
            MalformedInputError: If the line is not valid text or the value
                does not decode against the schema. The reader is closed
                before the error propagates.
        """
        try:
            pair = self.delegate.next_line()
        except MalformedInputError as e:
            self._fail()
            raise MalformedInputError(e.message, self.codec.name, e.path, e.offset) from e
        if pair is None:
            return None

        offset, line = pair
        try:
            values = self.codec.decode_value(line)
            builder = RecordBuilder(self.schema).set_all(values)
        except MalformedInputError as e:
            self._fail()
            raise e.with_location(self.split.path, offset) from e
        except SchemaMismatchError as e:
            self._fail()
            raise MalformedInputError(str(e), self.codec.name, self.split.path, offset) from e

        if self.path_field is not None:
            builder.set(self.path_field, self.split.path)

        self.records_read += 1
        metrics.record_decoded(self.codec.name)
        return None, builder

    def _fail(self) -> None:
        metrics.record_malformed(self.codec.name)
        self.close()

    def close(self) -> None:
        self.delegate.close()

    def __iter__(self) -> Iterator[Tuple[None, RecordBuilder]]:
        try:
            while True:
                pair = self.next_record()
                if pair is None:
                    return
                yield pair
        finally:
            self.close()

    def __enter__(self):
        return self.initialize()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class CombinedRecordReader:
    """
    Reads the members of a CombinedFileSplit one after another.

    Each member gets its own PathTrackingRecordReader, so header skipping and
    the path value are decided per file.
    """

    def __init__(
        self,
        split: CombinedFileSplit,
        codec: FormatCodec,
        schema: Schema,
        path_field: Optional[str] = None,
    ):
        self.split = split
        self.codec = codec
        self.schema = schema
        self.path_field = path_field
        self._index = 0
        self._current: Optional[PathTrackingRecordReader] = None
        self.records_read = 0

    def initialize(self) -> "CombinedRecordReader":
        self._index = 0
        self._current = None
        return self

    def next_record(self) -> Optional[Tuple[None, RecordBuilder]]:
        while True:
            if self._current is None:
                if self._index >= len(self.split.splits):
                    return None
                member = self.split.splits[self._index]
                self._index += 1
                self._current = PathTrackingRecordReader(
                    member, self.codec, self.schema, self.path_field
                ).initialize()

            pair = self._current.next_record()
            if pair is not None:
                self.records_read += 1
                return pair

            self._current.close()
            self._current = None

    def close(self) -> None:
        if self._current is not None:
            self._current.close()
            self._current = None

    def __iter__(self) -> Iterator[Tuple[None, RecordBuilder]]:
        try:
            while True:
                pair = self.next_record()
                if pair is None:
                    return
                yield pair
        finally:
            self.close()

    def __enter__(self):
        return self.initialize()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
