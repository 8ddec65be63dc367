"""
Input format creating path-tracking record readers for the host.
"""

from typing import Dict, Iterator, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from file_formats.core.errors import ConfigError
from file_formats.core.models import CombinedFileSplit, FieldType, FileSplit, Schema, StructuredRecord
from file_formats.formats.registry import FileFormat, create_codec
from file_formats.input.path_tracking_reader import CombinedRecordReader, PathTrackingRecordReader
from file_formats.observability.logger import get_logger

logger = get_logger(__name__)


class TaskContext(BaseModel):
    """
    Execution context of one read task, passed explicitly by the host.

    Attributes:
        partition_id: Index of the task within the job
        attempt: Attempt number of the task
        properties: Host-provided properties, merged over the format properties
    """

    model_config = ConfigDict(frozen=True)

    partition_id: int = Field(0, ge=0)
    attempt: int = Field(0, ge=0)
    properties: Dict[str, str] = Field(default_factory=dict)


class PathTrackingInputFormat:
    """
    Creates record readers for splits of files in one format.

    Usage:
        input_format = PathTrackingInputFormat("csv", {"skip_header": "true"})
        reader = input_format.create_record_reader(split, TaskContext(), "file", schema)
    """

    def __init__(self, format_name: Union[str, FileFormat], properties: Optional[Mapping[str, str]] = None):
        self.format_name = format_name
        self.properties = dict(properties or {})

    def create_record_reader(
        self,
        split: Union[FileSplit, CombinedFileSplit],
        context: TaskContext,
        path_field: Optional[str],
        schema: Schema,
    ) -> Union[PathTrackingRecordReader, CombinedRecordReader]:
        """
        Create the reader of one split.

        Args:
            split: Split, or combined split, to read
            context: Task context
            path_field: Field receiving the source path, None for no provenance
            schema: Schema of the produced records, including the path field

        Returns:
            Uninitialized reader producing (None, RecordBuilder) pairs

        Raises:
            ConfigError: If the path field is not a string field of the schema
            FormatUnsupportedError: If the format is unknown
        """
        check_path_field(schema, path_field)

        properties = {**self.properties, **context.properties}
        value_schema = schema.without(path_field) if path_field else schema
        codec = create_codec(self.format_name, value_schema, properties)
        logger.debug(f"Creating {codec.name} reader for partition {context.partition_id}")

        if isinstance(split, CombinedFileSplit):
            return CombinedRecordReader(split, codec, schema, path_field)
        return PathTrackingRecordReader(split, codec, schema, path_field)

    def read(
        self,
        split: Union[FileSplit, CombinedFileSplit],
        schema: Schema,
        path_field: Optional[str] = None,
        context: Optional[TaskContext] = None,
    ) -> Iterator[StructuredRecord]:
        """Read a split to finalized records, closing the reader on all paths."""
        reader = self.create_record_reader(split, context or TaskContext(), path_field, schema)
        with reader:
            for _, builder in reader:
                yield builder.build()


def check_path_field(schema: Schema, path_field: Optional[str]) -> None:
    """
    Verify the path field can hold a file path.

    Raises:
        ConfigError: If the field is missing or not a string
    """
    if path_field is None:
        return
    field = schema.get_field(path_field)
    if field is None:
        raise ConfigError(f"Path field is not part of schema '{schema.name}'", path_field)
    if field.type != FieldType.STRING:
        raise ConfigError(f"Path field must be of type string, got {field.type.value}", path_field)
