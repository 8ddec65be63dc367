"""
Field-level lineage recording.

This module provides a LineageRecorder that describes the read and write
operations a run performs on a referenced dataset, and registers the dataset
with the host before any output is added.
"""

from collections.abc import Sequence
from typing import Protocol

from file_formats.core.models import LineageRecord, Schema
from file_formats.observability.logger import get_logger

logger = get_logger(__name__)

WRITE_OPERATION = "Write"
READ_OPERATION = "Read"


class LineageContext(Protocol):
    """Host capability for storing datasets and lineage entries."""

    def register_dataset(self, reference_name: str, schema: Schema | None) -> None: ...

    def record_lineage(self, record: LineageRecord) -> None: ...


class LineageRecorder:
    """
    Records field-level operations for one referenced dataset.

    Usage:
        recorder = LineageRecorder(context, "events_out")
        recorder.create_external_dataset(schema)
        recorder.record_write("Write", "Wrote to thrift files.", schema.field_names())
    """

    def __init__(self, context: LineageContext, reference_name: str):
        """
        Initialize lineage recorder.

        Args:
            context: Host context receiving datasets and lineage entries
            reference_name: Dataset the operations apply to
        """
        self.context = context
        self.reference_name = reference_name

    def create_external_dataset(self, schema: Schema | None) -> None:
        """
        Register the referenced dataset with its schema.

        Must run before the output is added to the host, otherwise the host
        creates the dataset without a schema.
        """
        self.context.register_dataset(self.reference_name, schema)
        logger.debug(f"Registered external dataset '{self.reference_name}'")

    def record_write(
        self,
        operation_name: str,
        description: str,
        field_names: Sequence[str],
    ) -> LineageRecord | None:
        """
        Record a write operation over the given output fields.

        An empty field list (schema unknown or without fields) is a valid
        no-op and returns None.

        Returns:
            The recorded LineageRecord, or None if nothing was recorded
        """
        return self._record(operation_name, description, field_names)

    def record_read(
        self,
        operation_name: str,
        description: str,
        field_names: Sequence[str],
    ) -> LineageRecord | None:
        """Record a read operation producing the given fields."""
        return self._record(operation_name, description, field_names)

    def _record(
        self,
        operation_name: str,
        description: str,
        field_names: Sequence[str],
    ) -> LineageRecord | None:
        if not field_names:
            logger.debug(
                f"No fields known for '{self.reference_name}', skipping lineage for {operation_name}"
            )
            return None

        record = LineageRecord(
            reference_name=self.reference_name,
            operation_name=operation_name,
            description=description,
            field_names=tuple(field_names),
        )
        self.context.record_lineage(record)

        logger.info(
            f"Recorded lineage: {operation_name} on {self.reference_name} "
            f"({len(record.field_names)} fields)"
        )
        return record


def schema_field_names(schema: Schema | None) -> list[str]:
    """Field names of a schema, empty when the schema is unknown."""
    if schema is None:
        return []
    return schema.field_names()
