"""
File sink orchestration.

FileSink drives one configured output through its lifecycle:

    UNCONFIGURED -> VALIDATED -> PREPARED -> RUNNING -> DONE

configure_pipeline() runs at definition time, prepare_run() once per run on
the driver, initialize()/transform() on every execution unit. Prepare and
execution may happen in different processes, so each step rebuilds what it
needs from the immutable config.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from file_formats.core.errors import FormatUnsupportedError, SchemaMismatchError, SinkStateError
from file_formats.core.models import InvalidEntry, Output, OutputFormatProvider, Schema, StructuredRecord
from file_formats.formats.registry import get_file_output_formatter
from file_formats.observability import metrics
from file_formats.observability.lineage import WRITE_OPERATION, LineageRecorder, schema_field_names
from file_formats.observability.logger import get_logger, log_operation
from file_formats.output.formatter import FileOutputFormatter
from file_formats.output.output_dir import OUTPUT_DIR_KEY, resolve_output_dir
from file_formats.sink.context import (
    BatchSinkContext,
    Emitter,
    PipelineConfigurer,
    RuntimeContext,
    SinkConfig,
)

logger = get_logger(__name__)

SCHEMA_MISMATCH_CODE = "schema_mismatch"


class SinkState(str, Enum):
    """Lifecycle states of a FileSink."""

    UNCONFIGURED = "unconfigured"
    VALIDATED = "validated"
    PREPARED = "prepared"
    RUNNING = "running"
    DONE = "done"


class FileSink:
    """
    Batch sink writing records to files in a configurable format.

    Usage:
        sink = FileSink(FileSinkConfig(reference_name="events", path="/data/out", format="json"))
        sink.configure_pipeline(PipelineConfigurer())
        output = sink.prepare_run(BatchSinkContext(logical_start_time=run_ts))

        # on each execution unit
        sink.initialize(RuntimeContext(partition_id=0))
        sink.transform(record, emitter)
        sink.destroy()
    """

    def __init__(self, config: SinkConfig, file_system_properties: Mapping[str, str] | None = None):
        """
        Initialize sink.

        Args:
            config: Sink configuration
            file_system_properties: Storage specific properties merged into
                the output properties (credentials, block sizes, ...)
        """
        self.config = config
        self._file_system_properties = dict(file_system_properties or {})
        self.state = SinkState.UNCONFIGURED
        self.output_dir: str | None = None
        self._formatter: FileOutputFormatter | None = None

    def _require_state(self, operation: str, *allowed: SinkState) -> None:
        if self.state not in allowed:
            expected = ", ".join(state.value for state in allowed)
            raise SinkStateError(
                f"Cannot {operation} in state '{self.state.value}', expected one of: {expected}"
            )

    def _build_formatter(self, schema: Schema | None) -> FileOutputFormatter:
        formatter = get_file_output_formatter(self.config.format, self.config.properties, schema)
        if formatter is None:
            raise FormatUnsupportedError(
                self.config.format,
                f"No output formatter available for format '{self.config.format}'",
            )
        return formatter

    # =======================
    # DEFINITION TIME
    # =======================

    def configure_pipeline(self, configurer: PipelineConfigurer) -> None:
        """
        Validate the config and publish the output schema.

        Raises:
            ConfigError: If the config is invalid
            SinkStateError: If the sink was already configured
        """
        self._require_state("configure pipeline", SinkState.UNCONFIGURED)
        self.config.validate_config()
        configurer.set_output_schema(self.config.get_schema())
        self.state = SinkState.VALIDATED
        logger.info(f"Validated sink '{self.config.reference_name}' ({self.config.format})")

    # =======================
    # PREPARE TIME
    # =======================

    def get_file_system_properties(self, context: BatchSinkContext) -> dict[str, str]:
        """Storage specific output properties. Override for a storage backend."""
        return dict(self._file_system_properties)

    def prepare_run(self, context: BatchSinkContext) -> Output:
        """
        Register the output of this run.

        The dataset and its lineage are recorded before the output is added.

        Returns:
            The registered Output

        Raises:
            ConfigError: If the config is invalid
            FormatUnsupportedError: If the format has no output formatter
        """
        self._require_state("prepare run", SinkState.UNCONFIGURED, SinkState.VALIDATED)
        reference_name = self.config.reference_name
        format_name = self.config.format

        with log_operation("prepare_run", logger=logger, reference_name=reference_name, format=format_name) as op:
            self.config.validate_config()

            schema = self.config.get_schema() or context.input_schema
            formatter = self._build_formatter(schema)

            recorder = LineageRecorder(context, reference_name)
            recorder.create_external_dataset(schema)
            recorder.record_write(
                WRITE_OPERATION,
                f"Wrote to {formatter.format_name} files.",
                schema_field_names(schema),
            )

            self.output_dir = resolve_output_dir(
                self.config.path, self.config.suffix, context.logical_start_time
            )
            properties = dict(formatter.format_config())
            properties.update(self.get_file_system_properties(context))
            properties[OUTPUT_DIR_KEY] = self.output_dir

            output = Output.of(
                reference_name,
                OutputFormatProvider(
                    format_class_name=formatter.format_class_name(),
                    properties=properties,
                ),
            )
            context.add_output(output)

        metrics.observe_prepare_run(format_name, op.duration)
        self.state = SinkState.PREPARED
        logger.info(f"Prepared output '{reference_name}' at {self.output_dir}")
        return output

    # =======================
    # RUN TIME
    # =======================

    def initialize(self, runtime_context: RuntimeContext) -> None:
        """
        Build the formatter of this execution unit.

        An executor-side sink that never saw configure_pipeline() validates
        its config first.

        Raises:
            ConfigError: If the config is invalid
            FormatUnsupportedError: If the format has no output formatter
        """
        self._require_state(
            "initialize", SinkState.UNCONFIGURED, SinkState.VALIDATED, SinkState.PREPARED
        )
        if self.state == SinkState.UNCONFIGURED:
            self.config.validate_config()

        schema = self.config.get_schema() or runtime_context.input_schema
        self._formatter = self._build_formatter(schema)
        self.state = SinkState.RUNNING
        logger.debug(
            f"Initialized {self.config.format} formatter for unit {runtime_context.partition_id}"
        )

    def transform(self, record: Mapping[str, Any], emitter: Emitter) -> None:
        """
        Transform one record and emit its (key, value) pair.

        A record that does not match the schema is sent to the emitter's
        error channel instead; other records are unaffected.
        """
        self._require_state("transform", SinkState.RUNNING)
        reference_name = self.config.reference_name
        try:
            key, value = self._formatter.transform(record)
        except SchemaMismatchError as e:
            logger.warning(
                f"Rejected record for '{reference_name}': {e}",
                extra={"field_name": e.field_name, "format": self.config.format},
            )
            metrics.record_encode_failure(self.config.format, reference_name)
            emitter.emit_error(
                InvalidEntry(
                    error_code=SCHEMA_MISMATCH_CODE,
                    message=str(e),
                    field_name=e.field_name,
                    record=_plain_record(record),
                )
            )
            return

        emitter.emit(key, value)
        metrics.record_encoded(self.config.format, reference_name)

    def destroy(self) -> None:
        """Release the formatter and finish the lifecycle."""
        self._formatter = None
        self.state = SinkState.DONE


def _plain_record(record: Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(record, StructuredRecord):
        return record.to_dict()
    return dict(record)
