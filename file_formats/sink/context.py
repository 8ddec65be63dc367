"""
Host-facing contexts and capabilities used by the file sink.

Hosts pass these explicitly to every lifecycle call; the sink never reads
ambient state. BatchSinkContext and ListEmitter are in-memory implementations
used by the Spark binding, the CLI and tests.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from file_formats.core.models import InvalidEntry, LineageRecord, Output, Schema


class PluginConfig(Protocol):
    """Lifecycle capability: the config can validate itself."""

    def validate_config(self) -> None: ...


class FileSinkProperties(Protocol):
    """File sink capability: the settings a file sink needs."""

    reference_name: str
    path: str
    suffix: Optional[str]
    format: str
    properties: Dict[str, str]

    def get_schema(self) -> Optional[Schema]: ...


class SinkConfig(PluginConfig, FileSinkProperties, Protocol):
    """A config offering both capabilities, e.g. FileSinkConfig."""


class Emitter(Protocol):
    """Receives transformed pairs and per-record errors."""

    def emit(self, key: Any, value: Any) -> None: ...

    def emit_error(self, entry: InvalidEntry) -> None: ...


class ListEmitter:
    """Emitter collecting everything in memory."""

    def __init__(self):
        self.values: List[tuple] = []
        self.errors: List[InvalidEntry] = []

    def emit(self, key: Any, value: Any) -> None:
        self.values.append((key, value))

    def emit_error(self, entry: InvalidEntry) -> None:
        self.errors.append(entry)


class PipelineConfigurer:
    """Definition-time context receiving the schema a stage outputs."""

    def __init__(self, input_schema: Optional[Schema] = None):
        self.input_schema = input_schema
        self.output_schema: Optional[Schema] = None

    def set_output_schema(self, schema: Optional[Schema]) -> None:
        self.output_schema = schema


class BatchSinkContext:
    """
    Prepare-time context of one run.

    Collects registered outputs, datasets and lineage entries. events keeps
    the order in which they were registered.
    """

    def __init__(
        self,
        logical_start_time: Union[int, datetime],
        input_schema: Optional[Schema] = None,
        arguments: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize context.

        Args:
            logical_start_time: Nominal run time, epoch millis or datetime
            input_schema: Schema of the records reaching the sink, if known
            arguments: Runtime arguments of the run
        """
        self.logical_start_time = logical_start_time
        self.input_schema = input_schema
        self.arguments = dict(arguments or {})

        self.outputs: List[Output] = []
        self.datasets: Dict[str, Optional[Schema]] = {}
        self.lineage: List[LineageRecord] = []
        self.events: List[str] = []

    def add_output(self, output: Output) -> None:
        self.outputs.append(output)
        self.events.append(f"output:{output.name}")

    def register_dataset(self, reference_name: str, schema: Optional[Schema]) -> None:
        self.datasets[reference_name] = schema
        self.events.append(f"dataset:{reference_name}")

    def record_lineage(self, record: LineageRecord) -> None:
        self.lineage.append(record)
        self.events.append(f"lineage:{record.operation_name}")


class RuntimeContext(BaseModel):
    """
    Context of one execution unit.

    Attributes:
        partition_id: Index of the unit
        input_schema: Schema of incoming records, used when the sink declares none
        arguments: Runtime arguments of the run
    """

    model_config = ConfigDict(frozen=True)

    partition_id: int = Field(0, ge=0)
    input_schema: Optional[Schema] = None
    arguments: Dict[str, str] = Field(default_factory=dict)
