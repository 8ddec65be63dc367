"""
FileSinkConfig model: the user-facing configuration of a file sink run.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from file_formats.core.errors import ConfigError, FileFormatError
from file_formats.core.models.field_schema import Schema

REFERENCE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-\.]+$")


class FileSinkConfig(BaseModel):
    """
    Configuration of one file sink.

    Immutable once created, so a validated config can be shared read-only by
    parallel execution units.

    Attributes:
        reference_name: Name the output and its lineage are registered under
        path: Base output directory
        suffix: Optional time format appended to path, empty for none
        format: Registered format name (thrift, json, csv, tsv, ...)
        output_schema: Schema of written records, None to use the input schema
        properties: Format-specific properties
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "reference_name": "events_out",
                "path": "gs://bucket/events",
                "suffix": "yyyy-MM-dd-HH-mm",
                "format": "thrift",
                "schema": {"fields": [{"name": "id", "type": "long"}]},
                "properties": {"thrift.protocol": "compact"},
            }
        },
    )

    reference_name: str
    path: str
    suffix: str | None = None
    format: str = "json"
    output_schema: Schema | None = Field(None, alias="schema")
    properties: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileSinkConfig":
        """
        Build a config from plain (YAML/JSON) data.

        The schema entry may use either supported schema layout.

        Raises:
            ConfigError: If the data cannot be turned into a config
        """
        from file_formats.core.schema.conversion import schema_from_dict

        data = dict(data)
        raw_schema = data.pop("schema", None)
        if raw_schema is not None and not isinstance(raw_schema, Schema):
            data["schema"] = schema_from_dict(raw_schema)
        elif raw_schema is not None:
            data["schema"] = raw_schema

        properties = data.get("properties") or {}
        data["properties"] = {str(k): str(v) for k, v in properties.items()}

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid sink configuration: {e}") from e

    def get_schema(self) -> Schema | None:
        return self.output_schema

    def validate_config(self) -> None:
        """
        Validate the configuration.

        Pure with respect to the process state apart from the format registry,
        so definition-time and prepare-time validation give the same verdict.

        Raises:
            ConfigError: If any setting is invalid
        """
        from file_formats.formats.registry import create_codec
        from file_formats.output.output_dir import parse_suffix_pattern

        if not self.reference_name or not self.reference_name.strip():
            raise ConfigError("Reference name must be a non-empty string", "reference_name")
        if not REFERENCE_NAME_PATTERN.match(self.reference_name):
            raise ConfigError(
                "Reference name contains invalid characters. "
                "Only alphanumeric, hyphens, underscores, and dots are allowed.",
                "reference_name",
            )

        if not self.path or not self.path.strip():
            raise ConfigError("Output path must be a non-empty string", "path")

        if self.suffix:
            parse_suffix_pattern(self.suffix)

        try:
            codec = create_codec(self.format, self.output_schema, self.properties)
        except ConfigError:
            raise
        except FileFormatError as e:
            raise ConfigError(str(e), "format") from e

        if not codec.writable:
            raise ConfigError(f"Format '{self.format}' cannot be used to write data", "format")
