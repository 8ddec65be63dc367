"""
Sink configuration management.

Loads file sink configurations from YAML files and provides a builder for
assembling them programmatically.
"""

from pathlib import Path
from typing import Any

import yaml

from file_formats.core.errors import ConfigError
from file_formats.core.models import FileSinkConfig, Schema
from file_formats.core.schema import SchemaRegistry


class SinkConfigLoader:
    """
    Loads file sink configurations from YAML files.

    Expected YAML format:
    ```yaml
    schemas:
      event:
        fields:
          - name: id
            type: long
          - name: body
            type: [string, "null"]

    sinks:
      - reference_name: events_out
        path: /data/events
        suffix: yyyy-MM-dd-HH-mm
        format: thrift
        schema_ref: event
        properties:
          thrift.protocol: compact
    ```

    A single sink may also be given under a `sink:` key, and the schema may
    be inlined under `schema:` instead of referenced.
    """

    def __init__(self, config_path: str | Path, registry: SchemaRegistry | None = None):
        """
        Initialize the sink config loader.

        Args:
            config_path: Path to the YAML configuration file
            registry: Registry resolving schema_ref entries, extended with the
                file's own schemas section
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise ConfigError(f"Sink configuration file not found: {config_path}")
        self.registry = registry or SchemaRegistry()

    def load_sinks(self) -> list[FileSinkConfig]:
        """
        Load and parse every sink of the file.

        Returns:
            List of FileSinkConfig, not yet validated

        Raises:
            ConfigError: If the YAML is invalid or a sink definition is malformed
        """
        try:
            with open(self.config_path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config, dict) or ("sink" not in config and "sinks" not in config):
            raise ConfigError("Configuration file must contain a 'sink' or 'sinks' section")

        for name, definition in (config.get("schemas") or {}).items():
            definition = dict(definition)
            definition.setdefault("name", name)
            self.registry.register(name, definition)

        sink_defs = config.get("sinks")
        if sink_defs is None:
            sink_defs = [config["sink"]]
        if not isinstance(sink_defs, list):
            raise ConfigError("'sinks' must be a list")

        return [self._parse_sink(sink_def, idx) for idx, sink_def in enumerate(sink_defs)]

    def load(self) -> FileSinkConfig:
        """
        Load the only sink of the file.

        Raises:
            ConfigError: If the file does not define exactly one sink
        """
        sinks = self.load_sinks()
        if len(sinks) != 1:
            raise ConfigError(f"Expected exactly one sink, found {len(sinks)}")
        return sinks[0]

    def _parse_sink(self, sink_def: Any, idx: int) -> FileSinkConfig:
        """
        Parse a single sink definition.

        Raises:
            ConfigError: If the sink definition is invalid
        """
        if not isinstance(sink_def, dict):
            raise ConfigError(f"Sink #{idx} must be a mapping")

        sink_def = dict(sink_def)
        schema_ref = sink_def.pop("schema_ref", None)
        if schema_ref is not None:
            if "schema" in sink_def:
                raise ConfigError(f"Sink #{idx} sets both 'schema' and 'schema_ref'")
            sink_def["schema"] = self.registry.get(schema_ref)

        # Accept the camelCase keys used by pipeline exports
        if "referenceName" in sink_def:
            sink_def.setdefault("reference_name", sink_def.pop("referenceName"))

        return FileSinkConfig.from_dict(sink_def)


class SinkConfigBuilder:
    """
    Programmatically build sink configurations (for testing or dynamic sinks).
    """

    def __init__(self, reference_name: str, path: str):
        """Initialize with the required settings."""
        self._data: dict[str, Any] = {
            "reference_name": reference_name,
            "path": path,
            "properties": {},
        }

    def with_format(self, format_name: str) -> "SinkConfigBuilder":
        self._data["format"] = format_name
        return self

    def with_suffix(self, suffix: str) -> "SinkConfigBuilder":
        self._data["suffix"] = suffix
        return self

    def with_schema(self, schema: Schema | dict[str, Any]) -> "SinkConfigBuilder":
        self._data["schema"] = schema
        return self

    def with_property(self, key: str, value: Any) -> "SinkConfigBuilder":
        """Add a format-specific property."""
        self._data["properties"][key] = value
        return self

    def with_compression(self, codec: str) -> "SinkConfigBuilder":
        return self.with_property("compression", codec)

    def build(self) -> FileSinkConfig:
        """Build the configuration without validating it."""
        return FileSinkConfig.from_dict(self._data)

    def build_validated(self) -> FileSinkConfig:
        """Build and validate the configuration."""
        config = self.build()
        config.validate_config()
        return config
