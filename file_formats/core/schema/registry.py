"""
Schema registry for named schemas.

Schemas are loaded from YAML files or registered programmatically, then
looked up by name when configuring readers and sinks.
"""

from pathlib import Path
from typing import Any

import yaml

from file_formats.core.errors import ConfigError
from file_formats.core.models import Schema
from file_formats.observability.logger import get_logger

from .conversion import schema_from_dict, schema_to_dict

logger = get_logger(__name__)


class SchemaRegistry:
    """
    In-memory registry of immutable schemas keyed by name.

    Expected YAML format:
    ```yaml
    schemas:
      event:
        fields:
          - name: id
            type: long
          - name: body
            type: [string, "null"]
    ```
    """

    def __init__(self):
        self._schemas: dict[str, Schema] = {}

    def register(self, name: str, schema: Schema | dict[str, Any]) -> Schema:
        """
        Register a schema under a name.

        Args:
            name: Registry key
            schema: Schema instance or dict definition

        Returns:
            The registered Schema

        Raises:
            ConfigError: If the name is taken by a different schema
        """
        if not isinstance(schema, Schema):
            schema = schema_from_dict(schema)

        existing = self._schemas.get(name)
        if existing is not None and existing != schema:
            raise ConfigError(f"Schema '{name}' is already registered with a different definition")

        self._schemas[name] = schema
        logger.debug(f"Registered schema '{name}' with {len(schema.fields)} fields")
        return schema

    def get(self, name: str) -> Schema:
        """
        Look up a schema.

        Raises:
            ConfigError: If no schema is registered under the name
        """
        if name not in self._schemas:
            raise ConfigError(
                f"Unknown schema: {name}. Available: {sorted(self._schemas)}"
            )
        return self._schemas[name]

    def names(self) -> list[str]:
        return sorted(self._schemas)

    def load_yaml(self, path: str | Path) -> list[str]:
        """
        Register every schema of a YAML file.

        Returns:
            Names of the schemas loaded

        Raises:
            ConfigError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Schema file not found: {path}")

        try:
            with open(path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(config, dict) or not isinstance(config.get("schemas"), dict):
            raise ConfigError("Schema file must contain a 'schemas' mapping")

        loaded = []
        for name, definition in config["schemas"].items():
            if not isinstance(definition, dict):
                raise ConfigError(f"Schema '{name}' must be a mapping")
            definition = dict(definition)
            definition.setdefault("name", name)
            self.register(name, definition)
            loaded.append(name)

        logger.info(f"Loaded {len(loaded)} schemas from {path}")
        return loaded

    def dump(self) -> dict[str, Any]:
        """Dump all schemas in the plain dict layout."""
        return {"schemas": {name: schema_to_dict(s) for name, s in sorted(self._schemas.items())}}
