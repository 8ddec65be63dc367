"""
Error taxonomy for the file format adapter layer.

Configuration errors are fatal and surface before any I/O. Decode errors fail
the owning split, encode errors fail a single record.
"""


class FileFormatError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(FileFormatError):
    """Raised when a configuration value is missing or invalid."""

    def __init__(self, message: str, field_name: str | None = None):
        self.field_name = field_name
        self.message = message
        prefix = f"{field_name}: " if field_name else ""
        super().__init__(f"{prefix}{message}")


class FormatUnsupportedError(FileFormatError):
    """Raised when a format has no registered codec or formatter."""

    def __init__(self, format_name: str, message: str | None = None):
        self.format_name = format_name
        super().__init__(message or f"Format '{format_name}' is not supported")


class MalformedInputError(FileFormatError):
    """Raised when raw input does not parse against the declared schema."""

    def __init__(
        self,
        message: str,
        format_name: str | None = None,
        path: str | None = None,
        offset: int | None = None,
    ):
        self.message = message
        self.format_name = format_name
        self.path = path
        self.offset = offset

        location = ""
        if path is not None:
            location = f" ({path}" + (f" @ {offset}" if offset is not None else "") + ")"
        super().__init__(f"{message}{location}")

    def with_location(self, path: str, offset: int | None) -> "MalformedInputError":
        """Return a copy of this error annotated with the input location."""
        return MalformedInputError(self.message, self.format_name, path, offset)


class SchemaMismatchError(FileFormatError):
    """Raised when a record is missing a required field or has an incompatible value."""

    def __init__(self, message: str, field_name: str | None = None):
        self.field_name = field_name
        self.message = message
        prefix = f"{field_name}: " if field_name else ""
        super().__init__(f"{prefix}{message}")


class SinkStateError(FileFormatError):
    """Raised when a sink lifecycle method is called out of order."""
