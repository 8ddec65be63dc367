"""
Output registration and per-record error models exchanged with the host.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OutputFormatProvider(BaseModel):
    """
    Configuration-only description of an output format.

    The host instantiates the writer named by format_class_name in its own
    execution context and hands it the properties.
    """

    model_config = ConfigDict(frozen=True)

    format_class_name: str = Field(..., min_length=1)
    properties: dict[str, str] = Field(default_factory=dict)


class Output(BaseModel):
    """A named output registered with the host at prepare time."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    provider: OutputFormatProvider

    @classmethod
    def of(cls, name: str, provider: OutputFormatProvider) -> "Output":
        return cls(name=name, provider=provider)


class InvalidEntry(BaseModel):
    """
    A record that failed processing, routed to the host's error channel.

    Attributes:
        error_code: Short machine readable error code
        message: Human readable error message
        field_name: Offending field, if known
        record: The input record as a plain dict
    """

    error_code: str
    message: str
    field_name: str | None = None
    record: dict[str, Any] = Field(default_factory=dict)
