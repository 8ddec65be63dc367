"""
LineageRecord model describing a field-level operation performed by a run.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class LineageRecord(BaseModel):
    """
    Field-level lineage entry, written once per run.

    Attributes:
        reference_name: Dataset the operation applies to
        operation_name: Operation identifier, e.g. "Write"
        description: Human readable description of the operation
        field_names: Fields produced by the operation, in schema order
        created_at: When the entry was recorded
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "reference_name": "events_gcs",
                "operation_name": "Write",
                "description": "Wrote to thrift files.",
                "field_names": ["id", "body", "ts"],
            }
        },
    )

    reference_name: str = Field(..., min_length=1)
    operation_name: str = Field(..., min_length=1)
    description: str
    field_names: tuple[str, ...] = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
