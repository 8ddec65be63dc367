"""
FileSplit models identifying the byte ranges a single read task consumes.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FileSplit(BaseModel):
    """
    A contiguous byte range of a single source file.

    Attributes:
        path: Source file path (also the provenance value for the path field)
        start: First byte of the range
        length: Number of bytes in the range, None to read to end of file
        file_length: Total file size if known
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1)
    start: int = Field(0, ge=0)
    length: int | None = Field(None, ge=0)
    file_length: int | None = Field(None, ge=0)

    @property
    def end(self) -> int | None:
        """Exclusive end offset, or None when the split runs to end of file."""
        if self.length is None:
            return None
        return self.start + self.length

    @property
    def starts_file(self) -> bool:
        return self.start == 0


class CombinedFileSplit(BaseModel):
    """
    Several file splits packed into one logical split for a single task.

    Each member is read by its own delegate reader, in order.
    """

    model_config = ConfigDict(frozen=True)

    splits: tuple[FileSplit, ...]

    @model_validator(mode="after")
    def _not_empty(self) -> "CombinedFileSplit":
        if not self.splits:
            raise ValueError("CombinedFileSplit requires at least one split")
        return self

    @property
    def paths(self) -> list[str]:
        return [split.path for split in self.splits]

    @property
    def length(self) -> int | None:
        total = 0
        for split in self.splits:
            size = split.length if split.length is not None else split.file_length
            if size is None:
                return None
            total += size
        return total
