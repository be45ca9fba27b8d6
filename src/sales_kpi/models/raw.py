"""Export rows as read, before any schema is applied."""

from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class RawRecord(BaseModel):
    """One row of an export, with where it came from so rejected rows can be traced."""

    model_config = ConfigDict(frozen=True)

    data: dict[str, Any] = Field(default_factory=dict)
    row: Optional[int] = Field(default=None, ge=1, description="1-based position in the export")
    location: str = ""

    @classmethod
    def from_rows(cls, rows: Iterable[dict[str, Any]], location: str = "") -> list["RawRecord"]:
        """Number mappings in export order; anything that is not a mapping still takes a position."""
        return [
            cls(data=dict(item), row=n, location=location)
            for n, item in enumerate(rows, start=1)
            if isinstance(item, dict)
        ]

    @property
    def label(self) -> str:
        """Human reference such as 'row 3 of export.json'."""
        if self.row is None:
            return self.location or "row"
        return f"row {self.row} of {self.location}" if self.location else f"row {self.row}"
