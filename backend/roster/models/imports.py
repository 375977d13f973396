"""Bulk import result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ImportFailure(BaseModel):
    """One rejected row: its source line number, or "unknown" when the store refused it."""

    row: int | str
    error: str


class ImportReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_records: int = Field(..., ge=0)
    imported_count: int = Field(..., ge=0)
    failed_count: int = Field(..., ge=0)
    failed_rows: list[ImportFailure] = Field(default_factory=list)
