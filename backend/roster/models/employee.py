"""Employee models for the relational record store and the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import AnyUrl, BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

_url_adapter = TypeAdapter(AnyUrl)


class EmployeeFields(BaseModel):
    """The mutable part of an employee record, as handed to the store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    email: str
    position: str
    department: str
    photo_url: str | None = None


class EmployeeIn(EmployeeFields):
    """Request body for create and update."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    position: str = Field(..., min_length=2, max_length=100)
    department: str = Field(..., min_length=2, max_length=100)
    photo_url: str | None = None

    @field_validator("email")
    @classmethod
    def _check_email_length(cls, value: str) -> str:
        if len(value) > 100:
            raise ValueError("email must be at most 100 characters")
        return value

    @field_validator("photo_url")
    @classmethod
    def _check_photo_url(cls, value: str | None) -> str | None:
        if not value:
            return None
        try:
            _url_adapter.validate_python(value)
        except ValidationError as e:
            raise ValueError(f"photoUrl must be a valid URL: {e.errors()[0]['msg']}") from e
        return value


class EmployeeRecord(EmployeeFields):
    """A persisted employee."""

    id: int
    created_at: datetime


class FilterCriteria(BaseModel):
    """Optional case-insensitive substring filters for listing employees."""

    name: str | None = None
    email: str | None = None
    department: str | None = None
    position: str | None = None
