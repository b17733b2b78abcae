"""Common Pydantic schemas."""

import re
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.timeutils import UtcDateTime

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _expand_date_only(value: Any) -> Any:
    # "2025-07-01" from a date picker means midnight UTC
    if isinstance(value, str) and _DATE_ONLY.match(value):
        return f"{value}T00:00:00"
    return value


# Accepts full ISO timestamps as well as bare calendar dates
DateInput = Annotated[UtcDateTime, BeforeValidator(_expand_date_only)]


def reject_null(value: Any) -> Any:
    """Partial updates may omit a field but never clear a required column."""
    if value is None:
        raise ValueError("may not be null")
    return value


class ApiModel(BaseModel):
    """Base schema exchanging camelCase JSON while accepting snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        """Return a JSON-ready dict using the public camelCase names."""
        return self.model_dump(mode="json", by_alias=True)


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    error: str = Field(..., description="Message displayed by the web client")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


class MessageResponse(ApiModel):
    """Plain acknowledgement."""

    message: str


class SuccessResponse(ApiModel):
    """Outcome of an action that may partially fail, such as a notification."""

    success: bool
    message: Optional[str] = None


class UserSummary(ApiModel):
    """Public subset of a user embedded in other resources."""

    id: int
    username: str
    full_name: Optional[str] = None
    email: str


class AuthorSummary(ApiModel):
    full_name: Optional[str] = None
