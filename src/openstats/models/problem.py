"""
RFC 7807 problem documents returned with non-success responses.
"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator

from openstats.models.user import API_MODEL_CONFIG


class ErrorDetail(BaseModel):
    model_config = API_MODEL_CONFIG

    location: str = ""
    message: str = ""
    value: Any = None

    @field_validator("location", "message", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ProblemDetails(BaseModel):
    model_config = API_MODEL_CONFIG

    type: str = "about:blank"
    title: Optional[str] = None
    detail: Optional[str] = None
    status: Optional[int] = None
    instance: Optional[str] = None
    errors: Optional[list[ErrorDetail]] = None

    @field_validator("type", mode="before")
    @classmethod
    def _null_as_blank(cls, v: Any) -> Any:
        return "about:blank" if v is None else v
