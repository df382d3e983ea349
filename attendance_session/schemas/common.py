"""Common response schemas."""
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ErrorResponse(BaseModel):
    """
    Error body returned by the attendance API.

    The server sends ``{"error": "..."}``; newer deployments add a
    structured ``code``. Framework-generated errors use ``detail``.
    """

    model_config = ConfigDict(extra="ignore")

    error: str = Field("", validation_alias=AliasChoices("error", "detail", "message"))
    code: Optional[str] = None

    @field_validator('error', mode='before')
    @classmethod
    def coerce_error(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, str):
            return v
        return str(v)

    @field_validator('code', mode='before')
    @classmethod
    def coerce_code(cls, v: Any) -> Optional[str]:
        # Some deployments send numeric codes
        if v is None or isinstance(v, str):
            return v
        return str(v)
