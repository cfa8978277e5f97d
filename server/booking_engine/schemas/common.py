"""Common Pydantic schemas."""

from pydantic import BaseModel, Field


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: str | None = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str | None = Field(None, description="Human-readable explanation")
    instance: str | None = Field(None, description="URI reference for this occurrence")
    code: str | None = Field(None, description="Application-specific error code")
    retryable: bool | None = Field(None, description="Whether the operation can be retried")


PROBLEM_RESPONSES = {
    404: {"model": Problem, "description": "Unknown resource or reservation"},
    409: {"model": Problem, "description": "Conflict or invalid status transition"},
    422: {"model": Problem, "description": "Invalid interval or request body"},
}
