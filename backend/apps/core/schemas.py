"""
Core schemas - shared Pydantic models for API responses.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body returned for every IdentityError and HttpError."""

    detail: str = Field(..., description="Human-readable error message")

    model_config = {"json_schema_extra": {"example": {"detail": "Admin access required"}}}


class MessageResponse(BaseModel):
    """Acknowledgement for mutations without a richer result."""

    message: str = Field(..., description="What happened")
