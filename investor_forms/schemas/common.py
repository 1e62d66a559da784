"""
Common / shared Pydantic schemas used across multiple endpoints.

Standardised error response models so the OpenAPI documentation shows the
error payloads the form UI has to handle, not only the happy path.
"""

from typing import List

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error envelope returned by all non-validation error handlers."""

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(
        ...,
        description="Human-readable error description",
        examples=["Network error: Please check your internet connection."],
    )


class ValidationErrorDetail(BaseModel):
    """Single field-level validation failure."""

    field: str = Field(
        ...,
        description="Path to the invalid field",
        examples=["portfolio_companies[0].link"],
    )
    message: str = Field(
        ...,
        description="Explanation of the validation failure",
        examples=["This field is required"],
    )


class ValidationErrorResponse(BaseModel):
    """
    Response body for 422 Unprocessable Entity.

    ``details`` lets the UI map errors to individual form inputs.
    """

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(
        default="Validation failed",
        description="Summary message",
    )
    details: List[ValidationErrorDetail] = Field(
        default_factory=list, description="Per-field validation failures"
    )
