"""
Shared Pydantic schemas and types.

The error models document the error envelope in OpenAPI, so clients can see
the failure contract as well as the happy path.
"""

from decimal import Decimal
from typing import Annotated, List

from pydantic import BaseModel, Field, PlainSerializer

# Decimal internally, a JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ErrorResponse(BaseModel):
    """Standard error envelope returned by every non-validation error handler."""

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(
        ...,
        description="Human-readable error description",
        examples=["Investor with id '5f0c...' not found"],
    )


class ValidationErrorDetail(BaseModel):
    """Single field-level validation failure."""

    field: str = Field(
        ...,
        description="Arrow-separated path to the invalid field",
        examples=["body -> primary_address_pin"],
    )
    message: str = Field(
        ...,
        description="Explanation of the validation failure",
        examples=["String should match pattern '^\\d{6}$'"],
    )


class ValidationErrorResponse(BaseModel):
    """Response body for 422 validation failures."""

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(default="Validation failed", description="Summary message")
    details: List[ValidationErrorDetail] = Field(..., description="Per-field validation failures")
