"""Response models for the TagCalc web API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class CreateVariantResponse(BaseModel):
    """Successful create-variant response.

    Used by: POST /create-variant
    """

    success: Literal[True] = True
    variant_id: int
    price: float  # Echoed for client-side debugging
    created: bool


class ErrorResponse(BaseModel):
    """Flat error envelope returned for every failure."""

    success: Literal[False] = False
    error: str
    kind: str


class StatusResponse(BaseModel):
    """Used by: GET /test"""

    success: bool = True
    message: str
