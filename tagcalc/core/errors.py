"""Error taxonomy for TagCalc.

Every error carries a ``kind`` discriminator that the HTTP layer copies
into the JSON error envelope.
"""

from __future__ import annotations

from typing import Any


class TagCalcError(Exception):
    """Base class for all TagCalc errors."""

    kind = "internal_error"


class ValidationError(TagCalcError):
    """Inbound request is missing required fields or cannot be priced (HTTP 400)."""

    kind = "validation_error"


class UpstreamError(TagCalcError):
    """A call to the commerce platform failed.

    Raised for transport errors, timeouts and non-2xx responses alike.
    ``status_code`` is None when no response was received.
    """

    kind = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class VariantCreationError(UpstreamError):
    """The create step of an upsert failed (HTTP 500)."""
