"""TagCalc Pydantic models for type-safe data validation.

Configuration values coerce permissively: historical storefront callers
send strings, blanks and unknown labels, and those fall back to the
defaults instead of failing the request.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class Sides(str, Enum):
    """Print sides."""

    SINGLE = "single"
    DOUBLE = "double"


class CornerStyle(str, Enum):
    """Corner finishing."""

    ROUNDED = "rounded"
    SQUARE = "square"
    LUGGAGE = "luggage"


class CordSupply(str, Enum):
    """How cords ship with the tags."""

    LOOSE = "loose"
    ATTACHED = "attached"


NO_CORD = "none"

# Fallbacks for missing or unparseable numeric input
NUMERIC_DEFAULTS: dict[str, float] = {
    "width_mm": 85.0,
    "height_mm": 55.0,
    "hole_diameter_mm": 5.0,
    "corner_radius_mm": 2.0,
}


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


_CHOICE_DEFAULTS: dict[str, tuple[type[Enum], Enum]] = {
    "sides": (Sides, Sides.SINGLE),
    "corner_style": (CornerStyle, CornerStyle.ROUNDED),
    "cord_supply": (CordSupply, CordSupply.LOOSE),
}


class Configuration(BaseModel):
    """A custom tag configuration, immutable once constructed."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "width_mm": 100.0,
                "height_mm": 50.0,
                "quantity": 250,
                "sides": "double",
                "hole_diameter_mm": 5.0,
                "corner_style": "rounded",
                "corner_radius_mm": 3.0,
                "cord_type": "standard",
                "cord_supply": "attached",
                "material": "kraft",
            }
        },
    )

    width_mm: float = NUMERIC_DEFAULTS["width_mm"]
    height_mm: float = NUMERIC_DEFAULTS["height_mm"]
    quantity: int | None = 1
    sides: Sides = Sides.SINGLE
    hole_diameter_mm: float = NUMERIC_DEFAULTS["hole_diameter_mm"]
    corner_style: CornerStyle = CornerStyle.ROUNDED
    corner_radius_mm: float = NUMERIC_DEFAULTS["corner_radius_mm"]
    cord_type: str = NO_CORD
    cord_supply: CordSupply = CordSupply.LOOSE
    material: str = "standard"

    @field_validator(
        "width_mm", "height_mm", "hole_diameter_mm", "corner_radius_mm", mode="before"
    )
    @classmethod
    def coerce_dimension(cls, v: Any, info: ValidationInfo) -> float:
        number = _to_float(v)
        if number is None or number <= 0:
            return NUMERIC_DEFAULTS[info.field_name]
        return number

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> int | None:
        # None stays None (prices at the floor); garbage becomes a single tag
        if v is None:
            return None
        number = _to_float(v)
        if number is None:
            return 1
        return math.floor(number)

    @field_validator("sides", "corner_style", "cord_supply", mode="before")
    @classmethod
    def coerce_choice(cls, v: Any, info: ValidationInfo) -> Any:
        enum_type, default = _CHOICE_DEFAULTS[info.field_name]
        if isinstance(v, Enum):
            return v
        label = str(v).strip().lower() if v is not None else ""
        try:
            return enum_type(label)
        except ValueError:
            return default

    @field_validator("cord_type", mode="before")
    @classmethod
    def coerce_cord_type(cls, v: Any) -> str:
        label = str(v).strip().lower() if v is not None else ""
        return label or NO_CORD

    @field_validator("material", mode="before")
    @classmethod
    def coerce_material(cls, v: Any) -> str:
        label = str(v).strip() if v is not None else ""
        return label or "standard"

    @property
    def has_cord(self) -> bool:
        return self.cord_type != NO_CORD


class VariantRecord(BaseModel):
    """Variant as returned by the commerce platform."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    product_id: int | None = None
    title: str | None = None
    option1: str | None = None
    price: Decimal | None = None
    created_at: datetime | None = None

    @property
    def key(self) -> str | None:
        """Lookup key: the variant's first option value."""
        return self.option1 if self.option1 is not None else self.title


class VariantRequest(BaseModel):
    """Canonical form of an inbound create-variant request."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    shape: Literal["flat", "nested"] = "flat"
    config: Configuration = Field(default_factory=Configuration)
