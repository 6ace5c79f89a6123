"""Normalization of inbound create-variant request bodies.

Two body shapes are in circulation:

- flat (legacy product page)::

    {"product_id": 1, "width": 100, "height": 50, "material": "kraft", "qty": 100}

- nested (current configurator)::

    {"product_id": 1, "width": 100, "height": 50, "qty": 100,
     "config": {"sides": "double", "holeMM": 8, "corner": "luggage",
                "cord": "standard", "supply": "attached"}}

Both collapse to one VariantRequest. Fields inside ``config`` take
precedence over top-level fields of the same meaning.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from tagcalc.core.errors import ValidationError
from tagcalc.models import Configuration, VariantRequest

# Canonical field -> accepted spellings, in lookup order
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "width_mm": ("width", "widthMM", "width_mm"),
    "height_mm": ("height", "heightMM", "height_mm"),
    "quantity": ("qty", "quantity"),
    "sides": ("sides",),
    "hole_diameter_mm": ("holeMM", "hole_mm", "holeDiameterMM", "hole_diameter_mm"),
    "corner_style": ("corner", "cornerStyle", "corner_style"),
    "corner_radius_mm": ("cornerR", "cornerRadiusMM", "corner_radius_mm"),
    "cord_type": ("cord", "cordType", "cord_type"),
    "cord_supply": ("supply", "cordSupply", "cord_supply"),
    "material": ("material",),
}

_MISSING = object()


class RequestShape(str, Enum):
    FLAT = "flat"
    NESTED = "nested"


def detect_shape(body: Mapping[str, Any]) -> RequestShape:
    nested = body.get("config")
    if isinstance(nested, Mapping) and nested:
        return RequestShape.NESTED
    return RequestShape.FLAT


def _lookup(source: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for alias in aliases:
        if alias in source:
            return source[alias]
    return _MISSING


def _is_blank(value: Any) -> bool:
    if value is _MISSING or value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float)):
        return value == 0
    return False


def merge_fields(body: Mapping[str, Any]) -> dict[str, Any]:
    """Collect canonical configuration fields from either body shape."""
    nested = body.get("config")
    if not isinstance(nested, Mapping):
        nested = {}

    fields: dict[str, Any] = {}
    for name, aliases in FIELD_ALIASES.items():
        value = _lookup(nested, aliases)
        if value is _MISSING:
            value = _lookup(body, aliases)
        if value is not _MISSING:
            fields[name] = value
    return fields


def normalize_request(body: Any) -> VariantRequest:
    """Turn a raw JSON body into a canonical VariantRequest.

    Args:
        body: Decoded JSON request body

    Returns:
        VariantRequest with a fully coerced Configuration

    Raises:
        ValidationError: If product_id, width or height is missing
    """
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object")

    fields = merge_fields(body)

    product_id = body.get("product_id", _MISSING)
    if _is_blank(product_id):
        nested = body.get("config")
        if isinstance(nested, Mapping):
            product_id = nested.get("product_id", _MISSING)

    if (
        _is_blank(product_id)
        or _is_blank(fields.get("width_mm", _MISSING))
        or _is_blank(fields.get("height_mm", _MISSING))
    ):
        raise ValidationError("Missing width/height/product_id")

    # An absent quantity means a single order; explicit null still prices at the floor
    fields.setdefault("quantity", 1)

    return VariantRequest(
        product_id=str(product_id).strip(),
        shape=detect_shape(body).value,
        config=Configuration(**fields),
    )
