"""Variant title generation for deterministic variant identity.

The title doubles as the lookup key for an existing variant, so it
encodes every field that changes the price. Two configurations that
would be priced differently never share a title.

Key construction:
{w}x{h} - {material} / {sides} / {hole}mm hole / {corner} / {cord} / qty {q}

Examples:
    100x50 - kraft / single / 5mm hole / rounded r2 / no cord / qty 100
    400x300 - standard / double / 8mm hole / luggage / standard cord attached / qty 300
"""

from __future__ import annotations

from tagcalc.models import Configuration, CornerStyle

# Shopify rejects option values longer than this
MAX_TITLE_LENGTH = 255


def format_number(value: float) -> str:
    """Render a dimension without trailing zeros (100.0 -> "100", 2.5 -> "2.5")."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def corner_label(config: Configuration) -> str:
    if config.corner_style == CornerStyle.ROUNDED:
        return f"rounded r{format_number(config.corner_radius_mm)}"
    return config.corner_style.value


def cord_label(config: Configuration) -> str:
    if not config.has_cord:
        return "no cord"
    return f"{config.cord_type} cord {config.cord_supply.value}"


def variant_title(config: Configuration) -> str:
    """Generate the deterministic variant title for ``config``.

    Args:
        config: Normalized tag configuration

    Returns:
        Title string used as the variant's option1 value
    """
    size = f"{format_number(config.width_mm)}x{format_number(config.height_mm)}"
    quantity = config.quantity if config.quantity is not None else 0

    parts = [
        f"{size} - {config.material}",
        config.sides.value,
        f"{format_number(config.hole_diameter_mm)}mm hole",
        corner_label(config),
        cord_label(config),
        f"qty {quantity}",
    ]
    title = " / ".join(parts)

    # Material is free text; keep the price-relevant tail intact when trimming
    if len(title) > MAX_TITLE_LENGTH:
        overflow = len(title) - MAX_TITLE_LENGTH
        material = config.material[: max(len(config.material) - overflow, 1)]
        parts[0] = f"{size} - {material}"
        title = " / ".join(parts)[:MAX_TITLE_LENGTH]

    return title
