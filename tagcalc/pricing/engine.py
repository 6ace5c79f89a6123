"""Deterministic tag pricing.

Must stay identical to the price calculator the storefront runs in the
browser: both sides compute in binary floating point and round the final
total half-up to pennies, so the same configuration always shows the
same price on the product page and on the created variant.

Pricing steps (per tag, then scaled by quantity):
- Base: 0.012 per cm² of tag area
- Double sided: x1.12
- Hole of 7mm or more: +0.002
- Rounded corners: +0.0007 per mm of radius; luggage corners: +0.01
- Any cord: +0.02, attached by us: +0.01 more
- Quantity discount: 250+ x0.93, 500+ x0.88, 1000+ x0.83
- Order total never below 8.50
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Context, Decimal

from tagcalc.core.errors import ValidationError
from tagcalc.models import Configuration, CordSupply, CornerStyle, Sides

FLOOR_PRICE = Decimal("8.50")

BASE_RATE_PER_CM2 = 0.012
DOUBLE_SIDED_MULTIPLIER = 1.12
LARGE_HOLE_MIN_MM = 7
LARGE_HOLE_ADD = 0.002
ROUNDED_ADD_PER_MM = 0.0007
LUGGAGE_ADD = 0.01
CORD_ADD = 0.02
ATTACHED_ADD = 0.01

# Highest qualifying tier wins
DISCOUNT_TIERS: tuple[tuple[int, float], ...] = (
    (1000, 0.83),
    (500, 0.88),
    (250, 0.93),
)

_PENNY = Decimal("0.01")
# Wide enough to hold any finite float to the penny
_MONEY_CONTEXT = Context(prec=400)


def to_money(value: float) -> Decimal:
    """Round a float total half-up to two decimal places."""
    return Decimal(value).quantize(_PENNY, rounding=ROUND_HALF_UP, context=_MONEY_CONTEXT)


def discount_factor(quantity: int) -> float:
    """Quantity discount multiplier for an order of ``quantity`` tags."""
    for min_qty, factor in DISCOUNT_TIERS:
        if quantity >= min_qty:
            return factor
    return 1.0


@dataclass(frozen=True)
class PriceBreakdown:
    """Every intermediate value of one pricing run."""

    width_mm: float
    height_mm: float
    quantity: int | None
    area_cm2: float = 0.0
    base_unit: float = 0.0
    sides_multiplier: float = 1.0
    hole_add: float = 0.0
    rounded_add: float = 0.0
    luggage_add: float = 0.0
    cord_add: float = 0.0
    attached_add: float = 0.0
    unit: float = 0.0
    discount: float = 1.0
    total_before_floor: float = 0.0
    total: Decimal = FLOOR_PRICE

    @property
    def floored(self) -> bool:
        return self.total_before_floor < float(FLOOR_PRICE)

    def as_log_fields(self) -> dict:
        fields = asdict(self)
        fields["total"] = str(self.total)
        fields["floored"] = self.floored
        return fields


def calculate_breakdown(config: Configuration) -> PriceBreakdown:
    """Price ``config`` and keep each step for logging and parity checks.

    Raises:
        ValidationError: If the dimensions and quantity overflow the total
    """
    qty = config.quantity
    if qty is None or qty < 1:
        return PriceBreakdown(
            width_mm=config.width_mm,
            height_mm=config.height_mm,
            quantity=qty,
        )

    area_cm2 = (config.width_mm * config.height_mm) / 100
    base_unit = BASE_RATE_PER_CM2 * area_cm2
    unit = base_unit

    sides_multiplier = 1.0
    if config.sides == Sides.DOUBLE:
        sides_multiplier = DOUBLE_SIDED_MULTIPLIER
        unit *= sides_multiplier

    hole_add = 0.0
    if config.hole_diameter_mm >= LARGE_HOLE_MIN_MM:
        hole_add = LARGE_HOLE_ADD
        unit += hole_add

    rounded_add = 0.0
    luggage_add = 0.0
    if config.corner_style == CornerStyle.ROUNDED:
        rounded_add = config.corner_radius_mm * ROUNDED_ADD_PER_MM
        unit += rounded_add
    elif config.corner_style == CornerStyle.LUGGAGE:
        luggage_add = LUGGAGE_ADD
        unit += luggage_add

    cord_add = 0.0
    attached_add = 0.0
    if config.has_cord:
        cord_add = CORD_ADD
        unit += cord_add
        if config.cord_supply == CordSupply.ATTACHED:
            attached_add = ATTACHED_ADD
            unit += attached_add

    discount = discount_factor(qty)
    total_before_floor = unit * qty * discount
    if not math.isfinite(total_before_floor):
        raise ValidationError("Tag size or quantity is out of range")

    return PriceBreakdown(
        width_mm=config.width_mm,
        height_mm=config.height_mm,
        quantity=qty,
        area_cm2=area_cm2,
        base_unit=base_unit,
        sides_multiplier=sides_multiplier,
        hole_add=hole_add,
        rounded_add=rounded_add,
        luggage_add=luggage_add,
        cord_add=cord_add,
        attached_add=attached_add,
        unit=unit,
        discount=discount,
        total_before_floor=total_before_floor,
        total=to_money(max(total_before_floor, float(FLOOR_PRICE))),
    )


def price(config: Configuration) -> Decimal:
    """Order total for ``config``, never below FLOOR_PRICE."""
    return calculate_breakdown(config).total
