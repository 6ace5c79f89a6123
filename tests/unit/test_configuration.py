"""Unit tests for the Configuration and VariantRecord models."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from tagcalc.models import (
    Configuration,
    CordSupply,
    CornerStyle,
    Sides,
    VariantRecord,
)


class TestConfigurationDefaults:
    def test_defaults(self):
        config = Configuration()

        assert config.width_mm == 85
        assert config.height_mm == 55
        assert config.quantity == 1
        assert config.sides is Sides.SINGLE
        assert config.hole_diameter_mm == 5
        assert config.corner_style is CornerStyle.ROUNDED
        assert config.corner_radius_mm == 2
        assert config.cord_type == "none"
        assert config.cord_supply is CordSupply.LOOSE
        assert config.material == "standard"
        assert config.has_cord is False

    def test_is_immutable(self):
        config = Configuration()

        with pytest.raises(PydanticValidationError):
            config.width_mm = 10


class TestConfigurationCoercion:
    @pytest.mark.parametrize("value", ["abc", "", None, 0, -5, float("nan"), True])
    def test_bad_width_falls_back(self, value):
        assert Configuration(width_mm=value).width_mm == 85

    def test_numeric_strings_parse(self):
        config = Configuration(width_mm="120.5", height_mm="60", hole_diameter_mm="8")

        assert config.width_mm == 120.5
        assert config.height_mm == 60
        assert config.hole_diameter_mm == 8

    @pytest.mark.parametrize(
        "value,expected",
        [(None, None), ("abc", 1), ("", 1), ("12", 12), (7.9, 7), (0, 0), (-3, -3)],
    )
    def test_quantity(self, value, expected):
        assert Configuration(quantity=value).quantity == expected

    def test_choice_labels_are_case_insensitive(self):
        config = Configuration(sides=" Double ", corner_style="LUGGAGE", cord_supply="Attached")

        assert config.sides is Sides.DOUBLE
        assert config.corner_style is CornerStyle.LUGGAGE
        assert config.cord_supply is CordSupply.ATTACHED

    def test_unknown_choices_fall_back_to_defaults(self):
        config = Configuration(sides="triple", corner_style="bevelled", cord_supply=None)

        assert config.sides is Sides.SINGLE
        assert config.corner_style is CornerStyle.ROUNDED
        assert config.cord_supply is CordSupply.LOOSE

    @pytest.mark.parametrize("value", [None, "", "  ", "none", "NONE"])
    def test_no_cord_sentinels(self, value):
        config = Configuration(cord_type=value)

        assert config.cord_type == "none"
        assert config.has_cord is False

    def test_cord_type_is_normalized(self):
        config = Configuration(cord_type=" Lux ")

        assert config.cord_type == "lux"
        assert config.has_cord is True

    def test_blank_material_falls_back(self):
        assert Configuration(material="  ").material == "standard"
        assert Configuration(material=" Kraft Board ").material == "Kraft Board"


class TestVariantRecord:
    def test_from_shopify_payload(self):
        record = VariantRecord.model_validate(
            {
                "id": 40123456789,
                "product_id": 7001,
                "title": "100x50 - kraft",
                "option1": "100x50 - kraft",
                "price": "12.50",
                "created_at": "2025-03-01T10:15:00-05:00",
                "inventory_policy": "continue",
                "sku": None,
            }
        )

        assert record.id == 40123456789
        assert record.price == Decimal("12.50")
        assert record.created_at == datetime(2025, 3, 1, 15, 15, tzinfo=timezone.utc)
        assert record.key == "100x50 - kraft"

    def test_key_falls_back_to_title(self):
        record = VariantRecord(id=1, title="Default Title")

        assert record.key == "Default Title"


class TestOversizedNumbers:
    """Integers too large for a float coerce like any other bad number."""

    def test_huge_quantity_becomes_one(self):
        assert Configuration(quantity=10**400).quantity == 1

    def test_huge_dimensions_use_defaults(self):
        config = Configuration(width_mm=10**400, height_mm=-(10**400), corner_radius_mm=10**400)

        assert config.width_mm == 85
        assert config.height_mm == 55
        assert config.corner_radius_mm == 2

    def test_large_finite_float_is_kept(self):
        assert Configuration(width_mm=1e200).width_mm == 1e200
