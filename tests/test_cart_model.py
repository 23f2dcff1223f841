"""Tests for cart domain types and their document form."""
from __future__ import annotations

import json
from decimal import Decimal

import pytest

from chopchoo.domain.cart import (
    Cart,
    CartLine,
    CustomizationSelection,
    MenuItem,
    Vendor,
    customization_key,
    item_count,
)
from factories import make_item, make_selection


class TestMenuItem:
    def test_price_coerced_to_decimal(self):
        item = MenuItem(id="m1", vendor_id="v1", name="Waakye", price="12.5")
        assert item.price == Decimal("12.5")

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            MenuItem(id="m1", vendor_id="v1", name="Waakye", price=Decimal("-1"))

    def test_unknown_fields_are_carried(self):
        item = MenuItem.from_dict(
            {"id": "m1", "vendor_id": "v1", "name": "Waakye", "price": "9", "preparation_time": 15}
        )

        assert item.extra == {"preparation_time": 15}
        assert item.to_dict()["preparation_time"] == 15


class TestVendor:
    def test_passthrough_fields_round_trip(self):
        vendor = Vendor.from_dict({"id": "v1", "name": "Papaye", "opening_hours": {"monday": {}}})

        data = vendor.to_dict()

        assert data["opening_hours"] == {"monday": {}}
        assert Vendor.from_dict(data) == vendor


class TestCustomizationSelection:
    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            CustomizationSelection("extra", "Egg", Decimal("-10"))

    def test_zero_price_allowed(self):
        assert CustomizationSelection("extra", "Egg").price == Decimal("0")


class TestCustomizationKey:
    def test_sorted_by_default(self):
        a = [make_selection("size", "Large"), make_selection("extra", "Egg")]
        b = list(reversed(a))

        assert customization_key(a) == customization_key(b)

    def test_ordered_keeps_selection_order(self):
        a = [make_selection("size", "Large"), make_selection("extra", "Egg")]
        b = list(reversed(a))

        assert customization_key(a, ordered=True) != customization_key(b, ordered=True)

    def test_option_name_is_part_of_identity(self):
        assert customization_key([make_selection("size", "Large")]) != customization_key(
            [make_selection("size", "Small")]
        )


class TestCartLine:
    def test_recalculate_from_unit_price(self):
        line = CartLine(
            menu_item=make_item(price="6.00"),
            quantity=3,
            customizations=(make_selection("extra", "Shito", "0.50"),),
        )
        line.recalculate()

        assert line.unit_price == Decimal("6.50")
        assert line.line_total == Decimal("19.50")


class TestCartDocument:
    def _cart(self) -> Cart:
        line = CartLine(
            menu_item=make_item(price="0.10"),
            quantity=3,
            customizations=(CustomizationSelection("size", "Large", Decimal("0.05")),),
            special_instructions="no onions",
        )
        line.recalculate()
        return Cart(
            vendor_id="vendor_a",
            vendor=Vendor(id="vendor_a", name="Vendor A"),
            lines=[line],
            subtotal=Decimal("0.45"),
            delivery_fee=Decimal("5"),
            service_fee=Decimal("0.01"),
            discount_amount=Decimal("0"),
            total=Decimal("5.46"),
            promo_code="WELCOME5",
        )

    def test_json_round_trip_is_lossless(self):
        cart = self._cart()

        restored = Cart.from_dict(json.loads(json.dumps(cart.to_dict())))

        assert restored == cart
        assert restored.lines[0].special_instructions == "no onions"
        assert restored.subtotal == Decimal("0.45")

    def test_find_line(self):
        cart = self._cart()

        assert cart.find_line("item_1", [make_selection("size", "Large", "0.05")]) == 0
        assert cart.find_line("item_1") is None

    def test_item_count(self):
        assert item_count(self._cart()) == 3
        assert item_count(None) == 0
