"""Per-line pricing, shipping and tax."""

from decimal import Decimal

import pytest

from storefront.pricing import (
    bulk_discount,
    format_percentage,
    member_discount,
    price_line,
    round2,
    shipping,
    tax,
)
from storefront.schemas import ProductOut


def make_product(price, discount=None, pid="p1"):
    return ProductOut(
        id=pid,
        name="Test product",
        price=Decimal(price),
        discount_percentage=Decimal(discount) if discount is not None else None,
    )


def kinds(result):
    return [d.kind for d in result.discounts]


class TestPriceLine:
    def test_no_discounts_for_single_guest_item(self):
        result = price_line(make_product("49.99"), 1, authenticated=False)
        assert result.final_price == result.original_price == Decimal("49.99")
        assert result.discounts == []
        assert result.total_discount == Decimal("0.00")

    def test_sequential_discounts_are_applied_to_running_price(self):
        result = price_line(make_product("100.00", "10"), 3, authenticated=True)

        assert result.original_price == Decimal("300.00")
        assert kinds(result) == ["product", "bulk", "member"]
        assert [d.amount for d in result.discounts] == [Decimal("30.00"), Decimal("27.00"), Decimal("12.15")]
        # 3 x 76.95
        assert result.final_price == Decimal("230.85")
        assert result.total_discount == Decimal("69.15")

    def test_single_unit_member_price(self):
        result = price_line(make_product("100.00", "10"), 1, authenticated=True)
        assert kinds(result) == ["product", "member"]
        assert result.final_price == Decimal("85.50")

    def test_bulk_entry_present_from_threshold(self):
        assert "bulk" not in kinds(price_line(make_product("10.00"), 2, authenticated=False))
        for qty in (3, 4, 10):
            result = price_line(make_product("10.00"), qty, authenticated=False)
            bulk = [d for d in result.discounts if d.kind == "bulk"]
            assert len(bulk) == 1
            assert bulk[0].percentage == Decimal("10")
            assert bulk[0].label == "10% Bulk Discount (3+ items)"

    def test_member_discount_after_product_and_bulk(self):
        result = price_line(make_product("200.00", "25"), 4, authenticated=True)
        member = result.discounts[-1]
        assert member.kind == "member"
        assert member.percentage == Decimal("5")
        # 800 -> 600 -> 540, 5% of 540
        assert member.amount == Decimal("27.00")
        assert result.final_price == Decimal("513.00")

    def test_breakdown_rounded_for_display_only(self):
        result = price_line(make_product("0.35"), 3, authenticated=True)
        # bulk 0.105 and member 0.04725 show as 0.11 and 0.05
        assert [d.amount for d in result.discounts] == [Decimal("0.11"), Decimal("0.05")]
        # running price 0.89775 is rounded once at the end
        assert result.final_price == Decimal("0.90")
        assert result.total_discount == Decimal("0.15")
        assert result.final_price == result.original_price - result.total_discount

    def test_zero_product_discount_is_ignored(self):
        result = price_line(make_product("30.00", "0"), 1, authenticated=False)
        assert result.discounts == []

    def test_product_label_uses_compact_percentage(self):
        result = price_line(make_product("80.00", "12.50"), 1, authenticated=False)
        assert result.discounts[0].label == "12.5% Product Discount"
        assert result.final_price == Decimal("70.00")

    def test_full_product_discount_never_goes_negative(self):
        result = price_line(make_product("50.00", "100"), 5, authenticated=True)
        assert result.final_price == Decimal("0.00")
        assert result.total_discount == Decimal("250.00")

    def test_accepts_any_object_with_price_fields(self):
        class Row:
            price = Decimal("10.00")
            discount_percentage = None

        assert price_line(Row(), 2, authenticated=False).final_price == Decimal("20.00")


class TestStepDiscounts:
    def test_bulk_discount(self):
        assert bulk_discount(Decimal("90"), 3) == Decimal("9")
        assert bulk_discount(Decimal("90"), 2) == 0

    def test_member_discount(self):
        assert member_discount(Decimal("81"), True) == Decimal("4.05")
        assert member_discount(Decimal("81"), False) == 0


class TestShipping:
    @pytest.mark.parametrize(
        "total, free",
        [("0", False), ("999.99", False), ("1000.00", False), ("1000.01", True), ("5000", True)],
    )
    def test_free_shipping_strictly_above_threshold(self, total, free):
        result = shipping(Decimal(total))
        assert result.is_free_shipping is free
        assert result.cost == (Decimal("0") if free else Decimal("15.00"))
        assert result.free_shipping_threshold == Decimal("1000")


class TestTax:
    def test_default_rate(self):
        result = tax(Decimal("123.45"))
        assert result.rate == Decimal("10")
        assert result.amount == Decimal("12.35")
        assert result.label == "Tax (10%)"

    def test_custom_rate(self):
        result = tax(Decimal("200"), Decimal("8.5"))
        assert result.amount == Decimal("17.00")
        assert result.label == "Tax (8.5%)"


def test_round2_half_up():
    assert round2(Decimal("0.005")) == Decimal("0.01")
    assert round2(2.675) == Decimal("2.68")


def test_format_percentage():
    assert format_percentage(Decimal("10.00")) == "10"
    assert format_percentage(Decimal("7.25")) == "7.25"
