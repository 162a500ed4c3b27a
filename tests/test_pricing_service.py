"""Tests for seller-scoped checkout pricing."""

from decimal import Decimal

import pytest

from fakes import make_line
from storefront.exceptions import CheckoutValidationError
from storefront.models import ShippingAddress, ShippingFeeBasis
from storefront.services.order_service import build_order
from storefront.services.pricing_service import (
    FLAT_SHIPPING_FEE,
    calculate_platform_fee,
    calculate_pricing,
    calculate_subtotal,
    money,
)

ADDRESS = ShippingAddress(
    full_name="Ana Reyes", email="ana@example.com", phone="09170000000",
    address="1 Mabini St", city="Pasig", province="Metro Manila",
)


class TestScenarios:

    def test_single_unit(self):
        pricing = calculate_pricing([make_line(1, unit_price="500", fee="50")])
        assert pricing.subtotal == Decimal("500.00")
        assert pricing.platform_fee == Decimal("50.00")
        assert pricing.shipping_fee == Decimal("50.00")
        assert pricing.total == Decimal("600.00")
        assert pricing.shipping_fee_basis == ShippingFeeBasis.PER_ITEM

    def test_two_units_sum_their_fees(self):
        pricing = calculate_pricing([
            make_line(1, fee="50"),
            make_line(2, fee="70"),
        ])
        assert pricing.shipping_fee == Decimal("120.00")
        assert pricing.shipping_fee_basis == ShippingFeeBasis.SUMMED
        assert pricing.shipping_savings == Decimal("0.00")

    def test_three_lines_five_units_go_flat(self):
        lines = [
            make_line(1, fee="60", quantity=2),   # 120
            make_line(2, fee="40", quantity=2),   # 80
            make_line(3, fee="100", quantity=1),  # 100
        ]
        pricing = calculate_pricing(lines)
        assert pricing.shipping_fee == Decimal("100.00")
        assert pricing.shipping_fee_basis == ShippingFeeBasis.FLAT
        assert pricing.shipping_savings == Decimal("200.00")


class TestShippingTiers:

    def test_one_line_with_two_units_is_summed_tier(self):
        pricing = calculate_pricing([make_line(1, fee="35", quantity=2)])
        assert pricing.shipping_fee == Decimal("70.00")
        assert pricing.shipping_fee_basis == ShippingFeeBasis.SUMMED

    def test_exactly_three_units_is_flat(self):
        pricing = calculate_pricing([make_line(1, fee="10", quantity=3)])
        assert pricing.shipping_fee == FLAT_SHIPPING_FEE
        assert pricing.shipping_fee_basis == ShippingFeeBasis.FLAT

    @pytest.mark.parametrize("units", [3, 4, 7, 25])
    def test_flat_fee_independent_of_unit_count(self, units):
        pricing = calculate_pricing([make_line(1, fee="80", quantity=units)])
        assert pricing.shipping_fee == Decimal("100.00")

    def test_flat_fee_charged_even_when_cheaper_to_sum(self):
        pricing = calculate_pricing([make_line(1, fee="10", quantity=3)])
        assert pricing.shipping_fee == Decimal("100.00")
        assert pricing.shipping_savings == Decimal("0.00")

    def test_savings_never_reduce_shipping_fee(self):
        pricing = calculate_pricing([make_line(1, fee="500", quantity=4)])
        assert pricing.shipping_savings == Decimal("1900.00")
        assert pricing.total == pricing.subtotal + pricing.platform_fee + Decimal("100.00")


class TestAmounts:

    def test_discount_applies_before_quantity(self):
        line = make_line(1, unit_price="199.99", discount="15", quantity=2)
        # 199.99 * 0.85 = 169.9915 -> 169.99 per unit
        assert line.effective_unit_price == Decimal("169.99")
        assert calculate_subtotal([line]) == Decimal("339.98")

    def test_rounding_is_per_unit_not_per_line(self):
        line = make_line(1, unit_price="199.99", discount="15", quantity=10)
        pricing = calculate_pricing([line])
        # 10 x 169.99, not round(1699.915) = 1699.92
        assert pricing.subtotal == Decimal("1699.90")
        order = build_order(1, [line], pricing, ADDRESS, "cod")
        assert order.items[0].unit_price * 10 == pricing.subtotal

    def test_platform_fee_is_ten_percent_rounded(self):
        assert calculate_platform_fee(Decimal("339.98")) == Decimal("34.00")
        assert calculate_platform_fee(Decimal("0.05")) == Decimal("0.01")
        assert calculate_platform_fee(Decimal("0")) == Decimal("0.00")

    def test_total_is_sum_of_parts(self):
        lines = [
            make_line(1, unit_price="123.45", discount="12.5", fee="33.3"),
            make_line(2, unit_price="9.99", fee="12.25", quantity=4),
        ]
        pricing = calculate_pricing(lines)
        assert pricing.total == pricing.subtotal + pricing.platform_fee + pricing.shipping_fee
        assert pricing.platform_fee == money(pricing.subtotal * Decimal("0.10"))

    def test_full_discount_is_free(self):
        pricing = calculate_pricing([make_line(1, unit_price="250", discount="100", fee="40")])
        assert pricing.subtotal == Decimal("0.00")
        assert pricing.platform_fee == Decimal("0.00")
        assert pricing.total == Decimal("40.00")

    def test_empty_checkout_rejected(self):
        with pytest.raises(CheckoutValidationError) as exc:
            calculate_pricing([])
        assert "lines" in exc.value.field_errors
