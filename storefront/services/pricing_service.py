# storefront/services/pricing_service.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence
from ..exceptions import CheckoutValidationError
from ..models.cart import CartLine
from ..models.pricing import PricingBreakdown, ShippingFeeBasis

CENT = Decimal("0.01")

PLATFORM_FEE_RATE = Decimal("0.10")
FLAT_SHIPPING_FEE = Decimal("100.00")
FLAT_SHIPPING_MIN_UNITS = 3

def money(amount: Decimal) -> Decimal:
    """Round to whole cents, half up"""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)

def calculate_subtotal(lines: Sequence[CartLine]) -> Decimal:
    return money(sum((line.line_total for line in lines), Decimal(0)))

def calculate_platform_fee(subtotal: Decimal) -> Decimal:
    return money(subtotal * PLATFORM_FEE_RATE)

def calculate_shipping(lines: Sequence[CartLine]):
    """Tiered shipping by total unit count.

    One unit pays its own fee, two units pay the sum of their fees, three or
    more pay the flat fee. Returns ``(fee, basis, savings)`` where savings is
    how much the flat tier saves over the summed fees.
    """
    unit_count = sum(line.quantity for line in lines)
    summed_fee = money(sum((line.shipping_fee for line in lines), Decimal(0)))

    if unit_count >= FLAT_SHIPPING_MIN_UNITS:
        savings = max(Decimal(0), summed_fee - FLAT_SHIPPING_FEE)
        return FLAT_SHIPPING_FEE, ShippingFeeBasis.FLAT, money(savings)
    if unit_count == 2:
        return summed_fee, ShippingFeeBasis.SUMMED, money(Decimal(0))
    return summed_fee, ShippingFeeBasis.PER_ITEM, money(Decimal(0))

def calculate_pricing(lines: Sequence[CartLine]) -> PricingBreakdown:
    """Price a single seller's checkout lines"""
    if not lines:
        raise CheckoutValidationError({"lines": "At least one cart line is required"})

    subtotal = calculate_subtotal(lines)
    platform_fee = calculate_platform_fee(subtotal)
    shipping_fee, basis, savings = calculate_shipping(lines)

    return PricingBreakdown(
        subtotal=subtotal,
        platform_fee=platform_fee,
        shipping_fee=shipping_fee,
        total=money(subtotal + platform_fee + shipping_fee),
        shipping_fee_basis=basis,
        shipping_savings=savings,
    )
