# storefront/models/pricing.py
from decimal import Decimal
from enum import Enum
from .base import FrozenModel

class ShippingFeeBasis(str, Enum):
    PER_ITEM = "per-item"
    SUMMED = "summed"
    FLAT = "flat"

class PricingBreakdown(FrozenModel):
    """Price of one seller-scoped checkout"""
    subtotal: Decimal
    platform_fee: Decimal
    shipping_fee: Decimal
    total: Decimal
    shipping_fee_basis: ShippingFeeBasis
    # Informational only, never deducted from shipping_fee
    shipping_savings: Decimal = Decimal("0.00")
