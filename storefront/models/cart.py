# storefront/models/cart.py
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from pydantic import Field
from .base import FrozenModel
from .pricing import PricingBreakdown

CENT = Decimal("0.01")

class CartLine(FrozenModel):
    """One product line in a buyer's cart"""
    id: int
    product_id: int
    seller_id: int
    unit_price: Decimal = Field(ge=0)
    discount_percent: Decimal = Field(default=Decimal(0), ge=0, le=100)
    shipping_fee_per_unit: Decimal = Field(default=Decimal(0), ge=0)
    quantity: int = Field(gt=0)

    # Display data joined from the catalog when the cart is read
    product_name: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def effective_unit_price(self) -> Decimal:
        """Unit price after the product discount, in whole cents"""
        discounted = self.unit_price * (Decimal(100) - self.discount_percent) / Decimal(100)
        return discounted.quantize(CENT, rounding=ROUND_HALF_UP)

    @property
    def line_total(self) -> Decimal:
        return self.effective_unit_price * self.quantity

    @property
    def shipping_fee(self) -> Decimal:
        return self.shipping_fee_per_unit * self.quantity

class SellerGroup(FrozenModel):
    """Cart lines sharing one seller; derived on every cart read"""
    seller_id: int
    lines: List[CartLine]
    pricing: PricingBreakdown

    @property
    def unit_count(self) -> int:
        return sum(line.quantity for line in self.lines)

class CheckoutPartition(FrozenModel):
    """Lines being checked out now and lines left for later"""
    checkout_lines: List[CartLine]
    remaining_lines: List[CartLine]

    @property
    def seller_id(self) -> int:
        return self.checkout_lines[0].seller_id
