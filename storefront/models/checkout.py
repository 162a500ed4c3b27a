# storefront/models/checkout.py
from typing import Optional
from .base import FrozenModel
from .cart import CheckoutPartition
from .delivery import DeliveryEstimate
from .order import Order
from .payment import PaymentSession
from .pricing import PricingBreakdown

class CheckoutQuote(FrozenModel):
    """Everything shown to the buyer before they commit"""
    partition: CheckoutPartition
    pricing: PricingBreakdown
    delivery: Optional[DeliveryEstimate] = None
    online_payment_allowed: bool

class CheckoutResult(FrozenModel):
    """Either a created order (cod) or a payment session to complete (online)"""
    pricing: PricingBreakdown
    order: Optional[Order] = None
    payment_session: Optional[PaymentSession] = None

    @property
    def requires_payment(self) -> bool:
        return self.order is None and self.payment_session is not None
