# storefront/models/payment.py
from decimal import Decimal
from typing import Any, Dict, Optional
from .base import FrozenModel
from .order import PaymentMethod

class PaymentDecision(FrozenModel):
    """Outcome of the minimum-amount gate"""
    payment_method: PaymentMethod
    total: Decimal
    requires_capture: bool

class PaymentSession(FrozenModel):
    """Redirect handle returned by a payment provider"""
    payment_method: PaymentMethod
    checkout_url: str
    payment_reference: str
    amount: Decimal
    client_key: Optional[str] = None

class CaptureResult(FrozenModel):
    payment_reference: str
    capture_id: Optional[str] = None
    status: str
    amount: Optional[Decimal] = None

class PaymentVerification(FrozenModel):
    payment_reference: str
    status: str
    paid: bool
    amount: Optional[Decimal] = None
    raw: Dict[str, Any] = {}
