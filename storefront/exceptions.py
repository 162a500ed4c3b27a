# storefront/exceptions.py
from decimal import Decimal
from typing import Dict, List, Optional


class StorefrontError(Exception):
    """Base class for every caller-visible order engine error"""

    code = "storefront_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, object]:
        return {"success": False, "code": self.code, "error": self.message}


class ConfigurationError(StorefrontError):
    code = "configuration_error"


class CheckoutValidationError(StorefrontError):
    """Rejected input, reported per field"""

    code = "validation_error"

    def __init__(self, field_errors: Dict[str, str], message: str = "Checkout validation failed"):
        super().__init__(message)
        self.field_errors = dict(field_errors)

    def to_dict(self) -> Dict[str, object]:
        data = super().to_dict()
        data["field_errors"] = self.field_errors
        return data


class MinimumAmountError(StorefrontError):
    """Online payment requested for a total below the provider minimum"""

    code = "minimum_amount"

    def __init__(self, payment_method: str, total: Decimal, minimum: Decimal,
                 fallback_method: str = "cod"):
        super().__init__(
            f"Minimum amount for {payment_method} is {minimum:.2f}; "
            f"order total is {total:.2f}. Choose {fallback_method} or add more items."
        )
        self.payment_method = payment_method
        self.total = total
        self.minimum = minimum
        self.fallback_method = fallback_method

    def to_dict(self) -> Dict[str, object]:
        data = super().to_dict()
        data.update({
            "payment_method": self.payment_method,
            "total": str(self.total),
            "minimum": str(self.minimum),
            "fallback_method": self.fallback_method,
        })
        return data


class PaymentCaptureError(StorefrontError):
    code = "payment_failed"

    def __init__(self, message: str, payment_reference: Optional[str] = None):
        super().__init__(message)
        self.payment_reference = payment_reference


class StockConflictError(StorefrontError):
    code = "stock_conflict"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Only {available} item(s) of product {product_id} available; {requested} requested"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class ForbiddenTransition(StorefrontError):
    """Rejected status change; carries what the actor could do instead"""

    code = "forbidden_transition"

    def __init__(self, message: str, current_status: str, requested: str,
                 allowed: Optional[List[str]] = None):
        super().__init__(message)
        self.current_status = current_status
        self.requested = requested
        self.allowed = list(allowed or [])

    def to_dict(self) -> Dict[str, object]:
        data = super().to_dict()
        data.update({
            "current_status": self.current_status,
            "requested": self.requested,
            "allowed_transitions": self.allowed,
        })
        return data


class OrderNotFoundError(StorefrontError):
    code = "order_not_found"

    def __init__(self, reference: object):
        super().__init__(f"Order not found: {reference}")
        self.reference = reference
