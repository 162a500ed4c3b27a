from .actor import ActorContext, ActorRole
from .cart import CartLine, CheckoutPartition, SellerGroup
from .checkout import CheckoutQuote, CheckoutResult
from .delivery import DeliveryEstimate
from .order import (
    CancellationResult,
    Order,
    OrderItem,
    OrderPermissions,
    OrderStats,
    OrderStatus,
    OrderView,
    PaymentMethod,
    PaymentStatus,
    ShippingAddress,
)
from .payment import CaptureResult, PaymentDecision, PaymentSession, PaymentVerification
from .pricing import PricingBreakdown, ShippingFeeBasis
from .product import Product

__all__ = [
    'ActorContext',
    'ActorRole',
    'CancellationResult',
    'CaptureResult',
    'CartLine',
    'CheckoutPartition',
    'CheckoutQuote',
    'CheckoutResult',
    'DeliveryEstimate',
    'Order',
    'OrderItem',
    'OrderPermissions',
    'OrderStats',
    'OrderStatus',
    'OrderView',
    'PaymentDecision',
    'PaymentMethod',
    'PaymentSession',
    'PaymentStatus',
    'PaymentVerification',
    'PricingBreakdown',
    'Product',
    'SellerGroup',
    'ShippingAddress',
    'ShippingFeeBasis',
]
