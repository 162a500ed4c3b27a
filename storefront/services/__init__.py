# storefront/services/__init__.py
from .cart_service import CartService, group_by_seller, partition_cart
from .delivery_service import estimate_delivery
from .fulfillment_service import FulfillmentService
from .order_service import OrderService, build_order
from .payment_service import PaymentService, PayMongoClient, PayPalClient, check_payment_amount
from .pricing_service import calculate_pricing

__all__ = [
    'CartService',
    'FulfillmentService',
    'OrderService',
    'PayMongoClient',
    'PayPalClient',
    'PaymentService',
    'build_order',
    'calculate_pricing',
    'check_payment_amount',
    'estimate_delivery',
    'group_by_seller',
    'partition_cart',
]
