# storefront/models/order.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple
from uuid import UUID
from pydantic import ConfigDict, Field, model_validator
from .base import FrozenModel
from .pricing import PricingBreakdown

class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

class PaymentMethod(str, Enum):
    GCASH = "gcash"
    PAYPAL = "paypal"
    COD = "cod"

    @property
    def is_online(self) -> bool:
        return self != PaymentMethod.COD

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

class ShippingAddress(FrozenModel):
    """Where the order goes; completeness is checked before an order is built"""
    model_config = ConfigDict(frozen=True, from_attributes=True, str_strip_whitespace=True)

    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    province: str = ""
    postal_code: Optional[str] = None

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("full_name", "email", "phone", "address", "city", "province")

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]

class OrderItem(FrozenModel):
    """Snapshot of a cart line at order time, detached from the live catalog"""
    product_id: int
    seller_id: int
    product_name: str
    category: Optional[str] = None
    brand: Optional[str] = None
    image_url: Optional[str] = None
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

class Order(FrozenModel):
    """A seller-scoped order"""
    id: UUID
    order_number: str
    buyer_id: int
    seller_id: int
    items: List[OrderItem]
    pricing: PricingBreakdown
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus = OrderStatus.PENDING
    tracking_number: Optional[str] = None
    payment_reference: Optional[str] = None
    idempotency_key: Optional[str] = None
    order_date: datetime
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_items(self) -> "Order":
        if not self.items:
            raise ValueError("an order needs at least one item")
        if any(item.seller_id != self.seller_id for item in self.items):
            raise ValueError("all order items must belong to the order's seller")
        items_total = sum((item.subtotal for item in self.items), Decimal(0))
        if items_total != self.pricing.subtotal:
            raise ValueError(
                f"item subtotals ({items_total}) do not match pricing subtotal ({self.pricing.subtotal})"
            )
        return self

    @property
    def is_terminal(self) -> bool:
        return self.order_status in TERMINAL_STATUSES

    @property
    def unit_count(self) -> int:
        return sum(item.quantity for item in self.items)

class OrderPermissions(FrozenModel):
    can_cancel: bool
    can_message_seller: bool
    allowed_transitions: List[OrderStatus]
    can_update_payment: bool
    can_update_tracking: bool

class OrderView(FrozenModel):
    """An order together with what the reader may do with it"""
    order: Order
    permissions: OrderPermissions

class OrderStats(FrozenModel):
    total_orders: int
    total_spent: Decimal
    by_status: Dict[OrderStatus, int]

class CancellationResult(FrozenModel):
    order: Order
    refund_required: bool
