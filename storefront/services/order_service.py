# storefront/services/order_service.py
import logging
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID, uuid4
import pytz
from ..exceptions import CheckoutValidationError, OrderNotFoundError, StockConflictError
from ..models.actor import ActorContext, ActorRole
from ..models.cart import CartLine
from ..models.checkout import CheckoutQuote, CheckoutResult
from ..models.order import (
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
from ..models.pricing import PricingBreakdown
from ..utils.formatters import format_price
from ..utils.identifiers import cod_idempotency_key, generate_order_number, payment_idempotency_key
from . import order_lifecycle as lifecycle
from .delivery_service import estimate_delivery
from .payment_service import MIN_ONLINE_PAYMENT
from .pricing_service import calculate_pricing, calculate_subtotal

def validate_shipping_address(address: ShippingAddress) -> None:
    missing = address.missing_fields()
    if missing:
        raise CheckoutValidationError(
            {name: "This field is required" for name in missing},
            "Please fill in all required shipping fields",
        )

def snapshot_item(line: CartLine) -> OrderItem:
    """Freeze what the buyer saw; later catalog edits do not touch it"""
    return OrderItem(
        product_id=line.product_id,
        seller_id=line.seller_id,
        product_name=line.product_name or "Unknown Product",
        category=line.category,
        brand=line.brand,
        image_url=line.image_url,
        unit_price=line.effective_unit_price,
        quantity=line.quantity,
    )

def build_order(buyer_id: int, checkout_lines: Sequence[CartLine], pricing: PricingBreakdown,
                shipping_address: ShippingAddress, payment_method: PaymentMethod,
                payment_reference: Optional[str] = None,
                idempotency_key: Optional[str] = None) -> Order:
    """Assemble a new order from a priced, single-seller checkout"""
    payment_method = PaymentMethod(payment_method)
    if not checkout_lines:
        raise CheckoutValidationError({"lines": "At least one cart line is required"})
    sellers = {line.seller_id for line in checkout_lines}
    if len(sellers) != 1:
        raise CheckoutValidationError({"seller_id": "An order can only contain items from one seller"})
    validate_shipping_address(shipping_address)
    if payment_method.is_online and not payment_reference:
        raise CheckoutValidationError(
            {"payment_reference": "Online payments must be captured before the order is created"}
        )
    if calculate_subtotal(checkout_lines) != pricing.subtotal:
        raise CheckoutValidationError({"pricing": "Pricing does not match the checkout lines"})

    return Order(
        id=uuid4(),
        order_number=generate_order_number(),
        buyer_id=buyer_id,
        seller_id=sellers.pop(),
        items=[snapshot_item(line) for line in checkout_lines],
        pricing=pricing,
        shipping_address=shipping_address,
        payment_method=payment_method,
        payment_status=PaymentStatus.PAID if payment_method.is_online else PaymentStatus.PENDING,
        order_status=OrderStatus.PENDING,
        payment_reference=payment_reference,
        idempotency_key=idempotency_key,
        order_date=datetime.now(pytz.utc),
    )

def billing_details(address: ShippingAddress) -> Dict[str, Any]:
    return {
        "name": address.full_name,
        "email": address.email,
        "phone": address.phone,
        "address": {
            "line1": address.address,
            "city": address.city,
            "state": address.province,
            "postal_code": address.postal_code or "",
            "country": "PH",
        },
    }

class OrderService:
    """Turns a buyer's cart into seller-scoped orders and serves order reads"""

    def __init__(self, order_repository, catalog_repository, cart_service, payment_service):
        self.order_repository = order_repository
        self.catalog_repository = catalog_repository
        self.cart_service = cart_service
        self.payment_service = payment_service
        self.logger = logging.getLogger(__name__)

    def _owned(self, existing: Order, buyer_id: int, key: str) -> Order:
        """An order found by idempotency key is only returned to its own buyer"""
        if existing.buyer_id != buyer_id:
            self.logger.warning(f"Buyer {buyer_id} presented key {key} belonging to another buyer")
            raise OrderNotFoundError(key)
        return existing

    async def quote_checkout(self, buyer_id: int,
                             selected_line_ids: Optional[Sequence[int]] = None,
                             city: Optional[str] = None) -> CheckoutQuote:
        """Price and delivery estimate for display, before anything is committed"""
        partition = await self.cart_service.prepare_checkout(buyer_id, selected_line_ids)
        pricing = calculate_pricing(partition.checkout_lines)
        return CheckoutQuote(
            partition=partition,
            pricing=pricing,
            delivery=estimate_delivery(city) if city else None,
            online_payment_allowed=pricing.total >= MIN_ONLINE_PAYMENT,
        )

    async def check_stock(self, lines: Sequence[CartLine]) -> None:
        """Fail early if the catalog can no longer cover the checkout"""
        requested = Counter()
        for line in lines:
            requested[line.product_id] += line.quantity

        for product_id, quantity in requested.items():
            product = await self.catalog_repository.get_product(product_id)
            available = product.stock_quantity if product and product.is_active else 0
            if available < quantity:
                raise StockConflictError(product_id, quantity, available)

    async def create_order(self, buyer_id: int, checkout_lines: Sequence[CartLine],
                           pricing: PricingBreakdown, shipping_address: ShippingAddress,
                           payment_method: PaymentMethod,
                           payment_reference: Optional[str] = None,
                           idempotency_key: Optional[str] = None) -> Order:
        """Create and persist an order; repeating a key returns the first order"""
        if idempotency_key:
            existing = await self.order_repository.get_order_by_idempotency_key(idempotency_key)
            if existing:
                self.logger.info(f"Order {existing.order_number} already exists for key {idempotency_key}")
                return self._owned(existing, buyer_id, idempotency_key)

        order = build_order(
            buyer_id, checkout_lines, pricing, shipping_address, payment_method,
            payment_reference=payment_reference, idempotency_key=idempotency_key,
        )

        try:
            created = await self.order_repository.create_order(order)
        except StockConflictError as e:
            self.logger.warning(f"Order for buyer {buyer_id} rejected: {e.message}")
            raise
        except Exception as e:
            self.logger.error(f"Error creating order for buyer {buyer_id}: {e}")
            raise

        if created.id == order.id:
            self.logger.info(
                f"Order {created.order_number} created: buyer {buyer_id}, seller {created.seller_id}, "
                f"{created.payment_method.value}, total {format_price(created.pricing.total)}"
            )
            await self.cart_service.remove_purchased(buyer_id, checkout_lines)
            return created
        return self._owned(created, buyer_id, idempotency_key)

    async def start_checkout(self, buyer_id: int, shipping_address: ShippingAddress,
                             payment_method: PaymentMethod,
                             selected_line_ids: Optional[Sequence[int]] = None,
                             idempotency_key: Optional[str] = None) -> CheckoutResult:
        """Price the checkout and either place a cod order or open a payment session"""
        payment_method = PaymentMethod(payment_method)
        if idempotency_key and not payment_method.is_online:
            existing = await self.order_repository.get_order_by_idempotency_key(
                cod_idempotency_key(buyer_id, idempotency_key)
            )
            if existing:
                existing = self._owned(existing, buyer_id, idempotency_key)
                return CheckoutResult(pricing=existing.pricing, order=existing)

        partition = await self.cart_service.prepare_checkout(buyer_id, selected_line_ids)
        validate_shipping_address(shipping_address)
        pricing = calculate_pricing(partition.checkout_lines)
        decision = self.payment_service.authorize(pricing.total, payment_method)
        await self.check_stock(partition.checkout_lines)

        if not decision.requires_capture:
            order = await self.create_order(
                buyer_id, partition.checkout_lines, pricing, shipping_address, payment_method,
                idempotency_key=cod_idempotency_key(buyer_id, idempotency_key) if idempotency_key else None,
            )
            return CheckoutResult(pricing=pricing, order=order)

        session = await self.payment_service.create_payment(
            pricing.total,
            payment_method,
            billing=billing_details(shipping_address),
            description=f"Order Payment ({sum(line.quantity for line in partition.checkout_lines)} item(s))",
        )
        return CheckoutResult(pricing=pricing, payment_session=session)

    async def complete_checkout(self, buyer_id: int, shipping_address: ShippingAddress,
                                payment_method: PaymentMethod, payment_reference: str,
                                selected_line_ids: Optional[Sequence[int]] = None) -> Order:
        """Create the order for an online payment once the provider confirms it"""
        if not payment_reference:
            raise CheckoutValidationError({"payment_reference": "Payment reference is required"})
        key = payment_idempotency_key(payment_reference)
        existing = await self.order_repository.get_order_by_idempotency_key(key)
        if existing:
            self.logger.info(f"Payment {payment_reference} already produced order {existing.order_number}")
            return self._owned(existing, buyer_id, key)

        partition = await self.cart_service.prepare_checkout(buyer_id, selected_line_ids)
        validate_shipping_address(shipping_address)
        pricing = calculate_pricing(partition.checkout_lines)
        self.payment_service.authorize(pricing.total, payment_method)

        await self.payment_service.confirm_payment(payment_method, payment_reference,
                                                   expected_amount=pricing.total)
        return await self.create_order(
            buyer_id, partition.checkout_lines, pricing, shipping_address, payment_method,
            payment_reference=payment_reference, idempotency_key=key,
        )

    async def get_order(self, order_id: UUID, actor: ActorContext) -> Order:
        order = await self.order_repository.get_order(order_id)
        if not order or not lifecycle.can_read(actor, order):
            raise OrderNotFoundError(order_id)
        return order

    async def get_order_by_number(self, order_number: str, actor: ActorContext) -> Order:
        order = await self.order_repository.get_order_by_number(order_number)
        if not order or not lifecycle.can_read(actor, order):
            raise OrderNotFoundError(order_number)
        return order

    async def view_order(self, order_id: UUID, actor: ActorContext) -> OrderView:
        order = await self.get_order(order_id, actor)
        return OrderView(order=order, permissions=self.permissions_for(actor, order))

    @staticmethod
    def permissions_for(actor: ActorContext, order: Order) -> OrderPermissions:
        return OrderPermissions(
            can_cancel=lifecycle.can_cancel(actor, order),
            can_message_seller=lifecycle.is_order_buyer(actor, order) and lifecycle.can_message_seller(order),
            allowed_transitions=lifecycle.allowed_transitions(actor, order),
            can_update_payment=bool(lifecycle.allowed_payment_transitions(actor, order)),
            can_update_tracking=lifecycle.can_update_tracking(actor, order),
        )

    async def list_orders(self, actor: ActorContext, status: Optional[OrderStatus] = None,
                          limit: Optional[int] = 50, offset: int = 0) -> List[Order]:
        """Orders visible to the actor, newest first"""
        filters: Dict[str, Any] = {"status": OrderStatus(status) if status else None}
        if actor.role == ActorRole.SELLER:
            filters["seller_id"] = actor.user_id
        elif actor.role == ActorRole.BUYER:
            filters["buyer_id"] = actor.user_id
        return await self.order_repository.list_orders(limit=limit, offset=offset, **filters)

    async def get_buyer_stats(self, buyer_id: int) -> OrderStats:
        orders = await self.order_repository.list_orders(buyer_id=buyer_id, limit=None)
        by_status = {status: 0 for status in OrderStatus}
        for order in orders:
            by_status[order.order_status] += 1
        total_spent = sum(
            (o.pricing.total for o in orders if o.order_status != OrderStatus.CANCELLED),
            Decimal("0.00"),
        )
        return OrderStats(total_orders=len(orders), total_spent=total_spent, by_status=by_status)
