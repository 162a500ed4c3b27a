# storefront/services/fulfillment_service.py
import logging
from typing import Optional
from uuid import UUID
from ..exceptions import CheckoutValidationError, ForbiddenTransition, OrderNotFoundError
from ..models.actor import ActorContext
from ..models.order import CancellationResult, Order, OrderStatus, PaymentStatus, TERMINAL_STATUSES
from . import order_lifecycle as lifecycle

OPEN_STATUSES = tuple(s for s in OrderStatus if s not in TERMINAL_STATUSES)

class FulfillmentService:
    """Applies lifecycle decisions to persisted orders.

    Each change is checked against the order as stored right now and written
    as a compare-and-set on the value that was checked, so two sellers' tabs
    cannot overwrite each other's transitions.
    """

    def __init__(self, order_repository):
        self.order_repository = order_repository
        self.logger = logging.getLogger(__name__)

    async def _load(self, order_id: UUID) -> Order:
        order = await self.order_repository.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    async def update_order_status(self, order_id: UUID, actor: ActorContext, status: OrderStatus,
                                  tracking_number: Optional[str] = None) -> Order:
        status = OrderStatus(status)
        order = await self._load(order_id)
        try:
            lifecycle.check_transition(actor, order, status)
        except ForbiddenTransition as e:
            self.logger.warning(
                f"User {actor.user_id} ({actor.role.value}) denied {order.order_status.value} -> "
                f"{status.value} on order {order.order_number}: {e.message}"
            )
            raise

        if tracking_number is not None:
            tracking_number = tracking_number.strip()
            if status != OrderStatus.SHIPPED:
                raise CheckoutValidationError(
                    {"tracking_number": "A tracking number can only accompany the shipped status"}
                )

        updated = await self.order_repository.update_order_status(
            order.id, order.order_status, status, tracking_number=tracking_number or None
        )
        if updated is None:
            current = await self._load(order_id)
            raise ForbiddenTransition(
                f"Order status changed to {current.order_status.value} while updating; reload and retry",
                current.order_status.value,
                status.value,
                [s.value for s in lifecycle.allowed_transitions(actor, current)],
            )

        self.logger.info(
            f"Order {updated.order_number} status {order.order_status.value} -> {status.value} "
            f"by user {actor.user_id}"
        )
        return updated

    async def cancel_order(self, order_id: UUID, actor: ActorContext) -> CancellationResult:
        """Buyer cancellation; stock is restored with the status change"""
        order = await self.update_order_status(order_id, actor, OrderStatus.CANCELLED)
        refund_required = order.payment_status == PaymentStatus.PAID
        if refund_required:
            self.logger.warning(
                f"Order {order.order_number} was paid via {order.payment_method.value}; refund required"
            )
        return CancellationResult(order=order, refund_required=refund_required)

    async def update_payment_status(self, order_id: UUID, actor: ActorContext,
                                    status: PaymentStatus) -> Order:
        status = PaymentStatus(status)
        order = await self._load(order_id)
        try:
            lifecycle.check_payment_transition(actor, order, status)
        except ForbiddenTransition as e:
            self.logger.warning(
                f"User {actor.user_id} denied payment change on order {order.order_number}: {e.message}"
            )
            raise

        updated = await self.order_repository.update_payment_status(order.id, order.payment_status, status)
        if updated is None:
            current = await self._load(order_id)
            raise ForbiddenTransition(
                f"Payment status changed to {current.payment_status.value} while updating",
                current.payment_status.value,
                status.value,
                [s.value for s in lifecycle.allowed_payment_transitions(actor, current)],
            )

        self.logger.info(f"Order {updated.order_number} payment status -> {status.value}")
        return updated

    async def update_tracking_number(self, order_id: UUID, actor: ActorContext,
                                     tracking_number: str) -> Order:
        """Overwrite the tracking number; no history is kept"""
        tracking_number = (tracking_number or "").strip()
        if not tracking_number:
            raise CheckoutValidationError({"tracking_number": "Tracking number is required"})

        order = await self._load(order_id)
        lifecycle.check_tracking_update(actor, order)

        updated = await self.order_repository.update_tracking(order.id, tracking_number, OPEN_STATUSES)
        if updated is None:
            current = await self._load(order_id)
            lifecycle.check_tracking_update(actor, current)
            raise ForbiddenTransition(
                "Order changed while updating tracking number; reload and retry",
                current.order_status.value,
                "tracking_number",
            )

        self.logger.info(f"Order {updated.order_number} tracking number updated")
        return updated
