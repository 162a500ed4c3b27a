# storefront/services/order_lifecycle.py
"""Who may change what on an order.

Every rule here is a pure function of the acting user and the order as it
is currently persisted. Buyers may only cancel, sellers drive fulfilment,
admins only read.
"""
from typing import Dict, List
from ..exceptions import ForbiddenTransition
from ..models.actor import ActorContext, ActorRole
from ..models.order import Order, OrderStatus, PaymentMethod, PaymentStatus, TERMINAL_STATUSES

STATUS_FLOW: Dict[OrderStatus, List[OrderStatus]] = {
    OrderStatus.PENDING: [OrderStatus.PROCESSING, OrderStatus.CANCELLED],
    OrderStatus.PROCESSING: [OrderStatus.SHIPPED, OrderStatus.CANCELLED],
    OrderStatus.SHIPPED: [OrderStatus.DELIVERED],
    OrderStatus.DELIVERED: [],
    OrderStatus.CANCELLED: [],
}

BUYER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})
MESSAGEABLE = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED})

PAYMENT_FLOW: Dict[PaymentStatus, List[PaymentStatus]] = {
    PaymentStatus.PENDING: [PaymentStatus.PAID],
    PaymentStatus.PAID: [],
    PaymentStatus.FAILED: [],
}

def is_order_buyer(actor: ActorContext, order: Order) -> bool:
    return actor.role == ActorRole.BUYER and actor.user_id == order.buyer_id

def is_order_seller(actor: ActorContext, order: Order) -> bool:
    return actor.role == ActorRole.SELLER and actor.user_id == order.seller_id

def can_read(actor: ActorContext, order: Order) -> bool:
    return actor.is_admin or is_order_buyer(actor, order) or is_order_seller(actor, order)

def allowed_transitions(actor: ActorContext, order: Order) -> List[OrderStatus]:
    """Statuses this actor may move the order to right now"""
    reachable = STATUS_FLOW[order.order_status]
    if is_order_buyer(actor, order):
        return [s for s in reachable if s == OrderStatus.CANCELLED]
    if is_order_seller(actor, order):
        return [s for s in reachable if s != OrderStatus.CANCELLED]
    return []

def _values(statuses) -> List[str]:
    return [s.value for s in statuses]

def check_transition(actor: ActorContext, order: Order, target: OrderStatus) -> None:
    """Raise ForbiddenTransition unless actor may move order to target"""
    target = OrderStatus(target)
    allowed = allowed_transitions(actor, order)
    if target in allowed:
        return

    current = order.order_status
    if actor.is_admin:
        reason = "Administrators can view orders but cannot change their status"
    elif not (is_order_buyer(actor, order) or is_order_seller(actor, order)):
        reason = "Only the buyer or the seller of this order can change its status"
    elif current in TERMINAL_STATUSES:
        reason = f"Cannot change status of {current.value} orders"
    elif target == OrderStatus.CANCELLED and is_order_seller(actor, order):
        reason = "Sellers cannot cancel orders"
    elif target != OrderStatus.CANCELLED and is_order_buyer(actor, order):
        reason = "Buyers can only cancel orders"
    else:
        reason = f"Invalid status transition from {current.value} to {target.value}"

    raise ForbiddenTransition(reason, current.value, target.value, _values(allowed))

def allowed_payment_transitions(actor: ActorContext, order: Order) -> List[PaymentStatus]:
    """Settlement changes the actor may make; only sellers settle cash on delivery"""
    if order.payment_method != PaymentMethod.COD:
        return []
    if order.order_status == OrderStatus.CANCELLED:
        return []
    if not is_order_seller(actor, order):
        return []
    return list(PAYMENT_FLOW[order.payment_status])

def check_payment_transition(actor: ActorContext, order: Order, target: PaymentStatus) -> None:
    target = PaymentStatus(target)
    allowed = allowed_payment_transitions(actor, order)
    if target in allowed:
        return

    current = order.payment_status
    if actor.is_admin:
        reason = "Administrators cannot change payment status"
    elif order.payment_method != PaymentMethod.COD:
        reason = "Payment status for online payments is managed by the payment provider"
    elif not is_order_seller(actor, order):
        reason = "Only the seller of this order can update its payment status"
    elif order.order_status == OrderStatus.CANCELLED:
        reason = "Cannot change payment status of a cancelled order"
    else:
        reason = f"Invalid payment status transition from {current.value} to {target.value}"

    raise ForbiddenTransition(reason, current.value, target.value, _values(allowed))

def can_update_tracking(actor: ActorContext, order: Order) -> bool:
    return is_order_seller(actor, order) and not order.is_terminal

def check_tracking_update(actor: ActorContext, order: Order) -> None:
    if can_update_tracking(actor, order):
        return
    if actor.is_admin:
        reason = "Administrators cannot change tracking numbers"
    elif not is_order_seller(actor, order):
        reason = "Only the seller of this order can set its tracking number"
    else:
        reason = f"Cannot change tracking number of {order.order_status.value} orders"
    raise ForbiddenTransition(
        reason,
        order.order_status.value,
        "tracking_number",
        _values(allowed_transitions(actor, order)),
    )

def can_cancel(actor: ActorContext, order: Order) -> bool:
    return OrderStatus.CANCELLED in allowed_transitions(actor, order)

def can_message_seller(order: Order) -> bool:
    return order.order_status in MESSAGEABLE
