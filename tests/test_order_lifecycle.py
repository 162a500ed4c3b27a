"""Tests for order status, payment status and tracking authority rules."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from storefront.exceptions import ForbiddenTransition
from storefront.models import (
    ActorContext,
    ActorRole,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    PricingBreakdown,
    ShippingAddress,
    ShippingFeeBasis,
)
from storefront.services import order_lifecycle as lifecycle

BUYER = ActorContext(user_id=1, role=ActorRole.BUYER)
OTHER_BUYER = ActorContext(user_id=2, role=ActorRole.BUYER)
SELLER = ActorContext(user_id=10, role=ActorRole.SELLER)
OTHER_SELLER = ActorContext(user_id=20, role=ActorRole.SELLER)
ADMIN = ActorContext(user_id=99, role=ActorRole.ADMIN)


def make_order(status=OrderStatus.PENDING, method=PaymentMethod.COD, payment_status=None) -> Order:
    if payment_status is None:
        payment_status = PaymentStatus.PENDING if method == PaymentMethod.COD else PaymentStatus.PAID
    return Order(
        id=uuid4(),
        order_number="ORD-1700000000000-042",
        buyer_id=1,
        seller_id=10,
        items=[OrderItem(product_id=1, seller_id=10, product_name="Jacket",
                         unit_price=Decimal("500.00"), quantity=1)],
        pricing=PricingBreakdown(
            subtotal=Decimal("500.00"), platform_fee=Decimal("50.00"),
            shipping_fee=Decimal("50.00"), total=Decimal("600.00"),
            shipping_fee_basis=ShippingFeeBasis.PER_ITEM,
        ),
        shipping_address=ShippingAddress(full_name="A", email="a@b.c", phone="1",
                                         address="x", city="Manila", province="NCR"),
        payment_method=method,
        payment_status=payment_status,
        order_status=status,
        order_date=datetime(2024, 3, 4, 10, 0),
    )


class TestOrderTransitions:

    def test_pending_allows_seller_processing_and_buyer_cancel(self):
        order = make_order(OrderStatus.PENDING)
        assert lifecycle.allowed_transitions(SELLER, order) == [OrderStatus.PROCESSING]
        assert lifecycle.allowed_transitions(BUYER, order) == [OrderStatus.CANCELLED]

    @pytest.mark.parametrize("current,target", [
        (OrderStatus.PENDING, OrderStatus.PROCESSING),
        (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
        (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    ])
    def test_seller_happy_path(self, current, target):
        lifecycle.check_transition(SELLER, make_order(current), target)

    @pytest.mark.parametrize("current", [OrderStatus.PENDING, OrderStatus.PROCESSING])
    def test_buyer_may_cancel_early(self, current):
        lifecycle.check_transition(BUYER, make_order(current), OrderStatus.CANCELLED)

    def test_buyer_cannot_cancel_shipped(self):
        with pytest.raises(ForbiddenTransition) as exc:
            lifecycle.check_transition(BUYER, make_order(OrderStatus.SHIPPED), OrderStatus.CANCELLED)
        assert exc.value.allowed == []

    def test_seller_cannot_cancel(self):
        with pytest.raises(ForbiddenTransition) as exc:
            lifecycle.check_transition(SELLER, make_order(OrderStatus.PENDING), OrderStatus.CANCELLED)
        assert exc.value.message == "Sellers cannot cancel orders"
        assert exc.value.allowed == ["processing"]

    def test_seller_cannot_skip_ahead(self):
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_transition(SELLER, make_order(OrderStatus.PENDING), OrderStatus.DELIVERED)

    def test_delivered_order_cannot_go_back(self):
        with pytest.raises(ForbiddenTransition) as exc:
            lifecycle.check_transition(SELLER, make_order(OrderStatus.DELIVERED), OrderStatus.PROCESSING)
        assert exc.value.current_status == "delivered"
        assert exc.value.requested == "processing"

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    @pytest.mark.parametrize("actor", [BUYER, SELLER, ADMIN])
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_terminal_states_are_final(self, terminal, actor, target):
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_transition(actor, make_order(terminal), target)

    @pytest.mark.parametrize("current", list(OrderStatus))
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_admin_never_transitions(self, current, target):
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_transition(ADMIN, make_order(current), target)

    def test_strangers_have_no_authority(self):
        order = make_order(OrderStatus.PENDING)
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_transition(OTHER_BUYER, order, OrderStatus.CANCELLED)
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_transition(OTHER_SELLER, order, OrderStatus.PROCESSING)

    def test_seller_of_order_acting_as_buyer_role_cannot_ship(self):
        actor = ActorContext(user_id=10, role=ActorRole.BUYER)
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_transition(actor, make_order(OrderStatus.PROCESSING), OrderStatus.SHIPPED)


class TestPaymentTransitions:

    def test_seller_marks_cod_paid(self):
        order = make_order(method=PaymentMethod.COD)
        assert lifecycle.allowed_payment_transitions(SELLER, order) == [PaymentStatus.PAID]
        lifecycle.check_payment_transition(SELLER, order, PaymentStatus.PAID)

    def test_cod_paid_after_delivery(self):
        lifecycle.check_payment_transition(SELLER, make_order(OrderStatus.DELIVERED), PaymentStatus.PAID)

    @pytest.mark.parametrize("method", [PaymentMethod.GCASH, PaymentMethod.PAYPAL])
    def test_online_payments_are_fixed(self, method):
        with pytest.raises(ForbiddenTransition) as exc:
            lifecycle.check_payment_transition(SELLER, make_order(method=method), PaymentStatus.PENDING)
        assert "payment provider" in exc.value.message

    def test_no_failed_through_seller_action(self):
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_payment_transition(SELLER, make_order(), PaymentStatus.FAILED)

    def test_paid_is_final(self):
        order = make_order(payment_status=PaymentStatus.PAID)
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_payment_transition(SELLER, order, PaymentStatus.PENDING)

    @pytest.mark.parametrize("actor", [ADMIN, BUYER, OTHER_SELLER])
    def test_only_owning_seller(self, actor):
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_payment_transition(actor, make_order(), PaymentStatus.PAID)

    def test_cancelled_cod_cannot_be_settled(self):
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_payment_transition(SELLER, make_order(OrderStatus.CANCELLED), PaymentStatus.PAID)


class TestTracking:

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED])
    def test_seller_sets_tracking_while_open(self, status):
        lifecycle.check_tracking_update(SELLER, make_order(status))

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_no_tracking_on_terminal_orders(self, status):
        with pytest.raises(ForbiddenTransition):
            lifecycle.check_tracking_update(SELLER, make_order(status))

    @pytest.mark.parametrize("actor", [ADMIN, BUYER, OTHER_SELLER])
    def test_only_owning_seller(self, actor):
        assert not lifecycle.can_update_tracking(actor, make_order())


class TestReadAccess:

    def test_parties_and_admin_can_read(self):
        order = make_order()
        assert lifecycle.can_read(BUYER, order)
        assert lifecycle.can_read(SELLER, order)
        assert lifecycle.can_read(ADMIN, order)
        assert not lifecycle.can_read(OTHER_BUYER, order)
        assert not lifecycle.can_read(OTHER_SELLER, order)

    def test_messaging_open_until_delivery(self):
        assert lifecycle.can_message_seller(make_order(OrderStatus.SHIPPED))
        assert not lifecycle.can_message_seller(make_order(OrderStatus.DELIVERED))
