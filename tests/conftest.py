"""Pytest fixtures for the storefront order engine tests."""

from decimal import Decimal

import pytest

from fakes import FakePayMongo, FakePayPal, InMemoryCart, InMemoryCatalog, InMemoryOrders, line_for
from storefront.models import ActorContext, ActorRole, Product, ShippingAddress
from storefront.services import CartService, FulfillmentService, OrderService, PaymentService

BUYER_ID = 1
OTHER_BUYER_ID = 2
SELLER_ID = 10
OTHER_SELLER_ID = 20
ADMIN_ID = 99


def _product(product_id, seller_id, name, price, fee, stock, discount="0"):
    return Product(
        product_id=product_id,
        seller_id=seller_id,
        name=name,
        price=Decimal(price),
        discount_percent=Decimal(discount),
        shipping_fee_per_unit=Decimal(fee),
        stock_quantity=stock,
        category="apparel",
        brand="Acme",
    )


@pytest.fixture
def products():
    return {
        "jacket": _product(1, SELLER_ID, "Denim Jacket", "500", "50", 10),
        "tee": _product(2, SELLER_ID, "Cotton Tee", "200", "70", 5),
        "cap": _product(3, SELLER_ID, "Cap", "150", "180", 5, discount="20"),
        "boots": _product(4, OTHER_SELLER_ID, "Boots", "300", "40", 3),
        "socks": _product(5, OTHER_SELLER_ID, "Socks", "50", "25", 10),
    }


@pytest.fixture
def catalog(products):
    return InMemoryCatalog(products.values())


@pytest.fixture
def cart(products):
    store = InMemoryCart()
    store.put(BUYER_ID, [
        line_for(products["jacket"], 101),
        line_for(products["tee"], 102),
        line_for(products["boots"], 103),
    ])
    return store


@pytest.fixture
def orders(catalog):
    return InMemoryOrders(catalog)


@pytest.fixture
def paymongo():
    return FakePayMongo()


@pytest.fixture
def paypal():
    return FakePayPal()


@pytest.fixture
def payment_service(paymongo, paypal):
    return PaymentService(gcash_client=paymongo, paypal_client=paypal)


@pytest.fixture
def cart_service(cart):
    return CartService(cart)


@pytest.fixture
def order_service(orders, catalog, cart_service, payment_service):
    return OrderService(orders, catalog, cart_service, payment_service)


@pytest.fixture
def fulfillment(orders):
    return FulfillmentService(orders)


@pytest.fixture
def address():
    return ShippingAddress(
        full_name="Juan Dela Cruz",
        email="juan@example.com",
        phone="09171234567",
        address="123 Rizal St",
        city="Quezon City",
        province="Metro Manila",
        postal_code="1100",
    )


@pytest.fixture
def buyer():
    return ActorContext(user_id=BUYER_ID, role=ActorRole.BUYER)


@pytest.fixture
def other_buyer():
    return ActorContext(user_id=OTHER_BUYER_ID, role=ActorRole.BUYER)


@pytest.fixture
def seller():
    return ActorContext(user_id=SELLER_ID, role=ActorRole.SELLER)


@pytest.fixture
def other_seller():
    return ActorContext(user_id=OTHER_SELLER_ID, role=ActorRole.SELLER)


@pytest.fixture
def admin():
    return ActorContext(user_id=ADMIN_ID, role=ActorRole.ADMIN)


@pytest.fixture
async def cod_order(order_service, address):
    """A pending cash-on-delivery order for the jacket (seller 10)"""
    result = await order_service.start_checkout(
        1, address, "cod", selected_line_ids=[101], idempotency_key="first-try"
    )
    return result.order
