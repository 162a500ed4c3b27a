# storefront/database/order_repository.py
import json
import logging
from collections import Counter
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
import asyncpg
from ..exceptions import StockConflictError
from ..models.order import Order, OrderItem, OrderStatus, PaymentStatus, ShippingAddress
from ..models.pricing import PricingBreakdown
from ..utils.identifiers import generate_order_number

ORDER_NUMBER_ATTEMPTS = 3

ORDER_SELECT = """
    SELECT o.*,
        (SELECT json_agg(json_build_object(
            'product_id', oi.product_id,
            'seller_id', oi.seller_id,
            'product_name', oi.product_name,
            'category', oi.product_category,
            'brand', oi.product_brand,
            'image_url', oi.product_image,
            'unit_price', oi.unit_price,
            'quantity', oi.quantity
        ) ORDER BY oi.id)
        FROM order_items oi
        WHERE oi.order_id = o.id
        ) AS items
    FROM orders o
"""

class _DuplicateIdempotencyKey(Exception):
    pass

def row_to_order(row: asyncpg.Record) -> Order:
    data = dict(row)
    items = data.get("items") or "[]"
    if isinstance(items, str):
        items = json.loads(items, parse_float=Decimal)
    return Order(
        id=data["id"],
        order_number=data["order_number"],
        buyer_id=data["buyer_id"],
        seller_id=data["seller_id"],
        items=[OrderItem(**item) for item in items],
        pricing=PricingBreakdown(
            subtotal=data["subtotal"],
            platform_fee=data["platform_fee"],
            shipping_fee=data["shipping_fee"],
            total=data["total_amount"],
            shipping_fee_basis=data["shipping_fee_basis"],
            shipping_savings=data["shipping_savings"],
        ),
        shipping_address=ShippingAddress(
            full_name=data["shipping_full_name"],
            email=data["shipping_email"],
            phone=data["shipping_phone"],
            address=data["shipping_address"],
            city=data["shipping_city"],
            province=data["shipping_province"],
            postal_code=data["shipping_postal_code"],
        ),
        payment_method=data["payment_method"],
        payment_status=data["payment_status"],
        order_status=data["order_status"],
        tracking_number=data["tracking_number"],
        payment_reference=data["payment_reference"],
        idempotency_key=data["idempotency_key"],
        order_date=data["order_date"],
        updated_at=data["updated_at"],
        cancelled_at=data["cancelled_at"],
    )

class OrderRepository:
    """Orders in PostgreSQL; creation is atomic with the stock decrement"""

    def __init__(self, db, catalog_repository):
        self.db = db
        self.catalog_repository = catalog_repository
        self.logger = logging.getLogger(__name__)

    async def create_order(self, order: Order) -> Order:
        """Insert the order and take its stock in one transaction.

        An order already stored under the same idempotency key is returned
        instead of inserting a second one.
        """
        for attempt in range(ORDER_NUMBER_ATTEMPTS):
            try:
                await self._insert(order)
                return await self.get_order(order.id)
            except _DuplicateIdempotencyKey:
                self.logger.info(f"Idempotency key {order.idempotency_key} already used")
                return await self.get_order_by_idempotency_key(order.idempotency_key)
            except asyncpg.UniqueViolationError as e:
                if e.constraint_name != "orders_order_number_key" or attempt == ORDER_NUMBER_ATTEMPTS - 1:
                    raise
                order = order.model_copy(update={"order_number": generate_order_number()})

    async def _insert(self, order: Order) -> None:
        pricing = order.pricing
        address = order.shipping_address
        async with self.db.pool.acquire() as conn:
            async with conn.transaction():
                inserted = await conn.fetchval("""
                    INSERT INTO orders (
                        id, order_number, buyer_id, seller_id,
                        subtotal, platform_fee, shipping_fee, total_amount,
                        shipping_fee_basis, shipping_savings,
                        shipping_full_name, shipping_email, shipping_phone,
                        shipping_address, shipping_city, shipping_province,
                        shipping_postal_code,
                        payment_method, payment_status, payment_reference,
                        idempotency_key, order_status, order_date
                    ) VALUES (
                        $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12,
                        $13, $14, $15, $16, $17, $18, $19, $20, $21, $22, $23
                    )
                    ON CONFLICT (idempotency_key) DO NOTHING
                    RETURNING id
                """,
                    order.id, order.order_number, order.buyer_id, order.seller_id,
                    pricing.subtotal, pricing.platform_fee, pricing.shipping_fee, pricing.total,
                    pricing.shipping_fee_basis.value, pricing.shipping_savings,
                    address.full_name, address.email, address.phone,
                    address.address, address.city, address.province,
                    address.postal_code,
                    order.payment_method.value, order.payment_status.value, order.payment_reference,
                    order.idempotency_key, order.order_status.value, order.order_date
                )
                if inserted is None:
                    raise _DuplicateIdempotencyKey()

                await conn.executemany("""
                    INSERT INTO order_items (
                        order_id, product_id, seller_id, product_name,
                        product_category, product_brand, product_image,
                        unit_price, quantity, subtotal
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                """, [
                    (order.id, item.product_id, item.seller_id, item.product_name,
                     item.category, item.brand, item.image_url,
                     item.unit_price, item.quantity, item.subtotal)
                    for item in order.items
                ])

                quantities = Counter()
                for item in order.items:
                    quantities[item.product_id] += item.quantity
                for product_id, quantity in sorted(quantities.items()):
                    taken = await self.catalog_repository.decrement_stock(product_id, quantity, conn=conn)
                    if not taken:
                        available = await self.catalog_repository.get_stock(product_id, conn=conn)
                        raise StockConflictError(product_id, quantity, available)

    async def get_order(self, order_id: UUID) -> Optional[Order]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow(f"{ORDER_SELECT} WHERE o.id = $1", order_id)
            return row_to_order(row) if row else None

    async def get_order_by_number(self, order_number: str) -> Optional[Order]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow(f"{ORDER_SELECT} WHERE o.order_number = $1", order_number)
            return row_to_order(row) if row else None

    async def get_order_by_idempotency_key(self, key: str) -> Optional[Order]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow(f"{ORDER_SELECT} WHERE o.idempotency_key = $1", key)
            return row_to_order(row) if row else None

    async def update_order_status(self, order_id: UUID, expected: OrderStatus, status: OrderStatus,
                                  tracking_number: Optional[str] = None) -> Optional[Order]:
        """Compare-and-set on order_status; None when the stored status moved on"""
        cancelling = status == OrderStatus.CANCELLED
        async with self.db.pool.acquire() as conn:
            async with conn.transaction():
                updated = await conn.fetchval("""
                    UPDATE orders
                    SET order_status = $1,
                        tracking_number = COALESCE($2, tracking_number),
                        cancelled_at = CASE WHEN $5 THEN NOW() ELSE cancelled_at END,
                        updated_at = NOW()
                    WHERE id = $3 AND order_status = $4
                    RETURNING id
                """, status.value, tracking_number, order_id, expected.value, cancelling)
                if updated is None:
                    return None

                if cancelling:
                    items = await conn.fetch(
                        "SELECT product_id, quantity FROM order_items WHERE order_id = $1",
                        order_id
                    )
                    for item in items:
                        await self.catalog_repository.restore_stock(
                            item['product_id'], item['quantity'], conn=conn
                        )
        return await self.get_order(order_id)

    async def update_payment_status(self, order_id: UUID, expected: PaymentStatus,
                                    status: PaymentStatus) -> Optional[Order]:
        async with self.db.pool.acquire() as conn:
            updated = await conn.fetchval("""
                UPDATE orders
                SET payment_status = $1, updated_at = NOW()
                WHERE id = $2 AND payment_status = $3
                RETURNING id
            """, status.value, order_id, expected.value)
        return await self.get_order(order_id) if updated else None

    async def update_tracking(self, order_id: UUID, tracking_number: str,
                              statuses: Sequence[OrderStatus]) -> Optional[Order]:
        async with self.db.pool.acquire() as conn:
            updated = await conn.fetchval("""
                UPDATE orders
                SET tracking_number = $1, updated_at = NOW()
                WHERE id = $2 AND order_status = ANY($3::varchar[])
                RETURNING id
            """, tracking_number, order_id, [s.value for s in statuses])
        return await self.get_order(order_id) if updated else None

    async def list_orders(self, seller_id: Optional[int] = None, buyer_id: Optional[int] = None,
                          status: Optional[OrderStatus] = None, limit: Optional[int] = 50,
                          offset: int = 0) -> List[Order]:
        """Orders matching the filters, newest first"""
        query = f"{ORDER_SELECT} WHERE 1=1"
        params: List[Any] = []
        param_index = 1

        filters: Dict[str, Any] = {
            "o.seller_id": seller_id,
            "o.buyer_id": buyer_id,
            "o.order_status": status.value if status else None,
        }
        for column, value in filters.items():
            if value is not None:
                query += f" AND {column} = ${param_index}"
                params.append(value)
                param_index += 1

        query += " ORDER BY o.order_date DESC"

        if limit is not None:
            query += f" LIMIT ${param_index}"
            params.append(limit)
            param_index += 1
        if offset:
            query += f" OFFSET ${param_index}"
            params.append(offset)

        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch(query, *params)
            return [row_to_order(row) for row in rows]
