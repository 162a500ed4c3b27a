# storefront/database/cart_repository.py
from typing import List, Sequence
from ..models.cart import CartLine

class CartRepository:
    """The buyer's cart, priced from the live catalog"""

    def __init__(self, db):
        self.db = db

    async def get_cart(self, buyer_id: int) -> List[CartLine]:
        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT c.id, c.product_id, c.quantity,
                    p.seller_id, p.price AS unit_price,
                    p.discount_percentage AS discount_percent,
                    p.shipping_fee AS shipping_fee_per_unit,
                    p.product_name, p.category, p.brand,
                    p.product_image AS image_url
                FROM cart_items c
                JOIN products p ON p.id = c.product_id
                WHERE c.user_id = $1
                ORDER BY c.created_at DESC, c.id
            """, buyer_id)
            return [CartLine(**dict(row)) for row in rows]

    async def remove_lines(self, buyer_id: int, line_ids: Sequence[int]) -> None:
        if not line_ids:
            return
        async with self.db.pool.acquire() as conn:
            await conn.execute(
                "DELETE FROM cart_items WHERE user_id = $1 AND id = ANY($2::int[])",
                buyer_id, list(line_ids)
            )
