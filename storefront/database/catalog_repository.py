# storefront/database/catalog_repository.py
from typing import Optional
from ..models.product import Product

PRODUCT_COLUMNS = """
    id AS product_id, seller_id, product_name AS name, price,
    discount_percentage AS discount_percent, shipping_fee AS shipping_fee_per_unit,
    stock_quantity, is_active, category, brand, product_image AS image_url
"""

class CatalogRepository:
    """Product reads and stock movements used by checkout"""

    def __init__(self, db):
        self.db = db

    async def get_product(self, product_id: int) -> Optional[Product]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = $1",
                product_id
            )
            return Product(**dict(row)) if row else None

    async def get_stock(self, product_id: int, conn) -> int:
        stock = await conn.fetchval(
            "SELECT stock_quantity FROM products WHERE id = $1",
            product_id
        )
        return stock or 0

    async def decrement_stock(self, product_id: int, quantity: int, conn) -> bool:
        """Take stock only if enough is left; False means nothing changed"""
        result = await conn.execute("""
            UPDATE products
            SET stock_quantity = stock_quantity - $2,
                sold_count = sold_count + $2,
                updated_at = NOW()
            WHERE id = $1 AND stock_quantity >= $2
        """, product_id, quantity)
        return result == "UPDATE 1"

    async def restore_stock(self, product_id: int, quantity: int, conn) -> None:
        await conn.execute("""
            UPDATE products
            SET stock_quantity = stock_quantity + $2,
                sold_count = GREATEST(0, sold_count - $2),
                updated_at = NOW()
            WHERE id = $1
        """, product_id, quantity)
