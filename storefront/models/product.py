# storefront/models/product.py
from decimal import Decimal
from typing import Optional
from pydantic import Field
from .base import FrozenModel

class Product(FrozenModel):
    """Catalog product as seen by checkout"""
    product_id: int
    seller_id: int
    name: str
    price: Decimal = Field(ge=0)
    discount_percent: Decimal = Field(default=Decimal(0), ge=0, le=100)
    shipping_fee_per_unit: Decimal = Field(default=Decimal(0), ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    is_active: bool = True
    category: Optional[str] = None
    brand: Optional[str] = None
    image_url: Optional[str] = None
