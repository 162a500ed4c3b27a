# storefront/database/__init__.py
from .cart_repository import CartRepository
from .catalog_repository import CatalogRepository
from .database import Database
from .order_repository import OrderRepository

__all__ = [
    'CartRepository',
    'CatalogRepository',
    'Database',
    'OrderRepository',
]
