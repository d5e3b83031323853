"""Domain entities and their table models.

Importing this package registers every table on ``SQLModel.metadata``.
"""

from .core.user import User, UserRepository, UserTable
from .service.order import (
    Order,
    OrderItem,
    OrderItemTable,
    OrderRepository,
    OrderStatus,
    OrderTable,
)
from .service.product import Product, ProductRepository, ProductSummary, ProductTable

__all__ = [
    "User",
    "UserRepository",
    "UserTable",
    "Product",
    "ProductRepository",
    "ProductSummary",
    "ProductTable",
    "Order",
    "OrderItem",
    "OrderItemTable",
    "OrderRepository",
    "OrderStatus",
    "OrderTable",
]
