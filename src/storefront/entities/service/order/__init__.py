"""Entity package: Order."""

from .entity import Order, OrderItem, OrderStatus
from .repository import OrderLine, OrderPage, OrderRepository
from .table import OrderItemTable, OrderTable

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderLine",
    "OrderPage",
    "OrderRepository",
    "OrderTable",
    "OrderItemTable",
]
