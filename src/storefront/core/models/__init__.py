"""Core models package."""

from .orders import CreateOrderRequest, OrderLineRequest, UpdateStatusRequest
from .principal import Principal, Role

__all__ = [
    "CreateOrderRequest",
    "OrderLineRequest",
    "Principal",
    "Role",
    "UpdateStatusRequest",
]
