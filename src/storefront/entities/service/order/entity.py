"""Entities: Order and OrderItem."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.storefront.entities._base import Entity, Money
from src.storefront.entities.service.product.entity import ProductSummary


class OrderStatus(str, Enum):
    """Lifecycle states of an order."""

    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value: str | None) -> "OrderStatus | None":
        """Case-insensitive lookup; unknown values give ``None``."""
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    @classmethod
    def names(cls) -> list[str]:
        return [status.value for status in cls]

    def can_become(self, target: "OrderStatus") -> bool:
        """Forward-only transitions; staying in place is always allowed."""
        return target is self or target in _FORWARD_TRANSITIONS[self]


_FORWARD_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.CANCELLED: frozenset(),
}


class OrderItem(BaseModel):
    """One line of an order with the unit price captured at order time."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    product_id: int
    quantity: int = Field(ge=1)
    unit_price: Money
    product: ProductSummary | None = None


class Order(Entity):
    """An order placed by a user, with its items."""

    user_id: int = Field(description="Owning user")
    status: OrderStatus = Field(description="Lifecycle state")
    total_amount: Money = Field(description="Sum of item totals at order time")
    items: list[OrderItem] = Field(default_factory=list)
