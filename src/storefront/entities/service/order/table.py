"""Order and order item table models."""

from decimal import Decimal
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel

from src.storefront.entities._base import EntityTable
from src.storefront.entities.service.order.entity import OrderStatus
from src.storefront.entities.service.product.table import ProductTable


class OrderTable(EntityTable, table=True):
    """Database persistence model for orders."""

    __tablename__ = "orders"

    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)

    items: list["OrderItemTable"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "OrderItemTable.id",
        },
    )


class OrderItemTable(SQLModel, table=True):
    """Database persistence model for order lines. Rows are never updated."""

    __tablename__ = "order_items"

    id: int | None = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", ondelete="CASCADE", index=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(max_digits=10, decimal_places=2)

    order: Optional[OrderTable] = Relationship(back_populates="items")
    product: Optional[ProductTable] = Relationship()
