"""Product database table model."""

from decimal import Decimal

from sqlmodel import Field

from src.storefront.entities._base import EntityTable


class ProductTable(EntityTable, table=True):
    """Database persistence model for products."""

    __tablename__ = "products"

    name: str = Field(max_length=255, index=True)
    sku: str = Field(max_length=100, unique=True, index=True)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
