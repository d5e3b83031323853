"""Entity: Product."""

from pydantic import BaseModel, ConfigDict, Field

from src.storefront.entities._base import Entity, Money


class Product(Entity):
    """A catalog entry that can be ordered."""

    name: str = Field(description="Product name")
    sku: str = Field(description="Stock keeping unit, unique")
    price: Money = Field(description="Current unit price")
    stock: int = Field(ge=0, description="Units available")


class ProductSummary(BaseModel):
    """The slice of a product embedded in order items."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Money
