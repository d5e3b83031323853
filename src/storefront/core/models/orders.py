"""Typed commands accepted by the order workflow."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderLineRequest(BaseModel):
    """One submitted ``{productId, quantity}`` pair.

    Both fields stay optional here so the workflow can report a missing value
    with its own message instead of a generic schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    product_id: int | None = Field(default=None, alias="productId")
    quantity: int | None = None


class CreateOrderRequest(BaseModel):
    items: list[OrderLineRequest] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _non_list_is_empty(cls, value: Any) -> Any:
        # Anything that is not a list is reported as an empty order
        return value if isinstance(value, list) else []


class UpdateStatusRequest(BaseModel):
    status: str | None = None
