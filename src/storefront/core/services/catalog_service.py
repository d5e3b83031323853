"""Product catalog administration."""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.storefront.core.errors import ConflictError, NotFoundError, ValidationError
from src.storefront.entities._base import quantize_money
from src.storefront.entities.service.order import OrderRepository
from src.storefront.entities.service.product import Product, ProductRepository


@dataclass(frozen=True)
class ProductPage:
    products: list[Product]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _checked(fields: dict[str, Any]) -> dict[str, Any]:
    """Normalize and range-check product fields."""
    checked = dict(fields)
    for key in ("name", "sku"):
        if key in checked:
            value = (checked[key] or "").strip()
            if not value:
                raise ValidationError(f"{key.capitalize()} cannot be empty")
            checked[key] = value
    if "price" in checked:
        if checked["price"] is None or checked["price"] <= 0:
            raise ValidationError("Price must be greater than 0")
        checked["price"] = quantize_money(checked["price"])
    if "stock" in checked:
        if checked["stock"] is None or checked["stock"] < 0:
            raise ValidationError("Stock cannot be negative")
    return checked


class CatalogService:
    def __init__(self, session: Session):
        self._session = session
        self._products = ProductRepository(session)

    def list_products(
        self, *, page: int, limit: int, name: str | None = None, sku: str | None = None
    ) -> ProductPage:
        products, total = self._products.search(
            name=name, sku=sku, offset=(page - 1) * limit, limit=limit
        )
        return ProductPage(products=products, total=total, page=page, limit=limit)

    def get_product(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def create_product(
        self,
        *,
        name: str | None,
        sku: str | None,
        price: Decimal | None,
        stock: int | None,
    ) -> Product:
        """Insert a product; SKUs are unique."""
        if not name or not sku or price is None or stock is None:
            raise ValidationError("Name, sku, price and stock are required")
        fields = _checked({"name": name, "sku": sku, "price": price, "stock": stock})

        if self._products.get_by_sku(fields["sku"]) is not None:
            raise ConflictError(f"Product with SKU {fields['sku']} already exists")

        try:
            product = self._products.create(**fields)
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise ConflictError(f"Product with SKU {fields['sku']} already exists") from e

        logger.info("Created product {} ({})", product.id, product.sku)
        return product

    def update_product(self, product_id: int, fields: dict[str, Any]) -> Product:
        """Apply a partial update.

        Raises:
            NotFoundError: no such product
            ValidationError: ``fields`` is empty
            ConflictError: the new SKU belongs to another product
        """
        if self._products.get(product_id) is None:
            raise NotFoundError("Product not found")
        if not fields:
            raise ValidationError("No fields provided to update")
        fields = _checked(fields)

        if "sku" in fields:
            other = self._products.get_by_sku(fields["sku"])
            if other is not None and other.id != product_id:
                raise ConflictError(f"Product with SKU {fields['sku']} already exists")

        try:
            product = self._products.update(product_id, fields)
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise ConflictError("Product update conflicts with an existing product") from e
        return product

    def delete_product(self, product_id: int) -> None:
        if self._products.get(product_id) is None:
            raise NotFoundError("Product not found")
        if OrderRepository(self._session).count_items_for_product(product_id):
            raise ConflictError("Product is referenced by existing orders")

        self._products.delete(product_id)
        self._session.commit()
        logger.info("Deleted product {}", product_id)
