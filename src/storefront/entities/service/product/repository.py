from typing import Any

from sqlalchemy import func, update
from sqlmodel import Session, col, select

from src.storefront.entities._base import valid_id
from src.storefront.entities.service.product.entity import Product
from src.storefront.entities.service.product.table import ProductTable


class ProductRepository:
    """Data-access layer for products."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, product_id: int) -> Product | None:
        if not valid_id(product_id):
            return None
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def get_by_sku(self, sku: str) -> Product | None:
        row = self._session.exec(
            select(ProductTable).where(ProductTable.sku == sku)
        ).first()
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def create(self, **fields: Any) -> Product:
        row = ProductTable(**fields)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def update(self, product_id: int, fields: dict[str, Any]) -> Product:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            raise ValueError(f"Product with ID {product_id} not found")
        for name, value in fields.items():
            setattr(row, name, value)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def delete(self, product_id: int) -> bool:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    def search(
        self,
        *,
        name: str | None = None,
        sku: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Product], int]:
        """Substring search on name and SKU, newest first."""
        conditions = []
        if name:
            conditions.append(col(ProductTable.name).contains(name))
        if sku:
            conditions.append(col(ProductTable.sku).contains(sku))

        total = self._session.exec(
            select(func.count()).select_from(ProductTable).where(*conditions)
        ).one()
        rows = self._session.exec(
            select(ProductTable)
            .where(*conditions)
            .order_by(col(ProductTable.created_at).desc(), col(ProductTable.id).desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return [Product.model_validate(row, from_attributes=True) for row in rows], total

    def debit_stock(self, product_id: int, quantity: int) -> bool:
        """Take ``quantity`` units out of stock unless that would go below zero.

        The check and the decrement are one UPDATE statement, so two concurrent
        transactions cannot both pass the check against the same units.
        """
        result = self._session.exec(
            update(ProductTable)
            .where(col(ProductTable.id) == product_id)
            .where(col(ProductTable.stock) >= quantity)
            .values(stock=ProductTable.stock - quantity)
        )
        return result.rowcount == 1

    def credit_stock(self, product_id: int, quantity: int) -> None:
        self._session.exec(
            update(ProductTable)
            .where(col(ProductTable.id) == product_id)
            .values(stock=ProductTable.stock + quantity)
        )
