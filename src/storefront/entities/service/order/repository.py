import math
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, select

from src.storefront.entities._base import valid_id
from src.storefront.entities.service.order.entity import Order, OrderStatus
from src.storefront.entities.service.order.table import OrderItemTable, OrderTable


@dataclass(frozen=True)
class OrderLine:
    """A validated line waiting to be written."""

    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _with_items(statement):
    return statement.options(
        selectinload(OrderTable.items).selectinload(OrderItemTable.product)
    )


class OrderRepository:
    """Data-access layer for orders and their items.

    Writes only flush; committing or rolling back is the caller's unit of work.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, order_id: int) -> Order | None:
        if not valid_id(order_id):
            return None
        row = self._session.exec(
            _with_items(select(OrderTable).where(OrderTable.id == order_id))
        ).first()
        if row is None:
            return None
        return Order.model_validate(row, from_attributes=True)

    def search(
        self,
        *,
        user_id: int | None = None,
        status: OrderStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        """One page of orders, newest first, with items and product summaries."""
        conditions = []
        if user_id is not None:
            conditions.append(col(OrderTable.user_id) == user_id)
        if status is not None:
            conditions.append(col(OrderTable.status) == status)

        total = self._session.exec(
            select(func.count()).select_from(OrderTable).where(*conditions)
        ).one()
        rows = self._session.exec(
            _with_items(
                select(OrderTable)
                .where(*conditions)
                .order_by(col(OrderTable.created_at).desc(), col(OrderTable.id).desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
        ).all()
        return OrderPage(
            orders=[Order.model_validate(row, from_attributes=True) for row in rows],
            total=total,
            page=page,
            limit=limit,
        )

    def create_with_items(
        self, *, user_id: int, total_amount: Decimal, lines: list[OrderLine]
    ) -> int:
        """Stage an order row plus one item row per line and return the order id."""
        order = OrderTable(
            user_id=user_id, status=OrderStatus.PENDING, total_amount=total_amount
        )
        self._session.add(order)
        self._session.flush()

        for line in lines:
            self._insert_item(order.id, line)
        self._session.flush()
        return order.id

    def _insert_item(self, order_id: int, line: OrderLine) -> None:
        self._session.add(
            OrderItemTable(
                order_id=order_id,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
        )

    def set_status(self, order_id: int, status: OrderStatus) -> None:
        row = self._session.get(OrderTable, order_id)
        if row is None:
            raise ValueError(f"Order with ID {order_id} not found")
        row.status = status
        self._session.add(row)
        self._session.flush()

    def count_items_for_product(self, product_id: int) -> int:
        return self._session.exec(
            select(func.count())
            .select_from(OrderItemTable)
            .where(col(OrderItemTable.product_id) == product_id)
        ).one()
