"""Order placement and status transitions."""

from decimal import Decimal

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    StorefrontError,
    ValidationError,
)
from src.storefront.core.models import CreateOrderRequest, Principal
from src.storefront.entities._base import quantize_money
from src.storefront.entities.service.order import (
    Order,
    OrderLine,
    OrderPage,
    OrderRepository,
    OrderStatus,
)
from src.storefront.entities.service.product import ProductRepository
from src.storefront.runtime.config.config_data import OrdersConfig


class OrderService:
    """Creates orders from line items and moves them through their lifecycle.

    Every public method runs against the request's session. Writes happen in
    one unit of work that is committed at the end or rolled back as a whole.
    """

    def __init__(self, session: Session, config: OrdersConfig):
        self._session = session
        self._config = config
        self._orders = OrderRepository(session)
        self._products = ProductRepository(session)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create_order(self, principal: Principal, request: CreateOrderRequest) -> Order:
        """Validate ``request`` against the catalog and persist it.

        Validation is read-only and stops at the first bad line, so a rejected
        request never writes anything.

        Returns:
            The stored order with its items and product summaries

        Raises:
            ValidationError: empty order, missing fields, bad quantity, short stock
            NotFoundError: a line names an unknown product
            InternalError: the write failed and was rolled back
        """
        lines, total = self._validate_lines(request)
        order_id = self._persist(principal.id, total, lines)

        order = self._orders.get(order_id)
        if order is None:
            raise InternalError("Order disappeared after commit", order_id=order_id)

        logger.info(
            "Order {} created for user {} with {} item(s), total {}",
            order.id,
            principal.id,
            len(order.items),
            order.total_amount,
        )
        return order

    def _validate_lines(self, request: CreateOrderRequest) -> tuple[list[OrderLine], Decimal]:
        if not request.items:
            raise ValidationError("Order must contain at least one item")

        lines: list[OrderLine] = []
        total = Decimal("0")
        for item in request.items:
            if not item.product_id or not item.quantity:
                raise ValidationError("Each item must have productId and quantity")

            product = self._products.get(item.product_id)
            if product is None:
                raise NotFoundError(f"Product with ID {item.product_id} not found")

            quantity = int(item.quantity)
            if quantity <= 0:
                raise ValidationError("Quantity must be greater than 0")
            if quantity > product.stock:
                raise ValidationError(
                    f"Only {product.stock} quantity left in stock for {product.name}"
                )

            total += product.price * quantity
            lines.append(
                OrderLine(product_id=product.id, quantity=quantity, unit_price=product.price)
            )

        return lines, quantize_money(total)

    def _persist(self, user_id: int, total: Decimal, lines: list[OrderLine]) -> int:
        try:
            order_id = self._orders.create_with_items(
                user_id=user_id, total_amount=total, lines=lines
            )
            if self._config.debit_stock:
                for line in lines:
                    self._debit(line.product_id, line.quantity)
            self._session.commit()
        except StorefrontError:
            self._session.rollback()
            raise
        except Exception as e:
            self._session.rollback()
            logger.exception("Order creation failed for user {}; rolled back", user_id)
            raise InternalError("Failed to create order", error=str(e)) from e
        return order_id

    def _debit(self, product_id: int, quantity: int) -> None:
        if self._products.debit_stock(product_id, quantity):
            return
        # Another order took the units between validation and this write
        product = self._products.get(product_id)
        stock = product.stock if product else 0
        name = product.name if product else f"product {product_id}"
        raise ValidationError(f"Only {stock} quantity left in stock for {name}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_orders(
        self,
        principal: Principal,
        *,
        page: int | None = None,
        limit: int | None = None,
        status: str | None = None,
    ) -> OrderPage:
        """Page through orders; customers only ever see their own."""
        page = 1 if page is None else page
        limit = self._config.default_page_size if limit is None else limit
        if page < 1:
            raise ValidationError("Page must be a positive integer")
        if not 1 <= limit <= self._config.max_page_size:
            raise ValidationError(f"Limit must be between 1 and {self._config.max_page_size}")

        status_filter = None
        if status is not None and status.strip():
            status_filter = OrderStatus.parse(status)
            if status_filter is None:
                raise ValidationError(
                    f"Status must be one of: {', '.join(OrderStatus.names())}"
                )

        return self._orders.search(
            user_id=principal.id if principal.is_customer else None,
            status=status_filter,
            page=page,
            limit=limit,
        )

    def get_order(self, principal: Principal, order_id: int) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if principal.is_customer and not principal.owns(order.user_id):
            raise ForbiddenError("You are not authorized to view this order")
        return order

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------
    def update_status(self, principal: Principal, order_id: int, status: str | None) -> Order:
        """Move an order to ``status``.

        Customers may only cancel their own orders. With transition enforcement
        on, only forward moves are accepted and re-requesting the current
        status succeeds without writing.
        """
        target = OrderStatus.parse(status)
        if target is None:
            raise ValidationError(f"Status must be one of: {', '.join(OrderStatus.names())}")

        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if principal.is_customer and not principal.owns(order.user_id):
            raise ForbiddenError("You are not authorized to update this order")
        if principal.is_customer and target is not OrderStatus.CANCELLED:
            raise ForbiddenError("Customers can only cancel orders")

        current = order.status
        if target is current:
            return order
        if self._config.enforce_transitions and not current.can_become(target):
            raise ValidationError(
                f"Cannot change order status from {current.value} to {target.value}"
            )

        try:
            self._orders.set_status(order_id, target)
            if self._config.debit_stock:
                self._adjust_stock(order, current, target)
            self._session.commit()
        except StorefrontError:
            self._session.rollback()
            raise
        except Exception as e:
            self._session.rollback()
            logger.exception("Status update failed for order {}; rolled back", order_id)
            raise InternalError("Failed to update order status", error=str(e)) from e

        logger.info(
            "Order {} moved {} -> {} by user {}", order_id, current.value, target.value, principal.id
        )
        return self._orders.get(order_id)

    def _adjust_stock(self, order: Order, current: OrderStatus, target: OrderStatus) -> None:
        if target is OrderStatus.CANCELLED:
            for item in order.items:
                self._products.credit_stock(item.product_id, item.quantity)
        elif current is OrderStatus.CANCELLED:
            for item in order.items:
                self._debit(item.product_id, item.quantity)
