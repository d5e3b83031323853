"""Order placement, stock handling and status transitions at the service level."""

from decimal import Decimal

import pytest

from src.storefront.core.errors import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from src.storefront.core.models import CreateOrderRequest
from src.storefront.core.services.order_service import OrderService
from src.storefront.entities.service.order import OrderRepository, OrderStatus
from src.storefront.entities.service.product import ProductRepository
from src.storefront.runtime.config.config_data import OrdersConfig


def _request(*lines: tuple) -> CreateOrderRequest:
    return CreateOrderRequest.model_validate(
        {"items": [{"productId": pid, "quantity": qty} for pid, qty in lines]}
    )


@pytest.fixture
def orders(session, test_config) -> OrderService:
    return OrderService(session, test_config.orders)


def _stock(session, product_id: int) -> int:
    session.expire_all()
    return ProductRepository(session).get(product_id).stock


class TestCreateOrder:
    def test_total_is_sum_of_price_times_quantity(self, orders, customer, product_factory):
        phone = product_factory(price="79999.00", stock=10)

        order = orders.create_order(customer, _request((phone.id, 2)))

        assert order.total_amount == Decimal("159998.00")
        assert order.status is OrderStatus.PENDING
        assert order.user_id == customer.id
        assert len(order.items) == 1
        assert order.items[0].unit_price == Decimal("79999.00")
        assert order.items[0].product.name == "iPhone 15"

    def test_multiple_lines(self, orders, customer, product_factory):
        a = product_factory(name="Cable", price="9.99", stock=100)
        b = product_factory(name="Case", price="19.50", stock=100)

        order = orders.create_order(customer, _request((a.id, 3), (b.id, 1)))

        assert order.total_amount == Decimal("49.47")
        assert sorted(item.product_id for item in order.items) == [a.id, b.id]

    def test_debits_stock(self, orders, session, customer, product_factory):
        phone = product_factory(stock=10)

        orders.create_order(customer, _request((phone.id, 4)))

        assert _stock(session, phone.id) == 6

    def test_stock_not_debited_when_disabled(self, session, customer, product_factory):
        phone = product_factory(stock=10)
        service = OrderService(session, OrdersConfig(debit_stock=False))

        service.create_order(customer, _request((phone.id, 4)))

        assert _stock(session, phone.id) == 10

    def test_quantity_equal_to_stock_is_accepted(self, orders, session, customer, product_factory):
        phone = product_factory(stock=3)

        orders.create_order(customer, _request((phone.id, 3)))

        assert _stock(session, phone.id) == 0

    def test_empty_items_rejected(self, orders, customer):
        with pytest.raises(ValidationError, match="Order must contain at least one item"):
            orders.create_order(customer, CreateOrderRequest(items=[]))

    def test_non_list_items_treated_as_empty(self, orders, customer):
        request = CreateOrderRequest.model_validate({"items": "nope"})
        with pytest.raises(ValidationError, match="at least one item"):
            orders.create_order(customer, request)

    def test_missing_quantity_rejected(self, orders, customer, product_factory):
        phone = product_factory()
        request = CreateOrderRequest.model_validate({"items": [{"productId": phone.id}]})

        with pytest.raises(ValidationError, match="Each item must have productId and quantity"):
            orders.create_order(customer, request)

    def test_unknown_product_is_not_found(self, orders, customer):
        with pytest.raises(NotFoundError, match="Product with ID 999 not found"):
            orders.create_order(customer, _request((999, 1)))

    def test_negative_quantity_rejected(self, orders, customer, product_factory):
        phone = product_factory()

        with pytest.raises(ValidationError, match="Quantity must be greater than 0"):
            orders.create_order(customer, _request((phone.id, -1)))

    def test_short_stock_reports_what_is_left(self, orders, session, customer, product_factory):
        phone = product_factory(stock=10)

        with pytest.raises(ValidationError) as exc_info:
            orders.create_order(customer, _request((phone.id, 11)))

        assert exc_info.value.message == "Only 10 quantity left in stock for iPhone 15"
        assert OrderRepository(session).search().total == 0

    def test_bad_second_line_writes_nothing(self, orders, session, customer, product_factory):
        phone = product_factory(stock=10)

        with pytest.raises(NotFoundError):
            orders.create_order(customer, _request((phone.id, 1), (404, 1)))

        assert OrderRepository(session).search().total == 0
        assert _stock(session, phone.id) == 10

    def test_failure_mid_write_rolls_back_everything(
        self, orders, session, customer, product_factory, monkeypatch
    ):
        a = product_factory(stock=10)
        b = product_factory(stock=10)
        calls = []
        original = OrderRepository._insert_item

        def fail_on_second(self, order_id, line):
            calls.append(line.product_id)
            if len(calls) == 2:
                raise RuntimeError("disk full")
            original(self, order_id, line)

        monkeypatch.setattr(OrderRepository, "_insert_item", fail_on_second)

        with pytest.raises(InternalError) as exc_info:
            orders.create_order(customer, _request((a.id, 1), (b.id, 1)))

        assert exc_info.value.message == "Failed to create order"
        assert exc_info.value.context["error"] == "disk full"
        assert OrderRepository(session).search().total == 0
        assert _stock(session, a.id) == 10
        assert _stock(session, b.id) == 10


class TestListAndGet:
    def test_customer_sees_only_own_orders(
        self, orders, customer, other_customer, product_factory
    ):
        phone = product_factory()
        orders.create_order(customer, _request((phone.id, 1)))
        orders.create_order(other_customer.to_principal(), _request((phone.id, 1)))

        page = orders.list_orders(customer)

        assert page.total == 1
        assert all(order.user_id == customer.id for order in page.orders)

    def test_admin_sees_all_orders(self, orders, admin, customer, other_customer, product_factory):
        phone = product_factory()
        orders.create_order(customer, _request((phone.id, 1)))
        orders.create_order(other_customer.to_principal(), _request((phone.id, 1)))

        assert orders.list_orders(admin).total == 2

    def test_pagination_and_newest_first(self, orders, admin, customer, product_factory):
        phone = product_factory()
        created = [orders.create_order(customer, _request((phone.id, 1))).id for _ in range(3)]

        page = orders.list_orders(admin, page=1, limit=2)

        assert page.total == 3
        assert page.total_pages == 2
        assert [order.id for order in page.orders] == created[::-1][:2]

    def test_status_filter_is_case_insensitive(self, orders, admin, customer, product_factory):
        phone = product_factory()
        first = orders.create_order(customer, _request((phone.id, 1)))
        orders.create_order(customer, _request((phone.id, 1)))
        orders.update_status(admin, first.id, "PAID")

        page = orders.list_orders(admin, status="paid")

        assert [order.id for order in page.orders] == [first.id]

    def test_invalid_status_filter(self, orders, admin):
        with pytest.raises(ValidationError, match="Status must be one of: PENDING, PAID, CANCELLED"):
            orders.list_orders(admin, status="SHIPPED")

    @pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
    def test_invalid_paging(self, orders, admin, page, limit):
        with pytest.raises(ValidationError):
            orders.list_orders(admin, page=page, limit=limit)

    def test_get_order_not_found(self, orders, admin):
        with pytest.raises(NotFoundError, match="Order not found"):
            orders.get_order(admin, 12345)

    def test_get_other_customers_order_forbidden(
        self, orders, customer, other_customer, product_factory
    ):
        phone = product_factory()
        order = orders.create_order(customer, _request((phone.id, 1)))

        with pytest.raises(ForbiddenError, match="not authorized to view this order"):
            orders.get_order(other_customer.to_principal(), order.id)

    def test_admin_can_read_any_order(self, orders, admin, customer, product_factory):
        phone = product_factory()
        order = orders.create_order(customer, _request((phone.id, 2)))

        fetched = orders.get_order(admin, order.id)

        assert fetched.total_amount == order.total_amount
        assert fetched.items[0].quantity == 2

    def test_repeated_reads_agree(self, orders, customer, product_factory):
        phone = product_factory(price="19.99", stock=5)
        order = orders.create_order(customer, _request((phone.id, 2)))

        first = orders.get_order(customer, order.id)
        second = orders.get_order(customer, order.id)

        assert first.status == second.status == OrderStatus.PENDING
        assert first.total_amount == second.total_amount == Decimal("39.98")
        assert [i.id for i in first.items] == [i.id for i in second.items]

    def test_out_of_range_ids_are_not_found(self, orders, admin, customer):
        with pytest.raises(NotFoundError, match="Order not found"):
            orders.get_order(admin, 2**63)
        with pytest.raises(NotFoundError, match="Product with ID 9223372036854775808 not found"):
            orders.create_order(customer, _request((2**63, 1)))


class TestUpdateStatus:
    def test_admin_marks_paid(self, orders, admin, customer, product_factory):
        phone = product_factory()
        order = orders.create_order(customer, _request((phone.id, 1)))

        updated = orders.update_status(admin, order.id, "PAID")

        assert updated.status is OrderStatus.PAID

    def test_customer_cancels_own_order_and_stock_returns(
        self, orders, session, customer, product_factory
    ):
        phone = product_factory(stock=10)
        order = orders.create_order(customer, _request((phone.id, 4)))
        assert _stock(session, phone.id) == 6

        updated = orders.update_status(customer, order.id, "cancelled")

        assert updated.status is OrderStatus.CANCELLED
        assert _stock(session, phone.id) == 10

    def test_customer_cannot_mark_paid(self, orders, customer, product_factory):
        phone = product_factory()
        order = orders.create_order(customer, _request((phone.id, 1)))

        with pytest.raises(ForbiddenError, match="Customers can only cancel orders"):
            orders.update_status(customer, order.id, "PAID")

    def test_customer_cannot_touch_other_orders(
        self, orders, customer, other_customer, product_factory
    ):
        phone = product_factory()
        order = orders.create_order(customer, _request((phone.id, 1)))

        with pytest.raises(ForbiddenError, match="not authorized to update this order"):
            orders.update_status(other_customer.to_principal(), order.id, "CANCELLED")

    def test_invalid_status(self, orders, admin):
        with pytest.raises(ValidationError, match="Status must be one of"):
            orders.update_status(admin, 1, "SHIPPED")

    def test_missing_order(self, orders, admin):
        with pytest.raises(NotFoundError, match="Order not found"):
            orders.update_status(admin, 999, "PAID")

    def test_backward_transition_rejected(self, orders, admin, customer, product_factory):
        phone = product_factory()
        order = orders.create_order(customer, _request((phone.id, 1)))
        orders.update_status(admin, order.id, "CANCELLED")

        with pytest.raises(ValidationError, match="from CANCELLED to PENDING"):
            orders.update_status(admin, order.id, "PENDING")

    def test_same_status_is_a_no_op(self, orders, session, admin, customer, product_factory):
        phone = product_factory(stock=10)
        order = orders.create_order(customer, _request((phone.id, 2)))
        orders.update_status(admin, order.id, "CANCELLED")

        again = orders.update_status(admin, order.id, "CANCELLED")

        assert again.status is OrderStatus.CANCELLED
        assert _stock(session, phone.id) == 10

    def test_leaving_cancelled_debits_again_when_unenforced(
        self, session, admin, customer, product_factory
    ):
        service = OrderService(session, OrdersConfig(enforce_transitions=False))
        phone = product_factory(stock=10)
        order = service.create_order(customer, _request((phone.id, 3)))
        service.update_status(admin, order.id, "CANCELLED")

        service.update_status(admin, order.id, "PENDING")

        assert _stock(session, phone.id) == 7
