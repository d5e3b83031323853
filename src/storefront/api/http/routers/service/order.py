"""Order placement, listing, lookup, status changes and currency conversion."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from src.storefront.api.http.deps import any_user, get_currency_service, get_order_service
from src.storefront.api.http.middleware.limiter import rate_limit
from src.storefront.api.http.routers.service.pagination import Pagination
from src.storefront.core.models import CreateOrderRequest, Principal, UpdateStatusRequest
from src.storefront.core.services.currency_service import CurrencyService, parse_amount
from src.storefront.core.services.order_service import OrderService
from src.storefront.entities._base import MAX_ID
from src.storefront.entities.service.order import Order

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderResponse(BaseModel):
    success: bool = True
    message: str | None = None
    order: Order


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[Order]
    pagination: Pagination


class ConversionResponse(BaseModel):
    success: bool = True
    source: str = Field(serialization_alias="from")
    target: str = Field(serialization_alias="to")
    amount: Decimal
    converted: Decimal
    rate: Decimal


@router.post(
    "",
    response_model=OrderResponse,
    status_code=201,
    response_model_exclude_none=True,
)
def create_order(
    body: CreateOrderRequest,
    principal: Principal = Depends(any_user),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Place an order for the caller from a list of ``{productId, quantity}`` lines."""
    order = orders.create_order(principal, body)
    return OrderResponse(message="Order created successfully", order=order)


@router.get(
    "",
    response_model=OrderListResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(any_user), Depends(rate_limit())],
)
def list_orders(
    page: int | None = Query(None),
    limit: int | None = Query(None),
    status: str | None = Query(None),
    principal: Principal = Depends(any_user),
    orders: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """List orders newest first. Customers only see their own."""
    result = orders.list_orders(principal, page=page, limit=limit, status=status)
    return OrderListResponse(
        orders=result.orders,
        pagination=Pagination(
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        ),
    )


# Declared before "/{order_id}" so the literal path wins
@router.get(
    "/exchange-rate",
    response_model=ConversionResponse,
    dependencies=[Depends(any_user), Depends(rate_limit())],
)
async def exchange_rate(
    amount: str | None = Query(None),
    source: str = Query("INR", alias="from"),
    target: str = Query("USD", alias="to"),
    currency: CurrencyService = Depends(get_currency_service),
) -> ConversionResponse:
    """Convert an amount between currencies at the provider's current rate."""
    conversion = await currency.convert(parse_amount(amount), source, target)
    return ConversionResponse(
        source=conversion.source,
        target=conversion.target,
        amount=conversion.amount,
        converted=conversion.converted,
        rate=conversion.rate,
    )


@router.get("/{order_id}", response_model=OrderResponse, response_model_exclude_none=True)
def get_order(
    order_id: int = Path(ge=1, le=MAX_ID),
    principal: Principal = Depends(any_user),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    return OrderResponse(order=orders.get_order(principal, order_id))


@router.patch(
    "/{order_id}/status", response_model=OrderResponse, response_model_exclude_none=True
)
def update_order_status(
    order_id: Annotated[int, Path(ge=1, le=MAX_ID)],
    body: UpdateStatusRequest,
    principal: Principal = Depends(any_user),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = orders.update_status(principal, order_id, body.status)
    return OrderResponse(message="Order status updated", order=order)
