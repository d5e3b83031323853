"""Product catalog endpoints."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from src.storefront.api.http.deps import admin_only, any_user, get_catalog_service
from src.storefront.api.http.routers.service.pagination import Pagination
from src.storefront.core.models import Principal
from src.storefront.core.services.catalog_service import CatalogService
from src.storefront.entities._base import MAX_ID
from src.storefront.entities.service.product import Product

router = APIRouter(prefix="/products", tags=["products"])


class ProductFields(BaseModel):
    """Create and update body; every field is optional at the schema level."""

    name: str | None = None
    sku: str | None = None
    price: Decimal | None = None
    stock: int | None = None


class ProductResponse(BaseModel):
    success: bool = True
    message: str | None = None
    product: Product


class ProductListResponse(BaseModel):
    success: bool = True
    products: list[Product]
    pagination: Pagination


class DeletedResponse(BaseModel):
    success: bool = True
    message: str


@router.get("", response_model=ProductListResponse)
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    name: str | None = None,
    sku: str | None = None,
    _: Principal = Depends(any_user),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    """List products, newest first, filtered by name or SKU substring."""
    result = catalog.list_products(page=page, limit=limit, name=name, sku=sku)
    return ProductListResponse(
        products=result.products,
        pagination=Pagination(
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        ),
    )


@router.post("/create-product", response_model=ProductResponse, status_code=201)
def create_product(
    body: ProductFields,
    _: Principal = Depends(admin_only),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    product = catalog.create_product(
        name=body.name, sku=body.sku, price=body.price, stock=body.stock
    )
    return ProductResponse(message="Product created successfully", product=product)


@router.get("/{product_id}", response_model=ProductResponse, response_model_exclude_none=True)
def get_product(
    product_id: int = Path(ge=1, le=MAX_ID),
    _: Principal = Depends(any_user),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    return ProductResponse(product=catalog.get_product(product_id))


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: Annotated[int, Path(ge=1, le=MAX_ID)],
    body: ProductFields,
    _: Principal = Depends(admin_only),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    """Partial update: only the fields present in the body change."""
    fields = body.model_dump(exclude_unset=True)
    product = catalog.update_product(product_id, fields)
    return ProductResponse(message="Product updated successfully", product=product)


@router.delete("/{product_id}", response_model=DeletedResponse)
def delete_product(
    product_id: int = Path(ge=1, le=MAX_ID),
    _: Principal = Depends(admin_only),
    catalog: CatalogService = Depends(get_catalog_service),
) -> DeletedResponse:
    catalog.delete_product(product_id)
    return DeletedResponse(message="Product deleted successfully")
