"""Entity package: Product."""

from .entity import Product, ProductSummary
from .repository import ProductRepository
from .table import ProductTable

__all__ = ["Product", "ProductSummary", "ProductRepository", "ProductTable"]
