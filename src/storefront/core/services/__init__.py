"""Core services exports."""

from .catalog_service import CatalogService, ProductPage
from .currency_service import Conversion, CurrencyService
from .database import DbManageService, DbSessionService
from .email_service import EmailDeliveryError, EmailService
from .jwt_service import JwtService
from .order_service import OrderService
from .otp_service import OtpService
from .redis_service import RedisService
from .user_service import UserService

__all__ = [
    "CatalogService",
    "ProductPage",
    "Conversion",
    "CurrencyService",
    "DbManageService",
    "DbSessionService",
    "EmailDeliveryError",
    "EmailService",
    "JwtService",
    "OrderService",
    "OtpService",
    "RedisService",
    "UserService",
]
