"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from fastapi import Depends, Request
from sqlmodel import Session

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.errors import ForbiddenError, UnauthenticatedError
from src.storefront.core.models import Principal, Role
from src.storefront.core.services.catalog_service import CatalogService
from src.storefront.core.services.currency_service import CurrencyService
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.jwt_service import JwtService
from src.storefront.core.services.order_service import OrderService
from src.storefront.core.services.otp_service import OtpService
from src.storefront.core.services.user_service import UserService
from src.storefront.core.storage.otp_storage import OtpStorage
from src.storefront.runtime.config.config_data import ConfigData


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_app_config(request: Request) -> ConfigData:
    """Configuration captured at startup.

    Handlers run in worker threads, so they read config from app state rather
    than from the context variable.
    """
    return get_app_dependencies(request).config


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield one session per request and close it afterwards."""
    session = get_app_dependencies(request).database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_jwt_service(request: Request) -> JwtService:
    return get_app_dependencies(request).jwt_service


def get_otp_storage(request: Request) -> OtpStorage:
    return get_app_dependencies(request).otp_storage


def get_email_service(request: Request) -> EmailService:
    return get_app_dependencies(request).email_service


def get_currency_service(request: Request) -> CurrencyService:
    return get_app_dependencies(request).currency_service


def get_order_service(
    session: Session = Depends(get_db_session),
    config: ConfigData = Depends(get_app_config),
) -> OrderService:
    return OrderService(session, config.orders)


def get_catalog_service(session: Session = Depends(get_db_session)) -> CatalogService:
    return CatalogService(session)


def get_user_service(
    session: Session = Depends(get_db_session),
    config: ConfigData = Depends(get_app_config),
) -> UserService:
    return UserService(session, config.security)


def get_otp_service(
    storage: OtpStorage = Depends(get_otp_storage),
    email_service: EmailService = Depends(get_email_service),
    config: ConfigData = Depends(get_app_config),
) -> OtpService:
    return OtpService(storage, email_service, config.otp)


def _bearer_token(header: str | None) -> str:
    if not header:
        raise UnauthenticatedError("No token provided")

    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise UnauthenticatedError("Invalid token format")
    return token.strip()


def get_current_principal(
    request: Request, jwt_service: JwtService = Depends(get_jwt_service)
) -> Principal:
    """Authenticate the request from its ``Authorization: Bearer`` header."""
    token = _bearer_token(request.headers.get("Authorization"))
    principal = jwt_service.verify(token)

    # Rate limiting keys on this
    request.state.uid = principal.id
    return principal


def require_roles(*roles: Role) -> Callable[..., Principal]:
    """Return a dependency admitting only callers whose role is in ``roles``."""
    allowed = frozenset(roles)

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role is None or principal.role not in allowed:
            raise ForbiddenError("Access denied: you cannot access this route")
        return principal

    return dependency


any_user = require_roles(Role.ADMIN, Role.CUSTOMER)
admin_only = require_roles(Role.ADMIN)
