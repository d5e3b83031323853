from __future__ import annotations

import json
from collections.abc import Callable, Generator
from decimal import Decimal
from itertools import count
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.storefront.api.http.app import create_app
from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.services import (
    CurrencyService,
    DbSessionService,
    EmailService,
    JwtService,
    RedisService,
)
from src.storefront.core.storage.otp_storage import InMemoryOtpStorage
from src.storefront.entities.service.product import Product, ProductRepository
from src.storefront.runtime.config.config_data import (
    AppConfig,
    ConfigData,
    EmailConfig,
    ExchangeConfig,
    RedisConfig,
    SecurityConfig,
)

EMAIL_API_URL = "https://mail.test/v3/send"
RATES_URL = "https://rates.test/latest"

_RATES = {
    "INR": {"USD": 0.012, "EUR": 0.011, "INR": 1},
    "USD": {"INR": 83.25, "EUR": 0.92, "USD": 1},
}


@pytest.fixture
def test_config() -> ConfigData:
    """Configuration for tests: no Redis, fast bcrypt, fake providers."""
    return ConfigData(
        app=AppConfig(environment="test"),
        redis=RedisConfig(enabled=False),
        security=SecurityConfig(bcrypt_rounds=4),
        email=EmailConfig(enabled=True, api_url=EMAIL_API_URL, api_key="test-key"),
        exchange=ExchangeConfig(base_url=RATES_URL),
    )


@pytest.fixture
def engine() -> Generator[Engine]:
    """A fresh in-memory database per test, shared by every session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Register every table with the metadata
    import src.storefront.entities  # noqa: F401

    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Generator[Session]:
    with Session(engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            session.rollback()


@pytest.fixture
def product_factory(session: Session) -> Callable[..., Product]:
    """Insert and commit a product; SKUs are generated when not given."""
    numbers = count(1)

    def _make(
        name: str = "iPhone 15",
        price: str | Decimal = "79999.00",
        stock: int = 50,
        sku: str | None = None,
    ) -> Product:
        product = ProductRepository(session).create(
            name=name,
            sku=sku or f"SKU-{next(numbers):03d}",
            price=Decimal(price),
            stock=stock,
        )
        session.commit()
        return product

    return _make


@pytest.fixture
def sent_emails() -> list[dict[str, Any]]:
    """Payloads the fake email provider accepted."""
    return []


@pytest.fixture
def email_status() -> dict[str, int]:
    """Mutable status code the fake email provider answers with."""
    return {"code": 202}


@pytest.fixture
def email_service(
    test_config: ConfigData, sent_emails: list[dict[str, Any]], email_status: dict[str, int]
) -> EmailService:
    def handler(request: httpx.Request) -> httpx.Response:
        if email_status["code"] < 300:
            sent_emails.append(json.loads(request.content))
        return httpx.Response(email_status["code"], json={})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EmailService(test_config.email, client=client)


@pytest.fixture
def currency_service(test_config: ConfigData) -> CurrencyService:
    def handler(request: httpx.Request) -> httpx.Response:
        source = request.url.path.rsplit("/", 1)[-1]
        if source not in _RATES:
            return httpx.Response(404, json={"result": "error"})
        return httpx.Response(200, json={"base": source, "rates": _RATES[source]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CurrencyService(test_config.exchange, client=client)


@pytest.fixture
def otp_storage() -> InMemoryOtpStorage:
    return InMemoryOtpStorage()


@pytest.fixture
def app_dependencies(
    test_config: ConfigData,
    engine: Engine,
    otp_storage: InMemoryOtpStorage,
    email_service: EmailService,
    currency_service: CurrencyService,
) -> ApplicationDependencies:
    return ApplicationDependencies(
        config=test_config,
        database_service=DbSessionService(test_config, engine=engine),
        redis_service=RedisService(test_config.redis),
        jwt_service=JwtService(test_config.jwt),
        otp_storage=otp_storage,
        email_service=email_service,
        currency_service=currency_service,
    )


@pytest.fixture
def client(app_dependencies: ApplicationDependencies) -> Generator[TestClient]:
    """TestClient running the full app, lifespan included, on the test database."""
    app = create_app(dependencies=app_dependencies)
    with TestClient(app) as test_client:
        yield test_client
