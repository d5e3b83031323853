"""Currency conversion against a public rates endpoint."""

from decimal import Decimal, InvalidOperation

import httpx
from loguru import logger
from pydantic import BaseModel

from src.storefront.core.errors import InternalError, ValidationError
from src.storefront.entities._base import quantize_money
from src.storefront.runtime.config.config_data import ExchangeConfig


class Conversion(BaseModel):
    source: str
    target: str
    amount: Decimal
    converted: Decimal
    rate: Decimal


def parse_amount(raw: str | None) -> Decimal:
    """Parse a positive decimal amount from a query string value."""
    if raw is None or not raw.strip():
        raise ValidationError("Valid amount is required")
    try:
        amount = Decimal(raw.strip())
    except InvalidOperation as e:
        raise ValidationError("Valid amount is required") from e
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Valid amount is required")
    return amount


class CurrencyService:
    def __init__(self, config: ExchangeConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    async def _fetch_rates(self, source: str) -> dict:
        url = f"{self._config.base_url.rstrip('/')}/{source}"
        if self._client is not None:
            resp = await self._client.get(url)
        else:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                resp = await client.get(url)
        resp.raise_for_status()
        return resp.json()

    async def convert(self, amount: Decimal, source: str, target: str) -> Conversion:
        """Convert ``amount`` from ``source`` to ``target`` currency.

        Raises:
            ValidationError: unknown currency
            InternalError: the rates provider failed
        """
        source = source.strip().upper()
        target = target.strip().upper()

        try:
            data = await self._fetch_rates(source)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ValidationError(f"Unsupported currency: {source}") from e
            logger.error("Exchange rate provider returned {}", e.response.status_code)
            raise InternalError("Exchange rate lookup failed", error=str(e)) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Exchange rate lookup failed: {}", e)
            raise InternalError("Exchange rate lookup failed", error=str(e)) from e

        rates = data.get("rates") or {}
        if target not in rates:
            raise ValidationError(f"Unsupported currency: {target}")

        rate = Decimal(str(rates[target]))
        return Conversion(
            source=source,
            target=target,
            amount=amount,
            converted=quantize_money(amount * rate),
            rate=rate,
        )
