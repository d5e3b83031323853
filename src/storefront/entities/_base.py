from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

import sqlalchemy as sa
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

CENTS = Decimal("0.01")

# Largest value an INTEGER primary key column can hold
MAX_ID = 2**63 - 1


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to two decimal places, half-up."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


# Fixed-point amount with two decimals; serialized to JSON as a string.
Money = Annotated[Decimal, AfterValidator(quantize_money)]


def valid_id(value: int) -> bool:
    return 0 < value <= MAX_ID


def utc_now() -> datetime:
    return datetime.now(UTC)


class Entity(BaseModel):
    """Base domain entity read back from a table row."""

    model_config = ConfigDict(from_attributes=True)

    id: int = PydanticField(description="Unique identifier for the entity")
    created_at: datetime = PydanticField(default_factory=utc_now)
    updated_at: datetime = PydanticField(default_factory=utc_now)


class EntityTable(SQLModel, table=False):
    """Base table with an auto-increment key and audit timestamps."""

    id: int | None = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now, nullable=False, index=True)
    updated_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        sa_column_kwargs={
            "server_default": sa.func.now(),
            "onupdate": utc_now,
        },
    )
