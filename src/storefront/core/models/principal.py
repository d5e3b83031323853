"""Caller identity resolved from an access token."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Closed set of roles a user can hold."""

    ADMIN = "admin"
    CUSTOMER = "customer"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """Case-insensitive lookup; unknown or empty values give ``None``."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class Principal(BaseModel):
    """The authenticated caller of a request."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    email: str = Field(description="Email address")
    role: Role | None = Field(
        default=None, description="Resolved role; None when the token names an unknown one"
    )

    @property
    def is_customer(self) -> bool:
        return self.role is Role.CUSTOMER

    def owns(self, user_id: int) -> bool:
        return self.id == user_id
