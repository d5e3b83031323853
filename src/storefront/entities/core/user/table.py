"""User database table model."""

from sqlmodel import Field

from src.storefront.entities._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users."""

    __tablename__ = "users"

    username: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True, index=True)
    role: str = Field(max_length=20)
    admin_id: str | None = Field(default=None, max_length=100)
    password_hash: str = Field(max_length=255)
