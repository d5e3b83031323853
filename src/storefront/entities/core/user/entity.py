"""User domain entity."""

from pydantic import Field

from src.storefront.core.models.principal import Principal, Role
from src.storefront.entities._base import Entity


class User(Entity):
    """A registered account.

    The password hash stays on the table row and is never part of this model.
    """

    username: str = Field(description="Display name")
    email: str = Field(description="Login email, unique")
    role: Role = Field(description="Account role")
    admin_id: str | None = Field(default=None, description="Staff identifier for admins")

    def to_principal(self) -> Principal:
        return Principal(
            id=self.id, username=self.username, email=self.email, role=self.role
        )
