from sqlmodel import Session, select

from src.storefront.entities._base import valid_id
from src.storefront.entities.core.user.entity import User
from src.storefront.entities.core.user.table import UserTable


class UserRepository:
    """Data-access layer for users."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: int) -> User | None:
        if not valid_id(user_id):
            return None
        row = self._session.get(UserTable, user_id)
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def get_row_by_email(self, email: str) -> UserTable | None:
        statement = select(UserTable).where(UserTable.email == email)
        return self._session.exec(statement).first()

    def get_by_email(self, email: str) -> User | None:
        row = self.get_row_by_email(email)
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def create(
        self,
        *,
        username: str,
        email: str,
        role: str,
        password_hash: str,
        admin_id: str | None = None,
    ) -> User:
        row = UserTable(
            username=username,
            email=email,
            role=role,
            admin_id=admin_id,
            password_hash=password_hash,
        )
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return User.model_validate(row, from_attributes=True)
