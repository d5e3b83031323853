"""Registration, login and profile lookup."""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.storefront.core.errors import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from src.storefront.core.models import Principal, Role
from src.storefront.core.security import hash_password, verify_password
from src.storefront.core.services.jwt_service import JwtService
from src.storefront.entities.core.user import User, UserRepository
from src.storefront.runtime.config.config_data import SecurityConfig


class UserService:
    def __init__(self, session: Session, security: SecurityConfig):
        self._session = session
        self._security = security
        self._users = UserRepository(session)

    def register(
        self,
        *,
        username: str | None,
        email: str | None,
        password: str | None,
        role: str | None,
        admin_id: str | None = None,
    ) -> User:
        """Create an account with a bcrypt-hashed password.

        Raises:
            ValidationError: missing fields, unknown role, or admin without admin id
            ConflictError: the email is already registered
        """
        if not username or not email or not password or not role:
            raise ValidationError("All fields required")

        parsed_role = Role.parse(role)
        if parsed_role is None:
            raise ValidationError(f"Role must be one of: {', '.join(r.value for r in Role)}")
        if parsed_role is Role.ADMIN and (not admin_id or not admin_id.strip()):
            raise ValidationError("Admin ID is required when role is Admin")

        if self._users.get_by_email(email) is not None:
            raise ConflictError("User already exists")

        try:
            user = self._users.create(
                username=username,
                email=email,
                role=parsed_role.value,
                admin_id=admin_id.strip() if parsed_role is Role.ADMIN else None,
                password_hash=hash_password(password, self._security.bcrypt_rounds),
            )
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise ConflictError("User already exists") from e

        logger.info("Registered user {} with role {}", user.id, user.role.value)
        return user

    def authenticate(self, email: str | None, password: str | None) -> User:
        """Return the user whose credentials match, or raise 401."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        row = self._users.get_row_by_email(email)
        if row is None or not verify_password(password, row.password_hash):
            logger.info("Failed login for {}", email)
            raise UnauthenticatedError("Invalid email or password")
        return User.model_validate(row, from_attributes=True)

    def login(self, email: str | None, password: str | None, jwt_service: JwtService) -> tuple[str, User]:
        user = self.authenticate(email, password)
        return jwt_service.issue(user.to_principal()), user

    def me(self, principal: Principal) -> User:
        user = self._users.get(principal.id)
        if user is None:
            raise NotFoundError("User not found")
        return user
