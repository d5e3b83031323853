"""Issue and verify the HS256 access tokens handed out at login."""

import time
from typing import Any

from authlib.jose import JoseError, jwt
from loguru import logger

from src.storefront.core.errors import UnauthenticatedError
from src.storefront.core.models import Principal, Role
from src.storefront.runtime.config.config_data import JWTConfig


class JwtService:
    """Signs and checks access tokens with the configured shared secret."""

    def __init__(self, config: JWTConfig):
        self._config = config

    def issue(self, principal: Principal, expires_in_seconds: int | None = None) -> str:
        """Sign a token carrying the caller identity.

        Args:
            principal: Identity to embed (id, username, email, role)
            expires_in_seconds: Lifetime override; defaults to the configured one

        Returns:
            Compact JWT string
        """
        now = int(time.time())
        lifetime = (
            self._config.expires_in_seconds
            if expires_in_seconds is None
            else expires_in_seconds
        )
        payload: dict[str, Any] = {
            "iss": self._config.issuer,
            "sub": str(principal.id),
            "iat": now,
            "exp": now + lifetime,
            "id": principal.id,
            "username": principal.username,
            "email": principal.email,
            "role": principal.role.value,
        }
        header = {"alg": self._config.algorithm, "typ": "JWT"}
        token = jwt.encode(header, payload, self._config.secret)
        return token.decode() if isinstance(token, bytes) else token

    def verify(self, token: str) -> Principal:
        """Decode ``token`` and return its principal.

        Raises:
            UnauthenticatedError: bad signature, expired, or missing claims
        """
        try:
            claims = jwt.decode(
                token,
                self._config.secret,
                claims_options={
                    "exp": {"essential": True},
                    "iss": {"essential": True, "value": self._config.issuer},
                },
            )
            claims.validate(leeway=self._config.clock_skew)
        except (JoseError, ValueError) as exc:
            logger.debug("Token rejected: {}", exc)
            raise UnauthenticatedError("Invalid token") from exc

        header_alg = claims.header.get("alg") if claims.header else None
        if header_alg != self._config.algorithm:
            raise UnauthenticatedError("Invalid token")

        try:
            return Principal(
                id=int(claims["id"]),
                username=claims.get("username", ""),
                email=claims.get("email", ""),
                role=Role.parse(claims.get("role")),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise UnauthenticatedError("Invalid token") from exc
