"""Identity token verification for channel and API callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import jwt

from ..config import AuthConfig
from ..logging_utils import get_logger


class IdentityError(ValueError):
    """Presented identity token is not acceptable."""


@dataclass(frozen=True)
class Identity:
    user_id: str
    roles: tuple[str, ...] = ()
    claims: dict[str, Any] = field(default_factory=dict, compare=False)

    def has_role(self, role: str) -> bool:
        return role in self.roles


class IdentityVerifier:
    """Verify HS256 identity tokens issued by the external auth service."""

    def __init__(self, config: AuthConfig) -> None:
        self._config = config
        self._log = get_logger("auth")

    @property
    def enabled(self) -> bool:
        return bool(self._config.jwt_secret)

    def verify(self, token: str) -> Identity:
        if not self._config.jwt_secret:
            raise IdentityError("Identity verification is not configured")
        options = {"verify_aud": self._config.audience is not None}
        try:
            claims = jwt.decode(
                token,
                self._config.jwt_secret,
                algorithms=list(self._config.algorithms),
                audience=self._config.audience,
                options=options,
            )
        except jwt.PyJWTError as exc:
            self._log.debug("Rejected identity token: {}", exc)
            raise IdentityError(f"Invalid identity token: {exc}") from exc
        user_id = claims.get("userId") or claims.get("sub")
        if not user_id:
            raise IdentityError("Identity token has no subject")
        roles = claims.get("roles") or []
        if isinstance(roles, str):
            roles = [roles]
        if claims.get("role"):
            roles = [*roles, claims["role"]]
        return Identity(user_id=str(user_id), roles=tuple(str(r) for r in roles), claims=claims)

    def verify_optional(self, token: str | None) -> Identity | None:
        """Anonymous without a token or without a configured secret; a bad token still fails."""

        if not token or not self.enabled:
            return None
        return self.verify(token)


def bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()
