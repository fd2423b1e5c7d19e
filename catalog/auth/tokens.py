"""
Stateless session tokens.

A token is a JWT whose only identity claim is the user's numeric id. There
is no server-side session table: a token is valid while its signature
checks out against the server secret and ``exp`` lies in the future.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from catalog.core.exceptions import ConfigError, InvalidTokenError


class TokenService:
    """Issue and verify signed ``{"id": ...}`` claims"""

    def __init__(self, secret: str, ttl_minutes: int, algorithm: str = "HS256"):
        self.secret = secret
        self.ttl = timedelta(minutes=ttl_minutes)
        self.algorithm = algorithm

    def ensure_ready(self) -> None:
        """Raise ConfigError when tokens cannot be issued."""
        if not self.secret:
            raise ConfigError("Token secret is not configured")

    def issue(self, user_id: int, now: Optional[datetime] = None) -> str:
        self.ensure_ready()
        issued_at = now or datetime.now(timezone.utc)
        claims = {"id": user_id, "iat": issued_at, "exp": issued_at + self.ttl}
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> Dict[str, Any]:
        """Return the decoded claims or raise InvalidTokenError."""
        if not token:
            raise InvalidTokenError("No token passed")
        if not self.secret:
            raise InvalidTokenError("Token secret is not configured")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["id", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Token is invalid") from e

        user_id = claims.get("id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidTokenError("Token is invalid")
        return claims
