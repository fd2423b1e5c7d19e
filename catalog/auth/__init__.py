"""Password hashing and token signing."""

from .hasher import PasswordHasher
from .tokens import TokenService

__all__ = ["PasswordHasher", "TokenService"]
