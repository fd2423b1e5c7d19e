"""Exception taxonomy for the library catalog.

Every error a pipeline step or handler can raise maps to exactly one HTTP
status. Anything that is not a CatalogError is treated as an internal
failure by the executor.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base exception for the catalog service"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_body(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "error": {"name": self.name, "message": self.message},
        }


class ValidationError(CatalogError):
    """Malformed or out-of-range input"""
    status_code = 400


class NotFoundError(CatalogError):
    """Referenced user, book or library entry does not exist"""
    status_code = 404


class ConflictError(CatalogError):
    """Unique username/email collision"""

    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} is already taken")

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["field"] = self.field
        body["error"]["field"] = self.field
        return body


class AuthenticationError(CatalogError):
    """Bad credentials or token"""
    status_code = 401


class InvalidTokenError(AuthenticationError):
    """Token missing, malformed, expired or signed with another secret"""
    pass


class NoChangesDetected(CatalogError):
    """Update request would not change anything"""

    status_code = 400

    def __init__(self, message: str = "No changes detected"):
        super().__init__(message)


class InternalError(CatalogError):
    """Unexpected store or crypto failure"""
    status_code = 500


class HashingError(InternalError):
    """Password digest could not be produced or compared"""
    pass


class ConfigError(CatalogError):
    """Configuration error"""
    status_code = 500
