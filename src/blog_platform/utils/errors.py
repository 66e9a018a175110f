"""
# Blog Platform Error Taxonomy

Tagged errors raised by the managers and mapped to HTTP responses by the exception
handler registered in `blog_platform.main`.

| Error | HTTP | Code |
|-------|------|------|
| `ValidationError` | 400 | `VALIDATION_ERROR` |
| `AuthenticationError` | 401 | `AUTHENTICATION_ERROR` |
| `InvalidTokenError` | 401 | `INVALID_TOKEN` |
| `ExpiredTokenError` | 401 | `TOKEN_EXPIRED` |
| `AuthorizationError` | 403 | `AUTHORIZATION_ERROR` |
| `NotFoundError` | 404 | `NOT_FOUND` |
| `ConflictError` | 409 | `CONFLICT` |

Managers raise these as-is; nothing between a manager and the boundary translates them.
"""

from typing import Any, Dict, Optional


class BlogPlatformError(Exception):
    """Base class for every tagged error the core raises."""

    code: str = "BLOG_PLATFORM_ERROR"
    status_code: int = 500
    default_message: str = "Unexpected error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(BlogPlatformError):
    """Malformed or missing input. `field` names the first violated constraint."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        self.field = field
        super().__init__(message, details)


class ConflictError(BlogPlatformError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Resource already exists"


class AuthenticationError(BlogPlatformError):
    code = "AUTHENTICATION_ERROR"
    status_code = 401
    default_message = "Not authenticated"


class InvalidTokenError(AuthenticationError):
    code = "INVALID_TOKEN"
    default_message = "Invalid authentication token"


class ExpiredTokenError(AuthenticationError):
    code = "TOKEN_EXPIRED"
    default_message = "Authentication token has expired"


class AuthorizationError(BlogPlatformError):
    code = "AUTHORIZATION_ERROR"
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFoundError(BlogPlatformError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"
