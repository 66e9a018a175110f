"""
# Logging Utilities

Structured logging helpers used across the API:

- **`RequestLoggingMiddleware`**: one line per request with method, path, status and duration.
- **`log_application_lifecycle`**: startup/shutdown milestones from the FastAPI lifespan.
- **`log_security_event`**: authentication and authorization events (failed logins,
  invalid or expired tokens, denied mutations).

Security events never include passwords, hashes or raw tokens.
"""

import time
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from blog_platform.managers.logging_manager import get_logger

logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
security_logger = get_logger(prefix="[SECURITY]")


def _format_details(details: Optional[Dict[str, Any]]) -> str:
    if not details:
        return ""
    return ", ".join(f"{key}={value}" for key, value in details.items())


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log an application lifecycle milestone (e.g. `startup_initiated`, `database_connected`)."""
    lifecycle_logger.info("%s %s", event, _format_details(details))


def log_security_event(
    event_type: str,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    success: bool = False,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Record an authentication or authorization event.

    Failures are logged at WARNING so they stand out; successes at INFO.

    Args:
        event_type: Short event tag, e.g. `login_failed`, `token_expired`, `mutation_denied`.
        user_id: Acting user, when known.
        ip_address: Client address, when known.
        success: Whether the guarded action went through.
        details: Extra context. Must not contain credentials.
    """
    message = "event=%s user=%s ip=%s success=%s %s"
    args = (event_type, user_id or "anonymous", ip_address or "unknown", success, _format_details(details))
    if success:
        security_logger.info(message, *args)
    else:
        security_logger.warning(message, *args)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its outcome and timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"
        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "%s %s from %s failed after %.3fs: %s",
                request.method,
                request.url.path,
                client_ip,
                duration,
                e,
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        logger.info(
            "%s %s from %s -> %d in %.3fs",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            duration,
        )
        return response
