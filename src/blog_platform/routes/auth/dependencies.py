"""
# Authentication Dependencies

FastAPI dependencies that turn an `Authorization: Bearer <token>` header into an
`Identity`.

## Dependencies

- `get_optional_identity`: for routes anyone may call. A missing, invalid or expired
  token, or a token for a deleted or deactivated account, yields `None` (anonymous).
  The failure is still logged as a security event so it can be told apart from a
  request that simply sent no token.
- `get_current_identity`: for routes that need a user. The same failures raise
  `AuthenticationError`, `InvalidTokenError` or `ExpiredTokenError` (all 401).
- `get_admin_identity`: additionally requires the `admin` role (403 otherwise).

## Usage

```python
@router.get("/auth/me")
async def me(identity: Identity = Depends(get_current_identity)):
    return identity
```

The manager providers (`get_session_issuer`, `get_credential_store`) exist so tests can
swap the wired singletons through `app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from blog_platform.managers.access_control import require_admin
from blog_platform.managers.credential_store import CredentialStore, credential_store
from blog_platform.managers.logging_manager import get_logger
from blog_platform.managers.session_issuer import SessionIssuer, session_issuer
from blog_platform.models.user_models import Identity
from blog_platform.utils.errors import AuthenticationError, ExpiredTokenError, InvalidTokenError
from blog_platform.utils.logging_utils import log_security_event

logger = get_logger(prefix="[Auth Dependencies]")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_session_issuer() -> SessionIssuer:
    return session_issuer


def get_credential_store() -> CredentialStore:
    return credential_store


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


async def resolve_identity(
    token: Optional[str], issuer: SessionIssuer, store: CredentialStore, ip_address: Optional[str] = None
) -> Identity:
    """
    Resolve a bearer token to the active user it was issued to.

    Raises:
        AuthenticationError: No token, or the user no longer exists or is deactivated.
        InvalidTokenError: Malformed or wrongly signed token.
        ExpiredTokenError: Token past its expiry.
    """
    if not token:
        raise AuthenticationError("Not authorized to access this route")

    try:
        claims = issuer.resolve(token)
    except ExpiredTokenError:
        log_security_event("token_expired", ip_address=ip_address)
        raise
    except InvalidTokenError:
        log_security_event("token_invalid", ip_address=ip_address)
        raise

    identity = await store.get_user(claims.user_id)
    if identity is None:
        log_security_event("token_user_missing", user_id=claims.user_id, ip_address=ip_address)
        raise AuthenticationError("Not authorized to access this route")
    if not identity.is_active:
        log_security_event("token_user_inactive", user_id=claims.user_id, ip_address=ip_address)
        raise AuthenticationError("Account is deactivated")

    return identity


async def get_optional_identity(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    issuer: SessionIssuer = Depends(get_session_issuer),
    store: CredentialStore = Depends(get_credential_store),
) -> Optional[Identity]:
    """Resolve the caller, or `None` when the request is anonymous for any reason."""
    if not token:
        return None
    try:
        return await resolve_identity(token, issuer, store, _client_ip(request))
    except AuthenticationError as e:
        logger.debug("Treating request as anonymous: %s", e.code)
        return None


async def get_current_identity(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    issuer: SessionIssuer = Depends(get_session_issuer),
    store: CredentialStore = Depends(get_credential_store),
) -> Identity:
    return await resolve_identity(token, issuer, store, _client_ip(request))


async def get_admin_identity(identity: Identity = Depends(get_current_identity)) -> Identity:
    return require_admin(identity)
