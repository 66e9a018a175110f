"""
# Session Issuer

Stateless bearer tokens for the Blog Platform, signed with **python-jose** (HS256).

## Token Format

```json
{"id": "user_3f2a...", "iat": 1705314600, "exp": 1707906600}
```

- `id`: the user id the token was issued to.
- `iat` / `exp`: issue and expiry instants in epoch seconds.

Tokens are self-contained: there is no server-side session table, no refresh token and
no revocation list. Resolving a token only checks the signature and the expiry; whether
the user still exists or is active is decided by the caller.

## Expiry

Expiry is checked against the injected clock rather than the wall clock, so resolution
is deterministic under test. An expired token raises `ExpiredTokenError`; a token that
is malformed, wrongly signed or missing claims raises `InvalidTokenError`.
"""

from calendar import timegm
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from jose import JWTError, jwt

from blog_platform.config import settings
from blog_platform.managers.logging_manager import get_logger
from blog_platform.utils.datetime_helpers import utc_now
from blog_platform.utils.errors import ExpiredTokenError, InvalidTokenError

logger = get_logger(prefix="[Session Issuer]")

REQUIRED_CLAIMS = ("id", "iat", "exp")


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime
    expires_in: int


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    issued_at: datetime
    expires_at: datetime


def _to_epoch(value: datetime) -> int:
    return timegm(value.utctimetuple())


def _from_epoch(value: int) -> datetime:
    return datetime(1970, 1, 1) + timedelta(seconds=int(value))


class SessionIssuer:
    """
    Issues and resolves signed session tokens.

    Args:
        secret_key: HMAC signing key.
        algorithm: JWS algorithm, `HS256` by default.
        expire_minutes: Token lifetime.
        clock: Returns the current naive UTC time.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 43200,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self.clock = clock

    @property
    def lifetime(self) -> timedelta:
        return timedelta(minutes=self.expire_minutes)

    def issue(self, user_id: str) -> IssuedToken:
        """Sign a token for `user_id` that expires `expire_minutes` from now."""
        issued_at = self.clock().replace(microsecond=0)
        expires_at = issued_at + self.lifetime
        payload: Dict[str, Any] = {"id": user_id, "iat": _to_epoch(issued_at), "exp": _to_epoch(expires_at)}
        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        logger.debug("Issued token for user %s expiring at %s", user_id, expires_at.isoformat())
        return IssuedToken(token=token, expires_at=expires_at, expires_in=int(self.lifetime.total_seconds()))

    def resolve(self, token: str) -> TokenClaims:
        """
        Verify a token and return its claims.

        Raises:
            InvalidTokenError: Bad signature, malformed token or missing claims.
            ExpiredTokenError: The token's `exp` is not after the current time.
        """
        if not token:
            raise InvalidTokenError()

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            logger.debug("Token rejected: %s", e)
            raise InvalidTokenError() from None

        if any(payload.get(claim) in (None, "") for claim in REQUIRED_CLAIMS):
            logger.debug("Token rejected: missing claims")
            raise InvalidTokenError()

        try:
            issued_at = _from_epoch(payload["iat"])
            expires_at = _from_epoch(payload["exp"])
        except (TypeError, ValueError):
            raise InvalidTokenError() from None

        if expires_at <= self.clock():
            raise ExpiredTokenError()

        return TokenClaims(user_id=str(payload["id"]), issued_at=issued_at, expires_at=expires_at)


session_issuer = SessionIssuer(
    settings.SECRET_KEY.get_secret_value(),
    algorithm=settings.ALGORITHM,
    expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
)
