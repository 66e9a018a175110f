from unittest.mock import MagicMock, patch

import pytest

from blog_platform.routes.auth.dependencies import (
    get_admin_identity,
    get_current_identity,
    get_optional_identity,
    resolve_identity,
)
from blog_platform.utils.errors import (
    AuthenticationError,
    AuthorizationError,
    ExpiredTokenError,
    InvalidTokenError,
)


@pytest.fixture
def mock_request():
    request = MagicMock()
    request.client.host = "203.0.113.7"
    return request


@pytest.mark.asyncio
async def test_resolve_identity_valid_token(session_issuer, credential_store, author):
    token = session_issuer.issue(author.user_id).token
    identity = await resolve_identity(token, session_issuer, credential_store)
    assert identity.user_id == author.user_id


@pytest.mark.asyncio
async def test_resolve_identity_without_token(session_issuer, credential_store):
    with pytest.raises(AuthenticationError):
        await resolve_identity(None, session_issuer, credential_store)


@pytest.mark.asyncio
async def test_resolve_identity_expired_token_logged(session_issuer, credential_store, author, clock):
    """Test that expired tokens raise their own error and are logged as such."""
    token = session_issuer.issue(author.user_id).token
    clock.advance(days=31)

    with patch("blog_platform.routes.auth.dependencies.log_security_event") as mock_log:
        with pytest.raises(ExpiredTokenError):
            await resolve_identity(token, session_issuer, credential_store, "203.0.113.7")

    mock_log.assert_called_once_with("token_expired", ip_address="203.0.113.7")


@pytest.mark.asyncio
async def test_resolve_identity_invalid_token_logged(session_issuer, credential_store):
    with patch("blog_platform.routes.auth.dependencies.log_security_event") as mock_log:
        with pytest.raises(InvalidTokenError):
            await resolve_identity("garbage", session_issuer, credential_store)

    mock_log.assert_called_once_with("token_invalid", ip_address=None)


@pytest.mark.asyncio
async def test_resolve_identity_inactive_user(session_issuer, credential_store, author):
    token = session_issuer.issue(author.user_id).token
    await credential_store.set_active(author.user_id, False)

    with pytest.raises(AuthenticationError):
        await resolve_identity(token, session_issuer, credential_store)


@pytest.mark.asyncio
async def test_resolve_identity_deleted_user(db, session_issuer, credential_store, author):
    token = session_issuer.issue(author.user_id).token
    await db.get_collection("users").delete_one({"user_id": author.user_id})

    with pytest.raises(AuthenticationError):
        await resolve_identity(token, session_issuer, credential_store)


@pytest.mark.asyncio
async def test_optional_identity_is_anonymous_on_bad_token(mock_request, session_issuer, credential_store):
    assert await get_optional_identity(mock_request, None, session_issuer, credential_store) is None
    assert await get_optional_identity(mock_request, "garbage", session_issuer, credential_store) is None


@pytest.mark.asyncio
async def test_optional_identity_resolves_valid_token(mock_request, session_issuer, credential_store, author):
    token = session_issuer.issue(author.user_id).token
    identity = await get_optional_identity(mock_request, token, session_issuer, credential_store)
    assert identity.user_id == author.user_id


@pytest.mark.asyncio
async def test_current_identity_raises_on_bad_token(mock_request, session_issuer, credential_store):
    with pytest.raises(InvalidTokenError):
        await get_current_identity(mock_request, "garbage", session_issuer, credential_store)


@pytest.mark.asyncio
async def test_admin_identity(author, admin):
    assert await get_admin_identity(admin) is admin
    with pytest.raises(AuthorizationError):
        await get_admin_identity(author)
