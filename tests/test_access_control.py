import pytest

from blog_platform.managers.access_control import (
    can_mutate,
    require_admin,
    require_authenticated,
    require_can_mutate,
)
from blog_platform.models.user_models import Identity, UserRole
from blog_platform.utils.errors import AuthenticationError, AuthorizationError


def _identity(user_id, role=UserRole.USER, is_active=True):
    return Identity(
        user_id=user_id,
        username=user_id,
        email=f"{user_id}@example.com",
        first_name="Test",
        last_name="User",
        role=role,
        is_active=is_active,
    )


@pytest.fixture
def owner():
    return _identity("user_owner")


@pytest.fixture
def stranger():
    return _identity("user_stranger")


@pytest.fixture
def admin_identity():
    return _identity("user_admin", role=UserRole.ADMIN)


def test_can_mutate_matrix(owner, stranger, admin_identity):
    """Test that only the author or an admin may mutate a post."""
    assert can_mutate(owner, "user_owner") is True
    assert can_mutate(admin_identity, "user_owner") is True
    assert can_mutate(stranger, "user_owner") is False
    assert can_mutate(None, "user_owner") is False


def test_can_mutate_denies_inactive_author():
    assert can_mutate(_identity("user_owner", is_active=False), "user_owner") is False


def test_require_authenticated(owner):
    assert require_authenticated(owner) is owner
    with pytest.raises(AuthenticationError):
        require_authenticated(None)


def test_require_can_mutate(owner, stranger, admin_identity):
    assert require_can_mutate(owner, "user_owner") is owner
    assert require_can_mutate(admin_identity, "user_owner") is admin_identity

    with pytest.raises(AuthorizationError) as exc_info:
        require_can_mutate(stranger, "user_owner")
    assert exc_info.value.status_code == 403

    with pytest.raises(AuthenticationError):
        require_can_mutate(None, "user_owner")


def test_require_admin(owner, admin_identity):
    assert require_admin(admin_identity) is admin_identity
    with pytest.raises(AuthorizationError):
        require_admin(owner)
    with pytest.raises(AuthenticationError):
        require_admin(None)
