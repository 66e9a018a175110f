"""
# Access Control

Ownership and role rules for the Blog Platform.

| Action | Anonymous | Author | Other user | Admin |
|--------|-----------|--------|------------|-------|
| Read posts, comments, categories | yes | yes | yes | yes |
| Create post, add comment | no | yes | yes | yes |
| Update or delete a post | no | yes | no | yes |
| Manage categories, activate accounts | no | no | no | yes |

These are pure functions over an `Identity`; they never touch the database. Denials
are logged as security events.
"""

from typing import Optional

from blog_platform.models.user_models import Identity, UserRole
from blog_platform.utils.errors import AuthenticationError, AuthorizationError
from blog_platform.utils.logging_utils import log_security_event


def can_mutate(identity: Optional[Identity], author_id: str) -> bool:
    """True iff `identity` authored the post or is an admin."""
    if identity is None or not identity.is_active:
        return False
    return identity.role == UserRole.ADMIN or identity.user_id == author_id


def require_authenticated(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise AuthenticationError("Not authorized to access this route")
    return identity


def require_can_mutate(identity: Optional[Identity], author_id: str, resource: str = "post") -> Identity:
    """
    Ensure `identity` may update or delete a resource owned by `author_id`.

    Raises:
        AuthenticationError: No identity.
        AuthorizationError: Identity is neither the owner nor an admin.
    """
    identity = require_authenticated(identity)
    if not can_mutate(identity, author_id):
        log_security_event("mutation_denied", user_id=identity.user_id, details={"resource": resource})
        raise AuthorizationError(f"Not authorized to modify this {resource}")
    return identity


def require_admin(identity: Optional[Identity]) -> Identity:
    identity = require_authenticated(identity)
    if identity.role != UserRole.ADMIN:
        log_security_event("admin_required", user_id=identity.user_id)
        raise AuthorizationError("Admin privileges required")
    return identity
