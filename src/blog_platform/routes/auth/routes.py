"""
# Authentication Routes

Account registration, login and profile endpoints.

| Method | Path | Auth |
|--------|------|------|
| POST | `/auth/register` | none |
| POST | `/auth/login` | none |
| GET | `/auth/me` | user |
| PUT | `/auth/me` | user |
| PUT | `/auth/password` | user |
| POST | `/auth/logout` | none |
| PUT | `/auth/users/{user_id}/active` | admin |

Registration and login both return a bearer token and the user. Logout only
acknowledges; tokens are stateless and the client discards its copy.
"""

from fastapi import APIRouter, Depends, Request, status

from blog_platform.managers.credential_store import CredentialStore
from blog_platform.managers.logging_manager import get_logger
from blog_platform.managers.session_issuer import SessionIssuer
from blog_platform.models.user_models import (
    AuthResponse,
    Identity,
    LoginRequest,
    MessageResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    SetActiveRequest,
    Token,
    UserResponse,
)
from blog_platform.routes.auth.dependencies import (
    get_admin_identity,
    get_credential_store,
    get_current_identity,
    get_session_issuer,
)
from blog_platform.utils.logging_utils import log_security_event

logger = get_logger(prefix="[Auth Routes]")

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(identity: Identity, issuer: SessionIssuer) -> AuthResponse:
    issued = issuer.issue(identity.user_id)
    token = Token(access_token=issued.token, expires_in=issued.expires_in, expires_at=issued.expires_at)
    return AuthResponse(token=token, user=identity)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    request: Request,
    store: CredentialStore = Depends(get_credential_store),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    """
    Create an account and log it in.

    **Errors:**
    *   `400 VALIDATION_ERROR`: First violated field constraint, with `details.field`.
    *   `409 CONFLICT`: Username or email already registered.
    """
    identity = await store.register(payload.model_dump(exclude_none=True))
    log_security_event(
        "user_registered",
        user_id=identity.user_id,
        ip_address=request.client.host if request.client else None,
        success=True,
    )
    return _auth_response(identity, issuer)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    """
    Exchange email and password for a bearer token.

    Unknown email, wrong password and deactivated account all return the same
    `401 AUTHENTICATION_ERROR`.
    """
    identity = await store.verify_credentials(payload.email, payload.password)
    return _auth_response(identity, issuer)


@router.get("/me", response_model=UserResponse)
async def get_me(identity: Identity = Depends(get_current_identity)):
    return UserResponse(data=identity)


@router.put("/me", response_model=UserResponse)
async def update_me(
    payload: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
):
    """Update `first_name`, `last_name` and `avatar`. Other fields are ignored."""
    updated = await store.update_profile(identity.user_id, payload.model_dump(exclude_none=True))
    return UserResponse(data=updated)


@router.put("/password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChangeRequest,
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Change the caller's password.

    Tokens issued before the change stay valid until they expire.
    """
    await store.change_password(identity.user_id, payload.current_password, payload.new_password)
    return MessageResponse(message="Password updated")


@router.post("/logout", response_model=MessageResponse)
async def logout():
    return MessageResponse(message="Logged out")


@router.put("/users/{user_id}/active", response_model=UserResponse)
async def set_user_active(
    user_id: str,
    payload: SetActiveRequest,
    admin: Identity = Depends(get_admin_identity),
    store: CredentialStore = Depends(get_credential_store),
):
    """Activate or deactivate an account. Admin only."""
    updated = await store.set_active(user_id, payload.is_active)
    logger.info("Admin %s set is_active=%s on %s", admin.user_id, payload.is_active, user_id)
    return UserResponse(data=updated)
