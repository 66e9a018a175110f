"""
# User & Session Models

Pydantic models for accounts, identities and bearer tokens.

## Model Overview

- **`UserRegistration`**: Inbound registration payload with the account constraints.
- **`UserInDB`**: Full `users` document, including `password_hash`. Internal only.
- **`Identity`**: The user a request acts as. Also the outward user shape; it never
  carries the hash.
- **`UserSummary`**: Display attributes used when a post or comment references a user.
- **`Token` / `AuthResponse`**: Login and registration responses.

## Validation Rules

| Field | Rule |
|-------|------|
| `username` | required, trimmed, 3-30 characters |
| `email` | required, at most 254 characters, must match `EMAIL_REGEX`, no empty dot-separated label |
| `password` | required, at least 6 characters, at most 72 bytes (bcrypt input limit) |
| `first_name` / `last_name` | required, trimmed, at most 50 characters |

`full_name` is computed on the response models and never stored.

## Module Attributes

Attributes:
    USERNAME_MIN_LENGTH (int): Minimum username length (3).
    USERNAME_MAX_LENGTH (int): Maximum username length (30).
    PASSWORD_MIN_LENGTH (int): Minimum password length (6).
    PASSWORD_MAX_BYTES (int): Maximum encoded password length accepted by bcrypt (72).
    NAME_MAX_LENGTH (int): Maximum length of first and last names (50).
    EMAIL_MAX_LENGTH (int): Longest accepted email address (254).
    EMAIL_REGEX (str): Pattern for valid email addresses. Linear-time: no nested repetition.
    DEFAULT_AVATAR (str): Avatar assigned at registration.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_BYTES = 72
NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 254
EMAIL_REGEX = r"^[\w.-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$"
DEFAULT_AVATAR = "default-avatar.jpg"

_EMAIL_PATTERN = re.compile(EMAIL_REGEX)


class UserRole(str, Enum):
    """Account roles.

    Attributes:
        USER: Can author posts and comment; may only mutate own posts.
        ADMIN: May mutate any post and manage categories and accounts.
    """

    USER = "user"
    ADMIN = "admin"


def validate_password_length(password: str) -> str:
    """Check a plaintext password against the length rules and return it unchanged."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password cannot be longer than {PASSWORD_MAX_BYTES} bytes")
    return password


def validate_name(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"Please provide a {label}")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"{label.capitalize()} cannot be more than {NAME_MAX_LENGTH} characters")
    return value


class UserRegistration(BaseModel):
    """
    Registration payload.

    Fields are validated in declaration order, so the first error reported by Pydantic is
    the first violated constraint in the order username, email, password, first name,
    last name.
    """

    username: str
    email: str
    password: str
    first_name: str
    last_name: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < USERNAME_MIN_LENGTH:
            raise ValueError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
        if len(v) > USERNAME_MAX_LENGTH:
            raise ValueError(f"Username cannot be more than {USERNAME_MAX_LENGTH} characters")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if len(v) > EMAIL_MAX_LENGTH or not _EMAIL_PATTERN.match(v):
            raise ValueError("Please provide a valid email")
        local = v.split("@", 1)[0]
        if local.startswith(".") or local.endswith(".") or ".." in local:
            raise ValueError("Please provide a valid email")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_length(v)

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v: str) -> str:
        return validate_name(v, "first name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, v: str) -> str:
        return validate_name(v, "last name")


class UserInDB(BaseModel):
    """
    The complete `users` document.

    `password_hash` is the bcrypt hash of the most recently set password. This model is
    used only inside the credential store; responses use `Identity`.
    """

    user_id: str
    username: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    avatar: str = DEFAULT_AVATAR
    role: UserRole = UserRole.USER
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    def to_identity(self) -> "Identity":
        return Identity(**self.model_dump(exclude={"password_hash"}))


class Identity(BaseModel):
    """
    The resolved user a request acts as.

    Returned by registration, login and `/auth/me`. Never contains credential material.
    """

    user_id: str
    username: str
    email: str
    first_name: str
    last_name: str
    avatar: str = DEFAULT_AVATAR
    role: UserRole = UserRole.USER
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserSummary(BaseModel):
    """Display attributes of a post author or commenter."""

    user_id: str
    username: str
    first_name: str
    last_name: str
    avatar: str = DEFAULT_AVATAR

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


USER_SUMMARY_PROJECTION = {
    "_id": 0,
    "user_id": 1,
    "username": 1,
    "first_name": 1,
    "last_name": 1,
    "avatar": 1,
}


class RegisterRequest(BaseModel):
    """
    Body of `POST /auth/register`.

    Every field is optional here so that missing fields reach `CredentialStore.register`
    and are reported with the same error format as other constraint violations.
    """

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginRequest(BaseModel):
    """Credentials for `POST /auth/login`. Users log in with their email address."""

    email: Optional[str] = Field(None, description="Registered email address")
    password: Optional[str] = Field(None, description="Account password")


class ProfileUpdateRequest(BaseModel):
    """Profile fields a user may change. Password changes go through `PasswordChangeRequest`."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


class SetActiveRequest(BaseModel):
    is_active: bool


class Token(BaseModel):
    """
    Bearer token issued at login or registration.

    Send it as `Authorization: Bearer <access_token>`. There is no refresh flow and no
    server-side revocation: logging out means discarding the token on the client.
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Lifetime in seconds")
    expires_at: datetime


class AuthResponse(BaseModel):
    success: bool = True
    token: Token
    user: Identity


class UserResponse(BaseModel):
    success: bool = True
    data: Identity


class MessageResponse(BaseModel):
    success: bool = True
    message: str
