"""
# Credential Store

Account records and password verification for the Blog Platform.

## Responsibilities

- **Registration**: validates the account fields, rejects duplicate usernames and
  emails, and stores a bcrypt hash of the password. New accounts have the `user` role.
- **Credential verification**: email + password login. Every failure (unknown email,
  wrong password, deactivated account) is reported as the same `AuthenticationError`
  so the response never reveals which part was wrong.
- **Password writes**: `set_password` is the only code path that writes
  `password_hash`. Profile updates cannot touch it.
- **Lookups**: single users as `Identity`, and batches of users as `UserSummary` for
  resolving post authors and commenters.

## Hashing

Passwords are hashed with **bcrypt** at a configurable cost (`PASSWORD_HASH_ROUNDS`,
default 10). bcrypt is CPU-bound, so hashing and checking run in a worker thread via
`asyncio.to_thread` to keep the event loop responsive.

## Usage

```python
from blog_platform.managers.credential_store import credential_store

identity = await credential_store.register(
    {"username": "jane", "email": "jane@example.com", "password": "secret1",
     "first_name": "Jane", "last_name": "Doe"}
)
identity = await credential_store.verify_credentials("jane@example.com", "secret1")
```
"""

import asyncio
from typing import Any, Callable, Dict, Iterable, Optional
import uuid

import bcrypt
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from blog_platform.config import settings
from blog_platform.database import USERS_COLLECTION, db_manager
from blog_platform.managers.content_sanitizer import sanitize_plain
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.user_models import (
    DEFAULT_AVATAR,
    USER_SUMMARY_PROJECTION,
    Identity,
    UserInDB,
    UserRegistration,
    UserRole,
    UserSummary,
    validate_name,
    validate_password_length,
)
from blog_platform.utils.datetime_helpers import utc_now
from blog_platform.utils.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from blog_platform.utils.logging_utils import log_security_event

logger = get_logger(prefix="[Credential Store]")

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"

_MISSING_FIELD_MESSAGES = {
    "username": "Please provide a username",
    "email": "Please provide an email",
    "password": "Please provide a password",
    "first_name": "Please provide a first name",
    "last_name": "Please provide a last name",
}

PROFILE_FIELDS = ("first_name", "last_name", "avatar")


def generate_user_id() -> str:
    return f"user_{uuid.uuid4().hex[:16]}"


def _first_registration_error(exc: PydanticValidationError) -> ValidationError:
    """Translate the first Pydantic error into a tagged `ValidationError`."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error.get("loc") else None
    if error["type"] == "missing" and field in _MISSING_FIELD_MESSAGES:
        message = _MISSING_FIELD_MESSAGES[field]
    elif error["type"] == "value_error":
        message = str(error.get("ctx", {}).get("error") or error["msg"])
    else:
        message = f"Invalid value for {field}" if field else "Invalid input"
    return ValidationError(message, field=field)


class CredentialStore:
    """
    MongoDB-backed account store.

    Args:
        db: Database handle exposing `get_collection(name)`.
        hash_rounds: bcrypt cost factor.
        clock: Returns the current naive UTC time; replaced in tests.
    """

    def __init__(self, db: Any, hash_rounds: int = 10, clock: Callable = utc_now):
        self.db = db
        self.hash_rounds = hash_rounds
        self.clock = clock
        self._dummy_hash: Optional[str] = None

    def _users(self):
        return self.db.get_collection(USERS_COLLECTION)

    async def _hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.hash_rounds)
        hashed = await asyncio.to_thread(bcrypt.hashpw, password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    async def _check_password(self, password: str, password_hash: str) -> bool:
        try:
            return await asyncio.to_thread(bcrypt.checkpw, password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.error("Stored password hash could not be checked: %s", e)
            return False

    async def register(self, data: Dict[str, Any]) -> Identity:
        """
        Create a new account.

        Args:
            data: Raw registration fields (`username`, `email`, `password`, `first_name`,
                `last_name`). Missing keys are reported as validation errors.

        Returns:
            Identity: The new account.

        Raises:
            ValidationError: First violated field constraint.
            ConflictError: Username or email already registered.
        """
        try:
            candidate = UserRegistration.model_validate(data)
        except PydanticValidationError as e:
            error = _first_registration_error(e)
            logger.info("Registration rejected: %s (%s)", error.message, error.field)
            raise error from None

        users = self._users()
        existing = await users.find_one(
            {"$or": [{"username": candidate.username}, {"email": candidate.email}]},
            {"_id": 0, "username": 1, "email": 1},
        )
        if existing:
            if existing.get("email") == candidate.email:
                raise ConflictError("Email is already registered", {"field": "email"})
            raise ConflictError("Username is already taken", {"field": "username"})

        now = self.clock()
        user = UserInDB(
            user_id=generate_user_id(),
            username=candidate.username,
            email=candidate.email,
            password_hash=await self._hash_password(candidate.password),
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            avatar=DEFAULT_AVATAR,
            role=UserRole.USER,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        try:
            await users.insert_one({**user.model_dump(), "role": user.role.value})
        except DuplicateKeyError as e:
            logger.warning("Duplicate key on registration for %s: %s", candidate.username, e)
            raise ConflictError("Username or email is already registered") from e

        logger.info("Registered user %s (%s)", user.user_id, user.username)
        return user.to_identity()

    async def verify_credentials(self, email: Optional[str], password: Optional[str]) -> Identity:
        """
        Check an email/password pair.

        Raises:
            ValidationError: Email or password missing.
            AuthenticationError: Unknown email, wrong password or deactivated account.
        """
        if not email or not password:
            raise ValidationError("Please provide an email and password", field="email" if not email else "password")

        doc = await self._users().find_one({"email": email.strip()})
        if not doc:
            # Unknown emails pay the same bcrypt cost as a wrong password
            if self._dummy_hash is None:
                self._dummy_hash = await self._hash_password(uuid.uuid4().hex)
            await self._check_password(password, self._dummy_hash)
            log_security_event("login_failed", details={"reason": "unknown_email"})
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        user = UserInDB(**{k: v for k, v in doc.items() if k != "_id"})
        if not await self._check_password(password, user.password_hash):
            log_security_event("login_failed", user_id=user.user_id, details={"reason": "bad_password"})
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        if not user.is_active:
            log_security_event("login_failed", user_id=user.user_id, details={"reason": "inactive"})
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        log_security_event("login_succeeded", user_id=user.user_id, success=True)
        return user.to_identity()

    async def set_password(self, user_id: str, new_password: str) -> None:
        """
        Replace a user's password hash. The plaintext is never stored.

        Raises:
            ValidationError: Password violates the length rules.
            NotFoundError: No such user.
        """
        try:
            validate_password_length(new_password or "")
        except ValueError as e:
            raise ValidationError(str(e), field="password") from None

        password_hash = await self._hash_password(new_password)
        result = await self._users().update_one(
            {"user_id": user_id},
            {"$set": {"password_hash": password_hash, "updated_at": self.clock()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("User not found")
        log_security_event("password_changed", user_id=user_id, success=True)

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """
        Change a password after re-checking the current one.

        Raises:
            AuthenticationError: `current_password` does not match.
            ValidationError: New password violates the length rules.
            NotFoundError: No such user.
        """
        doc = await self._users().find_one({"user_id": user_id}, {"_id": 0, "password_hash": 1})
        if not doc:
            raise NotFoundError("User not found")
        if not current_password or not await self._check_password(current_password, doc["password_hash"]):
            log_security_event("password_change_failed", user_id=user_id, details={"reason": "bad_password"})
            raise AuthenticationError("Current password is incorrect")
        await self.set_password(user_id, new_password)

    async def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Identity:
        """
        Update display attributes. Only `first_name`, `last_name` and `avatar` are
        applied; other keys (including anything password related) are ignored.

        Raises:
            ValidationError: A name is empty or too long.
            NotFoundError: No such user.
        """
        updates: Dict[str, Any] = {}
        for field in PROFILE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field == "avatar":
                avatar = sanitize_plain(value)
                if avatar:
                    updates["avatar"] = avatar
                continue
            try:
                updates[field] = validate_name(value, field.replace("_", " "))
            except ValueError as e:
                raise ValidationError(str(e), field=field) from None

        if not updates:
            identity = await self.get_user(user_id)
            if identity is None:
                raise NotFoundError("User not found")
            return identity

        updates["updated_at"] = self.clock()
        doc = await self._users().find_one_and_update(
            {"user_id": user_id},
            {"$set": updates},
            projection={"_id": 0, "password_hash": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("User not found")
        logger.info("Updated profile fields %s for user %s", sorted(updates), user_id)
        return Identity(**doc)

    async def get_user(self, user_id: str) -> Optional[Identity]:
        doc = await self._users().find_one({"user_id": user_id}, {"_id": 0, "password_hash": 0})
        return Identity(**doc) if doc else None

    async def get_users_by_ids(self, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
        """Fetch display attributes for several users in one query, keyed by user id."""
        ids = list({uid for uid in user_ids if uid})
        if not ids:
            return {}
        cursor = self._users().find({"user_id": {"$in": ids}}, USER_SUMMARY_PROJECTION)
        return {doc["user_id"]: UserSummary(**doc) async for doc in cursor}

    async def set_active(self, user_id: str, is_active: bool) -> Identity:
        """Activate or deactivate an account. Deactivated accounts cannot log in."""
        doc = await self._users().find_one_and_update(
            {"user_id": user_id},
            {"$set": {"is_active": is_active, "updated_at": self.clock()}},
            projection={"_id": 0, "password_hash": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("User not found")
        logger.info("User %s is_active set to %s", user_id, is_active)
        return Identity(**doc)


credential_store = CredentialStore(db_manager, hash_rounds=settings.PASSWORD_HASH_ROUNDS)
