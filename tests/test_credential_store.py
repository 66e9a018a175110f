import time
from unittest.mock import patch

import bcrypt
import pytest

from blog_platform.models.user_models import UserRole
from blog_platform.utils.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from conftest import TEST_PASSWORD, user_payload


async def _stored_user(db, user_id):
    return await db.get_collection("users").find_one({"user_id": user_id})


@pytest.mark.asyncio
async def test_register_stores_hash_not_password(db, credential_store):
    """Test that registration stores a bcrypt hash and returns no credential material."""
    identity = await credential_store.register(user_payload("jane"))

    assert identity.user_id.startswith("user_")
    assert identity.username == "jane"
    assert identity.role == UserRole.USER
    assert identity.is_active is True
    assert identity.full_name == "Jane Tester"
    assert "password_hash" not in identity.model_dump()

    doc = await _stored_user(db, identity.user_id)
    assert doc["password_hash"] != TEST_PASSWORD
    assert doc["role"] == "user"
    assert bcrypt.checkpw(TEST_PASSWORD.encode(), doc["password_hash"].encode())


@pytest.mark.asyncio
async def test_register_trims_username_and_names(credential_store):
    identity = await credential_store.register(user_payload("  jane  ", email="jane@example.com", first_name=" Jane "))
    assert identity.username == "jane"
    assert identity.first_name == "Jane"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "missing,message",
    [
        ("username", "Please provide a username"),
        ("email", "Please provide an email"),
        ("password", "Please provide a password"),
        ("first_name", "Please provide a first name"),
        ("last_name", "Please provide a last name"),
    ],
)
async def test_register_missing_field(credential_store, missing, message):
    payload = user_payload("jane")
    del payload[missing]

    with pytest.raises(ValidationError) as exc_info:
        await credential_store.register(payload)

    assert exc_info.value.field == missing
    assert exc_info.value.message == message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"username": "jo"}, "username"),
        ({"username": "j" * 31}, "username"),
        ({"email": "not-an-email"}, "email"),
        ({"password": "12345"}, "password"),
        ({"password": "a" * 73}, "password"),
        ({"first_name": "   "}, "first_name"),
        ({"last_name": "x" * 51}, "last_name"),
    ],
)
async def test_register_rejects_invalid_fields(credential_store, overrides, field):
    """Test that each account constraint is reported against its field."""
    with pytest.raises(ValidationError) as exc_info:
        await credential_store.register(user_payload("jane", **overrides))
    assert exc_info.value.field == field
    assert exc_info.value.details["field"] == field


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email",
    [
        "a" * 26 + "!",
        "a" * 60 + "@" + "b" * 60 + "!",
        "a" * 250 + "@example.com",
        ".jane@example.com",
        "jane.@example.com",
        "ja..ne@example.com",
        "jane@example",
    ],
)
async def test_register_rejects_malformed_email_quickly(credential_store, email):
    """Test that malformed and oversized emails fail validation without stalling."""
    started = time.monotonic()
    with pytest.raises(ValidationError) as exc_info:
        await credential_store.register(user_payload("jane", email=email))
    assert time.monotonic() - started < 1.0
    assert exc_info.value.field == "email"


@pytest.mark.asyncio
async def test_register_accepts_dotted_and_hyphenated_email(credential_store):
    identity = await credential_store.register(user_payload("jane", email="jane.doe-x@mail.example-host.co.uk"))
    assert identity.email == "jane.doe-x@mail.example-host.co.uk"


@pytest.mark.asyncio
async def test_register_reports_first_violation(credential_store):
    payload = user_payload("jo", email="broken", password="1")

    with pytest.raises(ValidationError) as exc_info:
        await credential_store.register(payload)

    assert exc_info.value.field == "username"


@pytest.mark.asyncio
async def test_register_password_at_byte_limit_is_accepted(credential_store):
    identity = await credential_store.register(user_payload("jane", password="p" * 72))
    verified = await credential_store.verify_credentials("jane@example.com", "p" * 72)
    assert verified.user_id == identity.user_id


@pytest.mark.asyncio
async def test_register_duplicate_username(credential_store):
    await credential_store.register(user_payload("jane"))

    with pytest.raises(ConflictError) as exc_info:
        await credential_store.register(user_payload("jane", email="other@example.com"))

    assert exc_info.value.details["field"] == "username"


@pytest.mark.asyncio
async def test_register_duplicate_email(credential_store):
    await credential_store.register(user_payload("jane"))

    with pytest.raises(ConflictError) as exc_info:
        await credential_store.register(user_payload("janet", email="jane@example.com"))

    assert exc_info.value.details["field"] == "email"


@pytest.mark.asyncio
async def test_verify_credentials_success(credential_store, author):
    identity = await credential_store.verify_credentials("jane@example.com", TEST_PASSWORD)
    assert identity.user_id == author.user_id


@pytest.mark.asyncio
async def test_verify_credentials_failures_are_indistinguishable(db, credential_store, author):
    """Test that unknown email, wrong password and inactive account fail the same way."""
    with pytest.raises(AuthenticationError) as unknown:
        await credential_store.verify_credentials("nobody@example.com", TEST_PASSWORD)
    with pytest.raises(AuthenticationError) as wrong:
        await credential_store.verify_credentials("jane@example.com", "wrong-password")

    await credential_store.set_active(author.user_id, False)
    with pytest.raises(AuthenticationError) as inactive:
        await credential_store.verify_credentials("jane@example.com", TEST_PASSWORD)

    assert unknown.value.message == wrong.value.message == inactive.value.message
    assert unknown.value.code == wrong.value.code == inactive.value.code == "AUTHENTICATION_ERROR"


@pytest.mark.asyncio
async def test_verify_credentials_unknown_email_still_checks_a_hash(credential_store, author):
    """Test that a login for an unknown email runs bcrypt like a wrong password does."""
    with patch.object(credential_store, "_check_password", wraps=credential_store._check_password) as mock_check:
        with pytest.raises(AuthenticationError):
            await credential_store.verify_credentials("nobody@example.com", TEST_PASSWORD)
        with pytest.raises(AuthenticationError):
            await credential_store.verify_credentials("ghost@example.com", TEST_PASSWORD)

    assert mock_check.await_count == 2
    dummy_hash = mock_check.await_args_list[0].args[1]
    assert dummy_hash.startswith("$2")
    assert mock_check.await_args_list[1].args[1] == dummy_hash


@pytest.mark.asyncio
async def test_verify_credentials_requires_both_fields(credential_store):
    with pytest.raises(ValidationError):
        await credential_store.verify_credentials("", TEST_PASSWORD)
    with pytest.raises(ValidationError):
        await credential_store.verify_credentials("jane@example.com", None)


@pytest.mark.asyncio
async def test_set_password_replaces_hash(db, credential_store, author):
    before = (await _stored_user(db, author.user_id))["password_hash"]

    await credential_store.set_password(author.user_id, "new-secret")

    after = (await _stored_user(db, author.user_id))["password_hash"]
    assert after != before
    assert await credential_store.verify_credentials("jane@example.com", "new-secret")
    with pytest.raises(AuthenticationError):
        await credential_store.verify_credentials("jane@example.com", TEST_PASSWORD)


@pytest.mark.asyncio
async def test_set_password_validates_length(credential_store, author):
    with pytest.raises(ValidationError) as exc_info:
        await credential_store.set_password(author.user_id, "short")
    assert exc_info.value.field == "password"


@pytest.mark.asyncio
async def test_set_password_unknown_user(credential_store):
    with pytest.raises(NotFoundError):
        await credential_store.set_password("user_missing", "new-secret")


@pytest.mark.asyncio
async def test_change_password_checks_current(credential_store, author):
    with pytest.raises(AuthenticationError):
        await credential_store.change_password(author.user_id, "wrong-password", "new-secret")

    await credential_store.change_password(author.user_id, TEST_PASSWORD, "new-secret")
    assert await credential_store.verify_credentials("jane@example.com", "new-secret")


@pytest.mark.asyncio
async def test_update_profile_ignores_credential_and_role_fields(db, credential_store, author):
    """Test that profile updates cannot write the hash, role or activation flag."""
    before = await _stored_user(db, author.user_id)

    updated = await credential_store.update_profile(
        author.user_id,
        {"first_name": "Janet", "password_hash": "x", "password": "hijack", "role": "admin", "is_active": False},
    )

    after = await _stored_user(db, author.user_id)
    assert updated.first_name == "Janet"
    assert updated.full_name == "Janet Tester"
    assert after["password_hash"] == before["password_hash"]
    assert after["role"] == "user"
    assert after["is_active"] is True


@pytest.mark.asyncio
async def test_update_profile_validates_names(credential_store, author):
    with pytest.raises(ValidationError) as exc_info:
        await credential_store.update_profile(author.user_id, {"last_name": "   "})
    assert exc_info.value.field == "last_name"


@pytest.mark.asyncio
async def test_update_profile_without_changes_returns_current(credential_store, author):
    identity = await credential_store.update_profile(author.user_id, {})
    assert identity.user_id == author.user_id


@pytest.mark.asyncio
async def test_get_users_by_ids(credential_store, author, other_user):
    users = await credential_store.get_users_by_ids([author.user_id, other_user.user_id, "user_missing", None])

    assert set(users) == {author.user_id, other_user.user_id}
    assert users[author.user_id].username == "jane"
    assert users[other_user.user_id].full_name == "Mallory Tester"


@pytest.mark.asyncio
async def test_get_user_unknown_returns_none(credential_store):
    assert await credential_store.get_user("user_missing") is None


@pytest.mark.asyncio
async def test_set_active_unknown_user(credential_store):
    with pytest.raises(NotFoundError):
        await credential_store.set_active("user_missing", False)
