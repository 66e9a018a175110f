import os

os.environ.setdefault("SECRET_KEY", "unit-test-signing-key-4f1c9b")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta

from mongomock_motor import AsyncMongoMockClient
import pytest
import pytest_asyncio

from blog_platform.managers.category_manager import CategoryManager
from blog_platform.managers.comment_ledger import CommentLedger
from blog_platform.managers.content_repository import ContentRepository
from blog_platform.managers.credential_store import CredentialStore
from blog_platform.managers.session_issuer import SessionIssuer
from blog_platform.models.user_models import UserRole

TEST_SECRET = "unit-test-signing-key-4f1c9b"
TEST_PASSWORD = "secret123"


class FakeDatabaseManager:
    """In-memory stand-in for `DatabaseManager` backed by mongomock-motor."""

    def __init__(self):
        self.database = AsyncMongoMockClient()["blog_platform_test"]

    def get_collection(self, collection_name):
        return self.database[collection_name]

    async def health_check(self):
        return True


class SteppingClock:
    """Clock that moves forward by `step` every time it is read."""

    def __init__(self, start=datetime(2024, 1, 15, 10, 0, 0), step=timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self):
        value = self.current
        self.current += self.step
        return value

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


def user_payload(username, /, **overrides):
    payload = {
        "username": username,
        "email": f"{username}@example.com",
        "password": TEST_PASSWORD,
        "first_name": username.capitalize(),
        "last_name": "Tester",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def db():
    return FakeDatabaseManager()


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def credential_store(db, clock):
    return CredentialStore(db, hash_rounds=4, clock=clock)


@pytest.fixture
def session_issuer(clock):
    return SessionIssuer(TEST_SECRET, clock=clock)


@pytest.fixture
def category_manager(db, clock):
    return CategoryManager(db, clock=clock)


@pytest.fixture
def content_repository(db, category_manager, credential_store, clock):
    return ContentRepository(db, category_manager, credential_store, clock=clock)


@pytest.fixture
def comment_ledger(db, content_repository, clock):
    return CommentLedger(db, content_repository, clock=clock)


async def promote_to_admin(db, identity):
    await db.get_collection("users").update_one({"user_id": identity.user_id}, {"$set": {"role": "admin"}})
    return identity.model_copy(update={"role": UserRole.ADMIN})


@pytest_asyncio.fixture
async def author(credential_store):
    return await credential_store.register(user_payload("jane"))


@pytest_asyncio.fixture
async def other_user(credential_store):
    return await credential_store.register(user_payload("mallory"))


@pytest_asyncio.fixture
async def admin(db, credential_store):
    identity = await credential_store.register(user_payload("root"))
    return await promote_to_admin(db, identity)


@pytest_asyncio.fixture
async def category(category_manager, admin):
    return await category_manager.create_category(admin, {"name": "Python", "description": "All things Python"})


def post_draft(category_id, **overrides):
    draft = {
        "title": "Async Python",
        "content": "Event loops explained",
        "category": category_id,
        "tags": "python, asyncio",
        "is_published": True,
    }
    draft.update(overrides)
    return draft
