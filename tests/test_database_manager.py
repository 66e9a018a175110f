from unittest.mock import AsyncMock, MagicMock

from pymongo.errors import OperationFailure
import pytest

from blog_platform.database.manager import DatabaseManager


def _manager_with_collection(create_index):
    collection = MagicMock()
    collection.create_index = create_index
    manager = DatabaseManager()
    manager.database = MagicMock()
    manager.database.__getitem__.return_value = collection
    return manager, collection


@pytest.mark.asyncio
async def test_create_indexes_creates_every_index():
    manager, collection = _manager_with_collection(AsyncMock())

    await manager.create_indexes()

    assert collection.create_index.await_count == 9
    unique_keys = [c.args[0] for c in collection.create_index.await_args_list if c.kwargs.get("unique")]
    assert unique_keys == ["user_id", "username", "email", "post_id", "category_id", "name"]


@pytest.mark.asyncio
async def test_unique_index_failure_aborts_startup():
    """Test that a failed unique index is not swallowed."""
    manager, _ = _manager_with_collection(AsyncMock(side_effect=OperationFailure("duplicate key")))

    with pytest.raises(OperationFailure):
        await manager.create_indexes()


@pytest.mark.asyncio
async def test_listing_index_failure_is_skipped():
    async def create_index(keys, **options):
        if not options.get("unique"):
            raise OperationFailure("index build failed")

    manager, collection = _manager_with_collection(AsyncMock(side_effect=create_index))

    await manager.create_indexes()

    assert collection.create_index.await_count == 9


def test_get_collection_requires_connection():
    with pytest.raises(ConnectionError):
        DatabaseManager().get_collection("users")
