"""
# Database Manager

MongoDB connection management for the Blog Platform, built on **Motor** (the async
MongoDB driver).

## Responsibilities

- **Connection lifecycle**: `connect()` with exponential backoff, `disconnect()` on shutdown.
- **Collection access**: `get_collection()` hands out Motor collections.
- **Indexes**: `create_indexes()` enforces the uniqueness the core relies on
  (usernames, emails, category names, resource ids) and supports the post listing
  sort order.
- **Health checks**: `health_check()` pings the server.

## Collections

| Collection | Key indexes |
|------------|-------------|
| `users` | `user_id` (unique), `username` (unique), `email` (unique) |
| `posts` | `post_id` (unique), `(created_at, post_id)` desc, `author_id`, `category_id` |
| `categories` | `category_id` (unique), `name` (unique) |

Comments live inside their post document, so appending and deleting them is atomic
with the post itself.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from blog_platform.config import settings
from blog_platform.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

USERS_COLLECTION = "users"
POSTS_COLLECTION = "posts"
CATEGORIES_COLLECTION = "categories"


class DatabaseManager:
    """
    Manages the MongoDB client, collections and indexes.

    **Lifecycle:**
    1. **Instantiation**: no I/O, `client` and `database` are `None`.
    2. **Connection**: `connect()` creates the Motor client and pings the server.
    3. **Operations**: `get_collection()` for queries.
    4. **Shutdown**: `disconnect()` closes the pool.

    Attributes:
        client (Optional[AsyncIOMotorClient]): Motor client, set by `connect()`.
        database (Optional[AsyncIOMotorDatabase]): Selected database, set by `connect()`.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:"
                f"{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish the MongoDB connection, retrying with exponential backoff.

        Up to three attempts are made (delays of 1s and 2s between them).

        Raises:
            ServerSelectionTimeoutError: If MongoDB is unreachable after all attempts.
            ConnectionFailure: If authentication fails or the connection is refused.
        """
        if self.client is not None and self.database is not None:
            db_logger.debug("connect() called with an active client, skipping")
            return

        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - Database: %s, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=50,
                    minPoolSize=5,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                total_duration = time.time() - start_time
                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)", total_duration, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                attempt_duration = time.time() - attempt_start
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, attempt_duration)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    self.client = None
                    self.database = None
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the Motor client and release pooled connections. Safe to call when not connected."""
        start_time = time.time()
        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """Ping MongoDB. Returns `False` instead of raising when the server is unavailable."""
        if self.client is None:
            health_logger.warning("Health check requested without a MongoDB client")
            return False

        start_time = time.time()
        try:
            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
            return True
        except PyMongoError as e:
            health_logger.error("Database health check failed after %.3fs: %s", time.time() - start_time, e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Retrieve a collection from the connected database.

        Collections are created lazily by MongoDB on first write.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        return self.database[collection_name]

    async def create_indexes(self):
        """Create the indexes the core relies on for uniqueness and listing order."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        users = self.get_collection(USERS_COLLECTION)
        await self._create_index_if_not_exists(users, "user_id", {"unique": True})
        await self._create_index_if_not_exists(users, "username", {"unique": True})
        await self._create_index_if_not_exists(users, "email", {"unique": True})

        posts = self.get_collection(POSTS_COLLECTION)
        await self._create_index_if_not_exists(posts, "post_id", {"unique": True})
        await self._create_index_if_not_exists(posts, [("created_at", DESCENDING), ("post_id", DESCENDING)], {})
        await self._create_index_if_not_exists(posts, [("author_id", ASCENDING), ("created_at", DESCENDING)], {})
        await self._create_index_if_not_exists(posts, [("category_id", ASCENDING), ("created_at", DESCENDING)], {})

        categories = self.get_collection(CATEGORIES_COLLECTION)
        await self._create_index_if_not_exists(categories, "category_id", {"unique": True})
        await self._create_index_if_not_exists(categories, "name", {"unique": True})

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """
        Create an index if it doesn't already exist.

        Failures on listing indexes are logged and skipped. Failures on unique indexes are
        logged at error level and re-raised, which aborts startup.
        """
        start_time = time.time()

        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except PyMongoError as e:
            perf_logger.warning("Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time)
            if options.get("unique"):
                db_logger.error("Could not create unique index '%s': %s", field_spec, e)
                raise
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)


db_manager = DatabaseManager()
