"""
# Category Manager

Topic categories referenced by posts.

Categories are read by everyone and managed by admins only. Names are unique (enforced
by a pre-check and by the unique index on `categories.name`). A category cannot be
deleted while any post still references it, so every stored `post.category_id`
resolves.

`list_categories_for_display()` is used by pages that can render without a category
list (filters and pickers). It is the one read path that degrades to an empty list
instead of raising when the database is unavailable.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional
import uuid

from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from blog_platform.database import CATEGORIES_COLLECTION, POSTS_COLLECTION, db_manager
from blog_platform.managers.access_control import require_admin
from blog_platform.managers.content_sanitizer import sanitize_plain
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.blog_models import (
    CATEGORY_DESCRIPTION_MAX_LENGTH,
    CATEGORY_NAME_MAX_LENGTH,
    CategoryResponse,
    CategorySummary,
)
from blog_platform.models.user_models import Identity
from blog_platform.utils.datetime_helpers import utc_now
from blog_platform.utils.errors import ConflictError, NotFoundError, ValidationError

logger = get_logger(prefix="[Category Manager]")


def generate_category_id() -> str:
    return f"category_{uuid.uuid4().hex[:16]}"


def _validate_name(raw: Optional[str]) -> str:
    name = sanitize_plain(raw or "")
    if not name:
        raise ValidationError("Please add a category name", field="name")
    if len(name) > CATEGORY_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Category name cannot be more than {CATEGORY_NAME_MAX_LENGTH} characters", field="name"
        )
    return name


def _validate_description(raw: Optional[str]) -> Optional[str]:
    description = sanitize_plain(raw)
    if description and len(description) > CATEGORY_DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description cannot be more than {CATEGORY_DESCRIPTION_MAX_LENGTH} characters", field="description"
        )
    return description or None


class CategoryManager:
    """MongoDB-backed category store."""

    def __init__(self, db: Any, clock: Callable = utc_now):
        self.db = db
        self.clock = clock

    def _categories(self):
        return self.db.get_collection(CATEGORIES_COLLECTION)

    async def list_categories(self) -> List[CategoryResponse]:
        cursor = self._categories().find({}, {"_id": 0}).sort("name", ASCENDING)
        return [CategoryResponse(**doc) async for doc in cursor]

    async def list_categories_for_display(self) -> List[CategoryResponse]:
        """Like `list_categories`, but returns `[]` if the database cannot be read."""
        try:
            return await self.list_categories()
        except (PyMongoError, ConnectionError) as e:
            logger.warning("Categories unavailable, rendering without them: %s", e)
            return []

    async def get_category(self, category_id: str) -> CategoryResponse:
        doc = await self._categories().find_one({"category_id": category_id}, {"_id": 0})
        if not doc:
            raise NotFoundError("Category not found")
        return CategoryResponse(**doc)

    async def exists(self, category_id: Optional[str]) -> bool:
        if not category_id:
            return False
        return await self._categories().find_one({"category_id": category_id}, {"_id": 1}) is not None

    async def get_categories_by_ids(self, category_ids: Iterable[str]) -> Dict[str, CategorySummary]:
        ids = list({cid for cid in category_ids if cid})
        if not ids:
            return {}
        cursor = self._categories().find({"category_id": {"$in": ids}}, {"_id": 0, "category_id": 1, "name": 1})
        return {doc["category_id"]: CategorySummary(**doc) async for doc in cursor}

    async def _ensure_name_available(self, name: str, exclude_id: Optional[str] = None):
        query: Dict[str, Any] = {"name": name}
        if exclude_id:
            query["category_id"] = {"$ne": exclude_id}
        if await self._categories().find_one(query, {"_id": 1}):
            raise ConflictError("A category with this name already exists", {"field": "name"})

    async def create_category(self, identity: Optional[Identity], data: Dict[str, Any]) -> CategoryResponse:
        """
        Create a category. Admin only.

        Raises:
            AuthenticationError / AuthorizationError: Caller is not an admin.
            ValidationError: Name missing or too long, description too long.
            ConflictError: Name already in use.
        """
        admin = require_admin(identity)
        name = _validate_name(data.get("name"))
        description = _validate_description(data.get("description"))
        await self._ensure_name_available(name)

        now = self.clock()
        doc = {
            "category_id": generate_category_id(),
            "name": name,
            "description": description,
            "created_at": now,
            "updated_at": now,
        }
        try:
            await self._categories().insert_one(dict(doc))
        except DuplicateKeyError as e:
            raise ConflictError("A category with this name already exists", {"field": "name"}) from e

        logger.info("Category %s (%s) created by %s", doc["category_id"], name, admin.user_id)
        return CategoryResponse(**doc)

    async def update_category(
        self, identity: Optional[Identity], category_id: str, data: Dict[str, Any]
    ) -> CategoryResponse:
        admin = require_admin(identity)
        updates: Dict[str, Any] = {}
        if data.get("name") is not None:
            updates["name"] = _validate_name(data["name"])
            await self._ensure_name_available(updates["name"], exclude_id=category_id)
        if data.get("description") is not None:
            updates["description"] = _validate_description(data["description"])

        if not updates:
            return await self.get_category(category_id)

        updates["updated_at"] = self.clock()
        try:
            doc = await self._categories().find_one_and_update(
                {"category_id": category_id},
                {"$set": updates},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError("A category with this name already exists", {"field": "name"}) from e
        if not doc:
            raise NotFoundError("Category not found")

        logger.info("Category %s updated by %s", category_id, admin.user_id)
        return CategoryResponse(**doc)

    async def delete_category(self, identity: Optional[Identity], category_id: str) -> None:
        """
        Delete a category. Admin only.

        Raises:
            NotFoundError: No such category.
            ConflictError: Posts still reference the category.
        """
        admin = require_admin(identity)
        if not await self.exists(category_id):
            raise NotFoundError("Category not found")

        post_count = await self.db.get_collection(POSTS_COLLECTION).count_documents({"category_id": category_id})
        if post_count:
            raise ConflictError(
                "Category is still used by posts", {"category_id": category_id, "post_count": post_count}
            )

        await self._categories().delete_one({"category_id": category_id})
        logger.info("Category %s deleted by %s", category_id, admin.user_id)


category_manager = CategoryManager(db_manager)
