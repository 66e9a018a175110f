"""
# Content Repository

Storage and retrieval of blog posts.

## Responsibilities

- **Authoring**: `create`, `update` and `delete` with ownership enforced through
  `access_control`. The author of a post is always the identity that created it and
  cannot be changed afterwards.
- **Reading**: `get` counts a view on every call; `list` pages through posts without
  touching view counts.
- **Resolution**: stored posts hold ids only (`category_id`, `author_id`, each
  comment's `user_id`). Responses expand them to display attributes with one batched
  query per collection, however many posts are on the page.

## Listing Order and Snapshots

Listings are ordered by `created_at` descending with `post_id` descending as the
tie-break, and every query is bounded by `created_at <= as_of`. When the caller does not
supply `as_of`, the current time is used and returned in the pagination metadata, so a
client that passes it back gets pages from the same snapshot even while new posts are
being created.

## Atomicity

- View counting is a single `find_one_and_update` with `$inc`, so concurrent reads
  never lose increments.
- Comments are embedded in the post document; deleting a post removes them in the
  same `delete_one`.
"""

import asyncio
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
import uuid

from pymongo import DESCENDING, ReturnDocument

from blog_platform.config import settings
from blog_platform.database import POSTS_COLLECTION, db_manager
from blog_platform.managers.access_control import require_authenticated, require_can_mutate
from blog_platform.managers.category_manager import CategoryManager, category_manager
from blog_platform.managers.content_sanitizer import sanitize_plain, sanitize_post_content
from blog_platform.managers.credential_store import CredentialStore, credential_store
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.blog_models import (
    EXCERPT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    CommentResponse,
    ListPostsFilter,
    PageLink,
    PaginationMeta,
    PostPage,
    PostResponse,
)
from blog_platform.models.user_models import Identity
from blog_platform.utils.datetime_helpers import normalize_optional, utc_now
from blog_platform.utils.errors import NotFoundError, ValidationError

logger = get_logger(prefix="[Content Repository]")

LISTING_SORT = [("created_at", DESCENDING), ("post_id", DESCENDING)]
UPDATABLE_FIELDS = ("title", "content", "excerpt", "category", "tags", "featured_image", "is_published")


def generate_post_id() -> str:
    return f"post_{uuid.uuid4().hex[:16]}"


def normalize_tags(raw: Union[str, Iterable[str], None]) -> List[str]:
    """
    Turn author-entered tags into an ordered list.

    `"python, fastapi ,,mongo"` becomes `["python", "fastapi", "mongo"]`. A list input is
    treated as already split, but each entry is still trimmed and empties are dropped.
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else [str(item) for item in raw]
    tags = []
    for part in parts:
        tag = sanitize_plain(part)
        if tag:
            tags.append(tag)
    return tags


def _validate_title(raw: Optional[str]) -> str:
    title = sanitize_plain(raw or "")
    if not title:
        raise ValidationError("Please add a title", field="title")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot be more than {TITLE_MAX_LENGTH} characters", field="title")
    return title


def _validate_content(raw: Optional[str]) -> str:
    content = sanitize_post_content(raw or "")
    if not content.strip():
        raise ValidationError("Please add some content", field="content")
    return content


def _validate_excerpt(raw: Optional[str]) -> Optional[str]:
    excerpt = sanitize_plain(raw)
    if excerpt and len(excerpt) > EXCERPT_MAX_LENGTH:
        raise ValidationError(f"Excerpt cannot be more than {EXCERPT_MAX_LENGTH} characters", field="excerpt")
    return excerpt or None


class ContentRepository:
    """
    MongoDB-backed post store.

    Args:
        db: Database handle exposing `get_collection(name)`.
        categories: Used to validate and resolve post categories.
        users: Used to resolve authors and commenters.
        default_page_size: Page size when the caller does not give one.
        max_page_size: Larger page sizes are capped to this value.
        clock: Returns the current naive UTC time.
    """

    def __init__(
        self,
        db: Any,
        categories: CategoryManager,
        users: CredentialStore,
        default_page_size: int = 10,
        max_page_size: int = 100,
        clock: Callable = utc_now,
    ):
        self.db = db
        self.categories = categories
        self.users = users
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.clock = clock

    def _posts(self):
        return self.db.get_collection(POSTS_COLLECTION)

    async def _validate_category(self, category_id: Optional[str]) -> str:
        category_id = (category_id or "").strip()
        if not category_id:
            raise ValidationError("Please select a category", field="category")
        if not await self.categories.exists(category_id):
            raise ValidationError("Category does not exist", field="category")
        return category_id

    async def resolve_many(self, docs: List[Dict[str, Any]]) -> List[PostResponse]:
        """Expand category, author and commenter ids of stored posts into display attributes."""
        category_ids = {doc.get("category_id") for doc in docs}
        user_ids = set()
        for doc in docs:
            user_ids.add(doc.get("author_id"))
            user_ids.update(comment.get("user_id") for comment in doc.get("comments", []))

        categories, users = await asyncio.gather(
            self.categories.get_categories_by_ids(category_ids),
            self.users.get_users_by_ids(user_ids),
        )

        resolved = []
        for doc in docs:
            comments = [
                CommentResponse(
                    comment_id=comment["comment_id"],
                    content=comment["content"],
                    user=users.get(comment.get("user_id")),
                    created_at=comment["created_at"],
                )
                for comment in doc.get("comments", [])
            ]
            resolved.append(
                PostResponse(
                    post_id=doc["post_id"],
                    title=doc["title"],
                    content=doc["content"],
                    excerpt=doc.get("excerpt"),
                    category=categories.get(doc.get("category_id")),
                    tags=doc.get("tags", []),
                    featured_image=doc.get("featured_image"),
                    is_published=doc.get("is_published", False),
                    author=users.get(doc.get("author_id")),
                    view_count=doc.get("view_count", 0),
                    comments=comments,
                    created_at=doc["created_at"],
                    updated_at=doc["updated_at"],
                )
            )
        return resolved

    async def resolve(self, doc: Dict[str, Any]) -> PostResponse:
        return (await self.resolve_many([doc]))[0]

    async def create(self, identity: Optional[Identity], draft: Dict[str, Any]) -> PostResponse:
        """
        Create a post authored by `identity`.

        Any author supplied in `draft` is ignored.

        Raises:
            AuthenticationError: No identity.
            ValidationError: Missing title, content or category, unknown category, or
                excerpt longer than 200 characters.
        """
        author = require_authenticated(identity)
        title = _validate_title(draft.get("title"))
        content = _validate_content(draft.get("content"))
        category_id = await self._validate_category(draft.get("category"))
        excerpt = _validate_excerpt(draft.get("excerpt"))

        now = self.clock()
        doc = {
            "post_id": generate_post_id(),
            "title": title,
            "content": content,
            "excerpt": excerpt,
            "category_id": category_id,
            "tags": normalize_tags(draft.get("tags")),
            "featured_image": sanitize_plain(draft.get("featured_image")) or None,
            "is_published": bool(draft.get("is_published", False)),
            "author_id": author.user_id,
            "view_count": 0,
            "comments": [],
            "created_at": now,
            "updated_at": now,
        }
        await self._posts().insert_one(dict(doc))

        logger.info("Post %s created by %s", doc["post_id"], author.user_id)
        return await self.resolve(doc)

    async def get(self, post_id: str) -> PostResponse:
        """
        Fetch a post and count the view.

        Every successful call increments `view_count` by exactly one, for any caller
        and whether or not the post is published.

        Raises:
            NotFoundError: No such post.
        """
        doc = await self._posts().find_one_and_update(
            {"post_id": post_id},
            {"$inc": {"view_count": 1}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("Post not found")
        return await self.resolve(doc)

    def _build_query(self, filters: ListPostsFilter, as_of) -> Dict[str, Any]:
        query: Dict[str, Any] = {"created_at": {"$lte": as_of}}
        if filters.search and filters.search.strip():
            pattern = re.escape(filters.search.strip())
            query["$or"] = [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"content": {"$regex": pattern, "$options": "i"}},
            ]
        if filters.category:
            query["category_id"] = filters.category
        if filters.author:
            query["author_id"] = filters.author
        if filters.is_published is not None:
            query["is_published"] = filters.is_published
        return query

    async def list(self, filters: Optional[ListPostsFilter] = None) -> PostPage:
        """
        Page through posts, newest first.

        Raises:
            ValidationError: `page` or `page_size` below 1.
        """
        filters = filters or ListPostsFilter(page_size=self.default_page_size)
        if filters.page < 1:
            raise ValidationError("Page must be at least 1", field="page")
        if filters.page_size < 1:
            raise ValidationError("Limit must be at least 1", field="limit")

        page = filters.page
        page_size = min(filters.page_size, self.max_page_size)
        as_of = normalize_optional(filters.as_of) or self.clock()
        query = self._build_query(filters, as_of)

        posts = self._posts()
        total = await posts.count_documents(query)
        cursor = posts.find(query, {"_id": 0}).sort(LISTING_SORT).skip((page - 1) * page_size).limit(page_size)
        docs = await cursor.to_list(length=page_size)

        pagination = PaginationMeta(
            page=page,
            limit=page_size,
            total=total,
            pages=(total + page_size - 1) // page_size,
            as_of=as_of,
            next=PageLink(page=page + 1, limit=page_size) if page * page_size < total else None,
            prev=PageLink(page=page - 1, limit=page_size) if page > 1 else None,
        )
        data = await self.resolve_many(docs)
        logger.debug("Listed %d of %d posts (page %d, as_of %s)", len(data), total, page, as_of.isoformat())
        return PostPage(count=len(data), pagination=pagination, data=data)

    async def update(self, identity: Optional[Identity], post_id: str, patch: Dict[str, Any]) -> PostResponse:
        """
        Apply a partial update. Only the author or an admin may update.

        Keys outside `UPDATABLE_FIELDS` (author, view count, comments, ids, timestamps)
        are ignored. `None` values mean "leave unchanged".

        Raises:
            NotFoundError: No such post.
            AuthenticationError / AuthorizationError: Caller may not modify the post.
            ValidationError: An updated field violates the creation rules.
        """
        posts = self._posts()
        existing = await posts.find_one({"post_id": post_id}, {"_id": 0, "author_id": 1})
        if not existing:
            raise NotFoundError("Post not found")
        editor = require_can_mutate(identity, existing["author_id"])

        changes = {key: patch[key] for key in UPDATABLE_FIELDS if patch.get(key) is not None}
        updates: Dict[str, Any] = {}
        if "title" in changes:
            updates["title"] = _validate_title(changes["title"])
        if "content" in changes:
            updates["content"] = _validate_content(changes["content"])
        if "category" in changes:
            updates["category_id"] = await self._validate_category(changes["category"])
        if "excerpt" in changes:
            updates["excerpt"] = _validate_excerpt(changes["excerpt"])
        if "tags" in changes:
            updates["tags"] = normalize_tags(changes["tags"])
        if "featured_image" in changes:
            updates["featured_image"] = sanitize_plain(changes["featured_image"]) or None
        if "is_published" in changes:
            updates["is_published"] = bool(changes["is_published"])
        updates["updated_at"] = self.clock()

        doc = await posts.find_one_and_update(
            {"post_id": post_id},
            {"$set": updates},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("Post not found")

        logger.info("Post %s updated by %s (%s)", post_id, editor.user_id, ", ".join(sorted(updates)))
        return await self.resolve(doc)

    async def delete(self, identity: Optional[Identity], post_id: str) -> None:
        """
        Delete a post together with its comments. Only the author or an admin may delete.

        Raises:
            NotFoundError: No such post.
            AuthenticationError / AuthorizationError: Caller may not modify the post.
        """
        posts = self._posts()
        existing = await posts.find_one({"post_id": post_id}, {"_id": 0, "author_id": 1})
        if not existing:
            raise NotFoundError("Post not found")
        editor = require_can_mutate(identity, existing["author_id"])

        result = await posts.delete_one({"post_id": post_id})
        if result.deleted_count == 0:
            raise NotFoundError("Post not found")
        logger.info("Post %s deleted by %s", post_id, editor.user_id)

    async def count_by_category(self, category_id: str) -> int:
        return await self._posts().count_documents({"category_id": category_id})


content_repository = ContentRepository(
    db_manager,
    category_manager,
    credential_store,
    default_page_size=settings.DEFAULT_PAGE_SIZE,
    max_page_size=settings.MAX_PAGE_SIZE,
)
