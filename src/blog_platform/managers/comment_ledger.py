"""
# Comment Ledger

Append-only comments on posts.

Comments are embedded in their post's `comments` array and added with a single
`$push`, so concurrent appends to the same post are all kept and a comment can never
outlive its post. Comments cannot be edited or deleted individually; they go away only
when the post is deleted.
"""

from typing import Any, Callable, Optional
import uuid

from pymongo import ReturnDocument

from blog_platform.database import POSTS_COLLECTION, db_manager
from blog_platform.managers.access_control import require_authenticated
from blog_platform.managers.content_repository import ContentRepository, content_repository
from blog_platform.managers.content_sanitizer import sanitize_comment
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.blog_models import COMMENT_MAX_LENGTH, PostResponse
from blog_platform.models.user_models import Identity
from blog_platform.utils.datetime_helpers import utc_now
from blog_platform.utils.errors import NotFoundError, ValidationError

logger = get_logger(prefix="[Comment Ledger]")


def generate_comment_id() -> str:
    return f"comment_{uuid.uuid4().hex[:16]}"


class CommentLedger:
    def __init__(self, db: Any, posts: ContentRepository, clock: Callable = utc_now):
        self.db = db
        self.posts = posts
        self.clock = clock

    async def append(self, identity: Optional[Identity], post_id: str, content: Optional[str]) -> PostResponse:
        """
        Add a comment by `identity` to a post.

        Returns:
            PostResponse: The post with the new comment as its last entry. Appending does
            not count as a view.

        Raises:
            AuthenticationError: No identity.
            ValidationError: Empty comment or longer than 2000 characters.
            NotFoundError: No such post.
        """
        commenter = require_authenticated(identity)
        text = sanitize_comment(content or "")
        if not text:
            raise ValidationError("Please add some text", field="content")
        if len(text) > COMMENT_MAX_LENGTH:
            raise ValidationError(f"Comment cannot be more than {COMMENT_MAX_LENGTH} characters", field="content")

        comment = {
            "comment_id": generate_comment_id(),
            "content": text,
            "user_id": commenter.user_id,
            "created_at": self.clock(),
        }
        doc = await self.db.get_collection(POSTS_COLLECTION).find_one_and_update(
            {"post_id": post_id},
            {"$push": {"comments": comment}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("Post not found")

        logger.info("Comment %s added to post %s by %s", comment["comment_id"], post_id, commenter.user_id)
        return await self.posts.resolve(doc)


comment_ledger = CommentLedger(db_manager, content_repository)
