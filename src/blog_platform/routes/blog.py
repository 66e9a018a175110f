"""
# Post & Comment Routes

Public reads and authenticated writes for posts and their comments.

| Method | Path | Auth |
|--------|------|------|
| GET | `/posts` | none |
| GET | `/posts/{post_id}` | none (counts a view) |
| POST | `/posts` | user |
| PUT | `/posts/{post_id}` | author or admin |
| DELETE | `/posts/{post_id}` | author or admin |
| POST | `/posts/{post_id}/comments` | user |

## Listing

`GET /posts` accepts `page`, `limit`, `search`, `category`, `author`, `published` and
`as_of`. The response's `pagination.as_of` is the snapshot the page was taken from;
send it back with the next page request to page through a stable result set.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from blog_platform.managers.comment_ledger import CommentLedger
from blog_platform.managers.content_repository import ContentRepository
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.blog_models import (
    CreateCommentRequest,
    CreatePostRequest,
    ListPostsFilter,
    PostEnvelope,
    PostPage,
    UpdatePostRequest,
)
from blog_platform.models.user_models import Identity, MessageResponse
from blog_platform.routes.auth.dependencies import get_current_identity
from blog_platform.routes.blog_dependencies import get_comment_ledger, get_content_repository

logger = get_logger(prefix="[Blog Routes]")

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("", response_model=PostPage)
async def list_posts(
    page: int = Query(1, description="1-based page number"),
    limit: Optional[int] = Query(None, description="Posts per page (default 10, max 100)"),
    search: Optional[str] = Query(None, description="Case-insensitive match on title or content"),
    category: Optional[str] = Query(None, description="Category id"),
    author: Optional[str] = Query(None, description="Author user id"),
    published: Optional[bool] = Query(None, description="Only published or only unpublished posts"),
    as_of: Optional[datetime] = Query(None, description="Snapshot instant from a previous page"),
    repository: ContentRepository = Depends(get_content_repository),
):
    filters = ListPostsFilter(
        page=page,
        page_size=limit if limit is not None else repository.default_page_size,
        search=search,
        category=category,
        author=author,
        is_published=published,
        as_of=as_of,
    )
    return await repository.list(filters)


@router.get("/{post_id}", response_model=PostEnvelope)
async def get_post(post_id: str, repository: ContentRepository = Depends(get_content_repository)):
    """Fetch a post with its comments. Every call increments the post's view count."""
    return PostEnvelope(data=await repository.get(post_id))


@router.post("", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: CreatePostRequest,
    identity: Identity = Depends(get_current_identity),
    repository: ContentRepository = Depends(get_content_repository),
):
    """
    Create a post authored by the caller.

    **Errors:**
    *   `400 VALIDATION_ERROR`: Missing title, content or category, unknown category,
        or excerpt over 200 characters.
    *   `401`: No valid token.
    """
    post = await repository.create(identity, payload.model_dump())
    return PostEnvelope(data=post)


@router.put("/{post_id}", response_model=PostEnvelope)
async def update_post(
    post_id: str,
    payload: UpdatePostRequest,
    identity: Identity = Depends(get_current_identity),
    repository: ContentRepository = Depends(get_content_repository),
):
    post = await repository.update(identity, post_id, payload.model_dump(exclude_unset=True))
    return PostEnvelope(data=post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    identity: Identity = Depends(get_current_identity),
    repository: ContentRepository = Depends(get_content_repository),
):
    """Delete a post and all of its comments."""
    await repository.delete(identity, post_id)
    return MessageResponse(message="Post deleted")


@router.post("/{post_id}/comments", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    payload: CreateCommentRequest,
    identity: Identity = Depends(get_current_identity),
    ledger: CommentLedger = Depends(get_comment_ledger),
):
    """Append a comment and return the post with its updated comment list."""
    post = await ledger.append(identity, post_id, payload.content)
    return PostEnvelope(data=post)
