"""
# Blog Content Models

Data structures for posts, categories and comments.

## Domain Model Overview

- **Post**: Title, content, optional excerpt and featured image, a category, ordered
  tags, a publication flag, its author, a view counter and an embedded comment list.
- **Comment**: Immutable text attributed to a user, embedded in exactly one post.
- **Category**: A uniquely named topic referenced by posts.

## Request vs. Response Models

Request models only describe the payload shape. Content rules (required fields,
excerpt length, category existence, tag normalization) are enforced by the
managers so that every caller gets the same tagged errors.

Response models carry resolved references: a post's `category` and `author`, and each
comment's `user`, are expanded to their display attributes.

## Pagination

Post listings are evaluated against a snapshot instant `as_of`. The first page request
fixes it; passing it back on later requests keeps rows from shifting when new posts are
created in between.

```json
"pagination": {
    "page": 2, "limit": 10, "total": 25, "pages": 3,
    "as_of": "2024-01-15T10:30:00.123000",
    "next": {"page": 3, "limit": 10},
    "prev": {"page": 1, "limit": 10}
}
```

## Module Attributes

Attributes:
    TITLE_MAX_LENGTH (int): Maximum post title length (200).
    EXCERPT_MAX_LENGTH (int): Maximum excerpt length (200).
    COMMENT_MAX_LENGTH (int): Maximum comment length (2000).
    CATEGORY_NAME_MAX_LENGTH (int): Maximum category name length (50).
    CATEGORY_DESCRIPTION_MAX_LENGTH (int): Maximum category description length (200).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, computed_field

from blog_platform.models.user_models import UserSummary

TITLE_MAX_LENGTH = 200
EXCERPT_MAX_LENGTH = 200
COMMENT_MAX_LENGTH = 2000
CATEGORY_NAME_MAX_LENGTH = 50
CATEGORY_DESCRIPTION_MAX_LENGTH = 200


# Request Models
class CreatePostRequest(BaseModel):
    """
    Payload for creating a post.

    `tags` is normally the free-form comma-delimited string typed by the author
    (`"python, fastapi"`); a list of strings is accepted too. The author is always the
    authenticated user and cannot be supplied.
    """

    title: str = ""
    content: str = ""
    excerpt: Optional[str] = None
    category: str = ""
    tags: Union[str, List[str], None] = ""
    featured_image: Optional[str] = None
    is_published: bool = False


class UpdatePostRequest(BaseModel):
    """Partial post update. Only fields that are set are applied."""

    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[str] = None
    tags: Union[str, List[str], None] = None
    featured_image: Optional[str] = None
    is_published: Optional[bool] = None


class CreateCommentRequest(BaseModel):
    content: str = ""


class CreateCategoryRequest(BaseModel):
    name: str = ""
    description: Optional[str] = None


class UpdateCategoryRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ListPostsFilter(BaseModel):
    """
    Post listing filter.

    Attributes:
        page: 1-based page number.
        page_size: Rows per page.
        search: Case-insensitive substring matched against title and content.
        category: Category id.
        author: Author user id.
        is_published: Restrict to published (`True`) or unpublished (`False`) posts.
        as_of: Snapshot instant; posts created after it are excluded.
    """

    page: int = 1
    page_size: int = 10
    search: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    is_published: Optional[bool] = None
    as_of: Optional[datetime] = None


# Response Models
class CategorySummary(BaseModel):
    category_id: str
    name: str


class CategoryResponse(BaseModel):
    category_id: str
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    post_count: Optional[int] = None


class CommentResponse(BaseModel):
    """A comment with its author resolved. `user` is `None` if the account no longer resolves."""

    comment_id: str
    content: str
    user: Optional[UserSummary] = None
    created_at: datetime


class PostResponse(BaseModel):
    """A post with category, author and commenters resolved to display attributes."""

    post_id: str
    title: str
    content: str
    excerpt: Optional[str] = None
    category: Optional[CategorySummary] = None
    tags: List[str] = Field(default_factory=list)
    featured_image: Optional[str] = None
    is_published: bool = False
    author: Optional[UserSummary] = None
    view_count: int = 0
    comments: List[CommentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def comment_count(self) -> int:
        return len(self.comments)


class PageLink(BaseModel):
    page: int
    limit: int


class PaginationMeta(BaseModel):
    """
    Pagination metadata for post listings.

    `next` is present iff `page * limit < total`; `prev` is present iff `page > 1`.
    """

    page: int
    limit: int
    total: int
    pages: int
    as_of: datetime
    next: Optional[PageLink] = None
    prev: Optional[PageLink] = None


class PostPage(BaseModel):
    """A page of posts plus pagination metadata."""

    success: bool = True
    count: int
    pagination: PaginationMeta
    data: List[PostResponse]


class PostEnvelope(BaseModel):
    success: bool = True
    data: PostResponse


class CategoryEnvelope(BaseModel):
    success: bool = True
    data: CategoryResponse


class CategoryListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[CategoryResponse]


# Error Response Models
class BlogErrorResponse(BaseModel):
    """
    Error body returned for every tagged error.

    ```json
    {"success": false, "error": {"code": "NOT_FOUND", "message": "Post not found", "details": {}}}
    ```
    """

    success: bool = False
    error: Dict[str, Any]
