import asyncio

import pytest

from blog_platform.utils.errors import AuthenticationError, NotFoundError, ValidationError
from conftest import post_draft


@pytest.fixture
def post_factory(content_repository, author, category):
    async def factory(**overrides):
        return await content_repository.create(author, post_draft(category.category_id, **overrides))

    return factory


@pytest.mark.asyncio
async def test_append_returns_post_with_resolved_comment(comment_ledger, post_factory, other_user):
    """Test that the new comment is last, trimmed, and attributed to the commenter."""
    post = await post_factory()

    updated = await comment_ledger.append(other_user, post.post_id, "  Great write-up  ")

    assert updated.post_id == post.post_id
    assert updated.comment_count == 1
    comment = updated.comments[-1]
    assert comment.comment_id.startswith("comment_")
    assert comment.content == "Great write-up"
    assert comment.user.user_id == other_user.user_id
    assert comment.user.full_name == "Mallory Tester"


@pytest.mark.asyncio
async def test_append_does_not_count_a_view(comment_ledger, post_factory, author):
    post = await post_factory()
    updated = await comment_ledger.append(author, post.post_id, "First")
    assert updated.view_count == 0


@pytest.mark.asyncio
async def test_comments_keep_append_order(comment_ledger, content_repository, post_factory, author, other_user):
    post = await post_factory()

    await comment_ledger.append(author, post.post_id, "one")
    await comment_ledger.append(other_user, post.post_id, "two")
    await comment_ledger.append(author, post.post_id, "three")

    fetched = await content_repository.get(post.post_id)
    assert [c.content for c in fetched.comments] == ["one", "two", "three"]
    assert [c.user.username for c in fetched.comments] == ["jane", "mallory", "jane"]


@pytest.mark.asyncio
async def test_concurrent_appends_are_all_kept(db, comment_ledger, post_factory, other_user):
    post = await post_factory()

    await asyncio.gather(*(comment_ledger.append(other_user, post.post_id, f"comment {i}") for i in range(10)))

    doc = await db.get_collection("posts").find_one({"post_id": post.post_id})
    assert sorted(c["content"] for c in doc["comments"]) == sorted(f"comment {i}" for i in range(10))


@pytest.mark.asyncio
async def test_append_requires_identity(comment_ledger, post_factory):
    post = await post_factory()
    with pytest.raises(AuthenticationError):
        await comment_ledger.append(None, post.post_id, "anonymous")


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", None, "c" * 2001])
async def test_append_validates_content(comment_ledger, post_factory, author, content):
    post = await post_factory()
    with pytest.raises(ValidationError) as exc_info:
        await comment_ledger.append(author, post.post_id, content)
    assert exc_info.value.field == "content"


@pytest.mark.asyncio
async def test_append_accepts_maximum_length(comment_ledger, post_factory, author):
    post = await post_factory()
    updated = await comment_ledger.append(author, post.post_id, "c" * 2000)
    assert len(updated.comments[-1].content) == 2000


@pytest.mark.asyncio
async def test_append_to_unknown_post(comment_ledger, author):
    with pytest.raises(NotFoundError):
        await comment_ledger.append(author, "post_missing", "Hello")


@pytest.mark.asyncio
async def test_comment_by_deleted_user_resolves_to_none(db, comment_ledger, content_repository, post_factory, other_user):
    post = await post_factory()
    await comment_ledger.append(other_user, post.post_id, "soon orphaned")
    await db.get_collection("users").delete_one({"user_id": other_user.user_id})

    fetched = await content_repository.get(post.post_id)

    assert fetched.comments[0].user is None
    assert fetched.comments[0].content == "soon orphaned"
