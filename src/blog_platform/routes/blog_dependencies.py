"""
Manager providers for the post, comment and category routes.

Routes depend on these instead of importing the singletons directly so tests can
replace them with instances bound to an in-memory database.
"""

from blog_platform.managers.category_manager import CategoryManager, category_manager
from blog_platform.managers.comment_ledger import CommentLedger, comment_ledger
from blog_platform.managers.content_repository import ContentRepository, content_repository


def get_content_repository() -> ContentRepository:
    return content_repository


def get_comment_ledger() -> CommentLedger:
    return comment_ledger


def get_category_manager() -> CategoryManager:
    return category_manager
