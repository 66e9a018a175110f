"""
# Category Routes

Everyone can read categories; only admins can create, rename or delete them.

`GET /categories` backs the category pickers and filters, so it uses the degrading
read path: if the database is unavailable it answers with an empty list rather than
an error.
"""

from fastapi import APIRouter, Depends, status

from blog_platform.managers.category_manager import CategoryManager
from blog_platform.managers.content_repository import ContentRepository
from blog_platform.models.blog_models import (
    CategoryEnvelope,
    CategoryListResponse,
    CreateCategoryRequest,
    UpdateCategoryRequest,
)
from blog_platform.models.user_models import Identity, MessageResponse
from blog_platform.routes.auth.dependencies import get_admin_identity
from blog_platform.routes.blog_dependencies import get_category_manager, get_content_repository

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(categories: CategoryManager = Depends(get_category_manager)):
    data = await categories.list_categories_for_display()
    return CategoryListResponse(count=len(data), data=data)


@router.get("/{category_id}", response_model=CategoryEnvelope)
async def get_category(
    category_id: str,
    categories: CategoryManager = Depends(get_category_manager),
    repository: ContentRepository = Depends(get_content_repository),
):
    """Fetch a category together with the number of posts filed under it."""
    category = await categories.get_category(category_id)
    category.post_count = await repository.count_by_category(category_id)
    return CategoryEnvelope(data=category)


@router.post("", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CreateCategoryRequest,
    admin: Identity = Depends(get_admin_identity),
    categories: CategoryManager = Depends(get_category_manager),
):
    return CategoryEnvelope(data=await categories.create_category(admin, payload.model_dump()))


@router.put("/{category_id}", response_model=CategoryEnvelope)
async def update_category(
    category_id: str,
    payload: UpdateCategoryRequest,
    admin: Identity = Depends(get_admin_identity),
    categories: CategoryManager = Depends(get_category_manager),
):
    category = await categories.update_category(admin, category_id, payload.model_dump(exclude_unset=True))
    return CategoryEnvelope(data=category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    admin: Identity = Depends(get_admin_identity),
    categories: CategoryManager = Depends(get_category_manager),
):
    """Delete a category. Refused with `409 CONFLICT` while posts still use it."""
    await categories.delete_category(admin, category_id)
    return MessageResponse(message="Category deleted")
