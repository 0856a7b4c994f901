"""Category management endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from expense_ledger.api.deps import CurrentUser, DbSession
from expense_ledger.schemas.category import (
    CategoryCreateRequest,
    CategoryListResult,
    CategoryReorderRequest,
    CategoryResponse,
    CategoryUpdateRequest,
)
from expense_ledger.services.category import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListResult, summary="List categories")
async def list_categories(
    current_user: CurrentUser,
    db: DbSession,
) -> CategoryListResult:
    """System and own categories in display order; Other is always last."""
    categories = await CategoryService(db).list_categories(current_user.id)
    return CategoryListResult(categories=categories)


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    body: CategoryCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> CategoryResponse:
    return await CategoryService(db).create_category(
        current_user.id, body.name, body.color, body.icon
    )


@router.put("/reorder", response_model=CategoryListResult, summary="Reorder categories")
async def reorder_categories(
    body: CategoryReorderRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> CategoryListResult:
    """Set the display order of the user's categories.

    The list must contain every own category except Other, each exactly once.
    """
    categories = await CategoryService(db).reorder_categories(current_user.id, body.category_ids)
    return CategoryListResult(categories=categories)


@router.patch("/{category_id}", response_model=CategoryResponse, summary="Rename a category")
async def rename_category(
    category_id: UUID,
    body: CategoryUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> CategoryResponse:
    return await CategoryService(db).rename_category(current_user.id, category_id, body.name)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a category",
)
async def delete_category(
    category_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Response:
    """Delete an own category. Its rules go with it; its transactions become uncategorized."""
    await CategoryService(db).delete_category(current_user.id, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
