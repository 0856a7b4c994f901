"""Category request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    color: str = Field(pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = Field(None, max_length=50)


class CategoryUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)


class CategoryReorderRequest(BaseModel):
    """Every reorderable category id, in the desired order (Other excluded)."""

    category_ids: list[UUID] = Field(min_length=1)


class CategoryResponse(BaseModel):
    id: UUID
    name: str
    color: str
    icon: str | None = None
    display_order: int
    is_default: bool
    is_other: bool
    is_system: bool
    user_id: UUID | None = None
    has_rules: bool = False
    has_transactions: bool = False

    model_config = ConfigDict(from_attributes=True)


class CategoryListResult(BaseModel):
    categories: list[CategoryResponse]
