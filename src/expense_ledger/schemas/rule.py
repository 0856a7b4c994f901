"""Rule request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RuleCreateRequest(BaseModel):
    keyword: str = Field(min_length=1, max_length=100)
    category_id: UUID
    priority: int = Field(0, ge=0)

    @field_validator("keyword")
    @classmethod
    def keyword_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Keyword cannot be blank")
        return v.strip()


class RuleUpdateRequest(BaseModel):
    keyword: str | None = Field(None, min_length=1, max_length=100)
    category_id: UUID | None = None
    priority: int | None = Field(None, ge=0)

    @field_validator("keyword")
    @classmethod
    def keyword_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Keyword cannot be blank")
        return v.strip() if v is not None else None


class RuleResponse(BaseModel):
    id: UUID
    user_id: UUID | None = None
    keyword: str
    category_id: UUID
    category_name: str | None = None
    priority: int

    model_config = ConfigDict(from_attributes=True)


class RuleListResult(BaseModel):
    rules: list[RuleResponse]
