"""Categorization rule endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from expense_ledger.api.deps import CurrentUser, DbSession
from expense_ledger.schemas.rule import (
    RuleCreateRequest,
    RuleListResult,
    RuleResponse,
    RuleUpdateRequest,
)
from expense_ledger.services.rule import RuleService

router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("", response_model=RuleListResult, summary="List rules")
async def list_rules(
    current_user: CurrentUser,
    db: DbSession,
) -> RuleListResult:
    """Own and system rules in evaluation order (priority, then keyword)."""
    rules = await RuleService(db).list_rules(current_user.id)
    return RuleListResult(rules=[RuleResponse.model_validate(rule) for rule in rules])


@router.post(
    "",
    response_model=RuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a rule",
)
async def create_rule(
    body: RuleCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> RuleResponse:
    rule = await RuleService(db).create_rule(
        current_user.id, body.keyword, body.category_id, body.priority
    )
    return RuleResponse.model_validate(rule)


@router.patch("/{rule_id}", response_model=RuleResponse, summary="Update a rule")
async def update_rule(
    rule_id: UUID,
    body: RuleUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> RuleResponse:
    rule = await RuleService(db).update_rule(
        current_user.id,
        rule_id,
        keyword=body.keyword,
        category_id=body.category_id,
        priority=body.priority,
    )
    return RuleResponse.model_validate(rule)


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a rule",
)
async def delete_rule(
    rule_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Response:
    """Delete an own rule. Already categorized transactions keep their category."""
    await RuleService(db).delete_rule(current_user.id, rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
