"""Calculation rule API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from site_payroll.api.dependencies import AppSettings, DbSession, Rules
from site_payroll.api.schemas import (
    ApiResult,
    DeleteResponse,
    RuleDeleteRequest,
    RuleListResponse,
    RuleResponse,
    RuleUpsertRequest,
)
from site_payroll.models import RuleType
from site_payroll.services.rule_service import RuleInput, RuleService
from site_payroll.services.validation import Pagination
from site_payroll.sources import RuleFilters

router = APIRouter(prefix="/rules", tags=["rules"])


@router.post("")
async def upsert_rule(
    db: DbSession,
    rules: Rules,
    payload: RuleUpsertRequest,
) -> ApiResult[RuleResponse]:
    """Create or update a calculation rule."""
    service = RuleService(rules)
    rule = await service.upsert_rule(RuleInput(**payload.model_dump()))
    await db.commit()
    return ApiResult(
        data=RuleResponse.model_validate(rule),
        message="Rule updated" if payload.id else "Rule created",
    )


@router.post("/delete")
async def delete_rules(
    db: DbSession,
    rules: Rules,
    payload: RuleDeleteRequest,
) -> ApiResult[DeleteResponse]:
    """Delete calculation rules by id."""
    service = RuleService(rules)
    deleted = await service.delete_rules(payload.ids)
    await db.commit()
    return ApiResult(
        data=DeleteResponse(deleted_count=deleted),
        message=f"Deleted {deleted} rule(s)",
    )


@router.get("")
async def list_rules(
    rules: Rules,
    settings: AppSettings,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
    search: str | None = None,
    rule_type: RuleType | None = None,
    site_id: UUID | None = None,
) -> ApiResult[RuleListResponse]:
    """List rules newest first. A site filter also returns wildcard-site rules."""
    service = RuleService(rules)
    result = await service.list_rules(
        RuleFilters(search=search, rule_type=rule_type, site_id=site_id),
        Pagination(page=page, limit=limit or settings.default_page_size),
    )
    return ApiResult(
        data=RuleListResponse(
            rules=[RuleResponse.model_validate(r) for r in result.rules],
            total=result.total,
            pages=result.pages,
        )
    )
