"""Payroll calculation, approval and reporting endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from site_payroll.api.dependencies import AppSettings, Attendance, DbSession, Rules
from site_payroll.api.schemas import (
    ApiResult,
    ApproveRequest,
    ApproveResponse,
    CalculateRequest,
    CalculationResponse,
    OutputSummaryResponse,
    PayrollRecordListResponse,
    PayrollRecordResponse,
    RecordAdjustRequest,
    StatsResponse,
)
from site_payroll.models import PayrollStatus
from site_payroll.services.approval_service import ApprovalWorkflow
from site_payroll.services.calculation_service import CalculationService
from site_payroll.services.payroll_store import PayrollStore, RecordFilters
from site_payroll.services.stats_service import StatsService
from site_payroll.services.validation import Pagination

router = APIRouter(prefix="/payroll", tags=["payroll"])


# ============================================================================
# Calculation and approval
# ============================================================================


@router.post("/calculate")
async def calculate_salaries(
    db: DbSession,
    settings: AppSettings,
    attendance: Attendance,
    rules: Rules,
    payload: CalculateRequest,
) -> ApiResult[CalculationResponse]:
    """Calculate payroll for a date window. Safe to repeat."""
    service = CalculationService(db, attendance, rules, settings=settings)
    summary = await service.calculate_salaries(
        date_from=payload.date_from,
        date_to=payload.date_to,
        site_id=payload.site_id,
        override=payload.override,
        worker_id=payload.worker_id,
    )
    await db.commit()
    return ApiResult(
        data=CalculationResponse.model_validate(summary),
        message=(
            f"{summary.calculated_count} calculated, {summary.skipped_count} skipped, "
            f"{summary.failed_count} failed"
        ),
    )


@router.post("/approve")
async def approve_records(
    db: DbSession,
    payload: ApproveRequest,
) -> ApiResult[ApproveResponse]:
    """Approve calculated records. Others are reported as rejected."""
    result = await ApprovalWorkflow(db).approve(payload.ids)
    await db.commit()
    return ApiResult(
        data=ApproveResponse.model_validate(result),
        message=f"Approved {result.approved_count} record(s)",
    )


# ============================================================================
# Records
# ============================================================================


@router.get("/records")
async def list_records(
    db: DbSession,
    settings: AppSettings,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
    site_id: UUID | None = None,
    worker_id: UUID | None = None,
    status_filter: Annotated[PayrollStatus | None, Query(alias="status")] = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
) -> ApiResult[PayrollRecordListResponse]:
    """List payroll records, newest work date first."""
    pagination = Pagination(page=page, limit=limit or settings.default_page_size)
    records, total = await PayrollStore(db).query(
        RecordFilters(
            site_id=site_id,
            worker_id=worker_id,
            status=status_filter,
            date_from=date_from,
            date_to=date_to,
            search=search,
        ),
        pagination,
    )
    return ApiResult(
        data=PayrollRecordListResponse(
            records=[PayrollRecordResponse.model_validate(r) for r in records],
            total=total,
            page=page,
            pages=pagination.page_count(total),
        )
    )


@router.patch("/records/{record_id}")
async def adjust_record(
    db: DbSession,
    record_id: Annotated[UUID, Path()],
    payload: RecordAdjustRequest,
) -> ApiResult[PayrollRecordResponse]:
    """Set bonus/deductions on a calculated record."""
    record = await PayrollStore(db).adjust(
        record_id,
        bonus_pay=payload.bonus_pay,
        deductions=payload.deductions,
        notes=payload.notes,
    )
    await db.commit()
    return ApiResult(data=PayrollRecordResponse.model_validate(record), message="Record updated")


# ============================================================================
# Statistics
# ============================================================================


@router.get("/stats")
async def get_stats(
    db: DbSession,
    site_id: UUID | None = None,
    worker_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ApiResult[StatsResponse]:
    """Summary statistics over the filtered records."""
    stats = await StatsService(db).get_stats(
        RecordFilters(
            site_id=site_id,
            worker_id=worker_id,
            date_from=date_from,
            date_to=date_to,
        )
    )
    return ApiResult(data=StatsResponse.model_validate(stats))


@router.get("/summary")
async def output_summary(
    db: DbSession,
    year: Annotated[int, Query()],
    month: Annotated[int, Query()],
    site_id: UUID | None = None,
) -> ApiResult[list[OutputSummaryResponse]]:
    """Per worker/site output for one month."""
    rows = await StatsService(db).monthly_summary(year, month, site_id=site_id)
    return ApiResult(data=[OutputSummaryResponse.model_validate(row) for row in rows])
