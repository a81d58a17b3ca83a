"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from site_payroll.models import PayrollStatus, Role, RuleType
from site_payroll.services.calculation_service import IssueKind

T = TypeVar("T")


# ============================================================================
# Envelope
# ============================================================================


class ApiResult(BaseModel, Generic[T]):
    """Uniform response envelope."""

    success: bool = True
    data: T | None = None
    error: str | None = None
    message: str | None = None


def error_result(code: str, message: str) -> dict[str, Any]:
    """Envelope body for a failed request."""
    return ApiResult[Any](success=False, error=code, message=message).model_dump(mode="json")


# ============================================================================
# Rule schemas
# ============================================================================


class RuleUpsertRequest(BaseModel):
    """Create a rule, or update it when id is given."""

    id: UUID | None = None
    name: str
    rule_type: RuleType
    base_amount: Decimal = Decimal("0")
    multiplier: Decimal | None = None
    site_id: UUID | None = None
    role: Role | None = None
    is_active: bool = True

    @field_validator("site_id", "role", "multiplier", mode="before")
    @classmethod
    def empty_as_none(cls, value: Any) -> Any:
        """Blank scope fields from the admin form mean "any"."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class RuleDeleteRequest(BaseModel):
    ids: list[UUID] = Field(default_factory=list)


class RuleResponse(BaseModel):
    """Schema for calculation rule response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    rule_type: RuleType
    base_amount: Decimal
    multiplier: Decimal | None = None
    site_id: UUID | None = None
    role: Role | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RuleListResponse(BaseModel):
    rules: list[RuleResponse]
    total: int
    pages: int


class DeleteResponse(BaseModel):
    deleted_count: int


# ============================================================================
# Calculation schemas
# ============================================================================


class CalculateRequest(BaseModel):
    """Calculation window. Dates are inclusive."""

    date_from: date | None = None
    date_to: date | None = None
    site_id: UUID | None = None
    worker_id: UUID | None = None
    override: bool = False


class RecordIssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    site_id: UUID
    work_date: date
    kind: IssueKind
    detail: str


class CalculationResponse(BaseModel):
    """Schema for a calculation run summary."""

    model_config = ConfigDict(from_attributes=True)

    calculated_count: int
    skipped_count: int
    failed_count: int
    issues: list[RecordIssueResponse] = Field(default_factory=list)


# ============================================================================
# Approval schemas
# ============================================================================


class ApproveRequest(BaseModel):
    ids: list[UUID] = Field(default_factory=list)


class ApproveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    approved_count: int
    rejected_ids: list[UUID]


# ============================================================================
# Payroll record schemas
# ============================================================================


class PayrollRecordResponse(BaseModel):
    """Schema for payroll record response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    worker_id: UUID
    site_id: UUID
    work_date: date
    regular_hours: Decimal
    overtime_hours: Decimal
    base_pay: Decimal
    overtime_pay: Decimal
    bonus_pay: Decimal
    deductions: Decimal
    total_pay: Decimal
    status: PayrollStatus
    notes: str | None = None
    calculation_count: int
    created_at: datetime
    updated_at: datetime


class PayrollRecordListResponse(BaseModel):
    records: list[PayrollRecordResponse]
    total: int
    page: int
    pages: int


class RecordAdjustRequest(BaseModel):
    """Manual bonus/deduction edit. Omitted fields stay as they are."""

    bonus_pay: Decimal | None = None
    deductions: Decimal | None = None
    notes: str | None = None


# ============================================================================
# Statistics schemas
# ============================================================================


class StatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    distinct_worker_count: int
    pending_count: int
    approved_count: int
    total_payroll: Decimal
    average_daily_pay: Decimal
    overtime_percentage: Decimal


class OutputSummaryResponse(BaseModel):
    """Per worker/site totals for a month."""

    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    site_id: UUID
    work_days_count: int
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_hours: Decimal
    base_pay: Decimal
    overtime_pay: Decimal
    bonus_pay: Decimal
    deductions: Decimal
    total_pay: Decimal
    first_work_date: date | None = None
    last_work_date: date | None = None
    work_dates: list[date] = Field(default_factory=list)
