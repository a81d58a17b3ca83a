"""Site payroll services."""

from site_payroll.services.approval_service import ApprovalWorkflow, BulkApproval
from site_payroll.services.payroll_store import (
    FinalizedRecordConflict,
    PayrollStore,
    RecordFilters,
    RecordNotFoundError,
    StorageError,
)
from site_payroll.services.state_machine import InvalidTransitionError, PayrollStatusMachine
from site_payroll.services.stats_service import Stats, StatsService
from site_payroll.services.validation import Pagination, ValidationError

__all__ = [
    "ApprovalWorkflow",
    "BulkApproval",
    "FinalizedRecordConflict",
    "InvalidTransitionError",
    "Pagination",
    "PayrollStatusMachine",
    "PayrollStore",
    "RecordFilters",
    "RecordNotFoundError",
    "Stats",
    "StatsService",
    "StorageError",
    "ValidationError",
]
