"""Payroll record state machine with transition validation."""

from __future__ import annotations

from site_payroll.models.enums import PayrollStatus


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayrollStatusMachine:
    """State machine for payroll record status transitions.

    Allowed transitions:
    - calculated → approved
    - approved → paid (set by the external payment process)

    There is no reverse transition. The only way back to calculated is a
    recalculation run with override, which rewrites the row.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollStatus.CALCULATED: [PayrollStatus.APPROVED],
        PayrollStatus.APPROVED: [PayrollStatus.PAID],
        PayrollStatus.PAID: [],  # Terminal state
    }

    # Statuses a normal recalculation must not overwrite
    FINALIZED = {
        PayrollStatus.APPROVED,
        PayrollStatus.PAID,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_finalized(cls, status: str) -> bool:
        return status in cls.FINALIZED

    @classmethod
    def can_recalculate(cls, status: str, override: bool = False) -> bool:
        """Check if a calculation run may overwrite a record in this status."""
        return override or not cls.is_finalized(status)

    @classmethod
    def can_adjust(cls, status: str) -> bool:
        """Check if bonus/deductions can still be edited by hand."""
        return status == PayrollStatus.CALCULATED

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
