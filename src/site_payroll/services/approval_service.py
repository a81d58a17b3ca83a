"""Bulk approval of calculated payroll records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from site_payroll.models import PayrollRecord, PayrollStatus, utcnow
from site_payroll.services.state_machine import PayrollStatusMachine

logger = logging.getLogger(__name__)


@dataclass
class BulkApproval:
    """Result of approving a batch of record ids."""

    approved_count: int = 0
    rejected_ids: list[UUID] = field(default_factory=list)


class ApprovalWorkflow:
    """Moves payroll records from calculated to approved.

    Approval is one conditional UPDATE, so a record that is already approved
    or paid is never touched and keeps its timestamps.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def approve(self, record_ids: Iterable[UUID]) -> BulkApproval:
        """Approve every calculated record among record_ids.

        Ids that are unknown, already approved or paid are returned in
        rejected_ids, in request order.
        """
        requested = list(dict.fromkeys(record_ids))
        if not requested:
            return BulkApproval()

        PayrollStatusMachine.validate_transition(PayrollStatus.CALCULATED, PayrollStatus.APPROVED)

        result = await self.session.execute(
            update(PayrollRecord)
            .where(
                PayrollRecord.id.in_(requested),
                PayrollRecord.status == PayrollStatus.CALCULATED,
            )
            .values(status=PayrollStatus.APPROVED, updated_at=utcnow())
            .returning(PayrollRecord.id)
            .execution_options(synchronize_session=False)
        )
        approved = set(result.scalars().all())

        rejected = [record_id for record_id in requested if record_id not in approved]
        if rejected:
            logger.warning(
                "Approval skipped %d of %d records that were not in calculated status",
                len(rejected),
                len(requested),
            )
        logger.info("Approved %d payroll records", len(approved))

        return BulkApproval(approved_count=len(approved), rejected_ids=rejected)
