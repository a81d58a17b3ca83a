"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from site_payroll.config import DataSource, Settings, get_settings
from site_payroll.database import init_db
from site_payroll.sources import (
    AttendanceSource,
    FakeAttendanceSource,
    FakeRuleRepository,
    RuleRepository,
    SqlAttendanceSource,
    SqlRuleRepository,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit their own writes; anything uncommitted is rolled back on
    close.
    """
    _, factory = init_db()
    async with factory() as session:
        yield session


def get_app_settings() -> Settings:
    """Get settings dependency."""
    return get_settings()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


@lru_cache(maxsize=1)
def get_fake_attendance_source() -> FakeAttendanceSource:
    """Process-wide fake attendance, so data survives between requests."""
    return FakeAttendanceSource()


@lru_cache(maxsize=1)
def get_fake_rule_repository() -> FakeRuleRepository:
    """Process-wide fake rules, seeded once."""
    return FakeRuleRepository()


def get_attendance_source(db: DbSession, settings: AppSettings) -> AttendanceSource:
    """Attendance source chosen by DATA_SOURCE."""
    if settings.data_source is DataSource.FAKE:
        return get_fake_attendance_source()
    return SqlAttendanceSource(db)


def get_rule_repository(db: DbSession, settings: AppSettings) -> RuleRepository:
    """Rule repository chosen by DATA_SOURCE."""
    if settings.data_source is DataSource.FAKE:
        return get_fake_rule_repository()
    return SqlRuleRepository(db)


Attendance = Annotated[AttendanceSource, Depends(get_attendance_source)]
Rules = Annotated[RuleRepository, Depends(get_rule_repository)]
