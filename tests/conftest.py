"""Pytest fixtures for site payroll tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from site_payroll.config import MissingRulePolicy, Settings
from site_payroll.database import create_schema, get_engine, make_session_factory
from site_payroll.models import AttendanceRecord, CalculationRule, Role, RuleType, utcnow

# In-memory SQLite; the engine keeps a single shared connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SITE_A = UUID("5a1e0000-0000-4000-8000-00000000000a")
WORKER_1 = UUID("0f0f0000-0000-4000-8000-000000000001")
WORK_DATE = date(2024, 5, 13)


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with a fresh schema."""
    engine = get_engine(TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    """Settings with the fail policy and default limits."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=8000,
        debug=False,
    )


@pytest.fixture
def fallback_settings() -> Settings:
    """Settings that fall back to configured constants."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=8000,
        debug=False,
        missing_rule_policy=MissingRulePolicy.FALLBACK,
        fallback_hourly_rate=Decimal("10000"),
        fallback_overtime_multiplier=Decimal("1.5"),
    )


@pytest.fixture
def make_rule() -> Callable[..., CalculationRule]:
    """Factory for transient calculation rules."""

    def _make(
        rule_type: RuleType = RuleType.HOURLY_RATE,
        base_amount: str = "15000",
        multiplier: str | None = None,
        site_id: UUID | None = None,
        role: Role | None = None,
        is_active: bool = True,
        name: str | None = None,
        updated_at: datetime | None = None,
    ) -> CalculationRule:
        now = updated_at or utcnow()
        return CalculationRule(
            id=uuid4(),
            name=name or f"{rule_type.value} rule",
            rule_type=rule_type,
            base_amount=Decimal(base_amount),
            multiplier=Decimal(multiplier) if multiplier is not None else None,
            site_id=site_id,
            role=role,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    return _make


@pytest.fixture
def make_attendance() -> Callable[..., AttendanceRecord]:
    """Factory for transient attendance records."""

    def _make(
        worker_id: UUID = WORKER_1,
        site_id: UUID = SITE_A,
        work_date: date = WORK_DATE,
        check_in: time = time(8, 0),
        check_out: time = time(19, 0),
        worker_role: Role = Role.WORKER,
    ) -> AttendanceRecord:
        return AttendanceRecord(
            id=uuid4(),
            worker_id=worker_id,
            site_id=site_id,
            work_date=work_date,
            check_in=check_in,
            check_out=check_out,
            worker_role=worker_role,
        )

    return _make


@pytest.fixture
def standard_rules(make_rule) -> list[CalculationRule]:
    """Wildcard hourly 15000 and overtime x1.5."""
    return [
        make_rule(RuleType.HOURLY_RATE, "15000"),
        make_rule(RuleType.OVERTIME_MULTIPLIER, "0", multiplier="1.5"),
    ]
