"""Calculation rule model."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Enum as SAEnum, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from site_payroll.models.base import Base, TimestampMixin
from site_payroll.models.enums import Role, RuleType, enum_values

# Specificity weights for scope matching
SITE_MATCH_SCORE = 2
ROLE_MATCH_SCORE = 1


@dataclass(frozen=True)
class RuleScope:
    """Optional site/role scope of a rule. None means "any"."""

    site_id: UUID | None = None
    role: Role | None = None

    @property
    def is_wildcard(self) -> bool:
        return self.site_id is None and self.role is None


class CalculationRule(Base, TimestampMixin):
    """Configurable pay rate or overtime multiplier, optionally scoped."""

    __tablename__ = "calculation_rule"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    rule_type: Mapped[RuleType] = mapped_column(
        SAEnum(
            RuleType,
            native_enum=False,
            length=32,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    base_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    multiplier: Mapped[Decimal | None] = mapped_column(Numeric(8, 4), nullable=True)

    # Scope (NULL = wildcard)
    site_id: Mapped[UUID | None] = mapped_column(nullable=True)
    role: Mapped[Role | None] = mapped_column(
        SAEnum(
            Role,
            native_enum=False,
            length=32,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("base_amount >= 0", name="calculation_rule_base_amount_check"),
        CheckConstraint(
            "multiplier IS NULL OR multiplier > 0",
            name="calculation_rule_multiplier_check",
        ),
        Index("calculation_rule_type_active_idx", "rule_type", "is_active"),
    )

    @property
    def scope(self) -> RuleScope:
        return RuleScope(site_id=self.site_id, role=self.role)

    def matches_scope(self, site_id: UUID | None, role: Role | str | None) -> int:
        """Calculate scope match score (higher = more specific).

        A set scope field must equal the queried value; an unset one matches
        anything and adds nothing. Returns -1 on an explicit mismatch.
        """
        score = 0
        if self.site_id is not None:
            if self.site_id == site_id:
                score += SITE_MATCH_SCORE
            else:
                return -1
        if self.role is not None:
            if role is not None and self.role == Role(role):
                score += ROLE_MATCH_SCORE
            else:
                return -1
        return score

    def __repr__(self) -> str:
        return (
            f"CalculationRule(id={self.id!s}, name={self.name!r}, "
            f"type={self.rule_type!r}, scope={self.scope})"
        )
