"""API routes."""

from site_payroll.api.routes.health import router as health_router
from site_payroll.api.routes.payroll import router as payroll_router
from site_payroll.api.routes.rules import router as rules_router

__all__ = ["health_router", "payroll_router", "rules_router"]
