"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from site_payroll import __version__
from site_payroll.api.routes import health_router, payroll_router, rules_router
from site_payroll.api.schemas import error_result
from site_payroll.database import dispose_db, init_db
from site_payroll.services.payroll_store import FinalizedRecordConflict, RecordNotFoundError
from site_payroll.services.rule_service import RuleNotFoundError
from site_payroll.services.state_machine import InvalidTransitionError
from site_payroll.services.validation import ValidationError
from site_payroll.sources import SourceUnavailableError

logger = logging.getLogger(__name__)

# Domain exceptions and how they surface in the envelope
ERROR_RESPONSES: dict[type[Exception], tuple[int, str]] = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
    RecordNotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    RuleNotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    FinalizedRecordConflict: (status.HTTP_409_CONFLICT, "FINALIZED_RECORD"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    SourceUnavailableError: (status.HTTP_503_SERVICE_UNAVAILABLE, "SOURCE_UNAVAILABLE"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    init_db()
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Site Payroll API",
        description="Construction site attendance to payroll engine",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Map a domain exception to its status code and error code."""
        status_code, code = ERROR_RESPONSES[type(exc)]
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content=error_result(code, str(exc)))

    for exc_class in ERROR_RESPONSES:
        app.add_exception_handler(exc_class, domain_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle malformed request bodies and parameters."""
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_result("INVALID_REQUEST", details),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_result("INTERNAL_ERROR", "An unexpected error occurred"),
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(rules_router, prefix="/api/v1")
    app.include_router(payroll_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
