"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from timekeeping_engine.api.routes import (
    approvals_router,
    audit_router,
    export_router,
    health_router,
    periods_router,
    time_entries_router,
)
from timekeeping_engine.config import Settings, configure_logging, get_settings
from timekeeping_engine.database import Database
from timekeeping_engine.errors import TimekeepingError
from timekeeping_engine.services.directory import (
    InMemoryJobDirectory,
    InMemoryUserDirectory,
    JobDirectory,
    UserDirectory,
)

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings: Settings = app.state.settings
    configure_logging(settings)
    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database(settings.database_url, echo=settings.debug)
    yield
    # Shutdown
    if owns_database:
        app.state.database.dispose()
        app.state.database = None


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    user_directory: UserDirectory | None = None,
    job_directory: JobDirectory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    A ``database`` passed in is used as-is and left open at shutdown;
    otherwise the lifespan creates one from settings and disposes it.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="Timekeeping Engine API",
        description="Time entry approval and payroll period service",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.user_directory = user_directory or InMemoryUserDirectory()
    app.state.job_directory = job_directory or InMemoryJobDirectory()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(TimekeepingError)
    async def timekeeping_error_handler(request: Request, exc: TimekeepingError) -> JSONResponse:
        """Render domain errors with their code and HTTP status."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies and parameters are 400s."""
        errors = [
            {"loc": [str(part) for part in error["loc"]], "msg": error["msg"], "type": error["type"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"code": "VALIDATION_ERROR", "detail": "Invalid request", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"), "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(time_entries_router, prefix="/api/v1")
    app.include_router(approvals_router, prefix="/api/v1")
    app.include_router(audit_router, prefix="/api/v1")
    app.include_router(periods_router, prefix="/api/v1")
    app.include_router(export_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
