"""
QueryPilot - FastAPI Main Application
"""
from datetime import datetime, timezone
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import structlog
import time

from querypilot.config import settings
from querypilot.database import Base, app_engine, get_db_context
from querypilot.connections import connection_manager
from querypilot.core.auth import ensure_admin_user
from querypilot.core.exceptions import QueryPilotError
from querypilot.schemas import ErrorResponse

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()


def init_database() -> None:
    """Create tables and the bootstrap admin, if one is configured."""
    Base.metadata.create_all(bind=app_engine)

    if settings.BOOTSTRAP_ADMIN_USERNAME and settings.BOOTSTRAP_ADMIN_PASSWORD:
        with get_db_context() as db:
            ensure_admin_user(db, settings.BOOTSTRAP_ADMIN_USERNAME, settings.BOOTSTRAP_ADMIN_PASSWORD)
    logger.info("database_initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("application_startup", version=settings.APP_VERSION)
    init_database()

    yield

    connection_manager.close_all()
    logger.info("application_shutdown")


def error_body(status_code: int, message: str, code: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(message=message, code=code, timestamp=datetime.now(timezone.utc))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="QueryPilot - natural-language questions over permissioned databases",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add request timing to response headers."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Exception handlers
@app.exception_handler(QueryPilotError)
async def querypilot_exception_handler(request: Request, exc: QueryPilotError):
    """Render service errors with the status they carry."""
    log_method = logger.error if exc.status_code >= 500 else logger.info
    log_method(
        "request_failed",
        error=exc.message,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        path=request.url.path
    )
    return error_body(exc.status_code, exc.message, exc.code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_body(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors."""
    logger.warning("validation_error", errors=str(exc.errors()), path=request.url.path)
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Validation error")
    if field:
        message = f"{field}: {message}"
    return error_body(status.HTTP_422_UNPROCESSABLE_ENTITY, message, "VALIDATION_ERROR")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("unhandled_exception", error=str(exc), path=request.url.path)
    return error_body(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) if settings.DEBUG else "An error occurred",
        "INTERNAL_ERROR"
    )


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "app": settings.APP_NAME
    }


@app.get("/", tags=["System"])
async def root():
    """Root endpoint."""
    return {
        "message": "QueryPilot API",
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }


# Import and include routers
from querypilot.api import auth, admin_connections, admin_permissions, admin_users, query  # noqa: E402

prefix = settings.API_PREFIX
app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Authentication"])
app.include_router(admin_connections.router, prefix=f"{prefix}/admin/connections", tags=["Connections"])
app.include_router(admin_permissions.router, prefix=f"{prefix}/admin/permissions", tags=["Permissions"])
app.include_router(admin_users.router, prefix=f"{prefix}/admin/users", tags=["Users"])
app.include_router(query.router, prefix=f"{prefix}/query", tags=["Query"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "querypilot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
