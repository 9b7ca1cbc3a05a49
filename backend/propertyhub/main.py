"""PropertyHub - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from propertyhub.core.config import get_settings
from propertyhub.core.database import init_models
from propertyhub.core.env_validation import validate_environment
from propertyhub.core.rate_limit import limiter, rate_limit_exceeded_handler
from propertyhub.routers import (
    auth_router,
    users_router,
    properties_router,
    tenants_router,
    leases_router,
    payments_router,
    invoices_router,
    maintenance_router,
    notifications_router,
    dashboard_router,
    reports_router,
)
from propertyhub.services.errors import WorkflowError

# Hard-fails (exit 1) if required configuration is missing
validate_environment()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    if settings.database_url.startswith("sqlite"):
        # Local development runs without Alembic
        await init_models()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Property management portal: leases, rent payments, invoices, maintenance and reporting.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

logger.info(f"[APP] CORS configured with origins: {settings.origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    """Business rule violations are client errors."""
    logger.info(f"[APP] {request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(users_router, prefix=settings.api_prefix)
app.include_router(properties_router, prefix=settings.api_prefix)
app.include_router(tenants_router, prefix=settings.api_prefix)
app.include_router(leases_router, prefix=settings.api_prefix)
app.include_router(payments_router, prefix=settings.api_prefix)
app.include_router(invoices_router, prefix=settings.api_prefix)
app.include_router(maintenance_router, prefix=settings.api_prefix)
app.include_router(notifications_router, prefix=settings.api_prefix)
app.include_router(dashboard_router, prefix=settings.api_prefix)
app.include_router(reports_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
    }
