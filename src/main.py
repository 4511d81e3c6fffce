"""VTC Tracker API FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from src.config import settings, validate_secret_key
from src.database import close_database
from src.logging_config import get_logger, setup_logging
from src.middleware import CorrelationIdMiddleware
from src.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from src.middleware.validation import validation_exception_handler
from src.routers import device_auth, health, telemetry
from src.services.scheduler import start_scheduler, stop_scheduler

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    # Note: Migrations are run by `python -m src.core.migrations` before uvicorn starts
    validate_secret_key()
    start_scheduler()
    logger.info("VTC Tracker API started")

    yield

    # Shutdown
    logger.info("Shutting down VTC Tracker API...")
    stop_scheduler()
    await close_database()
    logger.info("VTC Tracker API shutdown complete")


app = FastAPI(
    title="VTC Tracker API",
    description="Desktop app linking and telemetry ingestion for the VTC tracker",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Middleware (order matters: first added = last executed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracing
app.add_middleware(CorrelationIdMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(device_auth.router)
app.include_router(telemetry.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "VTC Tracker API",
        "version": "0.1.0",
        "docs": "/docs",
    }
