# backend/classbook/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .monitoring.prometheus_metrics import PrometheusMetrics
from .routes.v1 import (
    admin as admin_v1,
    bookings as bookings_v1,
    classes as classes_v1,
    credits as credits_v1,
    functions as functions_v1,
    health as health_v1,
    profiles as profiles_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(
        "Booking policy: cancellation_window_hours=%s signup_credit_grant=%s",
        settings.cancellation_window_hours,
        settings.signup_credit_grant,
    )
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s", settings.cors_origins)

# -----------------------------------------------------------------------------
# API v1
# -----------------------------------------------------------------------------
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(classes_v1.router)
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(credits_v1.router, prefix="/credits")
api_v1.include_router(profiles_v1.router, prefix="/profiles")
api_v1.include_router(admin_v1.router, prefix="/admin")
api_v1.include_router(functions_v1.router, prefix="/functions")
api_v1.include_router(health_v1.router)
app.include_router(api_v1)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(
        content=PrometheusMetrics.get_metrics(),
        media_type=PrometheusMetrics.get_content_type(),
    )


__all__ = ["app"]
