"""Main FastAPI application."""

import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from .api import editor_router, requests_router, versions_router, workflow_router
from .core.config import ConfigurationError, settings
from .core.logging_config import setup_logging
from .database import DATABASE_URL, get_db, init_db
from .exceptions import AdvisorFlowError
from .middleware.exception_handler import advisorflow_exception_handler, database_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .services.request_locks import request_locks

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


def _mask_url(url: str) -> str:
    """Hide the password part of a database URL."""
    return re.sub(r"(://[^:/@]+):[^@]+@", r"\1:***@", url)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the AdvisorFlow API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    logger.info(f"Connecting to database: {_mask_url(DATABASE_URL)}")
    init_db()

    if not settings.generation_model:
        logger.warning("GENERATION_MODEL is empty; generate, extend and rewrite will fail")

    yield  # App runs here


app = FastAPI(
    title="AdvisorFlow API",
    description=(
        "Drafting, AI editing and compliance review workflow for advisor content. "
        "Caller identity is read from the `X-User-Id`, `X-User-Role` and `X-Org-Id` headers."
    ),
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)
app.add_exception_handler(AdvisorFlowError, advisorflow_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)

app.include_router(requests_router)
app.include_router(versions_router)
app.include_router(workflow_router)
app.include_router(editor_router)


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus the state of the pieces a draft depends on.

    Reports ``degraded`` instead of failing when the database is unreachable,
    and whether text and image generation are configured.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database")
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "generation": {
            "text": bool(settings.generation_model),
            "image": bool(settings.image_model),
        },
        "writes_in_progress": len(request_locks),
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": __version__,
    }
