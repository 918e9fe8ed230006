"""Application entry point for the wine journal API."""
from __future__ import annotations

import logging
from typing import Iterable

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import init_db
from .routers import entries_router, feed_router, friends_router, users_router
from .services import InvalidTier, RelationshipLookupFailed

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title=APP_NAME, version=API_VERSION)

if settings.cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(friends_router)
app.include_router(users_router)
app.include_router(entries_router)
app.include_router(feed_router)


@app.exception_handler(RelationshipLookupFailed)
async def relationship_lookup_failed_handler(request: Request, exc: RelationshipLookupFailed) -> JSONResponse:
    logger.warning("Relationship lookup failed for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": "Relationship lookup temporarily unavailable",
            "code": "RELATIONSHIP_LOOKUP_FAILED",
        },
    )


@app.exception_handler(InvalidTier)
async def invalid_tier_handler(request: Request, exc: InvalidTier) -> JSONResponse:
    # Stored tiers are enum-constrained, so this means corrupted data.
    logger.error("Invalid privacy tier %r while serving %s %s", exc.value, request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Invalid privacy setting on stored content", "code": "INVALID_PRIVACY_TIER"},
    )


@app.on_event("startup")
async def _startup() -> None:
    """Ensure the database schema exists before serving."""

    try:
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise

    logger.info(
        "Relationship lookups: timeout=%.1fs workers=%d legacy_comments_scope=%s",
        settings.relationship_lookup_timeout,
        settings.relationship_lookup_workers,
        settings.legacy_comments_scope,
    )


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
