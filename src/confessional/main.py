# src/confessional/main.py
"""Main entry point for the Confessional application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from confessional.api.v1 import confessions_router, research_router, support_router
from confessional.core.rate_limit import limiter, rate_limit_exceeded_handler
from confessional.core.settings import settings
from confessional.db.session import create_tables
from confessional.db.time import utcnow
from confessional.services.confessions import build_confession_service
from confessional.services.expiry import ExpirySweeper
from confessional.services.responder import SupportResponder

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Confessional API",
    description="Ephemeral store for end-to-end encrypted confessions",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Per-client rate limiting; /api routes share one allowance
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Include API routers
app.include_router(confessions_router, prefix="/api/v1")
app.include_router(research_router, prefix="/api/v1")
app.include_router(support_router, prefix="/api/v1")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed request bodies at the boundary with a plain 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Missing required fields"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    if settings.store_backend == "database":
        create_tables()

    service = build_confession_service(settings)
    app.state.confession_service = service
    app.state.support_responder = SupportResponder(
        api_key=settings.anthropic_api_key,
        model=settings.ai_model,
        base_url=settings.ai_base_url,
        timeout_seconds=settings.ai_timeout_seconds,
    )

    sweeper = ExpirySweeper(
        service.store,
        interval_seconds=settings.expiry_sweep_interval_seconds,
        batch_size=settings.expiry_sweep_batch_size,
    )
    await sweeper.start()
    app.state.expiry_sweeper = sweeper
    logger.info(
        "%s ready (store backend: %s, ttl: %s)",
        settings.app_name,
        settings.store_backend,
        settings.confession_ttl,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    sweeper: ExpirySweeper | None = getattr(app.state, "expiry_sweeper", None)
    if sweeper:
        await sweeper.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok", "timestamp": utcnow().isoformat()}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Confessional API",
        "version": settings.app_version,
        "description": "Ephemeral store for end-to-end encrypted confessions",
        "docs": "/docs",
        "redoc": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("confessional.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
