"""Main entry point for the Agora application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agora.api.v1 import (
    admin_router,
    answers_router,
    auth_router,
    comments_router,
    notifications_router,
    questions_router,
    stats_router,
    tags_router,
    users_router,
    votes_router,
)
from agora.core.errors import AgoraError, RateLimitedError
from agora.core.logging import configure_logging
from agora.core.settings import settings
from agora.db.session import create_tables

configure_logging()
logger = logging.getLogger(__name__)

_LOCATIONS = {"body", "query", "path", "header"}

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Q&A community API: questions, answers, votes and reputation",
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

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(questions_router, prefix="/api/v1")
app.include_router(answers_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(tags_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(stats_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.auto_create_tables:
        logger.info("Creating missing tables")
        create_tables()


@app.exception_handler(AgoraError)
async def handle_domain_error(request: Request, exc: AgoraError) -> JSONResponse:
    """Translate a domain error into the JSON error envelope."""
    if exc.http_status >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.http_status, content=exc.to_payload(), headers=headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in _LOCATIONS),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=exc.headers,
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "description": "Q&A community API: questions, answers, votes and reputation",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("agora.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
