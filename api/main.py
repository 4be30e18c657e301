"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import (
    applications,
    auth,
    jobs,
    organizations,
    talents,
)

# Import middleware components
from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
    RateLimitMiddleware,
    default_auth_rules,
    AuthenticationMiddleware,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)

# Shared by the rate limiter; connects on first command
rate_limit_redis: Optional[redis.Redis] = (
    redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
    )
    if settings.rate_limit_enabled
    else None
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")
    if rate_limit_redis is not None:
        await rate_limit_redis.aclose()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Job portal API connecting talents and employers",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Setup error handlers (before middleware)
setup_error_handlers(app)

# Add middleware (order matters - the last one added runs first)
# 1. Rate limiting (innermost of the custom layers; only auth POSTs have rules)
if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        rules=default_auth_rules(settings.api_v1_prefix),
        key_prefix=f"{settings.app_name}:ratelimit",
        enable_headers=True,
        redis_client=rate_limit_redis,
    )

# 2. Authentication (session cookie -> request.state.user)
app.add_middleware(
    AuthenticationMiddleware,
    api_prefix=settings.api_v1_prefix,
)

# 3. CORS with credentials so the session cookies travel cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 4. Structured logging middleware (logs all requests/responses)
app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    log_response_body=settings.log_response_body,
    max_body_size=settings.log_max_body_size,
)

# 5. Error handling middleware (outermost - catches all errors)
app.add_middleware(
    ErrorHandlingMiddleware,
    debug=settings.debug,
)

# Health check routes
app.include_router(health.router, tags=["Health"])

# API v1 routes
for router in (
    auth.router,
    jobs.router,
    applications.router,
    organizations.router,
    talents.router,
):
    app.include_router(router, prefix=settings.api_v1_prefix)


@app.get("/", include_in_schema=False)
async def root():
    return {"name": settings.app_name, "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
