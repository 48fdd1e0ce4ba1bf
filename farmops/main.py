"""FastAPI application entrypoint: lifespan, middleware, health checks, routers."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from farmops.config import get_settings
from farmops.database import engine
from farmops.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from farmops.middleware.rate_limit import RateLimitMiddleware
from farmops.routes import activity_logs, auth, crop_cycles, dashboard, land_parcels, stages
from farmops.routes.reference import reference_routers

logger = structlog.get_logger("farmops")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: logging, database ping, optional Redis. Shutdown: release both."""
    configure_structured_logging()
    settings = get_settings()
    logger.info("farmops_starting", log_level=settings.log_level, version=VERSION)

    redis: Redis | None = None
    app.state.redis = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        if settings.redis_enabled:
            redis = Redis.from_url(settings.redis_url, decode_responses=True)
            await redis.ping()
            app.state.redis = redis
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("farmops_shutting_down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


async def _check_database() -> dict[str, Any]:
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception as exc:
        return {"ok": False, "message": str(exc)}
    return {"ok": True, "message": "ok"}


async def _check_redis(app: FastAPI) -> dict[str, Any]:
    redis = getattr(app.state, "redis", None)
    if redis is None:
        return {"ok": True, "message": "disabled"}
    try:
        await redis.ping()
    except Exception as exc:
        return {"ok": False, "message": str(exc)}
    return {"ok": True, "message": "ok"}


async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    return {
        "database": await _check_database(),
        "redis": await _check_redis(app),
    }


app = FastAPI(
    title="FarmOps API",
    description=(
        "Farm operations API: land parcels, crop cycles with their stage "
        "progression, and an append-only log of field activities."
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ── Health checks ───────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness: the API process is up."""
    return {"status": "ok", "service": "farmops", "version": VERSION}


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness: database and (when enabled) Redis respond."""
    checks = await _run_readiness_checks(app)
    healthy = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(auth.router, prefix="/api/v1")
app.include_router(crop_cycles.router, prefix="/api/v1")
app.include_router(stages.router, prefix="/api/v1")
app.include_router(activity_logs.router, prefix="/api/v1")
app.include_router(land_parcels.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
for reference_router in reference_routers:
    app.include_router(reference_router, prefix="/api/v1")
