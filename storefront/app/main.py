"""
Storefront delivery backend.

/delivery  public pincode, zone, fee, selection and quote routes
/admin     store settings and delivery zones (X-Admin-Token)
/health    database, Redis and zone document checks
/metrics   Prometheus
"""
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.app.api import admin, delivery
from storefront.app.api.admin import require_admin_token
from storefront.app.api.deps import get_session, get_zone_registry
from storefront.app.core.exceptions import ServiceError
from storefront.app.core.limiter import limiter
from storefront.app.core.logging import setup_logging, get_logger
from storefront.app.core.metrics import PrometheusMiddleware, get_metrics_response
from storefront.app.core.settings import get_settings
from storefront.app.services.cache import CacheService
from storefront.app.services.zone_registry import ZoneRegistry

VERSION = "1.0.0"

try:
    settings = get_settings()
except ValueError as e:
    print(f"Configuration error: {e}", file=sys.stderr)
    sys.exit(1)

setup_logging(log_level=settings.LOG_LEVEL, json_format=settings.is_production)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Delivery backend starting",
        version=VERSION,
        environment=settings.ENVIRONMENT,
        store_key=settings.STORE_KEY,
        fee_rounding_unit=str(settings.FEE_ROUNDING_UNIT),
    )
    yield
    await CacheService.close()
    logger.info("Delivery backend stopped")


app = FastAPI(title="Storefront Delivery Backend", version=VERSION, lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Service errors that escape a router keep their status code."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


origins = settings.allowed_origins_list
if not origins:
    # production without ALLOWED_ORIGINS is refused by get_settings()
    origins = ["*"]
    logger.warning("CORS: allowing all origins (development mode)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Session-Id", "X-Admin-Token"],
)
app.add_middleware(PrometheusMiddleware)

app.include_router(delivery.router, prefix="/delivery", tags=["delivery"])
app.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_token)],
)


@app.get("/")
async def root():
    return {"status": "ok"}


@app.get("/health")
async def health_check(
    session: AsyncSession = Depends(get_session),
    registry: ZoneRegistry = Depends(get_zone_registry),
):
    """
    Liveness of the three things a shopper's pincode check depends on:
    the database, Redis and a readable zone document.
    """
    checks = {"database": "ok", "redis": "ok", "zones": "ok"}

    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        checks["database"] = f"error: {e}"

    try:
        redis = await CacheService.get_redis()
        await redis.ping()
    except (RedisError, OSError) as e:
        logger.error("Redis health check failed", error=str(e))
        checks["redis"] = f"error: {e}"

    active_zones = None
    if checks["database"] == "ok":
        try:
            active_zones = len(await registry.load_active_zones())
        except ServiceError as e:
            checks["zones"] = f"error: {e.message}"
    else:
        checks["zones"] = "skipped"

    healthy = all(value == "ok" for value in checks.values())
    return {
        "status": "healthy" if healthy else "unhealthy",
        "version": VERSION,
        "active_zones": active_zones,
        "checks": checks,
    }


@app.get("/metrics")
async def metrics_endpoint(openmetrics: bool = False):
    return get_metrics_response(openmetrics=openmetrics)
