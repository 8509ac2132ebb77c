"""
FastAPI application for the warehouse API.

Run with:
  uvicorn wms.api.main:app
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from wms.api.errors import register_exception_handlers
from wms.api.routes.catalog import router as catalog_router
from wms.api.routes.dashboard import router as dashboard_router
from wms.api.routes.inventory import router as inventory_router
from wms.api.routes.locations import router as locations_router
from wms.api.routes.orders import router as orders_router
from wms.api.routes.partners import router as partners_router
from wms.api.routes.picking import router as picking_router
from wms.api.routes.reports import router as reports_router
from wms.core.logging import configure_logging, correlation_scope
from wms.core.settings import get_app_settings
from wms.db.run_migrations import upgrade_to_head
from wms.db.seed import seed_all
from wms.db.session import dispose_engine
from wms.schemas.common import HealthResponse

settings = get_app_settings()

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness check."},
    {"name": "Catalog", "description": "Products and categories."},
    {"name": "Locations", "description": "Warehouse locations and capacity."},
    {"name": "Inventory", "description": "Stock receipt, adjustment, relocation and FIFO allocation."},
    {"name": "Orders", "description": "Inbound and outbound orders, put-away and shipment tracking."},
    {"name": "Picking", "description": "Pick lists for outbound orders."},
    {"name": "Partners", "description": "Suppliers and customers: credit limits, pricing rules and communication logs."},
    {"name": "Dashboard", "description": "Dashboard metrics and customer analytics."},
    {"name": "Reports", "description": "Exportable reports (CSV/Excel/PDF)."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# Browsers reject credentials with a wildcard origin
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)
register_exception_handlers(app)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Bind a correlation id (from X-Correlation-ID / X-Request-ID, or a new one)
    for the request and echo it back in the X-Correlation-ID response header.
    """
    requested = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID")
    with correlation_scope(requested) as corr:
        request.state.correlation_id = corr
        logger.info("Incoming request %s %s", request.method, request.url.path)
        response = await call_next(request)

    response.headers["X-Correlation-ID"] = corr
    return response


@app.on_event("startup")
async def on_startup() -> None:
    """Apply migrations and, when AUTO_SEED is set, load the sample data."""
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            # env.py drives its own event loop, so run it off the server loop
            await asyncio.to_thread(upgrade_to_head)
            logger.info("Migrations completed.")
        except Exception as exc:
            # Keep serving; requests fail until the database is reachable.
            logger.exception("Migration step failed: %s", exc)

    if settings.AUTO_SEED:
        try:
            await seed_all()
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await dispose_engine()


api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get("/health", response_model=HealthResponse, summary="Health Check", tags=["Health"])
def health_check() -> HealthResponse:
    """Liveness check; does not touch the database."""
    return HealthResponse(status="ok", version=settings.APP_VERSION, environment=settings.ENVIRONMENT)


for router in (
    catalog_router,
    locations_router,
    inventory_router,
    orders_router,
    picking_router,
    partners_router,
    dashboard_router,
    reports_router,
):
    api_v1.include_router(router)

app.include_router(api_v1)
