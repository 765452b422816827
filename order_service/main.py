"""Order Service - Main FastAPI Application.

Tracks orders through their lifecycle, emails customers on lifecycle
events and runs the daily discount campaign.
"""

from contextlib import asynccontextmanager
import logging
import sys
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import structlog

from order_service.catalog import HttpProductCatalog, IProductCatalog, StaticProductCatalog
from order_service.channels import build_channel
from order_service.config import Settings, settings
from order_service.database import Database
from order_service.dispatcher import Dispatcher
from order_service.domain.exceptions import (
    CatalogUnavailableError,
    NotFoundError,
    OrderServiceException,
    PersistenceError,
    ValidationError,
)
from order_service.repositories import (
    InMemoryOrderRepository,
    InMemorySubscriberRepository,
    PostgresOrderRepository,
    PostgresSubscriberRepository,
)
from order_service.routers import campaigns, orders, subscribers
from order_service.services import OrderLifecycleService, SubscriberService
from order_service.workers import DiscountCampaignWorker

logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.LOG_LEVEL)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def build_catalog(config: Settings) -> IProductCatalog:
    if config.CATALOG_SERVICE_URL:
        return HttpProductCatalog(config.CATALOG_SERVICE_URL)
    return StaticProductCatalog()


async def wire_services(app: FastAPI, config: Settings) -> Optional[Database]:
    """Build repositories, dispatcher, services and worker onto app.state."""
    db: Optional[Database] = None
    if config.DATABASE_URL:
        db = Database(config.DATABASE_URL)
        await db.connect()
        await db.init_schema()
        order_repo = PostgresOrderRepository(db)
        subscriber_repo = PostgresSubscriberRepository(db)
        logger.info("Database connected")
    else:
        order_repo = InMemoryOrderRepository()
        subscriber_repo = InMemorySubscriberRepository()
        logger.warning("DATABASE_URL not set, using in-memory repositories")

    channel = build_channel(config)
    dispatcher = Dispatcher(
        channel,
        delay_ms=config.DISPATCH_DELAY_MS,
        max_concurrency=config.DISPATCH_MAX_CONCURRENCY,
    )

    app.state.db = db
    app.state.lifecycle_service = OrderLifecycleService(order_repo, dispatcher)
    app.state.subscriber_service = SubscriberService(subscriber_repo)
    app.state.campaign_worker = DiscountCampaignWorker(
        subscriber_repo,
        build_catalog(config),
        dispatcher,
        send_hour=config.CAMPAIGN_SEND_HOUR,
        send_minute=config.CAMPAIGN_SEND_MINUTE,
        timezone=config.campaign_tz,
        website_url=config.WEBSITE_URL,
    )
    logger.info("Notification channel selected", channel=channel.get_channel_name())
    return db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for the application.
    """
    logger.info("Starting order service", service=settings.SERVICE_NAME)

    try:
        db = await wire_services(app, settings)
        if settings.CAMPAIGN_ENABLED:
            await app.state.campaign_worker.start()
    except Exception as e:
        logger.error("Failed to start service", error=str(e))
        sys.exit(1)

    yield

    logger.info("Shutting down order service")
    await app.state.campaign_worker.stop()

    if db:
        await db.disconnect()
        logger.info("Database disconnected")


app = FastAPI(
    title="Order Service",
    description="Order lifecycle tracking with transactional and promotional notifications",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)

app.include_router(orders.router)
app.include_router(subscribers.router)
app.include_router(campaigns.router)

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


def _error_response(status_code: int, exc: OrderServiceException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": exc.message, "details": exc.details},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(400, exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(404, exc)


@app.exception_handler(CatalogUnavailableError)
async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailableError):
    logger.error("Catalog unavailable", path=request.url.path, error=exc.message)
    return _error_response(503, exc)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Server error"},
    )


@app.exception_handler(OrderServiceException)
async def service_error_handler(request: Request, exc: OrderServiceException):
    logger.error("Unhandled service error", path=request.url.path, error=exc.message)
    return _error_response(500, exc)


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    worker = getattr(request.app.state, "campaign_worker", None)
    db = getattr(request.app.state, "db", None)
    scheduler = "running" if worker and worker.running else "stopped"

    if db is None:
        return {
            "status": "healthy",
            "service": settings.SERVICE_NAME,
            "database": "memory",
            "campaign_scheduler": scheduler,
        }

    try:
        await db.fetchval("SELECT 1")
        return {
            "status": "healthy",
            "service": settings.SERVICE_NAME,
            "database": "connected",
            "campaign_scheduler": scheduler,
        }
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return {
            "status": "unhealthy",
            "service": settings.SERVICE_NAME,
            "database": "disconnected",
            "campaign_scheduler": scheduler,
            "error": str(e),
        }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.SERVICE_NAME,
        "version": "1.0.0",
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "order_service.main:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
