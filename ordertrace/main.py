from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from typing import Optional
import logging
from ordertrace.api import order_routes
from ordertrace.api.dependencies import request_logger
from ordertrace.config import Settings
from ordertrace.database import LogStore
from ordertrace.logger import setup_logger_router
from ordertrace.middleware import CorrelationIdMiddleware, LoggingMiddleware
from ordertrace.orders import OrderService
from ordertrace.records import LogLevel
from ordertrace.router import LoggerRouter, install_stdlib_bridge, remove_stdlib_bridge

logger = logging.getLogger(__name__)

CATEGORY = "ordertrace.main"


def create_app(
    settings: Optional[Settings] = None,
    logger_router: Optional[LoggerRouter] = None,
) -> FastAPI:
    """
    Build the API with its logging pipeline

    Args:
        settings: Application settings (read from the environment when omitted)
        logger_router: Pre-built router; when given, no sinks are built from settings

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings()

    log_store = None
    if logger_router is None:
        if settings.database_min_level != LogLevel.NONE:
            log_store = LogStore(settings.database_url)
        logger_router = setup_logger_router(settings, log_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if log_store is not None:
            try:
                log_store.initialize()
            except Exception:
                # Database writes will fail and be dropped one by one
                logger.error("Log database unavailable at startup", exc_info=True)

        bridge = install_stdlib_bridge(logger_router, settings.capture_loggers)
        logger_router.get_logger(CATEGORY).info("Order Management API started")
        try:
            yield
        finally:
            logger_router.get_logger(CATEGORY).info("Order Management API stopping")
            remove_stdlib_bridge(bridge, settings.capture_loggers)
            logger_router.close()
            if log_store is not None:
                log_store.close()

    app = FastAPI(
        title="Order Management API",
        description="Order management with correlation-aware multi-sink logging",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.logger_router = logger_router
    app.state.log_store = log_store
    app.state.order_service = OrderService(logger_router)

    # Last added runs first: the correlation id must exist before request logging
    app.add_middleware(LoggingMiddleware, logger_router=logger_router)
    app.add_middleware(CorrelationIdMiddleware, header_name=settings.correlation_header)

    app.include_router(order_routes.router)

    root_logger = request_logger(CATEGORY)

    @app.get("/")
    async def root(request: Request):
        root_logger(request).info("Root endpoint accessed")
        return {
            "message": "Welcome to the Order Management API",
            "version": app.version,
            "endpoints": {
                "health": "/health",
                "create_order": "/api/orders",
                "get_order": "/api/orders/{order_id}",
                "customer_orders": "/api/orders/customer/{customer_id}",
            },
        }

    @app.get("/health")
    async def health_check(request: Request):
        root_logger(request).debug("Health check endpoint called")
        return {
            "status": "healthy",
            "service": "Order Management API",
        }

    return app


app = create_app()
