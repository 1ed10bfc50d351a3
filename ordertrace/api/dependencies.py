"""
FastAPI dependencies resolving the objects built at startup
"""

from fastapi import Request
from ordertrace.orders import OrderService
from ordertrace.router import CategoryLogger, LoggerRouter


def get_logger_router(request: Request) -> LoggerRouter:
    return request.app.state.logger_router


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def request_logger(category: str):
    """
    Dependency factory for a logger bound to the current request's correlation context

    Usage:
        logger: CategoryLogger = Depends(request_logger("ordertrace.api.orders"))
    """

    def dependency(request: Request) -> CategoryLogger:
        context = getattr(request.state, "correlation", None)
        return get_logger_router(request).get_logger(category, context=context)

    return dependency
