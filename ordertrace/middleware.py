from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse
import time
from ordertrace.correlation import (
    CORRELATION_ID_HEADER,
    CorrelationContext,
    correlation_scope,
    generate_correlation_id,
    generate_trace_id,
    is_valid_correlation_id,
    trace_id_from_traceparent,
)
from ordertrace.router import LoggerRouter

CATEGORY = "ordertrace.middleware"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to every request and echo it in the response"""

    def __init__(self, app, header_name: str = CORRELATION_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    def build_context(self, request: Request) -> CorrelationContext:
        """Reuse the caller's correlation ID when it is well-formed, else generate one"""
        incoming = request.headers.get(self.header_name)
        if incoming is not None:
            incoming = incoming.strip()
        correlation_id = incoming if is_valid_correlation_id(incoming) else generate_correlation_id()

        trace_id = trace_id_from_traceparent(request.headers.get("traceparent")) or generate_trace_id()
        return CorrelationContext(correlation_id=correlation_id, trace_id=trace_id)

    async def dispatch(self, request: Request, call_next):
        context = self.build_context(request)

        # Accessible in route handlers for explicit passing
        request.state.correlation = context

        with correlation_scope(context):
            try:
                response = await call_next(request)
            except Exception:
                # Logged by LoggingMiddleware; the client still gets its correlation ID
                response = PlainTextResponse("Internal Server Error", status_code=500)

        response.headers[self.header_name] = context.correlation_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses"""

    def __init__(self, app, logger_router: LoggerRouter):
        super().__init__(app)
        self.logger = logger_router.get_logger(CATEGORY)

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        self.logger.info(lambda: f"HTTP {method} {path} started")

        # Process request and catch any errors
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.perf_counter() - start_time
            self.logger.error(
                lambda: f"HTTP {method} {path} failed after {process_time:.3f}s: {type(e).__name__}",
                error=e,
            )
            # Re-raise the exception to be handled by FastAPI
            raise

        process_time = time.perf_counter() - start_time
        status_code = response.status_code

        self.logger.info(
            lambda: f"HTTP {method} {path} completed with {status_code} in {process_time:.3f}s"
        )

        response.headers["X-Process-Time"] = f"{process_time:.3f}s"
        return response
