"""FastAPI application factory"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from receivables_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from receivables_gateway.api.v1 import boletos
from receivables_gateway.api.v1.schemas import ErrorResponse
from receivables_gateway.domain.exceptions import (
    IssuanceAlreadyExistsError,
    IssuanceConflictError,
    InvalidInstallmentError,
    InvalidStatusTransitionError,
    NotFoundError,
    UnsupportedProviderError,
)
from receivables_gateway.infrastructure.observability.logging import setup_logging
from receivables_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)

# Domain error -> HTTP status
ERROR_STATUS = {
    NotFoundError: 404,
    IssuanceAlreadyExistsError: 409,
    IssuanceConflictError: 409,
    InvalidStatusTransitionError: 409,
    InvalidInstallmentError: 422,
    UnsupportedProviderError: 400,
}


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content=ErrorResponse(status=status, message=message).model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    """Map the domain error taxonomy to HTTP responses"""

    def make_handler(status: int):
        async def handler(request: Request, exc: Exception) -> JSONResponse:
            logging.warning(
                f"{type(exc).__name__}: {exc}",
                extra={"request_id": getattr(request.state, "request_id", None), "status": status},
            )
            return _error(status, str(exc))

        return handler

    for exc_class, status in ERROR_STATUS.items():
        app.add_exception_handler(exc_class, make_handler(status))

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logging.error(
            f"Unexpected error: {exc}",
            extra={"request_id": getattr(request.state, "request_id", None)},
            exc_info=exc,
        )
        return _error(500, "Internal server error")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Receivables Gateway",
        description="Boleto issuance and overdue accrual service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(boletos.router, prefix="/v1", tags=["boletos"])

    return app


app = create_app()
