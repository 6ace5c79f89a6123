"""FastAPI application for the TagCalc variant service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from tagcalc.config import AppConfig, get_config
from tagcalc.core.errors import TagCalcError, ValidationError
from tagcalc.core.logging import configure_logging
from tagcalc.web.dependencies import close_repository
from tagcalc.web.models import ErrorResponse
from tagcalc.web.routes import health, variants

logger = structlog.get_logger()


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


async def tagcalc_error_handler(request: Request, exc: TagCalcError) -> JSONResponse:
    """Render any TagCalcError as the flat error envelope."""
    status_code = 400 if isinstance(exc, ValidationError) else 500
    if status_code == 400:
        logger.info("request_rejected", error=str(exc))
    else:
        logger.error("request_errored", error=str(exc), kind=exc.kind)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=str(exc), kind=exc.kind).model_dump(),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected still answers with the error envelope."""
    logger.error("request_crashed", error=str(exc), path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal Server Error", kind="internal_error").model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TagCalcError, tagcalc_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("startup", allowed_origin=app.state.config.web.allowed_origin)
    yield
    await close_repository(app.state)
    logger.info("shutdown")


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build the API.

    Args:
        config: Application configuration; loaded from the environment when None

    Raises:
        KeyError: If required environment variables are missing
    """
    config = config or get_config()
    configure_logging(level=config.log_level, json_logs=config.json_logs)

    app = FastAPI(
        title="TagCalc",
        description="Custom tag pricing and Shopify variant service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.repository = None

    app.add_middleware(RequestLoggingMiddleware)

    # Only the storefront may call the API from a browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.web.allowed_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Prometheus Metrics
    Instrumentator().instrument(app).expose(app)

    register_exception_handlers(app)

    # Include Routers
    app.include_router(health.router)
    app.include_router(variants.router)

    return app
