"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from dokkani_api.api.middleware.error_handler import (
    error_handler_middleware,
    method_not_allowed_exception_handler,
    request_validation_exception_handler,
)
from dokkani_api.api.middleware.latency_logging import latency_logging_middleware
from dokkani_api.api.middleware.request_size import request_size_limit_middleware
from dokkani_api.api.routes import checkout, health, orders, webhooks
from dokkani_api.core.config import get_settings
from dokkani_api.core.sanity import close_sanity_client
from dokkani_api.core.stripe import configure_stripe

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    configure_stripe()
    logger.info("Stripe SDK configured")
    logger.info("Orders are stored in %s", settings.order_store_backend)

    yield

    await close_sanity_client()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Dokkani Checkout API",
        description="Stripe checkout, webhook and order endpoints for the Dokkani store",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_exception_handler)

    # Add error handler middleware (catches errors raised by routes)
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    # Add latency logging middleware (tracks request timing)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    # Add request size limit middleware (rejects oversized requests early)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    # Configure CORS (outermost so error responses carry CORS headers too)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount health routes at root level (no prefix)
    app.include_router(health.router)

    # Public API, at the paths the mobile client calls
    api_router = APIRouter(prefix="/api")
    api_router.include_router(checkout.router)
    api_router.include_router(orders.router)
    api_router.include_router(webhooks.router)

    app.include_router(api_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "dokkani_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
