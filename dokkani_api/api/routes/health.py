"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Response, status

from dokkani_api.api.middleware.latency_logging import get_latency_stats
from dokkani_api.core.order_store import check_order_store_connection
from dokkani_api.core.stripe import check_stripe_configuration
from dokkani_api.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status.

    This endpoint should always return 200 if the service is running.
    It does not check external dependencies.

    Returns:
        HealthResponse: Current health status with timestamp.
    """
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check if all dependencies are available. Used for readiness probes.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Check readiness of all dependencies.

    Verifies that the service can handle requests by checking:
    - Stripe keys are configured
    - The order store answers a query

    Returns 503 if any dependency is unhealthy.

    Args:
        response: FastAPI response object for setting status code.

    Returns:
        ReadinessResponse: Status of all dependency checks.
    """
    checks: list[CheckResult] = []

    stripe_result = await check_stripe_configuration()
    checks.append(
        CheckResult(
            name="stripe",
            healthy=stripe_result["healthy"],
            error=stripe_result.get("error"),
        )
    )

    start_time = time.perf_counter()
    store_result = await check_order_store_connection()
    latency_ms = (time.perf_counter() - start_time) * 1000

    checks.append(
        CheckResult(
            name="order_store",
            healthy=store_result["healthy"],
            latency_ms=round(latency_ms, 2),
            error=store_result.get("error"),
        )
    )

    all_healthy = all(check.healthy for check in checks)
    overall_status = HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY

    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(status=overall_status, checks=checks)


@router.get(
    "/health/latency",
    summary="Request latency statistics",
    description="Aggregated latency of recent API requests, overall and per path.",
)
async def latency_stats() -> dict:
    """Return recent request latency statistics.

    Returns:
        dict: Overall percentiles and per-path averages.
    """
    stats = get_latency_stats()
    return {
        "overall": stats.get_stats(),
        "by_path": stats.get_stats_by_path(),
    }
