"""Order API routes."""

from typing import Annotated

from fastapi import APIRouter, Query, Response

from dokkani_api.api.deps import OrderServiceDep
from dokkani_api.api.middleware.cors import preflight_response
from dokkani_api.api.middleware.error_handler import UpstreamError, ValidationError
from dokkani_api.core.order_store import OrderStoreError
from dokkani_api.schemas.order import OrderSummary

router = APIRouter(tags=["orders"])


@router.options("/orders", include_in_schema=False)
async def list_orders_preflight() -> Response:
    """Answer CORS pre-flight requests."""
    return preflight_response(["GET"])


@router.get(
    "/orders",
    response_model=list[OrderSummary],
    summary="List a user's orders",
    description="Returns every order stored for the user, newest first.",
    responses={
        400: {"description": "userId is missing"},
        500: {"description": "Order store query failed"},
    },
)
async def list_orders(
    service: OrderServiceDep,
    user_id: Annotated[str | None, Query(alias="userId", description="User ID used at checkout")] = None,
) -> list[OrderSummary]:
    """List all orders for a user.

    Args:
        service: Order service.
        user_id: The userId query parameter.

    Returns:
        list[OrderSummary]: Orders, newest first; empty when there are none.

    Raises:
        ValidationError: 400 if userId is missing.
        UpstreamError: 500 if the order store query fails.
    """
    if not user_id:
        raise ValidationError("userId is required")

    try:
        orders = await service.list_orders_for_user(user_id)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    except OrderStoreError as e:
        raise UpstreamError(e.message) from e

    return [OrderSummary.model_validate(order) for order in orders]
