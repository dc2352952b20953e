"""Checkout API routes for Stripe integration."""

import stripe
from fastapi import APIRouter, Response, status

from dokkani_api.api.deps import CheckoutServiceDep
from dokkani_api.api.middleware.cors import preflight_response
from dokkani_api.api.middleware.error_handler import UpstreamError, ValidationError
from dokkani_api.schemas.checkout import CheckoutSessionCreate, CheckoutSessionResponse

router = APIRouter(tags=["checkout"])


@router.options("/create-checkout-session", include_in_schema=False)
async def create_checkout_session_preflight() -> Response:
    """Answer CORS pre-flight requests."""
    return preflight_response(["POST"])


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Create Stripe Checkout Session",
    description="Creates a Stripe Checkout Session for the client's cart and returns the hosted checkout URL.",
    responses={
        400: {"description": "Missing userId or empty cart"},
        500: {"description": "Stripe rejected the session"},
    },
)
async def create_checkout_session(
    data: CheckoutSessionCreate,
    service: CheckoutServiceDep,
) -> CheckoutSessionResponse:
    """Create a Stripe Checkout Session for a cart.

    The client should redirect to the returned checkout_url. The order
    itself is stored by the webhook once Stripe reports the payment.

    Args:
        data: Checkout request with user identity and cart lines.
        service: Checkout service.

    Returns:
        CheckoutSessionResponse: Contains checkoutUrl, sessionId and orderNumber.

    Raises:
        ValidationError: 400 if required fields are missing or the cart is too large.
        UpstreamError: 500 if the Stripe call fails.
    """
    try:
        result = await service.create_checkout_session(data)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    except stripe.StripeError as e:
        raise UpstreamError(e.user_message or str(e)) from e

    return CheckoutSessionResponse(**result)
