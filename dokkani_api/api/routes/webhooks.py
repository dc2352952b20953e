"""Webhook API routes for Stripe."""

import logging

from fastapi import APIRouter, Request, Response, status

from dokkani_api.api.deps import WebhookServiceDep
from dokkani_api.api.middleware.cors import preflight_response
from dokkani_api.api.middleware.error_handler import SignatureError, UpstreamError
from dokkani_api.schemas.webhook import WebhookAck
from dokkani_api.services.webhook_service import OrderPersistenceError, WebhookOutcome

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.options("/webhook", include_in_schema=False)
async def stripe_webhook_preflight() -> Response:
    """Answer CORS pre-flight requests."""
    return preflight_response(["POST"])


@router.post(
    "/webhook",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    summary="Handle Stripe webhooks",
    description="Receives and processes Stripe webhook events. Requires a valid Stripe-Signature header.",
    responses={400: {"description": "Missing or invalid signature"}},
)
async def stripe_webhook(request: Request, service: WebhookServiceDep) -> WebhookAck:
    """Handle Stripe webhook events.

    The body is read as raw bytes and the signature checked over exactly
    those bytes. Only checkout.session.completed creates an order; every
    other verified event is acknowledged untouched. Once the signature
    verifies, the delivery is acknowledged even if the order could not be
    stored, unless WEBHOOK_FAIL_ON_PERSIST_ERROR is enabled.

    Args:
        request: FastAPI request object for reading raw body and headers.
        service: Webhook service.

    Returns:
        WebhookAck: {"received": true}.

    Raises:
        SignatureError: 400 if the signature is missing or invalid.
        UpstreamError: 500 if persistence failed and failures are configured to surface.
    """
    # Raw body: any re-serialization would break the signature
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    logger.debug("Received webhook: %d bytes, signature header present=%s", len(payload), bool(sig_header))

    try:
        event = service.verify_webhook_signature(payload, sig_header)
    except ValueError as e:
        logger.error("Webhook %s: %s", WebhookOutcome.REJECTED.value, str(e))
        raise SignatureError(f"Webhook Error: {e}") from e

    logger.info("Processing Stripe webhook event %s: %s", event.id, event.type)

    try:
        outcome = await service.handle_event(event)
    except OrderPersistenceError as e:
        raise UpstreamError(e.message) from e

    logger.info("Webhook event %s %s", event.id, outcome.value)

    return WebhookAck(received=True)
