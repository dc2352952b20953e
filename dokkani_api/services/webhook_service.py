"""Stripe webhook verification and order creation service."""

import json
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import stripe
from pydantic import ValidationError as PydanticValidationError

from dokkani_api.core.config import Settings, get_settings
from dokkani_api.core.order_store import OrderStore, OrderStoreError, get_order_store
from dokkani_api.core.stripe import get_stripe
from dokkani_api.models.order import OrderDocument, OrderLineItem, ShippingAddress
from dokkani_api.schemas.webhook import (
    CHECKOUT_SESSION_COMPLETED,
    CheckoutSessionObject,
    StripeContactDetails,
    StripeEvent,
)
from dokkani_api.services.checkout_metadata import decode_line_items
from dokkani_api.services.pricing import from_minor_units, parse_price

logger = logging.getLogger(__name__)


class WebhookOutcome(str, Enum):
    """Terminal state of a webhook delivery after verification."""

    REJECTED = "rejected"
    IGNORED = "ignored"
    PERSISTED = "persisted"
    PERSIST_FAILED = "persist_failed"
    DUPLICATE = "duplicate"


class OrderPersistenceError(Exception):
    """Raised when a paid order could not be stored and failures are configured to surface."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_shipping_address(contact: StripeContactDetails | None) -> ShippingAddress | None:
    """Flatten Stripe shipping or customer details into an order address."""
    if contact is None:
        return None

    address = contact.address
    return {
        "name": contact.name,
        "line1": address.line1 if address else None,
        "line2": address.line2 if address else None,
        "city": address.city if address else None,
        "state": address.state if address else None,
        "postalCode": address.postal_code if address else None,
        "country": address.country if address else None,
    }


def build_order_line_item(item: dict[str, Any]) -> OrderLineItem:
    """Turn one metadata line-item snapshot into a stored order line.

    The price is taken from numericPrice when present, the same amount checkout
    charged, and from the formatted price otherwise.
    """
    price = parse_price(item.get("numericPrice") or item.get("price"))
    return {
        "_key": uuid.uuid4().hex[:12],
        "productId": item.get("productId"),
        "productSlug": item.get("productSlug"),
        "title": item.get("title"),
        "image": item.get("image"),
        "quantity": item.get("quantity") or 1,
        "price": float(price),
    }


def build_order(session: CheckoutSessionObject) -> OrderDocument:
    """Build the paid order document for a completed checkout session.

    Args:
        session: The completed checkout session.

    Returns:
        OrderDocument: Order ready to be written.

    Raises:
        ValueError: If the line-item metadata cannot be decoded.
    """
    metadata = session.metadata
    line_items = decode_line_items(metadata)

    return {
        "_type": "order",
        "orderNumber": metadata.get("orderNumber"),
        "userId": metadata.get("userId"),
        "userEmail": metadata.get("userEmail"),
        "userName": metadata.get("userName"),
        "lineItems": [build_order_line_item(item) for item in line_items],
        "shippingAddress": build_shipping_address(session.shipping_contact),
        "status": "paid",
        "stripeSessionId": session.id,
        "stripePaymentIntentId": session.payment_intent,
        "total": float(from_minor_units(session.amount_total)),
        "currency": session.currency,
        "createdAt": utc_timestamp(),
    }


class WebhookService:
    """Service for verifying Stripe webhooks and persisting paid orders."""

    def __init__(
        self,
        stripe_client: Any | None = None,
        order_store: OrderStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize webhook service.

        Args:
            stripe_client: Optional Stripe module or fake for testing.
            order_store: Optional order store for testing.
            settings: Optional settings for testing.
        """
        self.stripe = stripe_client or get_stripe()
        self._order_store = order_store
        self.settings = settings or get_settings()

    @property
    def order_store(self) -> OrderStore:
        """Get order store."""
        if self._order_store is None:
            self._order_store = get_order_store()
        return self._order_store

    def verify_webhook_signature(self, payload: bytes, sig_header: str | None) -> StripeEvent:
        """Verify the Stripe signature over the raw payload and parse the event.

        The signature is checked against the exact bytes received; the body
        is parsed only after it verifies. Signatures older than
        Stripe's default tolerance (300 seconds) are rejected.

        Args:
            payload: Raw webhook payload bytes.
            sig_header: Stripe-Signature header value.

        Returns:
            StripeEvent: The verified event.

        Raises:
            ValueError: If the header is missing, the secret is not configured,
                the signature does not verify, or the payload is not an event.
        """
        if not sig_header:
            raise ValueError("Missing Stripe-Signature header")

        if not self.settings.stripe_webhook_secret:
            raise ValueError(
                "Stripe webhook secret is not configured. Please set STRIPE_WEBHOOK_SECRET environment variable."
            )

        try:
            body = payload.decode("utf-8")
            self.stripe.WebhookSignature.verify_header(
                body,
                sig_header,
                self.settings.stripe_webhook_secret,
                tolerance=self.stripe.Webhook.DEFAULT_TOLERANCE,
            )
        except UnicodeDecodeError as e:
            raise ValueError("Webhook payload is not valid UTF-8") from e
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise ValueError("Invalid webhook signature") from e

        try:
            return StripeEvent.model_validate(json.loads(body))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise ValueError("Webhook payload is not a Stripe event") from e

    async def handle_event(self, event: StripeEvent) -> WebhookOutcome:
        """Dispatch a verified event.

        Args:
            event: Verified Stripe event.

        Returns:
            WebhookOutcome: What happened to the event.

        Raises:
            OrderPersistenceError: If persistence failed and
                WEBHOOK_FAIL_ON_PERSIST_ERROR is enabled.
        """
        if event.type != CHECKOUT_SESSION_COMPLETED:
            logger.debug("Unhandled webhook event type: %s", event.type)
            return WebhookOutcome.IGNORED

        outcome, error = await self.handle_checkout_completed(event)
        if outcome == WebhookOutcome.PERSIST_FAILED and self.settings.webhook_fail_on_persist_error:
            raise OrderPersistenceError(error or "Order could not be stored")
        return outcome

    async def handle_checkout_completed(self, event: StripeEvent) -> tuple[WebhookOutcome, str | None]:
        """Create the paid order for a checkout.session.completed event.

        Failures are logged and reported in the returned outcome rather than
        raised, so the caller can still acknowledge the delivery.

        Args:
            event: Verified checkout.session.completed event.

        Returns:
            tuple: The outcome and, for failures, the error message.
        """
        try:
            session = CheckoutSessionObject.model_validate(event.data.object)
            order = build_order(session)
        except (PydanticValidationError, ValueError) as e:
            logger.error("Could not build order from event %s: %s", event.id, str(e))
            return WebhookOutcome.PERSIST_FAILED, str(e)

        try:
            if self.settings.webhook_dedupe_orders:
                existing = await self.order_store.find_order_by_session_id(session.id)
                if existing:
                    logger.info(
                        "Order %s already stored for session %s, skipping event %s",
                        existing.get("orderNumber"),
                        session.id,
                        event.id,
                    )
                    return WebhookOutcome.DUPLICATE, None

            result = await self.order_store.create_order(order)
        except OrderStoreError as e:
            logger.error(
                "Error creating order %s for session %s: %s",
                order["orderNumber"],
                session.id,
                e.message,
            )
            return WebhookOutcome.PERSIST_FAILED, e.message
        except Exception as e:
            logger.exception(
                "Unexpected error creating order %s for session %s",
                order["orderNumber"],
                session.id,
            )
            return WebhookOutcome.PERSIST_FAILED, str(e)

        logger.info("Order %s created: %s", order["orderNumber"], result.get("_id"))
        return WebhookOutcome.PERSISTED, None
