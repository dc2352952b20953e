"""Checkout session business logic service."""

import logging
import secrets
import string
import time
from typing import Any

import stripe

from dokkani_api.core.config import Settings, get_settings
from dokkani_api.core.stripe import get_stripe
from dokkani_api.schemas.checkout import CartLineItem, CheckoutSessionCreate
from dokkani_api.services.checkout_metadata import build_session_metadata
from dokkani_api.services.pricing import parse_price, to_minor_units

logger = logging.getLogger(__name__)

ORDER_NUMBER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_SUFFIX_LENGTH = 5


def generate_order_number(prefix: str = "DK", now_ms: int | None = None) -> str:
    """Generate a human-readable order number.

    Format is PREFIX-<epoch milliseconds>-<5 uppercase alphanumerics>.
    Uniqueness is best-effort: two requests in the same millisecond collide
    only if they also draw the same suffix.

    Args:
        prefix: Order number prefix.
        now_ms: Timestamp override in milliseconds, for tests.

    Returns:
        str: The order number.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = "".join(
        secrets.choice(ORDER_NUMBER_SUFFIX_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LENGTH)
    )
    return f"{prefix}-{now_ms}-{suffix}"


class CheckoutService:
    """Service for creating Stripe Checkout Sessions from client carts."""

    def __init__(
        self,
        stripe_client: Any | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize checkout service.

        Args:
            stripe_client: Optional Stripe module or fake for testing.
            settings: Optional settings for testing.
        """
        self.stripe = stripe_client or get_stripe()
        self.settings = settings or get_settings()

    def build_line_item(self, item: CartLineItem) -> dict[str, Any]:
        """Build a Stripe price_data line item from a cart line.

        Args:
            item: Cart line from the client.

        Returns:
            dict: Stripe line item parameters.
        """
        unit_amount = to_minor_units(parse_price(item.unit_price))
        return {
            "price_data": {
                "currency": self.settings.checkout_currency,
                "product_data": {
                    "name": item.title,
                    "images": [item.image] if item.image else [],
                    "metadata": {
                        "productId": item.product_id or "",
                        "productSlug": item.product_slug or "",
                    },
                },
                "unit_amount": unit_amount,
            },
            "quantity": item.quantity,
        }

    def build_shipping_options(self) -> list[dict[str, Any]]:
        """Build the two fixed shipping tiers offered on every checkout."""
        currency = self.settings.checkout_currency
        return [
            {
                "shipping_rate_data": {
                    "type": "fixed_amount",
                    "fixed_amount": {"amount": 0, "currency": currency},
                    "display_name": "Standard shipping",
                    "delivery_estimate": {
                        "minimum": {"unit": "business_day", "value": 5},
                        "maximum": {"unit": "business_day", "value": 7},
                    },
                },
            },
            {
                "shipping_rate_data": {
                    "type": "fixed_amount",
                    "fixed_amount": {
                        "amount": self.settings.express_shipping_amount,
                        "currency": currency,
                    },
                    "display_name": "Express shipping",
                    "delivery_estimate": {
                        "minimum": {"unit": "business_day", "value": 1},
                        "maximum": {"unit": "business_day", "value": 3},
                    },
                },
            },
        ]

    async def create_checkout_session(self, data: CheckoutSessionCreate) -> dict[str, str]:
        """Create a Stripe Checkout Session for a cart.

        No order is stored here. The order number travels in the session
        metadata and the webhook persists the order once payment completes.

        Args:
            data: Validated checkout request.

        Returns:
            dict: Contains checkout_url, session_id, order_number.

        Raises:
            ValueError: If the request is incomplete or too large for Stripe metadata.
            stripe.StripeError: If the Stripe API call fails.
        """
        if not data.user_id or not data.line_items:
            raise ValueError("Missing required fields")

        if not self.settings.stripe_secret_key:
            raise stripe.AuthenticationError(
                "Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable."
            )

        order_number = generate_order_number(self.settings.order_number_prefix)

        metadata = build_session_metadata(
            order_number=order_number,
            user_id=data.user_id,
            user_email=data.user_email,
            user_name=data.user_name,
            line_items=[item.snapshot() for item in data.line_items],
        )

        checkout_params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [self.build_line_item(item) for item in data.line_items],
            "shipping_address_collection": {
                "allowed_countries": self.settings.allowed_countries_list,
            },
            "shipping_options": self.build_shipping_options(),
            "success_url": data.success_url or self.settings.checkout_success_url,
            "cancel_url": data.cancel_url or self.settings.checkout_cancel_url,
            "metadata": metadata,
        }
        if data.user_email:
            checkout_params["customer_email"] = data.user_email

        try:
            session = self.stripe.checkout.Session.create(**checkout_params)
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session for order %s: %s", order_number, str(e))
            raise

        logger.info(
            "Checkout session %s created for order %s (%d line items)",
            session.id,
            order_number,
            len(data.line_items),
        )

        return {
            "checkout_url": session.url,
            "session_id": session.id,
            "order_number": order_number,
        }
