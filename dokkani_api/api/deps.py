"""FastAPI dependency injection functions.

Routes receive their services through these providers; tests replace them
with app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends

from dokkani_api.services.checkout_service import CheckoutService
from dokkani_api.services.order_service import OrderService
from dokkani_api.services.webhook_service import WebhookService


def get_checkout_service() -> CheckoutService:
    """Provide the checkout session service."""
    return CheckoutService()


def get_webhook_service() -> WebhookService:
    """Provide the Stripe webhook service."""
    return WebhookService()


def get_order_service() -> OrderService:
    """Provide the order query service."""
    return OrderService()


# Type aliases for cleaner dependency injection
CheckoutServiceDep = Annotated[CheckoutService, Depends(get_checkout_service)]
WebhookServiceDep = Annotated[WebhookService, Depends(get_webhook_service)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
