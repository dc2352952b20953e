"""Pytest configuration and fixtures."""

import hashlib
import hmac
import os
import time
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")
os.environ.setdefault("SANITY_PROJECT_ID", "testproj")
os.environ.setdefault("SANITY_DATASET", "production")
os.environ.setdefault("SANITY_TOKEN", "test-sanity-token")
os.environ.setdefault("ORDER_STORE_BACKEND", "sanity")


class FakeOrderStore:
    """In-memory async order store standing in for Sanity."""

    def __init__(self, orders: list[dict[str, Any]] | None = None) -> None:
        self.orders: list[dict[str, Any]] = list(orders or [])
        self.fail_with: Exception | None = None

    async def create_order(self, order: dict[str, Any]) -> dict[str, Any]:
        if self.fail_with:
            raise self.fail_with
        stored = {**order, "_id": f"order-{len(self.orders) + 1}"}
        self.orders.append(stored)
        return stored

    async def list_orders_for_user(self, user_id: str) -> list[dict[str, Any]]:
        if self.fail_with:
            raise self.fail_with
        matching = [order for order in self.orders if order.get("userId") == user_id]
        return sorted(matching, key=lambda order: order.get("createdAt") or "", reverse=True)

    async def find_order_by_session_id(self, session_id: str) -> dict[str, Any] | None:
        if self.fail_with:
            raise self.fail_with
        return next(
            (order for order in self.orders if order.get("stripeSessionId") == session_id),
            None,
        )

    async def check_connection(self) -> None:
        if self.fail_with:
            raise self.fail_with


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from dokkani_api.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def order_store() -> FakeOrderStore:
    """Provide an empty in-memory order store."""
    return FakeOrderStore()


@pytest.fixture
def mock_stripe() -> MagicMock:
    """Provide a mocked Stripe module whose checkout sessions succeed."""
    mock = MagicMock()
    session = MagicMock()
    session.id = "cs_test_123"
    session.url = "https://checkout.stripe.com/c/pay/cs_test_123"
    mock.checkout.Session.create.return_value = session
    return mock


@pytest.fixture
def sign_payload(test_settings: Any) -> Callable[..., str]:
    """Provide a function that builds a Stripe-Signature header for a payload.

    The signature follows Stripe's scheme: HMAC-SHA256 of "<timestamp>.<payload>"
    keyed with the webhook signing secret.
    """

    def _sign(payload: bytes, secret: str | None = None, timestamp: int | None = None) -> str:
        timestamp = timestamp or int(time.time())
        signed_payload = f"{timestamp}.".encode("utf-8") + payload
        signature = hmac.new(
            (secret or test_settings.stripe_webhook_secret).encode("utf-8"),
            signed_payload,
            hashlib.sha256,
        ).hexdigest()
        return f"t={timestamp},v1={signature}"

    return _sign


@pytest.fixture
def client(
    test_settings: Any,
    mock_stripe: MagicMock,
    order_store: FakeOrderStore,
) -> Generator[TestClient, None, None]:
    """Provide a test client with Stripe mocked for checkout and the order store faked.

    Webhook signatures are verified with the real Stripe SDK.

    Yields:
        TestClient: FastAPI test client.
    """
    import stripe

    from dokkani_api.api.deps import get_checkout_service, get_order_service, get_webhook_service
    from dokkani_api.main import app
    from dokkani_api.services.checkout_service import CheckoutService
    from dokkani_api.services.order_service import OrderService
    from dokkani_api.services.webhook_service import WebhookService

    app.dependency_overrides[get_checkout_service] = lambda: CheckoutService(
        stripe_client=mock_stripe, settings=test_settings
    )
    app.dependency_overrides[get_webhook_service] = lambda: WebhookService(
        stripe_client=stripe, order_store=order_store, settings=test_settings
    )
    app.dependency_overrides[get_order_service] = lambda: OrderService(order_store=order_store)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
