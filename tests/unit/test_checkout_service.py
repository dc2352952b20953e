"""Unit tests for CheckoutService."""

import re
from typing import Any
from unittest.mock import MagicMock

import pytest
import stripe

from dokkani_api.schemas.checkout import CartLineItem, CheckoutSessionCreate
from dokkani_api.services.checkout_metadata import decode_line_items
from dokkani_api.services.checkout_service import CheckoutService, generate_order_number

ORDER_NUMBER_PATTERN = re.compile(r"^DK-\d+-[A-Z0-9]{5}$")


@pytest.fixture
def checkout_service(mock_stripe: MagicMock, test_settings: Any) -> CheckoutService:
    """Create CheckoutService with mocked Stripe."""
    return CheckoutService(stripe_client=mock_stripe, settings=test_settings)


@pytest.fixture
def checkout_request() -> CheckoutSessionCreate:
    """Create a sample checkout request as the mobile client sends it."""
    return CheckoutSessionCreate.model_validate(
        {
            "userId": "u1",
            "userEmail": "mariam@example.com",
            "userName": "Mariam",
            "total": "$37.50",
            "lineItems": [
                {
                    "productId": "prod-oud",
                    "productSlug": "royal-oud",
                    "title": "Royal Oud",
                    "image": "https://cdn.example.com/oud.png",
                    "price": "$12.50",
                    "quantity": 2,
                },
                {
                    "productId": "prod-musk",
                    "productSlug": "white-musk",
                    "title": "White Musk",
                    "price": 12.5,
                },
            ],
        }
    )


def _create_kwargs(mock_stripe: MagicMock) -> dict[str, Any]:
    return mock_stripe.checkout.Session.create.call_args.kwargs


class TestGenerateOrderNumber:
    """Tests for generate_order_number."""

    def test_matches_format(self) -> None:
        """Test that order numbers are PREFIX-<digits>-<5 uppercase alphanumerics>."""
        assert ORDER_NUMBER_PATTERN.match(generate_order_number())

    def test_uses_prefix_and_timestamp(self) -> None:
        """Test that prefix and timestamp are embedded."""
        order_number = generate_order_number(prefix="QA", now_ms=1700000000000)

        assert order_number.startswith("QA-1700000000000-")
        assert len(order_number.rsplit("-", 1)[1]) == 5


class TestCreateCheckoutSession:
    """Tests for create_checkout_session method."""

    @pytest.mark.asyncio
    async def test_returns_checkout_url_and_order_number(
        self,
        checkout_service: CheckoutService,
        checkout_request: CheckoutSessionCreate,
    ) -> None:
        """Test that the session URL, ID and generated order number are returned."""
        result = await checkout_service.create_checkout_session(checkout_request)

        assert result["checkout_url"] == "https://checkout.stripe.com/c/pay/cs_test_123"
        assert result["session_id"] == "cs_test_123"
        assert ORDER_NUMBER_PATTERN.match(result["order_number"])

    @pytest.mark.asyncio
    async def test_builds_line_items_in_minor_units(
        self,
        checkout_service: CheckoutService,
        checkout_request: CheckoutSessionCreate,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that string and numeric prices both become 1250 cents."""
        await checkout_service.create_checkout_session(checkout_request)

        line_items = _create_kwargs(mock_stripe)["line_items"]
        assert [item["price_data"]["unit_amount"] for item in line_items] == [1250, 1250]
        assert [item["quantity"] for item in line_items] == [2, 1]

        first = line_items[0]["price_data"]
        assert first["currency"] == "usd"
        assert first["product_data"]["name"] == "Royal Oud"
        assert first["product_data"]["images"] == ["https://cdn.example.com/oud.png"]
        assert first["product_data"]["metadata"] == {
            "productId": "prod-oud",
            "productSlug": "royal-oud",
        }
        assert line_items[1]["price_data"]["product_data"]["images"] == []

    @pytest.mark.asyncio
    async def test_prefers_numeric_price(
        self,
        checkout_service: CheckoutService,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that numericPrice wins over the formatted price."""
        data = CheckoutSessionCreate(
            user_id="u1",
            line_items=[CartLineItem(title="Oud", price="QAR 99", numeric_price=27.25)],
        )

        await checkout_service.create_checkout_session(data)

        assert _create_kwargs(mock_stripe)["line_items"][0]["price_data"]["unit_amount"] == 2725

    @pytest.mark.asyncio
    async def test_unparseable_price_is_zero(
        self,
        checkout_service: CheckoutService,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that an unparseable price becomes 0 rather than an error."""
        data = CheckoutSessionCreate(user_id="u1", line_items=[CartLineItem(title="Oud", price="abc")])

        await checkout_service.create_checkout_session(data)

        assert _create_kwargs(mock_stripe)["line_items"][0]["price_data"]["unit_amount"] == 0

    @pytest.mark.asyncio
    async def test_configures_payment_and_shipping(
        self,
        checkout_service: CheckoutService,
        checkout_request: CheckoutSessionCreate,
        mock_stripe: MagicMock,
    ) -> None:
        """Test payment mode, customer email, countries and both shipping tiers."""
        await checkout_service.create_checkout_session(checkout_request)

        kwargs = _create_kwargs(mock_stripe)
        assert kwargs["mode"] == "payment"
        assert kwargs["payment_method_types"] == ["card"]
        assert kwargs["customer_email"] == "mariam@example.com"
        assert kwargs["shipping_address_collection"]["allowed_countries"] == [
            "US", "QA", "AE", "SA", "KW", "BH", "OM",
        ]

        rates = [option["shipping_rate_data"] for option in kwargs["shipping_options"]]
        assert [rate["fixed_amount"]["amount"] for rate in rates] == [0, 1500]
        assert [rate["display_name"] for rate in rates] == ["Standard shipping", "Express shipping"]

    @pytest.mark.asyncio
    async def test_uses_default_redirect_urls(
        self,
        checkout_service: CheckoutService,
        checkout_request: CheckoutSessionCreate,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that the app deep links are used when the client sends no URLs."""
        await checkout_service.create_checkout_session(checkout_request)

        kwargs = _create_kwargs(mock_stripe)
        assert kwargs["success_url"] == "dokkani://checkout/success?session_id={CHECKOUT_SESSION_ID}"
        assert kwargs["cancel_url"] == "dokkani://checkout/cancel"

    @pytest.mark.asyncio
    async def test_uses_client_redirect_urls(
        self,
        checkout_service: CheckoutService,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that client-supplied redirect URLs are passed through."""
        data = CheckoutSessionCreate(
            user_id="u1",
            line_items=[CartLineItem(title="Oud", price=10)],
            success_url="https://shop.example.com/done",
            cancel_url="https://shop.example.com/cart",
        )

        await checkout_service.create_checkout_session(data)

        kwargs = _create_kwargs(mock_stripe)
        assert kwargs["success_url"] == "https://shop.example.com/done"
        assert kwargs["cancel_url"] == "https://shop.example.com/cart"
        assert "customer_email" not in kwargs

    @pytest.mark.asyncio
    async def test_metadata_carries_order_number_and_original_items(
        self,
        checkout_service: CheckoutService,
        checkout_request: CheckoutSessionCreate,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that metadata holds the order number, identity and unnormalized items."""
        result = await checkout_service.create_checkout_session(checkout_request)

        metadata = _create_kwargs(mock_stripe)["metadata"]
        assert metadata["orderNumber"] == result["order_number"]
        assert metadata["userId"] == "u1"
        assert metadata["userEmail"] == "mariam@example.com"
        assert metadata["userName"] == "Mariam"
        assert all(isinstance(value, str) for value in metadata.values())

        items = decode_line_items(metadata)
        assert items[0]["price"] == "$12.50"
        assert items[0]["productSlug"] == "royal-oud"
        assert items[1]["price"] == 12.5

    @pytest.mark.asyncio
    async def test_raises_error_for_missing_user_id(
        self,
        checkout_service: CheckoutService,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that ValueError is raised and Stripe is not called without userId."""
        data = CheckoutSessionCreate.model_construct(
            user_id="",
            line_items=[CartLineItem(title="Oud", price=10)],
        )

        with pytest.raises(ValueError, match="Missing required fields"):
            await checkout_service.create_checkout_session(data)

        mock_stripe.checkout.Session.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_raises_error_for_empty_cart(
        self,
        checkout_service: CheckoutService,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that ValueError is raised and Stripe is not called for an empty cart."""
        data = CheckoutSessionCreate.model_construct(user_id="u1", line_items=[])

        with pytest.raises(ValueError, match="Missing required fields"):
            await checkout_service.create_checkout_session(data)

        mock_stripe.checkout.Session.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_propagates_stripe_errors(
        self,
        checkout_service: CheckoutService,
        checkout_request: CheckoutSessionCreate,
        mock_stripe: MagicMock,
    ) -> None:
        """Test that Stripe API errors are raised to the caller."""
        mock_stripe.checkout.Session.create.side_effect = stripe.InvalidRequestError(
            "Invalid currency", param="currency"
        )

        with pytest.raises(stripe.StripeError, match="Invalid currency"):
            await checkout_service.create_checkout_session(checkout_request)

    @pytest.mark.asyncio
    async def test_raises_when_stripe_not_configured(
        self,
        mock_stripe: MagicMock,
        test_settings: Any,
        checkout_request: CheckoutSessionCreate,
    ) -> None:
        """Test that a missing secret key fails before calling Stripe."""
        service = CheckoutService(
            stripe_client=mock_stripe,
            settings=test_settings.model_copy(update={"stripe_secret_key": ""}),
        )

        with pytest.raises(stripe.StripeError, match="not configured"):
            await service.create_checkout_session(checkout_request)

        mock_stripe.checkout.Session.create.assert_not_called()
