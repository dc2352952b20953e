"""Typed views of the Stripe webhook payloads this service consumes.

Only the fields the handlers read are declared; everything else in
Stripe's objects is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class StripeAddress(BaseModel):
    """Postal address as Stripe reports it."""

    model_config = ConfigDict(extra="ignore")

    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class StripeContactDetails(BaseModel):
    """Name and address pair used by shipping_details and customer_details."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    email: str | None = None
    address: StripeAddress | None = None


class StripeCollectedInformation(BaseModel):
    """Information collected on the hosted page (newer API versions)."""

    model_config = ConfigDict(extra="ignore")

    shipping_details: StripeContactDetails | None = None


class CheckoutSessionObject(BaseModel):
    """The checkout session carried by checkout.session.* events."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="Checkout Session ID")
    metadata: dict[str, str] = Field(default_factory=dict, description="Metadata bag set at creation")
    amount_total: int | None = Field(default=None, description="Total charged in minor units")
    currency: str | None = None
    payment_intent: str | None = None
    shipping_details: StripeContactDetails | None = None
    collected_information: StripeCollectedInformation | None = None
    customer_details: StripeContactDetails | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def default_missing_metadata(cls, value: Any) -> Any:
        return value or {}

    @field_validator("payment_intent", mode="before")
    @classmethod
    def unwrap_expanded_payment_intent(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("id")
        return value

    @property
    def shipping_contact(self) -> StripeContactDetails | None:
        """Where the order ships: shipping details, then customer details."""
        if self.shipping_details:
            return self.shipping_details
        if self.collected_information and self.collected_information.shipping_details:
            return self.collected_information.shipping_details
        return self.customer_details


class StripeEventData(BaseModel):
    """The data envelope of a Stripe event."""

    model_config = ConfigDict(extra="ignore")

    object: dict[str, Any] = Field(default_factory=dict)


class StripeEvent(BaseModel):
    """A verified Stripe webhook event."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="Event ID (evt_...)")
    type: str = Field(description="Event type, e.g. checkout.session.completed")
    livemode: bool = False
    data: StripeEventData = Field(default_factory=StripeEventData)


class WebhookAck(BaseModel):
    """Acknowledgment returned to Stripe."""

    received: bool = True
