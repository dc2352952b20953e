"""Checkout Pydantic schemas for API request/response models.

The mobile client speaks camelCase JSON; fields are snake_case in Python and
aliased on the wire.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CartLineItem(BaseModel):
    """A product line in the client's cart.

    Unknown keys are kept so the snapshot stored in session metadata
    carries everything the client sent.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="allow",
    )

    product_id: str | None = Field(default=None, description="Product document ID")
    product_slug: str | None = Field(default=None, description="Product slug")
    title: str = Field(min_length=1, description="Product title shown on the Stripe checkout page")
    image: str | None = Field(default=None, description="Product image URL")
    price: float | str | None = Field(default=None, description="Unit price, numeric or currency formatted")
    numeric_price: float | None = Field(default=None, description="Unit price as a number, preferred over price")
    quantity: int = Field(default=1, ge=1, description="Quantity ordered")

    @field_validator("quantity", mode="before")
    @classmethod
    def default_missing_quantity(cls, value: Any) -> Any:
        """Treat null and zero quantities as a single unit."""
        return value or 1

    @property
    def unit_price(self) -> float | str | None:
        """The price the checkout should charge: numericPrice when set, else price."""
        return self.numeric_price or self.price

    def snapshot(self) -> dict[str, Any]:
        """Return the item as the client sent it, for the metadata bag."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CheckoutSessionCreate(BaseModel):
    """Schema for creating a checkout session via POST /create-checkout-session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str = Field(min_length=1, description="ID of the user placing the order")
    user_email: str | None = Field(default=None, description="Pre-fill customer email")
    user_name: str | None = Field(default=None, description="Customer display name")
    line_items: list[CartLineItem] = Field(min_length=1, description="Cart contents, in display order")
    total: float | str | None = Field(default=None, description="Cart total as displayed by the client")
    success_url: str | None = Field(default=None, description="Redirect after successful payment")
    cancel_url: str | None = Field(default=None, description="Redirect if checkout is cancelled")


class CheckoutSessionResponse(BaseModel):
    """Schema for checkout session creation response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    checkout_url: str = Field(description="Stripe Checkout URL to redirect to")
    session_id: str = Field(description="Stripe Checkout Session ID")
    order_number: str = Field(description="Order number the webhook will persist the order under")
