"""Order Pydantic schemas for API responses."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderLineItemSchema(BaseModel):
    """Schema for a single line item in a stored order."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str | None = Field(default=None, alias="_key", description="Array member key")
    product_id: str | None = Field(default=None, description="Product document ID")
    product_slug: str | None = Field(default=None, description="Product slug")
    title: str | None = Field(default=None, description="Product title")
    image: str | None = Field(default=None, description="Product image URL")
    quantity: int | None = Field(default=None, description="Quantity ordered")
    price: float | None = Field(default=None, description="Unit price in major currency units")


class ShippingAddressSchema(BaseModel):
    """Schema for the shipping address captured by Stripe."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderSummary(BaseModel):
    """Schema for order list entries returned by GET /orders."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(alias="_id", description="Document ID")
    order_number: str | None = Field(default=None, description="Human-readable order number")
    status: str | None = Field(default=None, description="Order status")
    total: float | None = Field(default=None, description="Total in major currency units")
    currency: str | None = Field(default=None, description="Currency code")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO-8601)")
    line_items: list[OrderLineItemSchema] = Field(default_factory=list, description="Order line items")
    shipping_address: ShippingAddressSchema | None = Field(default=None, description="Shipping address")
