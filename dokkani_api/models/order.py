"""Order document type definitions for the document store."""

from typing import Literal, TypedDict


# Order lifecycle values; the webhook only ever writes "paid"
OrderStatus = Literal["created", "paid", "fulfilled", "cancelled", "refunded"]


class ShippingAddress(TypedDict):
    """Flat shipping address copied from the Stripe checkout session."""

    name: str | None
    line1: str | None
    line2: str | None
    city: str | None
    state: str | None
    postalCode: str | None
    country: str | None


class OrderLineItem(TypedDict):
    """Structure for a single line item in an order.

    Stored as part of the lineItems array; `_key` identifies the array
    member inside the document.
    """

    _key: str
    productId: str | None
    productSlug: str | None
    title: str | None
    image: str | None
    quantity: int
    price: float


class OrderDocument(TypedDict):
    """Order document as written by the webhook handler.

    Keys use the document store's camelCase field names.
    """

    _type: Literal["order"]
    orderNumber: str | None
    userId: str | None
    userEmail: str | None
    userName: str | None
    lineItems: list[OrderLineItem]
    shippingAddress: ShippingAddress | None
    status: OrderStatus
    stripeSessionId: str
    stripePaymentIntentId: str | None
    total: float
    currency: str | None
    createdAt: str


class StoredOrder(TypedDict, total=False):
    """Projection of a stored order returned to the order reader."""

    _id: str
    orderNumber: str | None
    status: str
    total: float | None
    currency: str | None
    createdAt: str | None
    lineItems: list[OrderLineItem]
    shippingAddress: ShippingAddress | None
