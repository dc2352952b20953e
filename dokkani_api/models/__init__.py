"""Document model type definitions."""

from dokkani_api.models.order import (
    OrderDocument,
    OrderLineItem,
    OrderStatus,
    ShippingAddress,
    StoredOrder,
)

__all__ = [
    "OrderDocument",
    "OrderLineItem",
    "OrderStatus",
    "ShippingAddress",
    "StoredOrder",
]
