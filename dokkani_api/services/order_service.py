"""Order query service."""

import logging

from dokkani_api.core.order_store import OrderStore, get_order_store
from dokkani_api.models.order import StoredOrder

logger = logging.getLogger(__name__)


class OrderService:
    """Read-only access to a user's persisted orders."""

    def __init__(self, order_store: OrderStore | None = None) -> None:
        """Initialize order service.

        Args:
            order_store: Optional order store for testing.
        """
        self._order_store = order_store

    @property
    def order_store(self) -> OrderStore:
        """Get order store."""
        if self._order_store is None:
            self._order_store = get_order_store()
        return self._order_store

    async def list_orders_for_user(self, user_id: str) -> list[StoredOrder]:
        """Get all orders for a user, newest first.

        Args:
            user_id: The user's ID as sent at checkout.

        Returns:
            list[StoredOrder]: Projected orders; empty when the user has none.

        Raises:
            ValueError: If user_id is blank.
            OrderStoreError: If the store query fails.
        """
        if not user_id or not user_id.strip():
            raise ValueError("userId is required")

        orders = await self.order_store.list_orders_for_user(user_id)
        logger.debug("Found %d orders for user %s", len(orders), user_id)
        return orders
