"""Order persistence backends.

Orders are plain documents (see `dokkani_api.models.order`). Sanity is the
primary store; a Supabase table can be selected instead with
ORDER_STORE_BACKEND=supabase.
"""

import logging
from typing import Any, Protocol

from fastapi.concurrency import run_in_threadpool
from supabase import Client

from dokkani_api.core.config import get_settings
from dokkani_api.core.sanity import SanityClient, SanityError, get_sanity_client
from dokkani_api.core.supabase import get_supabase_client
from dokkani_api.models.order import OrderDocument, StoredOrder

logger = logging.getLogger(__name__)


ORDERS_FOR_USER_QUERY = """*[_type == "order" && userId == $userId] | order(createdAt desc) {
  _id,
  orderNumber,
  status,
  total,
  currency,
  createdAt,
  lineItems,
  shippingAddress
}"""

ORDER_FOR_SESSION_QUERY = """*[_type == "order" && stripeSessionId == $sessionId][0] {
  _id,
  orderNumber
}"""

CONNECTION_CHECK_QUERY = """*[_type == "order"][0]._id"""

ORDER_SUMMARY_COLUMNS = "id, order_number, status, total, currency, created_at, line_items, shipping_address"


class OrderStoreError(Exception):
    """Raised when the order store cannot complete an operation."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class OrderStore(Protocol):
    """Operations the handlers need from a document store."""

    async def create_order(self, order: OrderDocument) -> dict[str, Any]:
        """Persist a new order and return it with its generated `_id`."""
        ...

    async def list_orders_for_user(self, user_id: str) -> list[StoredOrder]:
        """Return a user's orders projected for display, newest first."""
        ...

    async def find_order_by_session_id(self, session_id: str) -> dict[str, Any] | None:
        """Return the order created for a Stripe checkout session, if any."""
        ...

    async def check_connection(self) -> None:
        """Raise OrderStoreError if the store cannot be reached."""
        ...


class SanityOrderStore:
    """Order store backed by a Sanity dataset."""

    def __init__(self, client: SanityClient | None = None) -> None:
        """Initialize the store.

        Args:
            client: Optional Sanity client for testing.
        """
        self._client = client

    @property
    def client(self) -> SanityClient:
        """Get Sanity client."""
        if self._client is None:
            try:
                self._client = get_sanity_client()
            except SanityError as e:
                raise OrderStoreError(e.message) from e
        return self._client

    async def create_order(self, order: OrderDocument) -> dict[str, Any]:
        try:
            return await self.client.create(dict(order))
        except SanityError as e:
            raise OrderStoreError(e.message) from e

    async def list_orders_for_user(self, user_id: str) -> list[StoredOrder]:
        try:
            result = await self.client.fetch(ORDERS_FOR_USER_QUERY, {"userId": user_id})
        except SanityError as e:
            raise OrderStoreError(e.message) from e
        return result or []

    async def find_order_by_session_id(self, session_id: str) -> dict[str, Any] | None:
        try:
            return await self.client.fetch(ORDER_FOR_SESSION_QUERY, {"sessionId": session_id})
        except SanityError as e:
            raise OrderStoreError(e.message) from e

    async def check_connection(self) -> None:
        try:
            await self.client.fetch(CONNECTION_CHECK_QUERY)
        except SanityError as e:
            raise OrderStoreError(e.message) from e


class SupabaseOrderStore:
    """Order store backed by a Supabase (Postgres) table with snake_case columns.

    Expected table (default name `orders`, see SUPABASE_ORDERS_TABLE):

        id                        bigint generated always as identity primary key
        order_number              text not null
        user_id                   text not null
        user_email                text
        user_name                 text
        line_items                jsonb not null default '[]'
        shipping_address          jsonb
        status                    text not null
        stripe_session_id         text not null
        stripe_payment_intent_id  text
        total                     numeric(12, 2) not null
        currency                  text not null
        created_at                timestamptz not null

    with indexes on `(user_id, created_at desc)` and `stripe_session_id`.
    `line_items` and `shipping_address` hold the same structures the Sanity
    documents carry. The supabase client is synchronous, so every call runs
    in the threadpool.
    """

    def __init__(self, client: Client | None = None, table: str | None = None) -> None:
        """Initialize the store.

        Args:
            client: Optional Supabase client for testing.
            table: Orders table name; defaults to SUPABASE_ORDERS_TABLE.
        """
        self._client = client
        self.table = table or get_settings().supabase_orders_table

    @property
    def client(self) -> Client:
        """Get Supabase client."""
        if self._client is None:
            try:
                self._client = get_supabase_client()
            except ValueError as e:
                raise OrderStoreError(str(e)) from e
        return self._client

    async def create_order(self, order: OrderDocument) -> dict[str, Any]:
        row = _order_to_row(order)
        try:
            response = await run_in_threadpool(
                lambda: self.client.table(self.table).insert(row).execute()
            )
        except OrderStoreError:
            raise
        except Exception as e:
            raise OrderStoreError(f"Supabase insert failed: {e}") from e

        if not response.data:
            raise OrderStoreError("Supabase insert returned no rows")
        return {**order, "_id": str(response.data[0]["id"])}

    async def list_orders_for_user(self, user_id: str) -> list[StoredOrder]:
        try:
            response = await run_in_threadpool(
                lambda: self.client.table(self.table)
                .select(ORDER_SUMMARY_COLUMNS)
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except OrderStoreError:
            raise
        except Exception as e:
            raise OrderStoreError(f"Supabase query failed: {e}") from e

        return [_row_to_summary(row) for row in response.data or []]

    async def find_order_by_session_id(self, session_id: str) -> dict[str, Any] | None:
        try:
            response = await run_in_threadpool(
                lambda: self.client.table(self.table)
                .select("id, order_number")
                .eq("stripe_session_id", session_id)
                .limit(1)
                .execute()
            )
        except OrderStoreError:
            raise
        except Exception as e:
            raise OrderStoreError(f"Supabase query failed: {e}") from e

        if not response.data:
            return None
        row = response.data[0]
        return {"_id": str(row["id"]), "orderNumber": row.get("order_number")}

    async def check_connection(self) -> None:
        try:
            await run_in_threadpool(lambda: self.client.table(self.table).select("id").limit(1).execute())
        except OrderStoreError:
            raise
        except Exception as e:
            raise OrderStoreError(f"Supabase query failed: {e}") from e


def _order_to_row(order: OrderDocument) -> dict[str, Any]:
    return {
        "order_number": order["orderNumber"],
        "user_id": order["userId"],
        "user_email": order["userEmail"],
        "user_name": order["userName"],
        "line_items": order["lineItems"],
        "shipping_address": order["shippingAddress"],
        "status": order["status"],
        "stripe_session_id": order["stripeSessionId"],
        "stripe_payment_intent_id": order["stripePaymentIntentId"],
        "total": order["total"],
        "currency": order["currency"],
        "created_at": order["createdAt"],
    }


def _row_to_summary(row: dict[str, Any]) -> StoredOrder:
    return {
        "_id": str(row["id"]),
        "orderNumber": row.get("order_number"),
        "status": row.get("status"),
        "total": row.get("total"),
        "currency": row.get("currency"),
        "createdAt": row.get("created_at"),
        "lineItems": row.get("line_items") or [],
        "shippingAddress": row.get("shipping_address"),
    }


def get_order_store() -> OrderStore:
    """Build the order store selected by ORDER_STORE_BACKEND.

    Returns:
        OrderStore: Store for the configured backend. Clients are created lazily,
        so building a store never fails on missing credentials.
    """
    settings = get_settings()
    if settings.order_store_backend == "supabase":
        return SupabaseOrderStore()
    return SanityOrderStore()


async def check_order_store_connection() -> dict[str, Any]:
    """Check if the configured order store is reachable.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        await get_order_store().check_connection()
        return {"healthy": True}
    except OrderStoreError as e:
        return {"healthy": False, "error": e.message}
