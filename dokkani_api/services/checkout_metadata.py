"""Encoding of checkout data into the Stripe session metadata bag.

Stripe metadata holds at most 50 keys with string values of at most 500
characters. The line-item snapshot is JSON and may be longer than one value,
so it is split across continuation keys: "lineItems", "lineItems_1",
"lineItems_2", ... and joined back in that order when the webhook arrives.
"""

import json
from typing import Any

METADATA_MAX_KEYS = 50
METADATA_VALUE_MAX_LENGTH = 500

LINE_ITEMS_KEY = "lineItems"


class MetadataTooLargeError(ValueError):
    """Raised when checkout data cannot fit in the Stripe metadata bag."""


def _chunk_key(index: int) -> str:
    return LINE_ITEMS_KEY if index == 0 else f"{LINE_ITEMS_KEY}_{index}"


def encode_line_items(items: list[dict[str, Any]], available_keys: int) -> dict[str, str]:
    """Serialize line items into one or more metadata entries.

    Args:
        items: Line-item snapshot as sent by the client.
        available_keys: Number of metadata keys left for the snapshot.

    Returns:
        dict: Metadata entries holding the serialized snapshot.

    Raises:
        MetadataTooLargeError: If the snapshot needs more keys than are available.
    """
    serialized = json.dumps(items, separators=(",", ":"), ensure_ascii=False)
    chunks = [
        serialized[start:start + METADATA_VALUE_MAX_LENGTH]
        for start in range(0, len(serialized), METADATA_VALUE_MAX_LENGTH)
    ] or ["[]"]

    if len(chunks) > available_keys:
        raise MetadataTooLargeError(
            f"Cart is too large for one checkout ({len(serialized)} characters of line items)"
        )

    return {_chunk_key(index): chunk for index, chunk in enumerate(chunks)}


def decode_line_items(metadata: dict[str, str]) -> list[dict[str, Any]]:
    """Rebuild the line-item snapshot from session metadata.

    A missing snapshot decodes to an empty list.

    Raises:
        ValueError: If the snapshot is not a JSON array of objects.
    """
    parts = []
    index = 0
    while _chunk_key(index) in metadata:
        parts.append(metadata[_chunk_key(index)])
        index += 1

    items = json.loads("".join(parts) or "[]")
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValueError("lineItems metadata is not a list of objects")
    return items


def build_session_metadata(
    order_number: str,
    user_id: str,
    user_email: str | None,
    user_name: str | None,
    line_items: list[dict[str, Any]],
) -> dict[str, str]:
    """Build the metadata bag attached to a checkout session.

    Raises:
        MetadataTooLargeError: If the line items cannot fit.
    """
    metadata = {
        "orderNumber": order_number,
        "userId": user_id,
        "userEmail": user_email or "",
        "userName": user_name or "",
    }
    for key, value in metadata.items():
        if len(value) > METADATA_VALUE_MAX_LENGTH:
            raise MetadataTooLargeError(f"{key} exceeds {METADATA_VALUE_MAX_LENGTH} characters")

    metadata.update(encode_line_items(line_items, METADATA_MAX_KEYS - len(metadata)))
    return metadata
