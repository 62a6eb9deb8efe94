"""Opaque feed cursors.

A cursor is URL-safe base64 (unpadded) of the compact JSON object
``{"t": <ISO 8601 created_at>, "id": <uuid>}``.
"""

import base64
import binascii
import json
from datetime import datetime
from uuid import UUID

from ..db.store import FeedBoundary


# Real cursors are well under 120 characters
MAX_CURSOR_LENGTH = 256


class InvalidCursorError(ValueError):
    """Raised when a client-supplied cursor cannot be decoded."""


def encode_cursor(created_at: datetime, post_id: UUID) -> str:
    """Encode the sort key of the last row on a page."""
    payload = json.dumps(
        {"t": created_at.isoformat(), "id": str(post_id)}, separators=(",", ":")
    )
    return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")


def decode_cursor(cursor: str) -> FeedBoundary:
    """
    Decode a cursor produced by encode_cursor.

    Raises:
        InvalidCursorError: If the token is not a well-formed cursor
    """
    if len(cursor) > MAX_CURSOR_LENGTH:
        raise InvalidCursorError("Malformed cursor")

    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as e:
        raise InvalidCursorError("Malformed cursor") from e

    if not isinstance(data, dict):
        raise InvalidCursorError("Malformed cursor")
    created_at, post_id = data.get("t"), data.get("id")
    if not isinstance(created_at, str) or not isinstance(post_id, str):
        raise InvalidCursorError("Cursor is missing its position")

    try:
        parsed_at = datetime.fromisoformat(created_at)
        parsed_id = UUID(post_id)
    except ValueError as e:
        raise InvalidCursorError("Cursor position is not valid") from e

    # Naive instants cannot be compared against timestamptz reliably
    if parsed_at.tzinfo is None:
        raise InvalidCursorError("Cursor position is not valid")
    return FeedBoundary(parsed_at, parsed_id)
