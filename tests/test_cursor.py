import base64
import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from tapir_catalog.api.services.cursor import InvalidCursorError, decode_cursor, encode_cursor


def _token(payload) -> str:
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")


def test_cursor_decodes_to_same_position():
    created_at = datetime(2026, 1, 19, 6, 18, 0, 123456, tzinfo=timezone.utc)
    post_id = uuid4()

    boundary = decode_cursor(encode_cursor(created_at, post_id))

    assert boundary.created_at == created_at
    assert boundary.id == post_id


def test_cursor_keeps_non_utc_offsets_comparable():
    created_at = datetime(2026, 1, 19, 13, 18, tzinfo=timezone(timedelta(hours=7)))
    boundary = decode_cursor(encode_cursor(created_at, uuid4()))
    assert boundary.created_at == datetime(2026, 1, 19, 6, 18, tzinfo=timezone.utc)


def test_cursor_is_url_safe():
    token = encode_cursor(datetime.now(timezone.utc), uuid4())
    assert all(c.isalnum() or c in "-_" for c in token)


@pytest.mark.parametrize(
    "token",
    [
        "",
        "!!!",
        "not-a-cursor",
        _token(["2026-01-19T06:18:00+00:00", str(uuid4())]),
        _token({"t": "2026-01-19T06:18:00+00:00"}),
        _token({"id": str(uuid4())}),
        _token({"t": 1234, "id": str(uuid4())}),
        _token({"t": "yesterday", "id": str(uuid4())}),
        _token({"t": "2026-01-19T06:18:00+00:00", "id": "not-a-uuid"}),
        _token({"t": "2026-01-19T06:18:00", "id": str(uuid4())}),
        base64.urlsafe_b64encode(b"\xff\xfe").decode(),
        base64.urlsafe_b64encode(b"[" * 1000).decode(),
        base64.urlsafe_b64encode(b"[" * 150).decode(),
        _token({"t": "2026-01-19T06:18:00+00:00", "id": str(uuid4()), "pad": "x" * 300}),
    ],
)
def test_tampered_cursor_is_rejected(token):
    with pytest.raises(InvalidCursorError):
        decode_cursor(token)


def test_deeply_nested_cursor_is_a_client_error(monkeypatch):
    monkeypatch.setattr("tapir_catalog.api.services.cursor.MAX_CURSOR_LENGTH", 10**6)
    token = base64.urlsafe_b64encode(b"[" * 100000).decode()

    with pytest.raises(InvalidCursorError):
        decode_cursor(token)
