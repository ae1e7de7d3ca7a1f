"""
Tests for catchhook/utils/payload_guard.py - declared and actual size checks.
"""
from unittest.mock import MagicMock

import pytest
from starlette.requests import ClientDisconnect

from catchhook.exceptions import PayloadTooLarge
from catchhook.utils.payload_guard import (
    MAX_PAYLOAD_SIZE,
    check_actual_size,
    check_declared_size,
    read_body_capped,
)


def _streaming_request(*chunks, error: Exception | None = None):
    """Mock request whose stream() yields the given chunks, then optionally raises."""
    consumed = []

    async def _stream():
        for chunk in chunks:
            consumed.append(chunk)
            yield chunk
        if error is not None:
            raise error

    req = MagicMock()
    req.stream = _stream
    req.consumed = consumed
    return req


class TestDeclaredSize:
    def test_limit_is_one_mebibyte(self):
        assert MAX_PAYLOAD_SIZE == 1_048_576

    @pytest.mark.parametrize("header", [None, "", "0", "1048576", " 512 "])
    def test_admits(self, header):
        check_declared_size(header)

    def test_rejects_over_limit(self):
        with pytest.raises(PayloadTooLarge) as exc_info:
            check_declared_size("1048577")
        assert exc_info.value.declared is True
        assert exc_info.value.observed_bytes == 1_048_577
        assert exc_info.value.status_code == 413

    @pytest.mark.parametrize("header", ["abc", "1e9", "12,34"])
    def test_unparsable_header_is_left_to_actual_check(self, header):
        check_declared_size(header)

    def test_custom_limit(self):
        with pytest.raises(PayloadTooLarge):
            check_declared_size("11", limit=10)


class TestActualSize:
    def test_admits_at_limit(self):
        check_actual_size(MAX_PAYLOAD_SIZE)

    def test_rejects_one_over(self):
        with pytest.raises(PayloadTooLarge) as exc_info:
            check_actual_size(MAX_PAYLOAD_SIZE + 1)
        assert exc_info.value.declared is False
        assert exc_info.value.public_message == "Payload too large. Max size is 1MB."


class TestReadBodyCapped:
    async def test_joins_chunks(self):
        req = _streaming_request(b"hello ", b"", b"world")
        assert await read_body_capped(req) == b"hello world"

    async def test_empty_body(self):
        assert await read_body_capped(_streaming_request()) == b""

    async def test_stops_reading_once_over_limit(self):
        req = _streaming_request(b"a" * 6, b"b" * 6, b"c" * 6, b"d" * 6)
        with pytest.raises(PayloadTooLarge):
            await read_body_capped(req, limit=10)
        # Third and fourth chunks are never pulled
        assert len(req.consumed) == 2

    async def test_exactly_at_limit_is_admitted(self):
        req = _streaming_request(b"a" * 5, b"b" * 5)
        assert await read_body_capped(req, limit=10) == b"a" * 5 + b"b" * 5

    async def test_client_disconnect_propagates(self):
        req = _streaming_request(b"partial", error=ClientDisconnect())
        with pytest.raises(ClientDisconnect):
            await read_body_capped(req)
