"""
Request body size enforcement.

The declared check uses the untrusted Content-Length header to reject
obviously oversized requests before reading anything. The actual check
runs on the bytes really received, because a sender can under-report
Content-Length or omit it. Both must run.
"""
import logging

from starlette.requests import Request

from catchhook.exceptions import PayloadTooLarge

logger = logging.getLogger(__name__)

MAX_PAYLOAD_SIZE = 1024 * 1024  # 1 MiB


def check_declared_size(content_length: str | None, limit: int = MAX_PAYLOAD_SIZE) -> None:
    """
    Reject if Content-Length claims more than the limit.

    A missing or unparsable header is let through - the actual-size check
    still applies once the body is read.
    """
    if not content_length:
        return
    try:
        declared = int(content_length.strip())
    except ValueError:
        logger.debug("Ignoring unparsable Content-Length: %r", content_length)
        return
    if declared > limit:
        raise PayloadTooLarge(limit, observed_bytes=declared, declared=True)


def check_actual_size(body_length: int, limit: int = MAX_PAYLOAD_SIZE) -> None:
    """Reject if the received body is larger than the limit."""
    if body_length > limit:
        raise PayloadTooLarge(limit, observed_bytes=body_length)


async def read_body_capped(request: Request, limit: int = MAX_PAYLOAD_SIZE) -> bytes:
    """
    Read the request body, giving up as soon as it passes the limit.

    Memory held is at most limit plus one transport chunk, whatever the
    sender declared. starlette's ClientDisconnect propagates unchanged if
    the sender aborts mid-read.
    """
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        if not chunk:
            continue
        received += len(chunk)
        check_actual_size(received, limit)
        chunks.append(chunk)
    body = b"".join(chunks)
    check_actual_size(len(body), limit)
    return body
