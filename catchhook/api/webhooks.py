"""
Webhook ingestion - accepts any payload at /webhooks/{webhook_id} and stores it as an event.

Pipeline (every step can end the request):
1. Rate limiting (per webhook id, in-process fixed window)
2. Declared size check (Content-Length)
3. Capped body read + actual size check
4. Body normalization (JSON or raw text, never rejected)
5. Endpoint lookup
6. Event insert

Every failure is answered with {"error": "..."} and a fixed status code.
Internal error detail is logged, never returned.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import ClientDisconnect

from catchhook.config import get_settings
from catchhook.database import get_db
from catchhook.exceptions import EndpointNotFound, IngestionError, RateLimited
from catchhook.services.body_normalizer import decode_body, normalize
from catchhook.services.endpoints import find_by_public_id
from catchhook.services.events import EventDraft, flatten_headers, record_event
from catchhook.utils.logging import bind_log_fields, log_context
from catchhook.utils.payload_guard import check_declared_size, read_body_capped
from catchhook.utils.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])

RECORDED_STATUS_CODE = 200


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    """The application's shared limiter, created once in create_app()."""
    return request.app.state.rate_limiter


def _error_response(error: IngestionError, headers: dict | None = None) -> JSONResponse:
    return JSONResponse({"error": error.public_message}, status_code=error.status_code, headers=headers)


def _enforce_rate_limit(limiter: FixedWindowRateLimiter, webhook_id: str) -> None:
    """Raise RateLimited if this webhook has used up its window."""
    if not limiter.admit(webhook_id):
        raise RateLimited(limiter.limit_description)


@router.post("/{webhook_id}")
async def receive_webhook(
    webhook_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
):
    """Record an inbound request of any content type as an event."""
    with log_context(webhook_id=webhook_id):
        return await _ingest(webhook_id, request, db, limiter)


async def _ingest(
    webhook_id: str,
    request: Request,
    db: AsyncSession,
    limiter: FixedWindowRateLimiter,
):
    settings = get_settings()
    try:
        try:
            _enforce_rate_limit(limiter, webhook_id)
        except RateLimited as e:
            return _error_response(e, headers={"Retry-After": str(limiter.retry_after(webhook_id))})

        check_declared_size(request.headers.get("content-length"), settings.max_payload_bytes)
        raw_body = await read_body_capped(request, settings.max_payload_bytes)
        body = normalize(decode_body(raw_body))
        headers = flatten_headers(request.headers.raw)

        endpoint = await find_by_public_id(
            db, webhook_id, raise_on_backend_error=settings.separate_backend_outage,
        )
        if endpoint is None:
            raise EndpointNotFound()
        bind_log_fields(endpoint_id=endpoint.id, user_id=endpoint.user_id)

        event = await record_event(db, EventDraft(
            endpoint_id=endpoint.id,
            user_id=endpoint.user_id,
            method=request.method,
            headers=headers,
            body=body,
            status_code=RECORDED_STATUS_CODE,
        ))
    except IngestionError as e:
        log = logger.error if e.status_code >= 500 else logger.info
        log("Webhook rejected: %s", type(e).__name__, extra={"status_code": e.status_code})
        return _error_response(e)
    except ClientDisconnect:
        # Sender went away mid-body; nothing has been written
        logger.info("Client disconnected during body read")
        return JSONResponse({"error": "Client disconnected"}, status_code=400)
    except Exception as e:
        logger.error("Webhook processing error: %s", str(e), exc_info=True)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    bind_log_fields(event_id=event.id)
    logger.info("Webhook received", extra={"body_kind": body.kind, "body_bytes": len(raw_body)})
    return {
        "success": True,
        "message": "Webhook received",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/{webhook_id}")
async def webhook_liveness(webhook_id: str):
    """
    Connectivity probe for integrators. Pure echo: no lookup, no rate limit,
    no body handling.
    """
    return {
        "message": "Webhook endpoint active",
        "webhookId": webhook_id,
        "method": "GET",
        "note": "Send POST requests to this URL to create events",
    }
