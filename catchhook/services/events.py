"""
Event recording and read access.

record_event is the only write path for events. There is no update.
"""
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catchhook.exceptions import StorageFailure
from catchhook.models.webhook_event import WebhookEvent
from catchhook.services.body_normalizer import EmptyBody, RawTextBody, StoredBody, from_storage

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


@dataclass
class EventDraft:
    endpoint_id: uuid.UUID
    user_id: uuid.UUID
    method: str
    body: StoredBody
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    error_message: Optional[str] = None


def flatten_headers(raw_headers: Iterable[tuple[bytes, bytes]]) -> dict[str, str]:
    """
    Flatten raw ASGI header pairs into name -> value.
    Names keep the case the server handed us; a repeated header keeps its last value.
    """
    headers: dict[str, str] = {}
    for name, value in raw_headers:
        headers[name.decode("latin-1")] = value.decode("latin-1")
    return headers


async def record_event(db: AsyncSession, draft: EventDraft) -> WebhookEvent:
    """
    Persist one inbound request. Any storage error becomes StorageFailure;
    nothing is retried.
    """
    event = WebhookEvent(
        endpoint_id=draft.endpoint_id,
        user_id=draft.user_id,
        method=draft.method,
        headers=draft.headers,
        body=draft.body.to_storage(),
        status_code=draft.status_code,
        error_message=draft.error_message,
    )
    try:
        db.add(event)
        await db.commit()
    except Exception as e:
        logger.error("Error storing webhook event: %s", str(e), exc_info=True)
        await db.rollback()
        raise StorageFailure() from e
    return event


async def list_events(
    db: AsyncSession,
    endpoint_id: uuid.UUID,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[WebhookEvent]:
    """Events for an endpoint, newest first."""
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    result = await db.execute(
        select(WebhookEvent)
        .where(WebhookEvent.endpoint_id == endpoint_id)
        .order_by(WebhookEvent.created_at.desc(), WebhookEvent.id.desc())
        .limit(limit)
        .offset(max(offset, 0))
    )
    return list(result.scalars().all())


async def get_owned_event(
    db: AsyncSession,
    event_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Optional[WebhookEvent]:
    event = await db.get(WebhookEvent, event_id)
    if event is None or event.user_id != user_id:
        return None
    return event


def body_preview(body: Any, max_chars: int = 120) -> str:
    """Short single-line rendering of a stored body for list views."""
    stored = from_storage(body)
    if isinstance(stored, EmptyBody):
        return ""
    if isinstance(stored, RawTextBody):
        text = " ".join(stored.text.split())
    else:
        text = json.dumps(stored.value, default=str, ensure_ascii=False)
    if len(text) > max_chars:
        return text[: max_chars - 3] + "..."
    return text
