"""
Endpoint lookups and owner-side management.

find_by_public_id is the resolver the ingestion path depends on; the rest
backs the management API.
"""
import logging
import secrets
import string
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catchhook.exceptions import BackendUnavailable
from catchhook.models.endpoint import WebhookEndpoint
from catchhook.models.webhook_event import WebhookEvent

logger = logging.getLogger(__name__)

WEBHOOK_ID_ALPHABET = string.ascii_lowercase + string.digits
WEBHOOK_ID_LENGTH = 8
MAX_ID_ATTEMPTS = 5
MAX_NAME_LENGTH = 255


class EndpointNameError(ValueError):
    pass


@dataclass
class EndpointWithCount:
    endpoint: WebhookEndpoint
    event_count: int


def generate_webhook_id(length: int = WEBHOOK_ID_LENGTH) -> str:
    """Short random lowercase base-36 token for the public URL."""
    return "".join(secrets.choice(WEBHOOK_ID_ALPHABET) for _ in range(length))


def clean_endpoint_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise EndpointNameError("Endpoint name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise EndpointNameError(f"Endpoint name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


async def find_by_public_id(
    db: AsyncSession,
    webhook_id: str,
    *,
    raise_on_backend_error: bool = False,
) -> Optional[WebhookEndpoint]:
    """
    Exact-match lookup of an endpoint by its public webhook id.

    A backend error is logged and treated as "not found" unless
    raise_on_backend_error is set, in which case BackendUnavailable is raised.
    """
    try:
        result = await db.execute(
            select(WebhookEndpoint).where(WebhookEndpoint.webhook_id == webhook_id)
        )
        return result.scalar_one_or_none()
    except Exception as e:
        logger.error(
            "Endpoint lookup failed for %s: %s", webhook_id, str(e),
            exc_info=True, extra={"webhook_id": webhook_id},
        )
        await db.rollback()
        if raise_on_backend_error:
            raise BackendUnavailable() from e
        return None


async def create_endpoint(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
) -> WebhookEndpoint:
    """Create an endpoint with a fresh public id, retrying on id collisions."""
    cleaned = clean_endpoint_name(name)

    for attempt in range(1, MAX_ID_ATTEMPTS + 1):
        webhook_id = generate_webhook_id()
        existing = await db.execute(
            select(WebhookEndpoint.id).where(WebhookEndpoint.webhook_id == webhook_id)
        )
        if existing.scalar_one_or_none() is not None:
            logger.info("Webhook id collision on attempt %d, regenerating", attempt)
            continue

        endpoint = WebhookEndpoint(user_id=user_id, name=cleaned, webhook_id=webhook_id)
        db.add(endpoint)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race for the same id
            await db.rollback()
            logger.info("Webhook id collision on insert (attempt %d), regenerating", attempt)
            continue

        logger.info(
            "Endpoint created: %s", webhook_id,
            extra={"webhook_id": webhook_id, "endpoint_id": str(endpoint.id)},
        )
        return endpoint

    raise RuntimeError("Could not allocate a unique webhook id")


async def get_owned_endpoint(
    db: AsyncSession,
    endpoint_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Optional[WebhookEndpoint]:
    """Endpoint by internal id, only if it belongs to user_id."""
    endpoint = await db.get(WebhookEndpoint, endpoint_id)
    if endpoint is None or endpoint.user_id != user_id:
        return None
    return endpoint


async def list_endpoints(db: AsyncSession, user_id: uuid.UUID) -> list[EndpointWithCount]:
    """User's endpoints, newest first, with their event counts."""
    counts = (
        select(WebhookEvent.endpoint_id, func.count(WebhookEvent.id).label("event_count"))
        .group_by(WebhookEvent.endpoint_id)
        .subquery()
    )
    result = await db.execute(
        select(WebhookEndpoint, func.coalesce(counts.c.event_count, 0))
        .outerjoin(counts, counts.c.endpoint_id == WebhookEndpoint.id)
        .where(WebhookEndpoint.user_id == user_id)
        .order_by(WebhookEndpoint.created_at.desc())
    )
    return [EndpointWithCount(endpoint=row[0], event_count=row[1]) for row in result.all()]


async def delete_endpoint(
    db: AsyncSession,
    endpoint_id: uuid.UUID,
    user_id: uuid.UUID,
) -> bool:
    """
    Delete an owned endpoint and every event recorded against it.
    Returns False when the endpoint does not exist or is not owned by user_id.
    """
    endpoint = await get_owned_endpoint(db, endpoint_id, user_id)
    if endpoint is None:
        return False

    # FK cascade covers Postgres; explicit delete keeps SQLite consistent
    removed = await db.execute(
        delete(WebhookEvent).where(WebhookEvent.endpoint_id == endpoint.id)
    )
    await db.delete(endpoint)
    await db.flush()
    logger.info(
        "Endpoint deleted: %s (%d events)", endpoint.webhook_id, removed.rowcount or 0,
        extra={"webhook_id": endpoint.webhook_id, "endpoint_id": str(endpoint.id)},
    )
    return True
