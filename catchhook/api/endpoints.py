"""
Endpoint management API - create, list, inspect and delete webhook endpoints
and browse the events recorded against them. All routes require a bearer token.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from catchhook.api.auth import get_current_user_id
from catchhook.config import get_settings
from catchhook.database import get_db
from catchhook.models.endpoint import WebhookEndpoint
from catchhook.models.webhook_event import WebhookEvent
from catchhook.schemas.api_responses import (
    CreateEndpointRequest,
    DeleteResponse,
    EndpointListResponse,
    EndpointResponse,
    EventDetail,
    EventListResponse,
    EventSummary,
)
from catchhook.services.endpoints import (
    EndpointNameError,
    create_endpoint,
    delete_endpoint,
    get_owned_endpoint,
    list_endpoints,
)
from catchhook.services.events import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    body_preview,
    get_owned_event,
    list_events,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["endpoints"])

ENDPOINT_NOT_FOUND = "Endpoint not found or access denied"


def _parse_uuid(value: str, not_found_detail: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=not_found_detail)


def webhook_url(webhook_id: str) -> str:
    base = get_settings().app_base_url.rstrip("/")
    return f"{base}/webhooks/{webhook_id}"


def _endpoint_response(endpoint: WebhookEndpoint, event_count: int = 0) -> EndpointResponse:
    return EndpointResponse(
        id=str(endpoint.id),
        name=endpoint.name,
        webhook_id=endpoint.webhook_id,
        webhook_url=webhook_url(endpoint.webhook_id),
        created_at=endpoint.created_at,
        event_count=event_count,
    )


def _event_detail(event: WebhookEvent) -> EventDetail:
    return EventDetail(
        id=str(event.id),
        endpoint_id=str(event.endpoint_id),
        method=event.method,
        headers=event.headers or {},
        body=event.body,
        status_code=event.status_code,
        error_message=event.error_message,
        created_at=event.created_at,
    )


@router.post("/endpoints", response_model=EndpointResponse, status_code=201)
async def create_endpoint_route(
    payload: CreateEndpointRequest,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Provision a new webhook endpoint for the current user."""
    try:
        endpoint = await create_endpoint(db, user_id, payload.name)
    except EndpointNameError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        logger.error("Error creating endpoint: %s", str(e), extra={"user_id": str(user_id)})
        raise HTTPException(status_code=500, detail="Failed to create endpoint")
    return _endpoint_response(endpoint)


@router.get("/endpoints", response_model=EndpointListResponse)
async def list_endpoints_route(
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    rows = await list_endpoints(db, user_id)
    return EndpointListResponse(
        endpoints=[_endpoint_response(r.endpoint, r.event_count) for r in rows],
        total=len(rows),
    )


@router.get("/endpoints/{endpoint_id}", response_model=EndpointResponse)
async def get_endpoint_route(
    endpoint_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    endpoint = await get_owned_endpoint(db, _parse_uuid(endpoint_id, ENDPOINT_NOT_FOUND), user_id)
    if endpoint is None:
        raise HTTPException(status_code=404, detail=ENDPOINT_NOT_FOUND)
    return _endpoint_response(endpoint)


@router.delete("/endpoints/{endpoint_id}", response_model=DeleteResponse)
async def delete_endpoint_route(
    endpoint_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Delete an endpoint and all of its events. Only the owner may delete."""
    deleted = await delete_endpoint(db, _parse_uuid(endpoint_id, ENDPOINT_NOT_FOUND), user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=ENDPOINT_NOT_FOUND)
    return DeleteResponse(success=True)


@router.get("/endpoints/{endpoint_id}/events", response_model=EventListResponse)
async def list_events_route(
    endpoint_id: str,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Recorded events for one endpoint, newest first."""
    endpoint = await get_owned_endpoint(db, _parse_uuid(endpoint_id, ENDPOINT_NOT_FOUND), user_id)
    if endpoint is None:
        raise HTTPException(status_code=404, detail=ENDPOINT_NOT_FOUND)

    events = await list_events(db, endpoint.id, limit=limit, offset=offset)
    return EventListResponse(
        events=[
            EventSummary(
                id=str(e.id),
                method=e.method,
                status_code=e.status_code,
                body_preview=body_preview(e.body),
                created_at=e.created_at,
            )
            for e in events
        ],
        limit=limit,
        offset=offset,
    )


@router.get("/events/{event_id}", response_model=EventDetail)
async def get_event_route(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    event = await get_owned_event(db, _parse_uuid(event_id, "Event not found"), user_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return _event_detail(event)
