"""
API request/response schemas for the management endpoints.
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class CreateEndpointRequest(BaseModel):
    name: str = Field(..., max_length=255)


class EndpointResponse(BaseModel):
    id: str
    name: str
    webhook_id: str
    webhook_url: str
    created_at: datetime
    event_count: int = 0


class EndpointListResponse(BaseModel):
    endpoints: list[EndpointResponse] = []
    total: int = 0


class EventSummary(BaseModel):
    id: str
    method: str
    status_code: int
    body_preview: str = ""
    created_at: datetime


class EventListResponse(BaseModel):
    events: list[EventSummary] = []
    limit: int
    offset: int


class EventDetail(BaseModel):
    id: str
    endpoint_id: str
    method: str
    headers: dict[str, str] = {}
    body: Optional[Any] = None
    status_code: int
    error_message: Optional[str] = None
    created_at: datetime


class DeleteResponse(BaseModel):
    success: bool = True
