"""
Database models - import all models here so Alembic can discover them.
"""
from catchhook.models.endpoint import WebhookEndpoint
from catchhook.models.webhook_event import WebhookEvent

__all__ = [
    "WebhookEndpoint",
    "WebhookEvent",
]
