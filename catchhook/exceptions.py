"""
Ingestion failure taxonomy.

Each error maps to exactly one HTTP status and a fixed public message.
Internal detail never goes into the message - it belongs in the log.
A malformed body is not an error: it is stored as raw text.
"""


class IngestionError(Exception):
    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, public_message: str | None = None):
        if public_message is not None:
            self.public_message = public_message
        super().__init__(self.public_message)


class RateLimited(IngestionError):
    status_code = 429
    public_message = "Rate limit exceeded"


class PayloadTooLarge(IngestionError):
    status_code = 413
    public_message = "Payload too large. Max size is 1MB."

    def __init__(self, limit_bytes: int, observed_bytes: int | None = None, declared: bool = False):
        self.limit_bytes = limit_bytes
        self.observed_bytes = observed_bytes
        self.declared = declared
        super().__init__(f"Payload too large. Max size is {_format_size(limit_bytes)}.")


class EndpointNotFound(IngestionError):
    status_code = 404
    public_message = "Webhook endpoint not found"


class BackendUnavailable(IngestionError):
    status_code = 503
    public_message = "Webhook storage temporarily unavailable"


class StorageFailure(IngestionError):
    status_code = 500
    public_message = "Failed to store event"


def _format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024 and num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)}MB"
    if num_bytes >= 1024 and num_bytes % 1024 == 0:
        return f"{num_bytes // 1024}KB"
    return f"{num_bytes} bytes"
