"""
Exceptions raised by the OrderTime integration.

Handlers map these to HTTP responses:
- ConfigurationError  -> 500
- UpstreamFetchError  -> 502 (report) / 500 (live)
- AuthExhaustedError  -> 500
"""

# Upstream bodies are echoed back to callers, keep them short
BODY_SNIPPET_LIMIT = 400


class OrderTimeError(Exception):
    """Base class for OrderTime integration errors"""


class ConfigurationError(OrderTimeError):
    """A required setting is missing from the environment"""

    def __init__(self, message: str, **flags):
        super().__init__(message)
        self.flags = flags


class UpstreamFetchError(OrderTimeError):
    """OrderTime answered with a non-success status"""

    def __init__(self, status_code: int, body: str = '', message: str = None):
        self.status_code = status_code
        self.body = (body or '')[:BODY_SNIPPET_LIMIT]
        super().__init__(message or f"OrderTime fetch failed: {status_code}")


class AuthExhaustedError(OrderTimeError):
    """Every auth header scheme was rejected by the /list endpoint"""

    def __init__(self, entity_type: str, last_body: str = ''):
        self.entity_type = entity_type
        self.last_body = last_body or ''
        super().__init__(
            f"OT /list {entity_type} auth failed. Last response: {self.last_body}"
        )
