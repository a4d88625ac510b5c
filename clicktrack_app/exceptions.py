"""
Error taxonomy for the click tracking pipeline.

- ConfigMissing: analytics store not configured (non-fatal, subsystem disabled)
- StoreError: non-2xx response or transport failure talking to the store
- ParseError: malformed line in a JSONEachRow response
- InvalidInput: bad caller input (url_type, redirected_url, request body)

Services absorb these at their boundary; only the routers turn them
into HTTP status codes.
"""

from typing import Optional


class AnalyticsError(Exception):
    """Base class for analytics store errors"""


class ConfigMissing(AnalyticsError):
    """The analytics store has not been configured"""

    def __init__(self, message: str = "ClickHouse config not available"):
        super().__init__(message)


class StoreError(AnalyticsError):
    """
    The analytics store rejected a query or could not be reached.

    Attributes:
        status_code: HTTP status of the response, None for transport failures
        body: Response body returned by the store (diagnostic text)
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(AnalyticsError):
    """A JSONEachRow line could not be decoded into a row"""

    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message)
        self.line = line


class InvalidInput(ValueError):
    """Caller supplied invalid tracking or registry input"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ShortUriUnavailable(InvalidInput):
    """Requested short URI is already taken"""
