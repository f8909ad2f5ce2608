"""
Middleware interface for PromofireClient.

This module defines the `Middleware` protocol used in Promofire SDK.
It allows users to hook into the request/response lifecycle of every HTTP call
made by the SDK, including the calls of the configuration workflow.

Any class that implements this interface can be passed to the client as a middleware.

Current implementations:
- Logging (see: LoggingMiddleware) - logs requests/responses with timing
"""

from typing import Any
from typing import Protocol

from promofire_sdk.transport.base import UnifiedResponse


class Middleware(Protocol):
    async def on_request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        params: dict[str, Any] | None,
        json: Any,
    ) -> None:
        """
        Called before the HTTP request is executed.

        This can be used to:
        - Log request details (current: LoggingMiddleware)
        - Add or modify headers (the dict is sent as-is afterwards)
        - Cancel or abort execution (by raising)

        Args:
            method (str): HTTP method, e.g., 'GET', 'POST'
            url (str): Full URL of the request
            headers (dict): Request headers (modifiable)
            params (dict | None): Query parameters
            json (Any): JSON body payload
        """

    async def on_response(self, response: UnifiedResponse) -> None:
        """
        Called after the HTTP response is received (but before it's parsed).

        Args:
            response (UnifiedResponse): Unified response object from transport layer
        """
