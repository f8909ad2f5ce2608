"""
Logging middleware for Promofire SDK.

This module provides LoggingMiddleware, a built-in middleware that logs
all HTTP requests and responses with timing information. It is attached
automatically when ``PromofireSettings.debug`` is enabled.

Features:
- Request logging with method, URL, headers, and payload
- Bearer tokens are redacted before they reach the log
- Response logging with status code, timing and body (at DEBUG level)
"""

import logging
import time

from promofire_sdk.transport.base import UnifiedResponse

logger = logging.getLogger("promofire_sdk.middleware.logging")


def redact_headers(headers: dict) -> dict:
    """Return a copy of ``headers`` with the bearer token shortened."""
    redacted = dict(headers)
    auth = redacted.get("Authorization")
    if auth and auth.startswith("Bearer "):
        token = auth[len("Bearer ") :]
        redacted["Authorization"] = f"Bearer {token[:6]}..."
    return redacted


class LoggingMiddleware:
    """
    Middleware for logging HTTP requests and responses in PromofireClient.
    Uses standard Python logging.
    """

    def __init__(self):
        self._start_time = None

    async def on_request(
        self,
        method: str,
        url: str,
        headers: dict,
        params,
        json,
    ):
        self._start_time = time.monotonic()
        logger.info(
            f"Request: {method} {url} | headers={redact_headers(headers)} | params={params} | json={json}"
        )

    async def on_response(self, response: UnifiedResponse):
        elapsed = (time.monotonic() - self._start_time) if self._start_time else None
        logger.info(
            f"Response: {response.status_code}"
            + (f" | elapsed={elapsed:.3f}s" if elapsed is not None else "")
        )
        if response.text:
            logger.debug(f"Response body: {response.text}")
