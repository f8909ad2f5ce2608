"""
Aiohttp transport implementation for Promofire SDK.

This module provides AiohttpTransport, an alternative async HTTP client for the SDK.
The session is created lazily on first use so the transport can be constructed
outside of a running event loop.
"""

import asyncio
from typing import Any

import aiohttp

from promofire_sdk.exceptions import TransportError

from .base import BaseTransport
from .base import UnifiedResponse


class AiohttpTransport(BaseTransport):
    """
    Async transport implementation using aiohttp.ClientSession.
    """

    def __init__(self, timeout: float = 30.0):
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
        timeout: float | None = None,
    ) -> UnifiedResponse:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )

        timeout_obj = aiohttp.ClientTimeout(total=timeout or self._timeout)
        try:
            async with self._session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json,
                timeout=timeout_obj,
            ) as response:
                text = await response.text()
                return UnifiedResponse(
                    status_code=response.status,
                    text=text,
                    headers=dict(response.headers),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise TransportError(f"{method} {url} failed: {err}") from err

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None
