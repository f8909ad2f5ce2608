"""
Transport layer for Promofire SDK.

This module provides a unified transport interface that abstracts different HTTP clients.
The SDK supports multiple transport backends:

- httpx: Modern async HTTP client (default, recommended)
- aiohttp: Async HTTP client with advanced features
- requests: Sync HTTP client wrapped in async interface

All transports implement the same interface and raise TransportError on
network failures, making them interchangeable.
"""

from .base import BaseTransport
from .base import UnifiedResponse
from .httpx import HttpxTransport


def get_transport(name: str, timeout: float = 10.0) -> BaseTransport:
    """
    Get transport instance by name.

    Available transports:
    - httpx: Async HTTP client (default)
    - aiohttp: Async HTTP client
    - requests: Sync HTTP client (wrapped in async interface)
    """
    name = name.lower()
    if name == "httpx":
        return HttpxTransport(timeout)
    elif name == "aiohttp":
        try:
            from .aiohttp import AiohttpTransport
        except ImportError as err:
            raise ImportError(
                "aiohttp transport requires aiohttp package. Install with: pip install 'promofire-sdk[aiohttp]'"
            ) from err
        return AiohttpTransport(timeout)
    elif name == "requests":
        try:
            from .requests import RequestsTransport
        except ImportError as err:
            raise ImportError(
                "requests transport requires requests package. Install with: pip install 'promofire-sdk[requests]'"
            ) from err
        return RequestsTransport(timeout)
    else:
        raise ValueError(
            f"Unknown transport: {name}. Available: httpx, aiohttp, requests"
        )


__all__ = ["BaseTransport", "UnifiedResponse", "HttpxTransport", "get_transport"]
