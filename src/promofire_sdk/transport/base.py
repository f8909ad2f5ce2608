import json
from typing import Any

from promofire_sdk.exceptions import DecodingError


class UnifiedResponse:
    """
    Unified response wrapper that handles differences between HTTP clients.
    Every transport reads the body eagerly and hands over status, text and headers,
    so callers get the same async interface regardless of the backend.
    """

    def __init__(
        self,
        status_code: int,
        text: str = "",
        headers: dict[str, str] | None = None,
    ):
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    async def json(self) -> Any:
        """
        Decode the body as JSON. An empty body decodes to None.

        Raises:
            DecodingError: If the body is not valid JSON.
        """
        if not self.text or not self.text.strip():
            return None
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as err:
            raise DecodingError(
                f"Response body is not valid JSON: {err}", details=self.text
            ) from err


class BaseTransport:
    """
    Abstract transport layer interface for Promofire SDK.
    All HTTP client backends should inherit from this class.

    Implementations must raise TransportError for network-level failures.

    Supported transports:
    - httpx: Native async HTTP client
    - aiohttp: Native async HTTP client
    - requests: Sync HTTP client wrapped in async interface
    """

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
        timeout: float | None = None,
    ) -> UnifiedResponse:
        """
        Async request method for all transports.
        Override this method in transport implementations.
        """
        raise NotImplementedError(
            "Transport implementations must override this method."
        )

    async def close(self):
        """Release connections held by the backend."""
