"""
Synchronous wrapper for PromofireClient.

This module provides a blocking interface on top of the async PromofireClient
for code that does not run an event loop. The wrapper owns a private event loop
that lives as long as the wrapper: the configuration workflow runs as a task on
that loop and keeps progressing during every subsequent blocking call.
"""

import asyncio
from datetime import datetime
from typing import Any
from uuid import UUID

from .client import PromofireClient
from .config import PromofireSettings
from .models import Code
from .models import CodeRedeems
from .models import Codes
from .models import CodeTemplate
from .models import CodeTemplates
from .models import CreateCodesRequest
from .models import Customer
from .models import UpdateCustomerSelf
from .models import UserInfo
from .token_store import TokenStore
from .transport.base import BaseTransport


class PromofireClientSync:
    """
    Synchronous wrapper for PromofireClient.

    Example:
        with PromofireClientSync(settings) as client:
            client.configure("sdk-secret")
            campaigns = client.get_campaigns(limit=10, offset=0)
    """

    def __init__(
        self,
        settings: PromofireSettings | None = None,
        transport_name: str | None = None,
        token_store: TokenStore | None = None,
        transport: BaseTransport | None = None,
    ):
        """
        Initialize the synchronous client.

        Args:
            settings: SDK configuration settings
            transport_name: HTTP transport to use (httpx, aiohttp, requests)
            token_store: Where the session token is persisted
            transport: Ready-made transport instance
        """
        self._loop = asyncio.new_event_loop()
        self._configure_task: asyncio.Task | None = None
        self._async_client = PromofireClient(
            settings=settings,
            transport_name=transport_name,
            token_store=token_store,
            transport=transport,
        )

    def _run(self, coro):
        return self._loop.run_until_complete(coro)

    def configure(self, secret: str | None = None, user_info: UserInfo | None = None):
        """
        Start configuration on the private loop. Like the async client, this does
        not wait for the workflow; use ``wait_configured()`` to block on it.
        """

        async def _start():
            return self._async_client.configure(secret, user_info)

        self._configure_task = self._run(_start())

    def wait_configured(self) -> None:
        """
        Block until the current configuration attempt settles.

        Raises:
            PromofireError: The workflow's error if the attempt failed.
        """
        if self._configure_task is not None:
            self._run(self._configure_task)

    def is_code_generation_available(self) -> bool:
        return self._run(self._async_client.is_code_generation_available())

    def logout(self) -> None:
        self._run(self._async_client.logout())

    def get_campaigns(self, limit: int, offset: int) -> CodeTemplates:
        return self._run(self._async_client.get_campaigns(limit, offset))

    def get_campaign(self, campaign_id: UUID | str) -> CodeTemplate:
        return self._run(self._async_client.get_campaign(campaign_id))

    def generate_code(
        self,
        value: str,
        template_id: UUID | str,
        payload: dict[str, Any] | None = None,
    ) -> Code:
        return self._run(self._async_client.generate_code(value, template_id, payload))

    def generate_codes(self, request: CreateCodesRequest) -> list[Code]:
        return self._run(self._async_client.generate_codes(request))

    def redeem_code(self, code_value: str) -> None:
        self._run(self._async_client.redeem_code(code_value))

    def get_current_user(self) -> Customer:
        return self._run(self._async_client.get_current_user())

    def update_current_user(self, update: UpdateCustomerSelf) -> Customer:
        return self._run(self._async_client.update_current_user(update))

    def get_current_user_codes(self, limit: int, offset: int) -> Codes:
        return self._run(self._async_client.get_current_user_codes(limit, offset))

    def get_current_user_redeems(
        self,
        limit: int,
        offset: int,
        date_from: datetime,
        date_to: datetime,
        code_value: str | None = None,
    ) -> CodeRedeems:
        return self._run(
            self._async_client.get_current_user_redeems(
                limit, offset, date_from, date_to, code_value
            )
        )

    def get_code_redeems(
        self,
        limit: int,
        offset: int,
        date_from: datetime,
        date_to: datetime,
        code_value: str | None = None,
        redeemer_id: UUID | str | None = None,
    ) -> CodeRedeems:
        return self._run(
            self._async_client.get_code_redeems(
                limit, offset, date_from, date_to, code_value, redeemer_id
            )
        )

    def close(self):
        """
        Synchronous cleanup of client resources and the private loop.
        """
        if self._loop.is_closed():
            return
        try:
            self._run(self._async_client.aclose())
        finally:
            self._loop.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
