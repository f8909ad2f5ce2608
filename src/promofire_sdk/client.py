"""
Async-first Promofire SDK Client.

This module provides the main PromofireClient class that fronts the Promofire
promo-code service. Features include:

- Call domain operations at any time: calls made while the SDK is still
  configuring are parked and replayed once the session is ready
- Three-step session establishment with token rotation and persistence
- Multiple HTTP transport backends (httpx, aiohttp, requests)
- Pluggable middleware system for request/response processing
- Cached campaign listing with TTL
- Retry logic with exponential backoff for idempotent reads

Example usage:
    from promofire_sdk import PromofireClient, UserInfo

    async with PromofireClient() as client:
        client.configure("sdk-secret", UserInfo(email="jane@example.com"))

        # Safe to call right away, waits for configuration
        campaigns = await client.get_campaigns(limit=10, offset=0)
        if await client.is_code_generation_available():
            code = await client.generate_code("WELCOME10", campaigns.templates[0].id)
"""

import asyncio
import json
import logging
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Optional
from uuid import UUID
from uuid import uuid4

from aiocache import SimpleMemoryCache

from promofire_sdk.api import PromofireAPI
from promofire_sdk.barrier import ConfigurationBarrier
from promofire_sdk.barrier import ReadinessState
from promofire_sdk.config import PromofireSettings
from promofire_sdk.logging_middleware import LoggingMiddleware
from promofire_sdk.middleware import Middleware
from promofire_sdk.models import Code
from promofire_sdk.models import CodeRedeems
from promofire_sdk.models import Codes
from promofire_sdk.models import CodeTemplate
from promofire_sdk.models import CodeTemplates
from promofire_sdk.models import CreateCodeRequest
from promofire_sdk.models import CreateCodesRequest
from promofire_sdk.models import Customer
from promofire_sdk.models import RedeemCodeRequest
from promofire_sdk.models import UpdateCustomerSelf
from promofire_sdk.models import UserInfo
from promofire_sdk.session import SessionStore
from promofire_sdk.token_store import FileTokenStore
from promofire_sdk.token_store import MemoryTokenStore
from promofire_sdk.token_store import TokenStore
from promofire_sdk.transport import get_transport
from promofire_sdk.transport.base import BaseTransport
from promofire_sdk.workflow import ConfigurationWorkflow

logger = logging.getLogger("promofire_sdk.client")


def format_date(value: datetime) -> str:
    """ISO-8601 in UTC with milliseconds, e.g. ``2024-10-01T12:00:00.000Z``.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_id(value: UUID | str) -> str:
    """Canonical UUID string; raises ValueError for anything that is not a UUID."""
    if isinstance(value, UUID):
        return str(value)
    return str(UUID(str(value)))


def _check_page(limit: int, offset: int) -> None:
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    if offset < 0:
        raise ValueError(f"offset must not be negative, got {offset}")


def _check_range(date_from: datetime, date_to: datetime) -> None:
    if date_from > date_to:
        raise ValueError("date_from must not be later than date_to")


class PromofireClient:
    """
    Async facade of the Promofire service.

    One instance represents one session. Construct it once in the host
    application and share it; every domain operation goes through the
    configuration barrier, so it may be called before ``configure()`` has
    finished.

    Args:
        settings (PromofireSettings | None): SDK configuration; loaded from the
            environment when omitted.
        transport_name (str | None): Transport backend ('httpx', 'aiohttp',
            'requests'). Defaults to settings.transport.
        middlewares (list[Middleware] | None): Optional request/response hooks.
        token_store (TokenStore | None): Where the session token is persisted.
            Defaults to a FileTokenStore at settings.token_cache_path, or an
            in-memory store when settings.persist_token is False.
        transport (BaseTransport | None): Ready-made transport instance, takes
            precedence over ``transport_name``.
    """

    def __init__(
        self,
        settings: Optional[PromofireSettings] = None,
        transport_name: str | None = None,
        middlewares: list[Middleware] | None = None,
        token_store: TokenStore | None = None,
        transport: BaseTransport | None = None,
    ):
        self.settings = settings or PromofireSettings()

        if token_store is None:
            token_store = (
                FileTokenStore(self.settings.token_cache_path)
                if self.settings.persist_token
                else MemoryTokenStore()
            )
        self.session = SessionStore(token_store)

        self.transport = transport or get_transport(
            transport_name or self.settings.transport, timeout=self.settings.timeout
        )
        self.middlewares = list(middlewares or [])
        if self.settings.debug:
            logging.getLogger("promofire_sdk").setLevel(logging.DEBUG)
            if not any(isinstance(mw, LoggingMiddleware) for mw in self.middlewares):
                self.middlewares.append(LoggingMiddleware())

        self.api = PromofireAPI(
            self.settings, self.transport, self.session, self.middlewares
        )
        self.workflow = ConfigurationWorkflow(self.api, self.session, self.settings)
        self.barrier = ConfigurationBarrier()
        # Memory backend storage may be shared between instances, so every
        # client keys its entries under its own namespace.
        self._cache_namespace = f"promofire_sdk:{uuid4().hex}:"
        self._campaigns_cache = SimpleMemoryCache(namespace=self._cache_namespace)

    @property
    def state(self) -> ReadinessState:
        return self.barrier.state

    # === Session lifecycle ===

    def configure(
        self, secret: str | None = None, user_info: UserInfo | None = None
    ) -> asyncio.Task:
        """
        Start establishing a session. Returns immediately.

        Calling it again while configuring or configured does nothing. After a
        failed attempt the next call starts a fresh one. The returned task may be
        awaited to observe the outcome; it raises the workflow's error on failure.

        Args:
            secret (str | None): SDK secret; defaults to settings.secret.
            user_info (UserInfo | None): Optional identity hints.

        Raises:
            ValueError: If no secret is available.
        """
        secret = secret if secret is not None else self.settings.secret
        if not secret or not secret.strip():
            raise ValueError("SDK secret is missing or empty")

        epoch = self.session.epoch
        return self.barrier.configure(
            lambda: self.workflow.run(secret, user_info, epoch)
        )

    async def is_code_generation_available(self) -> bool:
        """True once configured and at least one campaign template exists."""
        return await self.barrier.is_available()

    async def logout(self) -> None:
        """
        Drop the session: clears the token, its persisted copy and the
        Authorization header, and returns the SDK to the unconfigured state.
        Operations waiting for an in-flight configuration fail with
        NotConfiguredError.
        """
        self.barrier.reset()
        await self.session.clear()
        await self._campaigns_cache.clear(namespace=self._cache_namespace)
        logger.info("Logged out")

    # === Campaigns ===

    async def get_campaigns(self, limit: int, offset: int) -> CodeTemplates:
        _check_page(limit, offset)
        return await self.barrier.run(lambda: self.api.get_templates(limit, offset))

    async def get_campaigns_cached(self, limit: int, offset: int) -> CodeTemplates:
        """
        Campaign listing served from an in-memory cache for
        ``settings.campaigns_cache_ttl`` seconds. Cache failures fall back to a
        live call; the cache is dropped on logout.
        """
        _check_page(limit, offset)
        key = f"campaigns:{limit}:{offset}"

        try:
            cached = await self._campaigns_cache.get(key)
            if cached is not None:
                logger.info(f"Cache HIT for {key}")
                return CodeTemplates.from_dict(json.loads(cached))
        except Exception as e:
            logger.warning(f"Failed to read cache for {key}: {e}")

        logger.info(f"Cache MISS for {key}, fetching from API")
        campaigns = await self.get_campaigns(limit, offset)

        try:
            await self._campaigns_cache.set(
                key,
                json.dumps(campaigns.to_dict()),
                ttl=self.settings.campaigns_cache_ttl,
            )
        except Exception as e:
            logger.error(f"Failed to write to cache for {key}: {e}")

        return campaigns

    async def get_campaign(self, campaign_id: UUID | str) -> CodeTemplate:
        template_id = format_id(campaign_id)
        return await self.barrier.run(lambda: self.api.get_template(template_id))

    # === Codes ===

    async def generate_code(
        self,
        value: str,
        template_id: UUID | str,
        payload: dict[str, Any] | None = None,
    ) -> Code:
        if not value or not value.strip():
            raise ValueError("Code value must not be empty")
        request = CreateCodeRequest(
            value=value, template_id=format_id(template_id), payload=payload
        )
        return await self.barrier.run(lambda: self.api.create_code(request))

    async def generate_codes(self, request: CreateCodesRequest) -> list[Code]:
        if request.count <= 0:
            raise ValueError(f"count must be positive, got {request.count}")
        return await self.barrier.run(lambda: self.api.create_codes(request))

    async def redeem_code(self, code_value: str) -> None:
        if not code_value or not code_value.strip():
            raise ValueError("Code value must not be empty")
        request = RedeemCodeRequest(
            code_value=code_value, platform=self.settings.platform
        )
        await self.barrier.run(lambda: self.api.redeem_code(request))

    async def get_current_user_codes(self, limit: int, offset: int) -> Codes:
        _check_page(limit, offset)
        return await self.barrier.run(lambda: self.api.get_own_codes(limit, offset))

    async def get_current_user_redeems(
        self,
        limit: int,
        offset: int,
        date_from: datetime,
        date_to: datetime,
        code_value: str | None = None,
    ) -> CodeRedeems:
        _check_page(limit, offset)
        _check_range(date_from, date_to)
        start, end = format_date(date_from), format_date(date_to)
        return await self.barrier.run(
            lambda: self.api.get_self_redeems(limit, offset, start, end, code_value)
        )

    async def get_code_redeems(
        self,
        limit: int,
        offset: int,
        date_from: datetime,
        date_to: datetime,
        code_value: str | None = None,
        redeemer_id: UUID | str | None = None,
    ) -> CodeRedeems:
        _check_page(limit, offset)
        _check_range(date_from, date_to)
        start, end = format_date(date_from), format_date(date_to)
        redeemer = format_id(redeemer_id) if redeemer_id is not None else None
        return await self.barrier.run(
            lambda: self.api.get_redeems(
                limit, offset, start, end, code_value, redeemer
            )
        )

    # === Customer ===

    async def get_current_user(self) -> Customer:
        return await self.barrier.run(self.api.get_customer_self)

    async def update_current_user(self, update: UpdateCustomerSelf) -> Customer:
        return await self.barrier.run(lambda: self.api.update_customer_self(update))

    # === Resources ===

    async def aclose(self):
        """
        Close the HTTP transport. Call it (or use ``async with``) before the
        application shuts down.
        """
        await self.transport.close()

    async def __aenter__(self) -> "PromofireClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
