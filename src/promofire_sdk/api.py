"""
Remote calls of the Promofire API.

PromofireAPI has one coroutine per endpoint. Every call:

- injects the current ``Authorization: Bearer <token>`` header from the SessionStore
- runs the middleware chain around the transport call
- turns non-2xx responses into BackendError (structured body) or UnknownError
- validates the body into a pydantic model, raising DecodingError on mismatch

Idempotent reads can be retried on TransportError with tenacity; the calls of the
configuration workflow and all mutating calls are sent exactly once.
"""

import logging
from typing import Any
from typing import Optional

from pydantic import TypeAdapter
from pydantic import ValidationError
from tenacity import AsyncRetrying
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from promofire_sdk.config import PromofireSettings
from promofire_sdk.exceptions import BackendError
from promofire_sdk.exceptions import DecodingError
from promofire_sdk.exceptions import PromofireError
from promofire_sdk.exceptions import TransportError
from promofire_sdk.exceptions import UnknownError
from promofire_sdk.middleware import Middleware
from promofire_sdk.models import AuthResponse
from promofire_sdk.models import Code
from promofire_sdk.models import CodeRedeems
from promofire_sdk.models import Codes
from promofire_sdk.models import CodeTemplate
from promofire_sdk.models import CodeTemplates
from promofire_sdk.models import CreateCodeRequest
from promofire_sdk.models import CreateCodesRequest
from promofire_sdk.models import CreateCustomerPresetRequest
from promofire_sdk.models import CreateCustomerRequest
from promofire_sdk.models import Customer
from promofire_sdk.models import RedeemCodeRequest
from promofire_sdk.models import SdkAuthRequest
from promofire_sdk.models import UpdateCustomerSelf
from promofire_sdk.session import SessionStore
from promofire_sdk.transport.base import BaseTransport
from promofire_sdk.transport.base import UnifiedResponse

logger = logging.getLogger("promofire_sdk.api")


_CODE_LIST = TypeAdapter(list[Code])


def _decode(adapter: Any, data: Any) -> Any:
    validate = getattr(adapter, "model_validate", None) or adapter.validate_python
    try:
        return validate(data)
    except ValidationError as err:
        raise DecodingError(f"Unexpected response shape: {err}", details=data) from err


def _query(**params: Any) -> dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


async def error_from_response(response: UnifiedResponse) -> PromofireError:
    """Build the exception describing a non-2xx response."""
    try:
        body = await response.json()
    except DecodingError:
        body = None

    if isinstance(body, dict):
        error_type = body.get("error")
        message = body.get("message")
        if isinstance(message, list):
            message = "; ".join(str(item) for item in message)
        if (
            isinstance(error_type, str)
            and error_type
            and isinstance(message, str)
            and message
        ):
            status_code = body.get("statusCode")
            if not isinstance(status_code, int):
                status_code = response.status_code
            return BackendError(error_type, message, status_code, details=body)

    return UnknownError(
        f"Unexpected status: {response.status_code}",
        details=response.text,
        status_code=response.status_code,
    )


class PromofireAPI:
    """
    Thin async binding of the Promofire REST endpoints.

    Args:
        settings (PromofireSettings): Base URL and retry configuration.
        transport (BaseTransport): HTTP backend.
        session (SessionStore): Source of the Authorization header.
        middlewares (list[Middleware] | None): Request/response hooks.
    """

    def __init__(
        self,
        settings: PromofireSettings,
        transport: BaseTransport,
        session: SessionStore,
        middlewares: Optional[list[Middleware]] = None,
    ):
        self.settings = settings
        self.transport = transport
        self.session = session
        self.middlewares = middlewares or []
        self._retry_attempts = settings.retry_attempts
        self._retry_wait = wait_exponential(multiplier=0.5, min=1, max=5)

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        retry: bool = False,
    ) -> Any:
        attempts = self._retry_attempts if retry else 1
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(TransportError),
            reraise=True,
        ):
            with attempt:
                return await self._send(method, path, params=params, json=json)
        raise UnknownError(f"{method} {path} was never sent")

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        url = self._url(path)
        # Header snapshot is taken at send time, never when the call was queued.
        headers = {"Accept": "application/json", **self.session.auth_headers()}

        # === MIDDLEWARE: before request ===
        for mw in self.middlewares:
            await mw.on_request(
                method=method, url=url, headers=headers, params=params, json=json
            )

        try:
            response = await self.transport.request(
                method=method, url=url, headers=headers, params=params, json=json
            )
        except PromofireError:
            raise
        except Exception as err:
            raise UnknownError(f"{method} {path} failed: {err}") from err

        # === MIDDLEWARE: after response ===
        for mw in self.middlewares:
            await mw.on_response(response)

        if response.is_success:
            return await response.json()

        error = await error_from_response(response)
        logger.debug(f"{method} {path} -> {response.status_code}: {error}")
        raise error

    # === Auth & customers ===

    async def sign_in_via_sdk(self, secret: str) -> AuthResponse:
        data = await self._request(
            "POST", "/auth/sdk", json=SdkAuthRequest(secret=secret).to_dict()
        )
        return _decode(AuthResponse, data)

    async def create_customer_preset(self, platform: str) -> AuthResponse:
        data = await self._request(
            "POST",
            "/customers/preset",
            json=CreateCustomerPresetRequest(platform=platform).to_dict(),
        )
        return _decode(AuthResponse, data)

    async def upsert_customer(self, request: CreateCustomerRequest) -> AuthResponse:
        data = await self._request("PUT", "/customers", json=request.to_dict())
        return _decode(AuthResponse, data)

    async def get_customer_self(self) -> Customer:
        data = await self._request("GET", "/customers/me", retry=True)
        return _decode(Customer, data)

    async def update_customer_self(self, update: UpdateCustomerSelf) -> Customer:
        data = await self._request("PATCH", "/customers/me", json=update.to_dict())
        return _decode(Customer, data)

    # === Code templates (campaigns) ===

    async def get_templates(
        self, limit: int, offset: int, retry: bool = True
    ) -> CodeTemplates:
        data = await self._request(
            "GET",
            "/code-templates",
            params=_query(limit=limit, offset=offset),
            retry=retry,
        )
        return _decode(CodeTemplates, data)

    async def get_template(self, template_id: str) -> CodeTemplate:
        data = await self._request(
            "GET", f"/code-templates/{template_id}", retry=True
        )
        return _decode(CodeTemplate, data)

    # === Codes ===

    async def create_code(self, request: CreateCodeRequest) -> Code:
        data = await self._request("POST", "/codes", json=request.to_dict())
        return _decode(Code, data)

    async def create_codes(self, request: CreateCodesRequest) -> list[Code]:
        data = await self._request("POST", "/codes/batch", json=request.to_dict())
        return _decode(_CODE_LIST, data)

    async def redeem_code(self, request: RedeemCodeRequest) -> None:
        await self._request("POST", "/codes/redeem", json=request.to_dict())

    async def get_own_codes(self, limit: int, offset: int) -> Codes:
        data = await self._request(
            "GET", "/codes/me", params=_query(limit=limit, offset=offset), retry=True
        )
        return _decode(Codes, data)

    async def get_self_redeems(
        self,
        limit: int,
        offset: int,
        date_from: str,
        date_to: str,
        code_value: Optional[str] = None,
    ) -> CodeRedeems:
        params = _query(
            limit=limit,
            offset=offset,
            codeValue=code_value,
            **{"from": date_from, "to": date_to},
        )
        data = await self._request(
            "GET", "/codes/redeems/me", params=params, retry=True
        )
        return _decode(CodeRedeems, data)

    async def get_redeems(
        self,
        limit: int,
        offset: int,
        date_from: str,
        date_to: str,
        code_value: Optional[str] = None,
        redeemer_id: Optional[str] = None,
    ) -> CodeRedeems:
        params = _query(
            limit=limit,
            offset=offset,
            codeValue=code_value,
            redeemerId=redeemer_id,
            **{"from": date_from, "to": date_to},
        )
        data = await self._request("GET", "/codes/redeems", params=params, retry=True)
        return _decode(CodeRedeems, data)
