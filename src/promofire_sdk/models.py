"""
Payload models for the Promofire API.

The service speaks camelCase JSON; models accept both the wire names and the
Python attribute names, and keep unknown fields so newer server versions do
not break decoding.
"""

import time
from typing import Any
from typing import Optional
from uuid import UUID

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class PromofireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    @classmethod
    def from_dict(cls, data: Any):
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation: camelCase keys, unset optionals dropped."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class UserInfo(PromofireModel):
    """Optional identity hints sent with the customer upsert."""

    customer_user_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class AuthResponse(PromofireModel):
    access_token: str


class SdkAuthRequest(PromofireModel):
    secret: str


class CreateCustomerPresetRequest(PromofireModel):
    platform: str


class CreateCustomerRequest(PromofireModel):
    platform: str
    device: Optional[str] = None
    os: Optional[str] = None
    app_build: Optional[str] = None
    app_version: Optional[str] = None
    sdk_version: Optional[str] = None
    tenant_assigned_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class CodeTemplate(PromofireModel):
    id: UUID
    name: Optional[str] = None


class CodeTemplates(PromofireModel):
    templates: list[CodeTemplate]
    total: int = 0


class Code(PromofireModel):
    value: str
    status: Optional[str] = None
    amount: Optional[str] = None
    expires_at: Optional[int] = None
    template_id: Optional[UUID] = None

    @property
    def is_infinite(self) -> bool:
        return (self.amount or "").lower() == "infinity"

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return int(time.time()) >= self.expires_at

    @property
    def is_valid(self) -> bool:
        """Active, not expired, and with redemptions left."""
        if self.status != "active" or self.is_expired:
            return False
        if self.is_infinite:
            return True
        try:
            return int(self.amount or 0) > 0
        except ValueError:
            return False


class Codes(PromofireModel):
    codes: list[Code]
    total: int = 0


class CreateCodeRequest(PromofireModel):
    value: str
    template_id: UUID
    payload: Optional[dict[str, Any]] = None


class CreateCodesRequest(PromofireModel):
    template_id: UUID
    count: int
    payload: Optional[dict[str, Any]] = None


class RedeemCodeRequest(PromofireModel):
    code_value: str
    platform: str


class CodeRedeem(PromofireModel):
    id: Optional[UUID] = None
    code_value: Optional[str] = None
    redeemer_id: Optional[UUID] = None
    created_at: Optional[str] = None


class CodeRedeems(PromofireModel):
    redeems: list[CodeRedeem]
    total: int = 0


class Customer(PromofireModel):
    id: Optional[UUID] = None
    tenant_assigned_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class UpdateCustomerSelf(PromofireModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
