"""Host information attached to the customer profile during configuration."""

import platform as _platform

from promofire_sdk.config import PromofireSettings
from promofire_sdk.models import CreateCustomerRequest
from promofire_sdk.models import UserInfo

SDK_VERSION = "1.0.0"


def create_customer_request(
    settings: PromofireSettings, user_info: UserInfo | None = None
) -> CreateCustomerRequest:
    user_info = user_info or UserInfo()
    return CreateCustomerRequest(
        platform=settings.platform,
        device=_platform.machine() or "Unknown",
        os=f"{_platform.system()} {_platform.release()}".strip() or "Unknown",
        app_build=settings.app_build,
        app_version=settings.app_version,
        sdk_version=SDK_VERSION,
        tenant_assigned_id=user_info.customer_user_id,
        first_name=user_info.first_name,
        last_name=user_info.last_name,
        email=user_info.email,
        phone=user_info.phone,
    )
