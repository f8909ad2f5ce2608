"""
Session establishment exchange.

ConfigurationWorkflow runs, strictly in order:

1. sign in with the SDK secret -> service-scoped token
2. create the device-scoped customer preset -> rotated token
3. upsert the customer profile from the identity hints -> final token
4. probe code templates (limit 1) -> availability flag

Each token is committed to the SessionStore before the next request is sent.
The first failure aborts the exchange and is raised unchanged; nothing here retries.
"""

import logging
from typing import Optional

from promofire_sdk.api import PromofireAPI
from promofire_sdk.config import PromofireSettings
from promofire_sdk.device import create_customer_request
from promofire_sdk.models import UserInfo
from promofire_sdk.session import SessionStore

logger = logging.getLogger("promofire_sdk.workflow")


class ConfigurationWorkflow:
    def __init__(
        self,
        api: PromofireAPI,
        session: SessionStore,
        settings: PromofireSettings,
    ):
        self.api = api
        self.session = session
        self.settings = settings

    async def run(
        self,
        secret: str,
        user_info: Optional[UserInfo] = None,
        epoch: Optional[int] = None,
    ) -> bool:
        """
        Establish a session and report whether code generation is available.

        Args:
            secret (str): SDK secret of the tenant.
            user_info (UserInfo | None): Optional identity hints for the profile.
            epoch (int | None): Session epoch this attempt belongs to; token commits
                fail with NotConfiguredError once the session has been cleared.

        Returns:
            bool: True if at least one code template exists.
        """
        logger.debug("Signing in with SDK secret")
        auth = await self.api.sign_in_via_sdk(secret)
        await self.session.commit(auth.access_token, epoch)

        logger.debug(f"Creating customer preset for platform '{self.settings.platform}'")
        preset = await self.api.create_customer_preset(self.settings.platform)
        await self.session.commit(preset.access_token, epoch)

        logger.debug("Upserting customer profile")
        customer = await self.api.upsert_customer(
            create_customer_request(self.settings, user_info)
        )
        await self.session.commit(customer.access_token, epoch)

        templates = await self.api.get_templates(limit=1, offset=0, retry=False)
        available = bool(templates.templates)
        if not available:
            logger.info("No code templates found, code generation is unavailable")
        return available
