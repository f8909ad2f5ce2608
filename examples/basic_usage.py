"""
Example usage of the Promofire SDK.

Domain calls are issued right after configure() without awaiting it; they wait
for the session and then run with the final token.
"""

import asyncio
import logging

from promofire_sdk import PromofireClient
from promofire_sdk import PromofireError
from promofire_sdk import PromofireSettings
from promofire_sdk import UserInfo
from promofire_sdk.logging_middleware import LoggingMiddleware

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    settings = PromofireSettings(
        base_url="https://api.stage.promofire.io",
        platform="web",
        app_version="1.4.0",
    )

    async with PromofireClient(settings, middlewares=[LoggingMiddleware()]) as client:
        client.configure(
            "your-sdk-secret",
            UserInfo(customer_user_id="user-42", email="jane@example.com"),
        )

        try:
            campaigns = await client.get_campaigns(limit=10, offset=0)
            logger.info(f"Found {campaigns.total} campaign(s)")

            if await client.is_code_generation_available():
                code = await client.generate_code(
                    "WELCOME10", campaigns.templates[0].id, {"source": "example"}
                )
                logger.info(f"Created code {code.value} (valid: {code.is_valid})")

            me = await client.get_current_user()
            logger.info(f"Signed in as {me.email}")
        except PromofireError as e:
            logger.error(f"Promofire call failed: {e}")
        finally:
            await client.logout()


if __name__ == "__main__":
    asyncio.run(main())
