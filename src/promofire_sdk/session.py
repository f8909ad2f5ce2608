"""
Session state shared by the configuration workflow and every remote call.

SessionStore owns the current bearer token. Writes go through an asyncio.Lock
so a token committed by one workflow step is persisted before the next step
(or any queued operation) reads it. Each logout bumps the session *epoch*;
a workflow started under an older epoch can no longer commit tokens.
"""

import asyncio
import logging
from typing import Optional

from promofire_sdk.exceptions import NotConfiguredError
from promofire_sdk.token_store import MemoryTokenStore
from promofire_sdk.token_store import TokenStore

logger = logging.getLogger("promofire_sdk.session")


class SessionStore:
    """
    Holds the active session token and turns it into request headers.

    Attributes:
        token_store (TokenStore): Durable backend the token is mirrored to.
    """

    def __init__(self, token_store: Optional[TokenStore] = None):
        self.token_store = token_store or MemoryTokenStore()
        self._token: Optional[str] = None
        self._epoch = 0
        self._lock = asyncio.Lock()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def epoch(self) -> int:
        return self._epoch

    def auth_headers(self) -> dict[str, str]:
        """Headers every outgoing request must carry for the current token."""
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    async def commit(self, token: str, epoch: Optional[int] = None) -> None:
        """
        Replace the current token and persist it.

        Args:
            token (str): New bearer token.
            epoch (int | None): Epoch the caller started under. When it no longer
                matches, the session was cleared in the meantime and the token
                is rejected.

        Raises:
            NotConfiguredError: If ``epoch`` is stale.
        """
        async with self._lock:
            if epoch is not None and epoch != self._epoch:
                logger.debug(
                    f"Rejecting token from stale epoch {epoch} (current {self._epoch})"
                )
                raise NotConfiguredError("Session was cleared while configuring.")
            self._token = token
            await self.token_store.save(token)

    async def clear(self) -> None:
        """Forget the token, invalidate the epoch and wipe persisted state."""
        # In-memory state is dropped before the first await so no request can
        # pick up the old header once clear() has been called.
        self._epoch += 1
        self._token = None
        async with self._lock:
            await self.token_store.clear()
        logger.debug("Session cleared")
