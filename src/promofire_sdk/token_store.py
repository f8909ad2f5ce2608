# token_store.py

import json
import logging
from pathlib import Path

logger = logging.getLogger("promofire_sdk.token_store")

TOKEN_KEY = "promofire_access_token"


class TokenStore:
    """Abstract interface for durable token storage."""

    async def load(self) -> str | None:
        raise NotImplementedError

    async def save(self, access_token: str):
        raise NotImplementedError

    async def clear(self):
        """Removes the stored token"""
        raise NotImplementedError


class MemoryTokenStore(TokenStore):
    """Keeps the token for the lifetime of the process only."""

    def __init__(self):
        self._token: str | None = None

    async def load(self) -> str | None:
        return self._token

    async def save(self, access_token: str):
        self._token = access_token

    async def clear(self):
        self._token = None


class FileTokenStore(TokenStore):
    """Stores the token as ``{"promofire_access_token": ...}`` in a JSON file."""

    def __init__(self, path: Path):
        self.path = path

    async def load(self) -> str | None:
        logger.debug(f"Attempting to load token from: {self.path}")
        if not self.path.exists():
            logger.debug("Token file does not exist")
            return None
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.debug(f"Failed to load token file: {e}")
            return None
        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            logger.debug("Stored token data is invalid")
            return None
        return token

    async def save(self, access_token: str):
        try:
            logger.debug(f"Saving token to: {self.path}")
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps({TOKEN_KEY: access_token}))
            logger.debug("Token saved successfully")
        except OSError as e:
            logger.warning(f"Failed to save token: {e}")

    async def clear(self):
        try:
            if self.path.exists():
                self.path.unlink()
                logger.debug("Token file removed")
        except OSError as e:
            logger.warning(f"Failed to clear token file: {e}")
