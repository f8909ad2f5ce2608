import json
from unittest.mock import AsyncMock

import pytest

from promofire_sdk.exceptions import NotConfiguredError
from promofire_sdk.session import SessionStore
from promofire_sdk.token_store import TOKEN_KEY
from promofire_sdk.token_store import FileTokenStore
from promofire_sdk.token_store import MemoryTokenStore
from promofire_sdk.token_store import TokenStore


@pytest.mark.asyncio
async def test_file_token_store(tmp_path):
    path = tmp_path / "nested" / "token.json"
    store = FileTokenStore(path)

    assert await store.load() is None

    await store.save("abc123")
    assert json.loads(path.read_text()) == {TOKEN_KEY: "abc123"}
    assert await store.load() == "abc123"

    await store.clear()
    assert not path.exists()
    assert await store.load() is None


@pytest.mark.asyncio
async def test_file_token_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "token.json"
    path.write_text("{broken")
    assert await FileTokenStore(path).load() is None

    path.write_text(json.dumps({"other": "value"}))
    assert await FileTokenStore(path).load() is None


@pytest.mark.asyncio
async def test_session_commit_and_clear():
    """
    GIVEN: a SessionStore backed by a memory token store
    WHEN: a token is committed and then cleared
    THEN: headers and the persisted copy follow each change
    """
    store = MemoryTokenStore()
    session = SessionStore(store)
    assert session.auth_headers() == {}

    await session.commit("token-1")
    assert session.token == "token-1"
    assert session.auth_headers() == {"Authorization": "Bearer token-1"}
    assert await store.load() == "token-1"

    await session.clear()
    assert session.token is None
    assert session.auth_headers() == {}
    assert await store.load() is None


@pytest.mark.asyncio
async def test_session_rejects_stale_epoch():
    store = MemoryTokenStore()
    session = SessionStore(store)
    epoch = session.epoch

    await session.commit("token-1", epoch=epoch)
    await session.clear()

    with pytest.raises(NotConfiguredError):
        await session.commit("token-2", epoch=epoch)
    assert session.token is None
    assert await store.load() is None

    await session.commit("token-3", epoch=session.epoch)
    assert session.token == "token-3"



@pytest.mark.asyncio
async def test_session_mirrors_token_to_store():
    mock_token_store = AsyncMock(spec=TokenStore)
    session = SessionStore(mock_token_store)

    await session.commit("token-1")
    await session.clear()

    mock_token_store.save.assert_awaited_once_with("token-1")
    mock_token_store.clear.assert_awaited_once()
