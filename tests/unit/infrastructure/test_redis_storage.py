import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from deeplink_auth.core.exceptions import StorageError
from deeplink_auth.infrastructure.storage.redis import RedisStorageBackend


@pytest.fixture
def redis_client(mocker):
    return mocker.AsyncMock()


@pytest.fixture
def backend(redis_client):
    return RedisStorageBackend(redis_client, prefix="authctx").scoped("session-a")


@pytest.mark.asyncio
async def test_keys_are_prefixed_and_namespaced(backend, redis_client):
    redis_client.get.return_value = "v"

    assert await backend.get("oauth_state") == "v"
    redis_client.get.assert_awaited_once_with("authctx:session-a:oauth_state")


@pytest.mark.asyncio
async def test_set_passes_ttl(backend, redis_client):
    await backend.set("auth_flow", "payload", ttl_seconds=600)
    redis_client.set.assert_awaited_once_with("authctx:session-a:auth_flow", "payload", ex=600)


@pytest.mark.asyncio
async def test_set_without_ttl(backend, redis_client):
    await backend.set("auth_flow", "payload")
    redis_client.set.assert_awaited_once_with("authctx:session-a:auth_flow", "payload", ex=None)


@pytest.mark.asyncio
async def test_pop_uses_getdel(backend, redis_client):
    redis_client.getdel.return_value = "state-entry"

    assert await backend.pop("oauth_state") == "state-entry"
    redis_client.getdel.assert_awaited_once_with("authctx:session-a:oauth_state")
    redis_client.get.assert_not_called()


@pytest.mark.asyncio
async def test_reads_degrade_to_miss(backend, redis_client):
    redis_client.get.side_effect = RedisConnectionError("down")
    redis_client.getdel.side_effect = RedisConnectionError("down")

    assert await backend.get("auth_flow") is None
    assert await backend.pop("oauth_state") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["set", "remove", "clear"])
async def test_writes_raise_storage_error(backend, redis_client, operation):
    redis_client.set.side_effect = RedisConnectionError("down")
    redis_client.delete.side_effect = RedisConnectionError("down")

    with pytest.raises(StorageError):
        if operation == "set":
            await backend.set("auth_flow", "payload")
        elif operation == "remove":
            await backend.remove("auth_flow")
        else:
            await backend.clear(keys=["auth_flow"])


@pytest.mark.asyncio
async def test_clear_explicit_keys(backend, redis_client):
    await backend.clear(keys=["auth_flow", "oauth_state"])
    redis_client.delete.assert_awaited_once_with(
        "authctx:session-a:auth_flow", "authctx:session-a:oauth_state"
    )


@pytest.mark.asyncio
async def test_clear_scans_namespace(backend, redis_client, mocker):
    async def scan_iter(match):
        assert match == "authctx:session-a:*"
        for key in ("authctx:session-a:auth_flow", "authctx:session-a:oauth_state"):
            yield key

    redis_client.scan_iter = mocker.MagicMock(side_effect=scan_iter)

    await backend.clear()

    redis_client.delete.assert_awaited_once_with(
        "authctx:session-a:auth_flow", "authctx:session-a:oauth_state"
    )


@pytest.mark.asyncio
async def test_close(redis_client):
    await RedisStorageBackend(redis_client).close()
    redis_client.aclose.assert_awaited_once()
