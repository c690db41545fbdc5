"""Tests specific to the Upstash backend."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from upstash_redis.errors import UpstashError

from watchstore.config import Settings
from watchstore.errors import StorageBackendError, StorageConfigError
from watchstore.storage.upstash import UpstashStorage


class TestUpstashStorage:
    def test_requires_url_and_token(self):
        with pytest.raises(StorageConfigError):
            UpstashStorage("https://eu1.upstash.io")
        with pytest.raises(StorageConfigError):
            UpstashStorage(token="tok")

    async def test_from_settings(self):
        config = Settings(upstash_url="https://eu1.upstash.io", upstash_token="tok", max_retries=5)
        storage = UpstashStorage.from_settings(config)
        assert storage.name == "upstash"
        assert storage._max_retries == 5

    async def test_network_error_retried_then_raised(self):
        client = MagicMock()
        client.get = AsyncMock(side_effect=ConnectionResetError("reset"))
        storage = UpstashStorage(client=client, max_retries=2, retry_backoff=0)
        with pytest.raises(StorageBackendError):
            await storage.get_admin_config()
        assert client.get.await_count == 2

    async def test_close(self):
        client = MagicMock()
        client.close = AsyncMock()
        await UpstashStorage(client=client).close()
        client.close.assert_awaited_once()


class TestUpstashReplies:
    """Reply shapes of upstash_redis.asyncio.Redis: ints for EXISTS, lists with None for MGET."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        for command in ("get", "set", "mget", "keys", "delete", "exists", "lrange", "lrem", "lpush", "ltrim"):
            setattr(client, command, AsyncMock())
        return client

    async def test_exists_integer_reply(self, client):
        storage = UpstashStorage(client=client)
        client.exists.return_value = 1
        assert await storage.check_user_exist("alice") is True
        client.exists.return_value = 0
        assert await storage.check_user_exist("alice") is False
        client.exists.assert_awaited_with("u:alice:pwd")

    async def test_mget_skips_vanished_keys(self, client, sample_record):
        client.keys.return_value = ["u:alice:pr:src1+ep1", "u:alice:pr:src1+ep2"]
        client.mget.return_value = [sample_record.model_dump_json(), None]
        storage = UpstashStorage(client=client)

        records = await storage.get_all_play_records("alice")

        assert records == {"src1+ep1": sample_record}
        client.keys.assert_awaited_once_with("u:alice:pr:*")
        client.mget.assert_awaited_once_with("u:alice:pr:src1+ep1", "u:alice:pr:src1+ep2")

    async def test_keys_empty_reply_skips_mget(self, client):
        client.keys.return_value = []
        storage = UpstashStorage(client=client)
        assert await storage.get_all_favorites("alice") == {}
        client.mget.assert_not_awaited()

    async def test_get_none_reply(self, client):
        client.get.return_value = None
        storage = UpstashStorage(client=client)
        assert await storage.get_admin_config() is None
        assert await storage.verify_user("alice", "p1") is False

    async def test_lrange_reply(self, client):
        client.lrange.return_value = ["beta", "alpha"]
        storage = UpstashStorage(client=client)
        assert await storage.get_search_history("alice") == ["beta", "alpha"]
        client.lrange.assert_awaited_once_with("u:alice:sh", 0, -1)

    async def test_escaped_user_in_users_reply(self, client):
        client.keys.return_value = ["u:alice:pwd", "u:a%3Ab:pwd", "u:alice:pr:x:pwd"]
        storage = UpstashStorage(client=client)
        assert await storage.get_all_users() == ["alice", "a:b"]

    async def test_upstash_error_wrapped(self, client):
        client.set.side_effect = UpstashError("ERR max request size exceeded")
        storage = UpstashStorage(client=client, retry_backoff=0)
        with pytest.raises(StorageBackendError):
            await storage.register_user("alice", "p1")
        assert client.set.await_count == 1
