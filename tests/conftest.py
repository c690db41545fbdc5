"""Shared fixtures for watchstore tests."""

import fakeredis
import pytest

from watchstore.models import AdminConfig, Favorite, PlayRecord, SkipConfig
from watchstore.service import DbManager
from watchstore.storage import factory
from watchstore.storage.memory import MemoryStorage
from watchstore.storage.null import NullStorage
from watchstore.storage.redis_family import KvrocksStorage, RedisStorage
from watchstore.storage.upstash import UpstashStorage


@pytest.fixture(autouse=True)
def _fresh_singletons(monkeypatch):
    """Every test starts without a cached backend or manager."""
    factory.reset_storage()
    monkeypatch.setattr("watchstore.service._db", None)
    monkeypatch.setattr(NullStorage, "_warned", False)
    yield
    factory.reset_storage()


@pytest.fixture
def sample_record():
    return PlayRecord(
        title="The Long Night",
        source_name="Source One",
        cover="https://img.example.com/long-night.jpg",
        year="2023",
        index=3,
        total_episodes=12,
        play_time=754.5,
        total_time=2700.0,
        save_time=1718000000000,
        search_title="long night",
    )


@pytest.fixture
def sample_favorite():
    return Favorite(
        title="The Long Night",
        source_name="Source One",
        cover="https://img.example.com/long-night.jpg",
        year="2023",
        total_episodes=12,
        save_time=1718000000000,
        search_title="long night",
        origin="vod",
    )


@pytest.fixture
def sample_skip():
    return SkipConfig(enable=True, intro_time=90.0, outro_time=120.0)


@pytest.fixture
def sample_admin_config():
    return AdminConfig.model_validate(
        {
            "ConfigFile": "{}",
            "SiteConfig": {"SiteName": "Night Cinema", "Announcement": "Welcome"},
            "UserConfig": {"Users": [{"username": "alice", "role": "owner"}]},
            "SourceConfig": [
                {"key": "src1", "name": "Source One", "api": "https://api.example.com", "from": "config"}
            ],
            "CustomCategories": [{"type": "movie", "query": "sci-fi", "from": "custom"}],
        }
    )


@pytest.fixture
def fake_redis():
    """Async Redis client backed by an isolated in-process server."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def redis_storage(fake_redis):
    return RedisStorage(client=fake_redis, retry_backoff=0)


@pytest.fixture(params=["memory", "redis", "kvrocks", "upstash"])
def storage(request, fake_redis):
    """Every backend that actually stores data."""
    if request.param == "memory":
        return MemoryStorage()
    if request.param == "redis":
        return RedisStorage(client=fake_redis, retry_backoff=0)
    if request.param == "kvrocks":
        return KvrocksStorage(client=fake_redis, retry_backoff=0)
    return UpstashStorage(client=fake_redis, retry_backoff=0)


@pytest.fixture
def manager(storage):
    """DbManager over each storing backend in turn."""
    return DbManager(storage=storage)
