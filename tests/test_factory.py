"""Tests for backend selection and the storage singleton."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from watchstore.config import Settings
from watchstore.service import DbManager
from watchstore.storage import factory
from watchstore.storage.factory import StorageType, create_storage, get_storage, reset_storage
from watchstore.storage.memory import MemoryStorage
from watchstore.storage.null import NullStorage
from watchstore.storage.redis_family import KvrocksStorage, RedisStorage
from watchstore.storage.upstash import UpstashStorage


class _BrokenStorage:
    """Backend family whose constructor always fails."""

    @classmethod
    def from_settings(cls, config):
        raise RuntimeError("cluster unreachable")


class TestStorageType:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("redis", StorageType.REDIS),
            ("REDIS", StorageType.REDIS),
            (" kvrocks ", StorageType.KVROCKS),
            ("upstash", StorageType.UPSTASH),
            ("none", StorageType.NONE),
            ("localstorage", StorageType.NONE),
            ("", StorageType.NONE),
            (None, StorageType.NONE),
            ("mongodb", StorageType.NONE),
        ],
    )
    def test_parse(self, value, expected):
        assert StorageType.parse(value) is expected

    def test_unknown_value_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="watchstore.storage.factory"):
            StorageType.parse("mongodb")
        assert "mongodb" in caplog.text


class TestCreateStorage:
    def test_none_selects_fallback(self):
        assert isinstance(create_storage(Settings(storage_type="none")), NullStorage)

    def test_unknown_selects_fallback(self):
        assert isinstance(create_storage(Settings(storage_type="sqlite")), NullStorage)

    def test_redis(self):
        storage = create_storage(Settings(storage_type="redis", redis_url="redis://localhost:6379/0"))
        assert isinstance(storage, RedisStorage)

    def test_kvrocks(self):
        storage = create_storage(Settings(storage_type="kvrocks", kvrocks_url="redis://localhost:6666"))
        assert isinstance(storage, KvrocksStorage)

    async def test_upstash(self):
        storage = create_storage(
            Settings(storage_type="upstash", upstash_url="https://eu1.upstash.io", upstash_token="tok")
        )
        assert isinstance(storage, UpstashStorage)

    def test_missing_connection_settings_fall_back(self, caplog):
        with caplog.at_level(logging.ERROR, logger="watchstore.storage.factory"):
            storage = create_storage(Settings(storage_type="redis"))
        assert isinstance(storage, NullStorage)
        assert "Failed to initialise redis storage" in caplog.text

    def test_invalid_url_falls_back(self):
        storage = create_storage(Settings(storage_type="redis", redis_url="ftp://nowhere"))
        assert isinstance(storage, NullStorage)
        assert "redis initialisation failed" in storage.reason

    async def test_failing_constructor_yields_working_manager(self, monkeypatch):
        monkeypatch.setitem(factory._BACKENDS, StorageType.REDIS, _BrokenStorage)
        monkeypatch.setattr(factory, "settings", Settings(storage_type="redis"))

        db = DbManager()

        assert db.backend_name == "none"
        await db.register_user("alice", "p1")
        assert await db.verify_user("alice", "p1") is False
        assert await db.get_all_play_records("alice") == {}


class TestGetStorage:
    def test_memoized(self, monkeypatch):
        monkeypatch.setattr(factory, "settings", Settings(storage_type="none"))
        assert get_storage() is get_storage()

    def test_config_changes_ignored_until_reset(self, monkeypatch):
        monkeypatch.setattr(factory, "settings", Settings(storage_type="none"))
        first = get_storage()
        monkeypatch.setattr(
            factory, "settings", Settings(storage_type="redis", redis_url="redis://localhost:6379/0")
        )
        assert get_storage() is first
        reset_storage()
        assert isinstance(get_storage(), RedisStorage)

    def test_concurrent_first_use_builds_one_instance(self, monkeypatch):
        calls = []
        calls_lock = threading.Lock()

        def slow_create(config=None):
            with calls_lock:
                calls.append(1)
            time.sleep(0.05)
            return MemoryStorage()

        monkeypatch.setattr(factory, "create_storage", slow_create)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: get_storage(), range(16)))

        assert len(calls) == 1
        assert all(r is results[0] for r in results)

    def test_fallback_warning_logged_once(self, monkeypatch, caplog):
        monkeypatch.setattr(factory, "settings", Settings(storage_type="none"))
        with caplog.at_level(logging.WARNING):
            for _ in range(3):
                DbManager()
        assert caplog.text.count("Storage disabled") == 1
