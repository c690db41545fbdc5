"""Key-value storage over the Redis command set.

Redis and Kvrocks share this module; Upstash reuses KeyValueStorage with its
REST client. All three use the same key layout, so data moves between them
unchanged. User names have "%" and ":" percent-escaped:

    u:{user}:pwd                password
    u:{user}:pr:{key}           play record (JSON)
    u:{user}:fav:{key}          favorite (JSON)
    u:{user}:skip:{key}         skip config (JSON)
    u:{user}:sh                 search history (list, newest first)
    admin:config                admin config (JSON)
"""

import asyncio
import functools
import hmac
import logging
import re
from typing import Any, TypeVar

import redis.asyncio as aioredis
import redis.exceptions
from pydantic import BaseModel

from watchstore.config import Settings
from watchstore.errors import StorageBackendError, StorageConfigError
from watchstore.keys import storage_key
from watchstore.models import AdminConfig, Favorite, PlayRecord, SkipConfig
from watchstore.storage.repository import StorageBackend

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ADMIN_CONFIG_KEY = "admin:config"

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _glob_escape(value: str) -> str:
    """Escape glob metacharacters so a user name matches literally in KEYS."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


_USER_ESCAPES = (("%", "%25"), (":", "%3A"))


def _escape_user(user: str) -> str:
    """Percent-escape the key separator so a user name stays one key segment."""
    for raw, escaped in _USER_ESCAPES:
        user = user.replace(raw, escaped)
    return user


def _unescape_user(segment: str) -> str:
    for raw, escaped in reversed(_USER_ESCAPES):
        segment = segment.replace(escaped, raw)
    return segment


def _user_prefix(user: str) -> str:
    return f"u:{_escape_user(user)}:"


def _retrying(method):
    """Retry transient client failures and wrap every client error.

    Transient errors are retried with exponential backoff up to max_retries
    attempts. Whatever is left surfaces as StorageBackendError.
    """

    @functools.wraps(method)
    async def wrapper(self: "KeyValueStorage", *args: Any, **kwargs: Any):
        attempt = 1
        while True:
            try:
                return await method(self, *args, **kwargs)
            except self.transient_errors as e:
                if attempt >= self._max_retries:
                    raise StorageBackendError(
                        f"{self.name} unreachable after {attempt} attempt(s): {e}"
                    ) from e
                delay = self._retry_backoff * 2 ** (attempt - 1)
                logger.warning(
                    "%s %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    self.name, method.__name__, attempt, self._max_retries, delay, e,
                )
                await asyncio.sleep(delay)
                attempt += 1
            except self.client_errors as e:
                raise StorageBackendError(f"{self.name} {method.__name__} failed: {e}") from e

    return wrapper


class KeyValueStorage(StorageBackend):
    """Storage contract implemented with Redis-style commands.

    Works with any async client exposing get/set/mget/keys/delete/exists and
    the list commands, decoding responses to str.
    """

    # Errors worth another attempt, and errors that only get wrapped.
    transient_errors: tuple[type[BaseException], ...] = ()
    client_errors: tuple[type[BaseException], ...] = ()

    def __init__(
        self,
        client: Any,
        *,
        search_history_limit: int = 20,
        max_retries: int = 3,
        retry_backoff: float = 0.1,
    ) -> None:
        self._client = client
        self._history_limit = search_history_limit
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff

    # Helpers

    async def _get_model(self, key: str, model: type[M]) -> M | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return model.model_validate_json(raw)

    async def _get_models(self, prefix: str, model: type[M]) -> dict[str, M]:
        """Load every value under a key prefix, keyed by the remainder of the key."""
        keys = await self._client.keys(_glob_escape(prefix) + "*")
        if not keys:
            return {}
        values = await self._client.mget(*keys)
        return {
            key[len(prefix):]: model.model_validate_json(raw)
            for key, raw in zip(keys, values)
            if raw is not None
        }

    # Play records

    @_retrying
    async def get_play_record(self, user: str, key: str) -> PlayRecord | None:
        return await self._get_model(f"{_user_prefix(user)}pr:{key}", PlayRecord)

    @_retrying
    async def set_play_record(self, user: str, key: str, record: PlayRecord) -> None:
        await self._client.set(f"{_user_prefix(user)}pr:{key}", record.model_dump_json())

    @_retrying
    async def get_all_play_records(self, user: str) -> dict[str, PlayRecord]:
        return await self._get_models(f"{_user_prefix(user)}pr:", PlayRecord)

    @_retrying
    async def delete_play_record(self, user: str, key: str) -> None:
        await self._client.delete(f"{_user_prefix(user)}pr:{key}")

    # Favorites

    @_retrying
    async def get_favorite(self, user: str, key: str) -> Favorite | None:
        return await self._get_model(f"{_user_prefix(user)}fav:{key}", Favorite)

    @_retrying
    async def set_favorite(self, user: str, key: str, favorite: Favorite) -> None:
        await self._client.set(f"{_user_prefix(user)}fav:{key}", favorite.model_dump_json())

    @_retrying
    async def get_all_favorites(self, user: str) -> dict[str, Favorite]:
        return await self._get_models(f"{_user_prefix(user)}fav:", Favorite)

    @_retrying
    async def delete_favorite(self, user: str, key: str) -> None:
        await self._client.delete(f"{_user_prefix(user)}fav:{key}")

    # Users

    @_retrying
    async def register_user(self, user: str, password: str) -> None:
        await self._client.set(f"{_user_prefix(user)}pwd", password)

    @_retrying
    async def verify_user(self, user: str, password: str) -> bool:
        stored = await self._client.get(f"{_user_prefix(user)}pwd")
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode(), password.encode())

    @_retrying
    async def check_user_exist(self, user: str) -> bool:
        return bool(await self._client.exists(f"{_user_prefix(user)}pwd"))

    @_retrying
    async def change_password(self, user: str, new_password: str) -> None:
        await self._client.set(f"{_user_prefix(user)}pwd", new_password)

    @_retrying
    async def delete_user(self, user: str) -> None:
        prefix = _user_prefix(user)
        keys = [f"{prefix}pwd", f"{prefix}sh"]
        for kind in ("pr", "fav", "skip"):
            keys.extend(await self._client.keys(f"{_glob_escape(prefix)}{kind}:*"))
        await self._client.delete(*keys)

    @_retrying
    async def get_all_users(self) -> list[str]:
        keys = await self._client.keys("u:*:pwd")
        # Escaped names never contain ":", so anything else is a per-item key
        segments = [key[len("u:"):-len(":pwd")] for key in keys]
        return [_unescape_user(s) for s in segments if ":" not in s]

    # Search history

    @_retrying
    async def get_search_history(self, user: str) -> list[str]:
        return list(await self._client.lrange(f"{_user_prefix(user)}sh", 0, -1))

    @_retrying
    async def add_search_history(self, user: str, keyword: str) -> None:
        key = f"{_user_prefix(user)}sh"
        await self._client.lrem(key, 0, keyword)
        await self._client.lpush(key, keyword)
        await self._client.ltrim(key, 0, self._history_limit - 1)

    @_retrying
    async def delete_search_history(self, user: str, keyword: str | None = None) -> None:
        key = f"{_user_prefix(user)}sh"
        if keyword is None:
            await self._client.delete(key)
        else:
            await self._client.lrem(key, 0, keyword)

    # Admin config

    @_retrying
    async def get_admin_config(self) -> AdminConfig | None:
        return await self._get_model(ADMIN_CONFIG_KEY, AdminConfig)

    @_retrying
    async def set_admin_config(self, config: AdminConfig) -> None:
        await self._client.set(ADMIN_CONFIG_KEY, config.to_json())

    # Skip configs

    @_retrying
    async def get_skip_config(self, user: str, source: str, video_id: str) -> SkipConfig | None:
        key = f"{_user_prefix(user)}skip:{storage_key(source, video_id)}"
        return await self._get_model(key, SkipConfig)

    @_retrying
    async def set_skip_config(
        self, user: str, source: str, video_id: str, config: SkipConfig
    ) -> None:
        key = f"{_user_prefix(user)}skip:{storage_key(source, video_id)}"
        await self._client.set(key, config.model_dump_json())

    @_retrying
    async def delete_skip_config(self, user: str, source: str, video_id: str) -> None:
        await self._client.delete(f"{_user_prefix(user)}skip:{storage_key(source, video_id)}")

    @_retrying
    async def get_all_skip_configs(self, user: str) -> dict[str, SkipConfig]:
        return await self._get_models(f"{_user_prefix(user)}skip:", SkipConfig)

    # Maintenance

    @_retrying
    async def clear_all_data(self) -> None:
        keys = await self._client.keys("u:*")
        await self._client.delete(ADMIN_CONFIG_KEY, *keys)
        logger.info("%s: cleared %d user key(s) and the admin config", self.name, len(keys))


class RedisStorage(KeyValueStorage):
    """Storage on a Redis server via redis.asyncio."""

    name = "redis"
    url_setting = "redis_url"

    transient_errors = (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)
    client_errors = (redis.exceptions.RedisError,)

    def __init__(self, url: str | None = None, *, client: Any = None, **options: Any) -> None:
        """Initialize the backend.

        Args:
            url: Server URL, e.g. ``redis://:secret@localhost:6379/0``.
            client: Ready-made async client; skips URL handling. Used by tests.
            **options: search_history_limit, max_retries, retry_backoff.

        Raises:
            StorageConfigError: If neither url nor client is given.
            ValueError: If the URL cannot be parsed.
        """
        if client is None:
            if not url:
                raise StorageConfigError(
                    f"{self.name} storage selected but WATCHSTORE_{self.url_setting.upper()} is not set"
                )
            client = aioredis.from_url(url, decode_responses=True)
        super().__init__(client, **options)

    @classmethod
    def from_settings(cls, config: Settings) -> "RedisStorage":
        return cls(
            getattr(config, cls.url_setting),
            search_history_limit=config.search_history_limit,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )

    async def close(self) -> None:
        await self._client.aclose()


class KvrocksStorage(RedisStorage):
    """Storage on Kvrocks, which speaks the Redis protocol."""

    name = "kvrocks"
    url_setting = "kvrocks_url"
