"""Upstash storage backend (Redis over HTTPS)."""

from typing import Any

from upstash_redis.asyncio import Redis
from upstash_redis.errors import UpstashError

from watchstore.config import Settings
from watchstore.errors import StorageConfigError
from watchstore.storage.redis_family import KeyValueStorage


class UpstashStorage(KeyValueStorage):
    """Storage on an Upstash database through its REST API.

    Uses the same key layout as the Redis backend; only the transport differs.
    Network failures surface from the HTTP layer as OSError subclasses.
    """

    name = "upstash"

    transient_errors = (OSError, TimeoutError)
    client_errors = (UpstashError,)

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        *,
        client: Any = None,
        **options: Any,
    ) -> None:
        if client is None:
            if not url or not token:
                raise StorageConfigError(
                    "upstash storage selected but WATCHSTORE_UPSTASH_URL "
                    "and WATCHSTORE_UPSTASH_TOKEN are not both set"
                )
            client = Redis(url=url, token=token)
        super().__init__(client, **options)

    @classmethod
    def from_settings(cls, config: Settings) -> "UpstashStorage":
        return cls(
            config.upstash_url,
            config.upstash_token,
            search_history_limit=config.search_history_limit,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )

    async def close(self) -> None:
        await self._client.close()
