"""Backend selection and the process-wide storage singleton."""

import logging
import threading
from enum import Enum

from watchstore.config import Settings, settings
from watchstore.storage.null import NullStorage
from watchstore.storage.redis_family import KvrocksStorage, RedisStorage
from watchstore.storage.repository import StorageBackend
from watchstore.storage.upstash import UpstashStorage

logger = logging.getLogger(__name__)


class StorageType(str, Enum):
    """Supported backend families."""

    NONE = "none"
    REDIS = "redis"
    UPSTASH = "upstash"
    KVROCKS = "kvrocks"

    @classmethod
    def parse(cls, value: str | None) -> "StorageType":
        """Map a configured value to a family. Unknown or empty means NONE."""
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        if normalized and normalized != "localstorage":
            logger.warning("Unknown storage type %r, running without a backend", value)
        return cls.NONE


_BACKENDS = {
    StorageType.REDIS: RedisStorage,
    StorageType.UPSTASH: UpstashStorage,
    StorageType.KVROCKS: KvrocksStorage,
}


def create_storage(config: Settings | None = None) -> StorageBackend:
    """Build the backend named by the configuration.

    Never raises: a backend that fails to construct is logged and replaced
    by NullStorage, so the application keeps serving with storage disabled.
    """
    if config is None:
        config = settings
    storage_type = StorageType.parse(config.storage_type)
    backend_cls = _BACKENDS.get(storage_type)
    if backend_cls is None:
        return NullStorage()

    try:
        backend = backend_cls.from_settings(config)
    except Exception as e:
        logger.exception("Failed to initialise %s storage", storage_type.value)
        return NullStorage(reason=f"{storage_type.value} initialisation failed: {e}")

    logger.info("Using %s storage", backend.name)
    return backend


_storage: StorageBackend | None = None
_storage_lock = threading.Lock()


def get_storage() -> StorageBackend:
    """Return the process-wide backend, creating it on first use.

    The choice is fixed for the lifetime of the process; configuration
    changes are picked up only after a restart.
    """
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = create_storage()
    return _storage


def reset_storage() -> None:
    """Forget the cached backend. Intended for tests."""
    global _storage
    with _storage_lock:
        _storage = None
