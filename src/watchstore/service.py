"""Data-access façade for watchstore."""

import logging
import threading

from watchstore.keys import storage_key
from watchstore.models import AdminConfig, Favorite, PlayRecord, SkipConfig
from watchstore.storage.factory import get_storage
from watchstore.storage.repository import StorageBackend

logger = logging.getLogger(__name__)


class DbManager:
    """Single entry point for all watch-state reads and writes.

    Application code (web handlers, the CLI) talks to this class only. It
    turns (source, video_id) pairs into storage keys and delegates to the
    process-wide backend.

    Failure policy:
        - With no usable backend the NullStorage fallback is active: reads
          return nothing and writes are silently discarded. The only signal
          is the warning logged when the fallback was created.
        - Errors raised by a live backend (StorageBackendError) propagate
          unchanged. A failed save is never reported as success.
    """

    def __init__(self, storage: StorageBackend | None = None) -> None:
        """Initialize the manager.

        Args:
            storage: Backend to use. Defaults to the process-wide backend
                     selected from settings on first use.
        """
        self._storage = storage if storage is not None else get_storage()

    @property
    def backend_name(self) -> str:
        """Name of the active backend, e.g. "redis" or "none"."""
        return self._storage.name

    # Play records

    async def get_play_record(self, user: str, source: str, video_id: str) -> PlayRecord | None:
        return await self._storage.get_play_record(user, storage_key(source, video_id))

    async def save_play_record(
        self, user: str, source: str, video_id: str, record: PlayRecord
    ) -> None:
        await self._storage.set_play_record(user, storage_key(source, video_id), record)

    async def get_all_play_records(self, user: str) -> dict[str, PlayRecord]:
        """All play records of a user keyed by storage key."""
        return await self._storage.get_all_play_records(user)

    async def delete_play_record(self, user: str, source: str, video_id: str) -> None:
        await self._storage.delete_play_record(user, storage_key(source, video_id))

    # Favorites

    async def get_favorite(self, user: str, source: str, video_id: str) -> Favorite | None:
        return await self._storage.get_favorite(user, storage_key(source, video_id))

    async def save_favorite(
        self, user: str, source: str, video_id: str, favorite: Favorite
    ) -> None:
        await self._storage.set_favorite(user, storage_key(source, video_id), favorite)

    async def get_all_favorites(self, user: str) -> dict[str, Favorite]:
        """All favorites of a user keyed by storage key."""
        return await self._storage.get_all_favorites(user)

    async def delete_favorite(self, user: str, source: str, video_id: str) -> None:
        await self._storage.delete_favorite(user, storage_key(source, video_id))

    async def is_favorited(self, user: str, source: str, video_id: str) -> bool:
        """True when a favorite record exists for the title."""
        favorite = await self.get_favorite(user, source, video_id)
        return favorite is not None

    # Users

    async def register_user(self, user: str, password: str) -> None:
        await self._storage.register_user(user, password)

    async def verify_user(self, user: str, password: str) -> bool:
        return await self._storage.verify_user(user, password)

    async def check_user_exist(self, user: str) -> bool:
        return await self._storage.check_user_exist(user)

    async def change_password(self, user: str, new_password: str) -> None:
        await self._storage.change_password(user, new_password)

    async def delete_user(self, user: str) -> None:
        """Delete a user with all play records, favorites, skip configs and history."""
        await self._storage.delete_user(user)
        logger.info("User deleted: %s", user)

    async def get_all_users(self) -> list[str]:
        return await self._storage.get_all_users()

    # Search history

    async def get_search_history(self, user: str) -> list[str]:
        """Search keywords, most recent first."""
        return await self._storage.get_search_history(user)

    async def add_search_history(self, user: str, keyword: str) -> None:
        await self._storage.add_search_history(user, keyword)

    async def delete_search_history(self, user: str, keyword: str | None = None) -> None:
        """Remove one keyword, or the entire history when keyword is None."""
        await self._storage.delete_search_history(user, keyword)

    # Admin config

    async def get_admin_config(self) -> AdminConfig | None:
        return await self._storage.get_admin_config()

    async def save_admin_config(self, config: AdminConfig) -> None:
        await self._storage.set_admin_config(config)

    # Skip configs. Source and id are passed through unsplit.

    async def get_skip_config(self, user: str, source: str, video_id: str) -> SkipConfig | None:
        return await self._storage.get_skip_config(user, source, video_id)

    async def set_skip_config(
        self, user: str, source: str, video_id: str, config: SkipConfig
    ) -> None:
        await self._storage.set_skip_config(user, source, video_id, config)

    async def delete_skip_config(self, user: str, source: str, video_id: str) -> None:
        await self._storage.delete_skip_config(user, source, video_id)

    async def get_all_skip_configs(self, user: str) -> dict[str, SkipConfig]:
        return await self._storage.get_all_skip_configs(user)

    # Maintenance

    async def clear_all_data(self) -> None:
        """Wipe every user and the admin config."""
        await self._storage.clear_all_data()
        logger.warning("All stored data cleared (%s backend)", self.backend_name)

    async def close(self) -> None:
        await self._storage.close()


_db: DbManager | None = None
_db_lock = threading.Lock()


def get_db() -> DbManager:
    """Lazy-initialise the shared DbManager."""
    global _db
    if _db is None:
        with _db_lock:
            if _db is None:
                _db = DbManager()
    return _db
