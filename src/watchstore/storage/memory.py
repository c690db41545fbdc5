"""In-process storage backend."""

import hmac

from watchstore.keys import storage_key
from watchstore.models import AdminConfig, Favorite, PlayRecord, SkipConfig
from watchstore.storage.repository import StorageBackend


class MemoryStorage(StorageBackend):
    """Dict-backed storage living in the current process.

    Same semantics as the remote backends, without persistence. Models are
    copied on the way in and out so callers cannot mutate stored state.
    Per-user data written before registration is kept until the user is
    deleted, mirroring how the key-value stores behave.
    """

    name = "memory"

    def __init__(self, search_history_limit: int = 20) -> None:
        self._limit = search_history_limit
        self._passwords: dict[str, str] = {}
        self._play_records: dict[str, dict[str, PlayRecord]] = {}
        self._favorites: dict[str, dict[str, Favorite]] = {}
        self._skip_configs: dict[str, dict[str, SkipConfig]] = {}
        self._history: dict[str, list[str]] = {}
        self._admin_config: AdminConfig | None = None

    async def get_play_record(self, user: str, key: str) -> PlayRecord | None:
        record = self._play_records.get(user, {}).get(key)
        return record.model_copy(deep=True) if record else None

    async def set_play_record(self, user: str, key: str, record: PlayRecord) -> None:
        self._play_records.setdefault(user, {})[key] = record.model_copy(deep=True)

    async def get_all_play_records(self, user: str) -> dict[str, PlayRecord]:
        return {k: v.model_copy(deep=True) for k, v in self._play_records.get(user, {}).items()}

    async def delete_play_record(self, user: str, key: str) -> None:
        self._play_records.get(user, {}).pop(key, None)

    async def get_favorite(self, user: str, key: str) -> Favorite | None:
        favorite = self._favorites.get(user, {}).get(key)
        return favorite.model_copy(deep=True) if favorite else None

    async def set_favorite(self, user: str, key: str, favorite: Favorite) -> None:
        self._favorites.setdefault(user, {})[key] = favorite.model_copy(deep=True)

    async def get_all_favorites(self, user: str) -> dict[str, Favorite]:
        return {k: v.model_copy(deep=True) for k, v in self._favorites.get(user, {}).items()}

    async def delete_favorite(self, user: str, key: str) -> None:
        self._favorites.get(user, {}).pop(key, None)

    async def register_user(self, user: str, password: str) -> None:
        self._passwords[user] = password

    async def verify_user(self, user: str, password: str) -> bool:
        stored = self._passwords.get(user)
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode(), password.encode())

    async def check_user_exist(self, user: str) -> bool:
        return user in self._passwords

    async def change_password(self, user: str, new_password: str) -> None:
        self._passwords[user] = new_password

    async def delete_user(self, user: str) -> None:
        self._passwords.pop(user, None)
        self._play_records.pop(user, None)
        self._favorites.pop(user, None)
        self._skip_configs.pop(user, None)
        self._history.pop(user, None)

    async def get_all_users(self) -> list[str]:
        return list(self._passwords)

    async def get_search_history(self, user: str) -> list[str]:
        return list(self._history.get(user, []))

    async def add_search_history(self, user: str, keyword: str) -> None:
        history = [k for k in self._history.get(user, []) if k != keyword]
        history.insert(0, keyword)
        self._history[user] = history[: self._limit]

    async def delete_search_history(self, user: str, keyword: str | None = None) -> None:
        if keyword is None:
            self._history.pop(user, None)
        elif user in self._history:
            self._history[user] = [k for k in self._history[user] if k != keyword]

    async def get_admin_config(self) -> AdminConfig | None:
        return self._admin_config.model_copy(deep=True) if self._admin_config else None

    async def set_admin_config(self, config: AdminConfig) -> None:
        self._admin_config = config.model_copy(deep=True)

    async def get_skip_config(self, user: str, source: str, video_id: str) -> SkipConfig | None:
        config = self._skip_configs.get(user, {}).get(storage_key(source, video_id))
        return config.model_copy(deep=True) if config else None

    async def set_skip_config(
        self, user: str, source: str, video_id: str, config: SkipConfig
    ) -> None:
        self._skip_configs.setdefault(user, {})[storage_key(source, video_id)] = config.model_copy(
            deep=True
        )

    async def delete_skip_config(self, user: str, source: str, video_id: str) -> None:
        self._skip_configs.get(user, {}).pop(storage_key(source, video_id), None)

    async def get_all_skip_configs(self, user: str) -> dict[str, SkipConfig]:
        return {k: v.model_copy(deep=True) for k, v in self._skip_configs.get(user, {}).items()}

    async def clear_all_data(self) -> None:
        self._passwords.clear()
        self._play_records.clear()
        self._favorites.clear()
        self._skip_configs.clear()
        self._history.clear()
        self._admin_config = None
