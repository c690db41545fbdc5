"""Fallback backend used when no store is configured or reachable."""

import logging

from watchstore.models import AdminConfig, Favorite, PlayRecord, SkipConfig
from watchstore.storage.repository import StorageBackend

logger = logging.getLogger(__name__)


class NullStorage(StorageBackend):
    """Backend that stores nothing.

    Reads come back empty, writes are dropped and credential checks fail.
    This keeps a misconfigured deployment available at the cost of silently
    losing data, so the first construction in a process logs a warning.
    """

    name = "none"

    _warned = False

    def __init__(self, reason: str = "no storage backend configured") -> None:
        self.reason = reason
        if not NullStorage._warned:
            NullStorage._warned = True
            logger.warning(
                "Storage disabled (%s): reads return nothing and writes are discarded.",
                reason,
            )

    async def get_play_record(self, user: str, key: str) -> PlayRecord | None:
        return None

    async def set_play_record(self, user: str, key: str, record: PlayRecord) -> None:
        return None

    async def get_all_play_records(self, user: str) -> dict[str, PlayRecord]:
        return {}

    async def delete_play_record(self, user: str, key: str) -> None:
        return None

    async def get_favorite(self, user: str, key: str) -> Favorite | None:
        return None

    async def set_favorite(self, user: str, key: str, favorite: Favorite) -> None:
        return None

    async def get_all_favorites(self, user: str) -> dict[str, Favorite]:
        return {}

    async def delete_favorite(self, user: str, key: str) -> None:
        return None

    async def register_user(self, user: str, password: str) -> None:
        return None

    async def verify_user(self, user: str, password: str) -> bool:
        return False

    async def check_user_exist(self, user: str) -> bool:
        return False

    async def change_password(self, user: str, new_password: str) -> None:
        return None

    async def delete_user(self, user: str) -> None:
        return None

    async def get_all_users(self) -> list[str]:
        return []

    async def get_search_history(self, user: str) -> list[str]:
        return []

    async def add_search_history(self, user: str, keyword: str) -> None:
        return None

    async def delete_search_history(self, user: str, keyword: str | None = None) -> None:
        return None

    async def get_admin_config(self) -> AdminConfig | None:
        return None

    async def set_admin_config(self, config: AdminConfig) -> None:
        return None

    async def get_skip_config(self, user: str, source: str, video_id: str) -> SkipConfig | None:
        return None

    async def set_skip_config(
        self, user: str, source: str, video_id: str, config: SkipConfig
    ) -> None:
        return None

    async def delete_skip_config(self, user: str, source: str, video_id: str) -> None:
        return None

    async def get_all_skip_configs(self, user: str) -> dict[str, SkipConfig]:
        return {}

    async def clear_all_data(self) -> None:
        return None
