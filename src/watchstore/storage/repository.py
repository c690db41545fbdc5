"""Abstract storage contract shared by every backend."""

from abc import ABC, abstractmethod

from watchstore.models import AdminConfig, Favorite, PlayRecord, SkipConfig


class StorageBackend(ABC):
    """Abstract base class defining the watch-state storage contract.

    Every concrete backend implements every operation. A backend that cannot
    support something implements it as an explicit no-op returning the empty
    result, so callers never probe for capabilities.

    Conventions:
        - ``get_*`` returns the stored value or None; never raises for a missing key.
        - Writes upsert wholesale; deletes of missing keys are no-ops.
        - ``get_all_*`` returns a dict keyed by composite storage key.
        - Search history is most-recent-first.
    """

    name: str = "abstract"

    # Play records

    @abstractmethod
    async def get_play_record(self, user: str, key: str) -> PlayRecord | None:
        """Return the play record stored under key, or None."""

    @abstractmethod
    async def set_play_record(self, user: str, key: str, record: PlayRecord) -> None:
        """Store a play record, replacing any existing one."""

    @abstractmethod
    async def get_all_play_records(self, user: str) -> dict[str, PlayRecord]:
        """Return every play record of a user keyed by storage key."""

    @abstractmethod
    async def delete_play_record(self, user: str, key: str) -> None:
        """Remove a play record. No-op if missing."""

    # Favorites

    @abstractmethod
    async def get_favorite(self, user: str, key: str) -> Favorite | None:
        """Return the favorite stored under key, or None."""

    @abstractmethod
    async def set_favorite(self, user: str, key: str, favorite: Favorite) -> None:
        """Store a favorite, replacing any existing one."""

    @abstractmethod
    async def get_all_favorites(self, user: str) -> dict[str, Favorite]:
        """Return every favorite of a user keyed by storage key."""

    @abstractmethod
    async def delete_favorite(self, user: str, key: str) -> None:
        """Remove a favorite. No-op if missing."""

    # Users

    @abstractmethod
    async def register_user(self, user: str, password: str) -> None:
        """Create a user, or overwrite the password of an existing one."""

    @abstractmethod
    async def verify_user(self, user: str, password: str) -> bool:
        """Check a password. False for unknown users."""

    @abstractmethod
    async def check_user_exist(self, user: str) -> bool:
        """Check whether a user has registered."""

    @abstractmethod
    async def change_password(self, user: str, new_password: str) -> None:
        """Replace the stored password of a user."""

    @abstractmethod
    async def delete_user(self, user: str) -> None:
        """Delete a user and everything the user owns.

        The cascade is not atomic; a failure midway may leave partial state.
        """

    @abstractmethod
    async def get_all_users(self) -> list[str]:
        """List registered user names."""

    # Search history

    @abstractmethod
    async def get_search_history(self, user: str) -> list[str]:
        """Return keywords, most recent first."""

    @abstractmethod
    async def add_search_history(self, user: str, keyword: str) -> None:
        """Push a keyword to the front, dropping duplicates and overflow."""

    @abstractmethod
    async def delete_search_history(self, user: str, keyword: str | None = None) -> None:
        """Remove one keyword, or the whole history when keyword is None."""

    # Admin config

    @abstractmethod
    async def get_admin_config(self) -> AdminConfig | None:
        """Return the site-wide config document, or None if never saved."""

    @abstractmethod
    async def set_admin_config(self, config: AdminConfig) -> None:
        """Replace the site-wide config document."""

    # Skip configs, addressed by source and id rather than a storage key

    @abstractmethod
    async def get_skip_config(self, user: str, source: str, video_id: str) -> SkipConfig | None:
        """Return the skip config for one title, or None."""

    @abstractmethod
    async def set_skip_config(
        self, user: str, source: str, video_id: str, config: SkipConfig
    ) -> None:
        """Store the skip config for one title."""

    @abstractmethod
    async def delete_skip_config(self, user: str, source: str, video_id: str) -> None:
        """Remove the skip config for one title. No-op if missing."""

    @abstractmethod
    async def get_all_skip_configs(self, user: str) -> dict[str, SkipConfig]:
        """Return every skip config of a user keyed by ``storage_key(source, id)``."""

    # Maintenance

    @abstractmethod
    async def clear_all_data(self) -> None:
        """Delete every user (with cascade) and the admin config."""

    async def close(self) -> None:
        """Release client connections. Safe to call more than once."""
