"""Domain models for watchstore."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PlayRecord(BaseModel):
    """Last known playback position for one piece of content."""

    title: str
    source_name: str
    cover: str = ""
    year: str = ""
    index: int = 1  # episode number, 1-based
    total_episodes: int = 1
    play_time: float = 0.0  # seconds into the episode
    total_time: float = 0.0  # episode length in seconds
    save_time: int = 0  # epoch milliseconds
    search_title: str = ""


class Favorite(BaseModel):
    """A favorited title. Existence of the record is the favorite flag."""

    title: str
    source_name: str
    cover: str = ""
    year: str = ""
    total_episodes: int = 1
    save_time: int = 0
    search_title: str = ""
    origin: Literal["vod", "live"] | None = None


class SkipConfig(BaseModel):
    """Intro/outro skip intervals for one piece of content."""

    enable: bool = False
    intro_time: float = 0.0  # skip the first N seconds
    outro_time: float = 0.0  # skip the last N seconds


class _AdminSection(BaseModel):
    """Admin config sections are stored with their PascalCase wire names."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ConfigSubscription(_AdminSection):
    url: str = Field(default="", alias="URL")
    auto_update: bool = Field(default=False, alias="AutoUpdate")
    last_check: str = Field(default="", alias="LastCheck")


class SiteConfig(_AdminSection):
    site_name: str = Field(default="", alias="SiteName")
    announcement: str = Field(default="", alias="Announcement")
    search_downstream_max_page: int = Field(default=5, alias="SearchDownstreamMaxPage")
    site_interface_cache_time: int = Field(default=7200, alias="SiteInterfaceCacheTime")
    douban_proxy_type: str = Field(default="", alias="DoubanProxyType")
    douban_proxy: str = Field(default="", alias="DoubanProxy")
    douban_image_proxy_type: str = Field(default="", alias="DoubanImageProxyType")
    douban_image_proxy: str = Field(default="", alias="DoubanImageProxy")
    disable_yellow_filter: bool = Field(default=False, alias="DisableYellowFilter")
    fluid_search: bool = Field(default=True, alias="FluidSearch")


class UserEntry(_AdminSection):
    username: str
    role: Literal["user", "admin", "owner"] = "user"
    banned: bool = False
    enabled_apis: list[str] | None = Field(default=None, alias="enabledApis")
    tags: list[str] | None = None


class UserConfig(_AdminSection):
    users: list[UserEntry] = Field(default_factory=list, alias="Users")


class SourceEntry(_AdminSection):
    key: str
    name: str
    api: str
    detail: str | None = None
    origin: Literal["config", "custom"] = Field(default="custom", alias="from")
    disabled: bool = False


class CustomCategory(_AdminSection):
    name: str | None = None
    type: Literal["movie", "tv"]
    query: str
    origin: Literal["config", "custom"] = Field(default="custom", alias="from")
    disabled: bool = False


class LiveSource(_AdminSection):
    key: str
    name: str
    url: str
    ua: str | None = None
    epg: str | None = None
    origin: Literal["config", "custom"] = Field(default="custom", alias="from")
    channel_number: int = Field(default=0, alias="channelNumber")
    disabled: bool = False


class AdminConfig(_AdminSection):
    """Site-wide configuration document. At most one exists per deployment.

    Unknown top-level sections are kept as-is so documents written by newer
    deployments survive a round trip.
    """

    config_subscription: ConfigSubscription = Field(
        default_factory=ConfigSubscription, alias="ConfigSubscribtion"
    )
    config_file: str = Field(default="", alias="ConfigFile")
    site_config: SiteConfig = Field(default_factory=SiteConfig, alias="SiteConfig")
    user_config: UserConfig = Field(default_factory=UserConfig, alias="UserConfig")
    source_config: list[SourceEntry] = Field(default_factory=list, alias="SourceConfig")
    custom_categories: list[CustomCategory] = Field(default_factory=list, alias="CustomCategories")
    live_config: list[LiveSource] | None = Field(default=None, alias="LiveConfig")

    def to_json(self) -> str:
        """Serialize using the wire (alias) names."""
        return self.model_dump_json(by_alias=True)
