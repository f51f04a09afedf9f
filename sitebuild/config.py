"""
Build configuration using Pydantic Settings.

Settings are read once per invocation (environment variables or a ``.env``
file) and passed explicitly to the collaborators that need them.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sitebuild.errors import ConfigurationError

DELIVERY_HOST = "cdn.contentful.com"
PREVIEW_HOST = "preview.contentful.com"


class ContentfulSettings(BaseSettings):
    """Credentials and options for the Contentful content source."""

    model_config = SettingsConfigDict(
        env_prefix="CONTENTFUL_", env_file=".env", extra="ignore"
    )

    space_id: Optional[str] = Field(default=None, description="Contentful space id")
    delivery_token: Optional[str] = Field(
        default=None, description="Content Delivery API access token"
    )
    preview_token: Optional[str] = Field(
        default=None, description="Content Preview API access token"
    )
    environment: str = Field(default="master", description="Contentful environment")
    preview: bool = Field(default=False, description="Read drafts from the Preview API")
    flatten_asset_urls: bool = Field(
        default=True, description="Replace asset links with their file URL"
    )
    page_size: int = Field(default=1000, ge=1, le=1000, description="Items per API page")
    timeout: float = Field(default=15, gt=0, description="HTTP timeout in seconds")

    @property
    def host(self) -> str:
        return PREVIEW_HOST if self.preview else DELIVERY_HOST

    @property
    def token(self) -> Optional[str]:
        return self.preview_token if self.preview else self.delivery_token

    def require_credentials(self) -> None:
        """Raise :class:`ConfigurationError` unless the selected API can be called."""
        if not self.space_id:
            raise ConfigurationError("CONTENTFUL_SPACE_ID is not set.")
        if not self.token:
            name = "CONTENTFUL_PREVIEW_TOKEN" if self.preview else "CONTENTFUL_DELIVERY_TOKEN"
            raise ConfigurationError(f"{name} is not set.")


class BuildSettings(BaseSettings):
    """Settings for a single build or serve invocation."""

    model_config = SettingsConfigDict(
        env_prefix="SITEBUILD_", env_file=".env", extra="ignore"
    )

    cache_path: Path = Field(
        default=Path(".sourcebit-nextjs-cache.json"),
        description="Cache artifact consumed by the static-site build",
    )
    data_dir: Path = Field(
        default=Path("content/data"),
        description="Directory receiving the theme style side-channel file",
    )
    offline: bool = Field(
        default=False, description="Rebuild from cached objects instead of fetching"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    contentful: ContentfulSettings = Field(default_factory=ContentfulSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> BuildSettings:
    """Settings for the long-running data server, read once per process."""
    return BuildSettings()
