"""Application configuration settings."""

from typing import Optional, List, Union
from pydantic import Field, validator
from pydantic_settings import BaseSettings


def split_member_ids(value: Union[str, List[str], None]) -> List[str]:
    """Normalize a team member allow-list given as a list or comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [member_id.strip() for member_id in value if member_id and member_id.strip()]


class DropboxSettings(BaseSettings):
    """Dropbox team API configuration."""

    credential_file: str = Field(default="./secrets/dropbox_credential.json")
    # Empty list means every team member is indexed
    team_member_ids: Union[List[str], str] = Field(default_factory=list)
    page_size: int = Field(default=1000)

    @validator("team_member_ids", pre=True)
    def parse_team_member_ids(cls, v):
        return split_member_ids(v)

    @validator("page_size")
    def validate_page_size(cls, v):
        if not 1 <= v <= 1000:
            raise ValueError("page_size must be between 1 and 1000")
        return v

    class Config:
        env_prefix = "DROPBOX_"


class ScheduleSettings(BaseSettings):
    """Traversal scheduling configuration."""

    traversal_interval_minutes: int = Field(default=1440)
    # 0 disables incremental traversals
    incremental_interval_minutes: int = Field(default=5)
    run_on_start: bool = Field(default=True)

    class Config:
        env_prefix = "SCHEDULE_"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file_path: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "LOG_"


class ServerSettings(BaseSettings):
    """Health/status web server configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)

    class Config:
        env_prefix = "SERVER_"


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="Dropbox Connector")
    version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Sub-settings
    dropbox: DropboxSettings = DropboxSettings()
    scheduling: ScheduleSettings = ScheduleSettings()
    logging: LoggingSettings = LoggingSettings()
    server: ServerSettings = ServerSettings()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "allow"  # Allow extra fields in environment


# Global settings instance
settings = AppSettings()


def get_settings() -> AppSettings:
    """Get application settings."""
    return settings


def set_settings(new_settings: AppSettings) -> AppSettings:
    """Replace the global settings instance (e.g. after loading a config file)."""
    global settings
    settings = new_settings
    return settings
