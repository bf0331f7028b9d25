"""Configuration schema for connector configuration files."""

from typing import Dict, Any, List, Optional, Union
from pydantic import BaseModel, Field, validator

from .settings import (
    AppSettings,
    DropboxSettings,
    LoggingSettings,
    ScheduleSettings,
    ServerSettings,
    split_member_ids,
)


class DropboxConfig(BaseModel):
    """Dropbox section of a connector configuration file."""

    credential_file: str = Field(..., description="Path to the Dropbox team credential JSON file")
    team_member_ids: Union[List[str], str] = Field(
        default_factory=list,
        description="Team member IDs to index (empty = all members)"
    )
    page_size: int = Field(default=1000, description="Members requested per team API page")

    @validator("team_member_ids", pre=True)
    def parse_team_member_ids(cls, v):
        return split_member_ids(v)

    @validator("page_size")
    def validate_page_size(cls, v):
        if not 1 <= v <= 1000:
            raise ValueError("page_size must be between 1 and 1000")
        return v


class ScheduleConfig(BaseModel):
    """Traversal schedule section."""

    traversal_interval_minutes: int = Field(default=1440, description="Minutes between full traversals")
    incremental_interval_minutes: int = Field(
        default=5,
        description="Minutes between incremental traversals (0 = disabled)"
    )
    run_on_start: bool = Field(default=True, description="Run a full traversal at startup")

    @validator("traversal_interval_minutes")
    def validate_traversal_interval(cls, v):
        if v < 1:
            raise ValueError("Traversal interval must be at least 1 minute")
        return v

    @validator("incremental_interval_minutes")
    def validate_incremental_interval(cls, v):
        if v < 0:
            raise ValueError("Incremental interval cannot be negative")
        return v


class ConnectorConfig(BaseModel):
    """Root configuration for the connector."""

    version: str = Field(default="1.0.0", description="Configuration version")
    environment: str = Field(default="development", description="Environment (development, staging, production)")

    dropbox: DropboxConfig
    scheduling: ScheduleConfig = Field(default_factory=ScheduleConfig)

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json, console)")
    log_file: Optional[str] = Field(None, description="Rotating log file path")

    server_host: str = Field(default="0.0.0.0", description="Health server bind address")
    server_port: int = Field(default=8080, description="Health server port")

    @validator('log_level')
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        if v.lower() not in ('json', 'console'):
            raise ValueError("Log format must be 'json' or 'console'")
        return v.lower()

    @validator('environment')
    def validate_environment(cls, v):
        valid_envs = ['development', 'staging', 'production']
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()

    def to_settings(self) -> AppSettings:
        """Build application settings from this configuration.

        Only values the file (or a CONNECTOR_* override) actually set are
        passed on; anything else is left to the DROPBOX_/SCHEDULE_/LOG_/SERVER_
        environment variables and then the settings defaults.
        """
        top = self.dict(exclude_unset=True)

        def pick(mapping: Dict[str, str]) -> Dict[str, Any]:
            return {target: top[source] for source, target in mapping.items() if source in top}

        return AppSettings(
            **pick({"version": "version", "environment": "environment"}),
            dropbox=DropboxSettings(**self.dropbox.dict(exclude_unset=True)),
            scheduling=ScheduleSettings(**self.scheduling.dict(exclude_unset=True)),
            logging=LoggingSettings(**pick({
                "log_level": "level",
                "log_format": "format",
                "log_file": "file_path",
            })),
            server=ServerSettings(**pick({"server_host": "host", "server_port": "port"})),
        )


EXAMPLE_CONFIG: Dict[str, Any] = {
    "version": "1.0.0",
    "environment": "development",
    "dropbox": {
        "credential_file": "./secrets/dropbox_credential.json",
        "team_member_ids": [],
    },
    "scheduling": {
        "traversal_interval_minutes": 1440,
        "incremental_interval_minutes": 5,
        "run_on_start": True,
    },
    "log_level": "INFO",
    "log_format": "json",
}
