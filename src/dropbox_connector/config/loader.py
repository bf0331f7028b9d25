"""Reads connector configuration files and applies CONNECTOR_* overrides."""

import os
import json
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from .schema import ConnectorConfig
from ..utils.logging import get_logger


# Searched in order when no file is given explicitly
DEFAULT_CONFIG_PATHS = (
    'config/connector.yaml',
    'config/connector.yml',
    'config/connector.json',
    'connector.yaml',
    'connector.yml',
    'connector.json',
)

# variable -> (section or None for top level, key, converter)
ENV_OVERRIDES: Dict[str, Tuple[Optional[str], str, Callable[[str], Any]]] = {
    'CONNECTOR_LOG_LEVEL': (None, 'log_level', str),
    'CONNECTOR_LOG_FORMAT': (None, 'log_format', str),
    'CONNECTOR_ENVIRONMENT': (None, 'environment', str),
    'CONNECTOR_CREDENTIAL_FILE': ('dropbox', 'credential_file', str),
    'CONNECTOR_TEAM_MEMBER_IDS': ('dropbox', 'team_member_ids', str),
    'CONNECTOR_TRAVERSAL_INTERVAL_MINUTES': ('scheduling', 'traversal_interval_minutes', int),
    'CONNECTOR_INCREMENTAL_INTERVAL_MINUTES': ('scheduling', 'incremental_interval_minutes', int),
    'CONNECTOR_SERVER_HOST': (None, 'server_host', str),
    'CONNECTOR_SERVER_PORT': (None, 'server_port', int),
}

# Variables whose empty value is meaningful (clears the member allow-list)
_EMPTY_ALLOWED = {'CONNECTOR_TEAM_MEMBER_IDS'}


class ConfigurationError(Exception):
    """Raised when configuration cannot be read or validated."""
    pass


class ConfigLoader:
    """Builds a validated ConnectorConfig from YAML/JSON plus the environment."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def load_from_file(self, file_path: Union[str, Path]) -> ConnectorConfig:
        """Load a ``.yaml``/``.yml``/``.json`` configuration file.

        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid
        """
        path = Path(file_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        self.logger.info("Reading configuration", file_path=str(path))
        config = self.load_from_dict(self._read(path))

        self.logger.info(
            "Configuration loaded",
            environment=config.environment,
            team_member_filter=len(config.dropbox.team_member_ids)
        )
        return config

    def load_from_dict(self, data: Dict[str, Any]) -> ConnectorConfig:
        """Validate raw configuration data after applying overrides."""
        try:
            return ConnectorConfig(**self._apply_env_overrides(data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def save_to_file(self, config: ConnectorConfig, file_path: Union[str, Path], format: str = 'yaml'):
        """Write ``config`` as YAML or JSON, creating parent directories."""
        format = format.lower()
        if format not in ('yaml', 'json'):
            raise ConfigurationError(f"Unsupported format: {format}")

        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            if format == 'yaml':
                yaml.safe_dump(config.dict(), f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config.dict(), f, indent=2)

        self.logger.info("Configuration written", file_path=str(path), format=format)

    def _read(self, path: Path) -> Dict[str, Any]:
        suffix = path.suffix.lower()
        if suffix not in ('.yaml', '.yml', '.json'):
            raise ConfigurationError(f"Unsupported file format: {path.suffix}")

        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f) if suffix == '.json' else yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML format in {path}: {e}") from e
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON format in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {path}")
        return data

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay CONNECTOR_* variables onto ``data`` without mutating it.

        Unparsable numeric values are logged and skipped.
        """
        merged = dict(data)
        applied = []

        for variable, (section, key, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(variable)
            if raw is None or (raw == '' and variable not in _EMPTY_ALLOWED):
                continue

            try:
                value = convert(raw)
            except ValueError:
                self.logger.warning("Ignoring invalid environment override", variable=variable, value=raw)
                continue

            if section is None:
                merged[key] = value
            else:
                merged[section] = {**(merged.get(section) or {}), key: value}
            applied.append(variable)

        if applied:
            self.logger.info("Applied environment overrides", variables=applied)

        return merged


def load_config_from_env(config_file: Optional[str] = None) -> ConnectorConfig:
    """Load configuration from the first source that names a file.

    Order: ``config_file``, then ``CONNECTOR_CONFIG_FILE``, then
    :data:`DEFAULT_CONFIG_PATHS` relative to the working directory.
    """
    loader = ConfigLoader()

    explicit = config_file or os.getenv('CONNECTOR_CONFIG_FILE')
    if explicit:
        return loader.load_from_file(explicit)

    for candidate in DEFAULT_CONFIG_PATHS:
        if os.path.exists(candidate):
            return loader.load_from_file(candidate)

    raise ConfigurationError(
        "No configuration file found; set CONNECTOR_CONFIG_FILE or pass --config"
    )
